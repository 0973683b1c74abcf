"""Tests for the field masking engine."""

import pytest

from authz.permissions.fields import FieldAccessResolver
from authz.permissions.masking import MaskedRecord, MaskingEngine
from authz.permissions.patterns import MASK_PLACEHOLDER
from authz.permissions.types import EntityType, FieldAccessLevel, Role


INVESTOR = {
    "id": "inv-1",
    "name": "Jane Roe",
    "ssn": "123-45-6789",
    "email": "jane.roe@example.com",
    "dateOfBirth": "1984-02-29",
}


@pytest.fixture
def engine(small_matrix):
    return MaskingEngine(FieldAccessResolver(small_matrix))


def test_masked_field_uses_pattern(engine):
    result = engine.mask(INVESTOR, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    assert result.data["ssn"] == "***-**-6789"
    assert result.data["email"] == "j***@example.com"
    assert "ssn" in result.masked_fields


def test_hidden_field_is_removed_not_nulled(engine):
    result = engine.mask(INVESTOR, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    assert "dateOfBirth" not in result.data
    assert result.masked_fields == ("ssn", "email", "dateOfBirth")


def test_full_and_unregulated_fields_pass_through(engine):
    result = engine.mask(INVESTOR, Role.COMPLIANCE_OFFICER, EntityType.INVESTOR)
    assert result.data["ssn"] == "123-45-6789"
    assert result.data["email"] == "jane.roe@example.com"
    assert result.data["name"] == "Jane Roe"
    assert result.data["id"] == "inv-1"
    assert result.masked_fields == ("dateOfBirth",)


def test_unregulated_field_never_reported(engine):
    record = {"id": "wo-1", "title": "Replace boiler", "payeeTaxId": "12-3456789"}
    result = engine.mask(record, Role.VIEWER, EntityType.WORK_ORDER)
    assert result.data["title"] == "Replace boiler"
    assert "title" not in result.masked_fields
    assert "payeeTaxId" not in result.data

    result = engine.mask(record, Role.OPERATIONS_ADMIN, EntityType.WORK_ORDER)
    assert result.data["payeeTaxId"] == "**-***6789"
    assert result.masked_fields == ("payeeTaxId",)


def test_input_record_is_not_modified(engine):
    record = dict(INVESTOR)
    engine.mask(record, Role.VIEWER, EntityType.INVESTOR)
    assert record == INVESTOR


def test_none_value_under_mask_stays_none(engine):
    result = engine.mask({"ssn": None}, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    assert result.data == {"ssn": None}
    assert result.masked_fields == ()


def test_short_value_masks_to_placeholder(engine):
    result = engine.mask({"ssn": "42"}, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    assert result.data["ssn"] == MASK_PLACEHOLDER
    assert result.masked_fields == ("ssn",)


def test_absent_fields_are_not_reported(engine):
    result = engine.mask({"id": "inv-2"}, Role.VIEWER, EntityType.INVESTOR)
    assert result.data == {"id": "inv-2"}
    assert result.masked_fields == ()


@pytest.mark.parametrize("role", [Role.SUPPORT_AGENT, Role.VIEWER, Role.RISK_ANALYST, Role.COMPLIANCE_OFFICER])
def test_masking_is_idempotent(engine, role):
    first = engine.mask(INVESTOR, role, EntityType.INVESTOR)
    second = engine.mask(first.data, role, EntityType.INVESTOR)
    assert dict(second.data) == dict(first.data)
    assert set(second.masked_fields) <= set(first.masked_fields)


def test_idempotent_when_value_collapsed_to_placeholder(engine):
    first = engine.mask({"ssn": "42"}, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    second = engine.mask(first.data, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    assert second.data["ssn"] == MASK_PLACEHOLDER
    assert second.masked_fields == ("ssn",)


def test_masked_record_remembers_applied_levels(engine):
    result = engine.mask(INVESTOR, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    assert isinstance(result.data, MaskedRecord)
    assert result.data.entity is EntityType.INVESTOR
    assert set(result.data.applied_levels) == {"ssn", "email"}


def test_masked_record_is_read_only(engine):
    record = engine.mask(INVESTOR, Role.SUPPORT_AGENT, EntityType.INVESTOR).data
    with pytest.raises(TypeError):
        record["ssn"] = "987-65-4321"
    assert not hasattr(record, "update")
    assert record["ssn"] == "***-**-6789"


def test_raw_value_copied_into_masked_record_is_masked_again(engine):
    first = engine.mask({"ssn": "123-45-6789"}, Role.SUPPORT_AGENT, EntityType.INVESTOR).data
    refreshed = MaskedRecord({**first, "ssn": "987-65-4321"}, first.entity, first.applied_levels)

    result = engine.mask(refreshed, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    assert result.data["ssn"] == "***-**-4321"
    assert result.masked_fields == ("ssn",)


def test_hand_built_masked_record_does_not_skip_masking(engine):
    forged = MaskedRecord(
        {"ssn": "123-45-6789", "email": "jane.roe@example.com"},
        EntityType.INVESTOR,
        {"ssn": FieldAccessLevel.MASKED, "email": FieldAccessLevel.MASKED},
    )
    result = engine.mask(forged, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    assert result.data["ssn"] == "***-**-6789"
    assert result.data["email"] == "j***@example.com"


def test_mask_for_roles_uses_most_permissive(engine):
    result = engine.mask_for_roles(INVESTOR, [Role.VIEWER, Role.SUPPORT_AGENT], EntityType.INVESTOR)
    assert result.data["ssn"] == "***-**-6789"

    result = engine.mask_for_roles(INVESTOR, [Role.SUPPORT_AGENT, Role.COMPLIANCE_OFFICER], EntityType.INVESTOR)
    assert result.data["ssn"] == "123-45-6789"

    result = engine.mask_for_roles(INVESTOR, [], EntityType.INVESTOR)
    assert set(result.data) == {"id", "name"}


def test_mask_many_unions_masked_fields(engine):
    records = [{"id": "a", "ssn": "111-22-3333"}, {"id": "b", "email": "bo@example.com"}]
    result = engine.mask_many(records, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    assert [r["id"] for r in result.data] == ["a", "b"]
    assert result.data[0]["ssn"] == "***-**-3333"
    assert result.data[1]["email"] == "b***@example.com"
    assert result.masked_fields == ("ssn", "email")
