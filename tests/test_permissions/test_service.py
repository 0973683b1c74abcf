"""End-to-end scenarios against the bundled matrix through AuthorizationService."""

import itertools

import pytest

from authz.permissions.matrix import MatrixConfigError
from authz.permissions.service import AuthorizationService
from authz.permissions.types import (
    AccessContext,
    ActionType,
    DenialReason,
    EntityType,
    FieldAccessLevel,
    Role,
)
from authz.settings import Settings


def test_work_order_approval(service):
    assert service.is_allowed(Role.OPERATIONS_ADMIN, EntityType.WORK_ORDER, ActionType.APPROVE) is True
    assert service.is_allowed(Role.VIEWER, EntityType.WORK_ORDER, ActionType.APPROVE) is False
    result = service.evaluate(Role.VIEWER, EntityType.WORK_ORDER, ActionType.APPROVE)
    assert result.reason is DenialReason.ROLE_NOT_AUTHORIZED


def test_investor_ssn_masked_for_support_agent(service):
    assert service.access_level(Role.SUPPORT_AGENT, EntityType.INVESTOR, "ssn") is FieldAccessLevel.MASKED
    result = service.mask({"id": "inv-1", "ssn": "123-45-6789"}, Role.SUPPORT_AGENT, EntityType.INVESTOR)
    assert result.data["ssn"] == "***-**-6789"
    assert "ssn" in result.masked_fields


def test_payout_update_requires_ownership(service):
    assert service.is_allowed(Role.FINANCE_OFFICER, EntityType.PAYOUT_REQUEST, ActionType.UPDATE)
    ctx = AccessContext(owner_id="u1", requester_id="u2")
    result = service.evaluate(Role.FINANCE_OFFICER, EntityType.PAYOUT_REQUEST, ActionType.UPDATE, ctx)
    assert result.allowed is False
    assert result.reason is DenialReason.OWNERSHIP_REQUIRED


def test_empty_roles_denied_everywhere(service):
    for entity, action in itertools.product(EntityType, ActionType):
        assert service.is_allowed_any([], entity, action) is False


def test_unregulated_title_on_work_order(service):
    for role in Role:
        assert service.access_level(role, EntityType.WORK_ORDER, "title") is FieldAccessLevel.FULL
    result = service.mask({"title": "Fix roof", "payeeTaxId": "12-3456789"}, Role.TECHNICIAN, EntityType.WORK_ORDER)
    assert result.data["title"] == "Fix roof"
    assert "title" not in result.masked_fields


def test_composite_and_multi_role_masking(service):
    roles = [Role.VIEWER, Role.FINANCE_ADMIN]
    assert service.is_allowed_any(roles, EntityType.WORK_ORDER, ActionType.APPROVE) is True
    assert service.is_allowed_all(roles, EntityType.WORK_ORDER, ActionType.APPROVE) is False
    assert service.check(roles, EntityType.WORK_ORDER, ActionType.APPROVE).allowed is True

    level = service.effective_access_level(roles, EntityType.WORK_ORDER, "payeeTaxId")
    assert level is FieldAccessLevel.FULL
    masked = service.mask_for_roles({"payeeTaxId": "12-3456789"}, roles, EntityType.WORK_ORDER)
    assert masked.data["payeeTaxId"] == "12-3456789"

    many = service.mask_many([{"ssn": "123-45-6789"}], Role.AUDITOR, EntityType.INVESTOR)
    assert many.data[0]["ssn"] == "***-**-6789"


def test_from_settings_uses_bundled_matrix(monkeypatch):
    monkeypatch.delenv("AUTHZ_MATRIX_PATH", raising=False)
    service = AuthorizationService.from_settings(Settings())
    assert set(service.matrix.entities) == set(EntityType)


def test_from_settings_honours_matrix_path(tmp_path, monkeypatch):
    path = tmp_path / "matrix.yaml"
    path.write_text("matrix:\n  CHECK:\n    actions:\n      VIEW: [AUDITOR]\n", encoding="utf-8")
    monkeypatch.setenv("AUTHZ_MATRIX_PATH", str(path))
    monkeypatch.setenv("AUTHZ_LOG_LEVEL", "debug")

    settings = Settings()
    assert settings.resolved_matrix_path() == path
    assert settings.log_level == "debug"

    service = AuthorizationService.from_settings(settings)
    assert service.matrix.entities == (EntityType.CHECK,)
    assert service.is_allowed(Role.AUDITOR, EntityType.CHECK, ActionType.VIEW)


def test_from_settings_rejects_invalid_matrix(tmp_path):
    path = tmp_path / "matrix.yaml"
    path.write_text("matrix:\n  CHECK:\n    actions:\n      VIEW: [JANITOR]\n", encoding="utf-8")
    with pytest.raises(MatrixConfigError):
        AuthorizationService.from_settings(Settings(matrix_path=str(path)))
