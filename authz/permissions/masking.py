"""
Field masking engine.

Applies PII field rules to a record and returns a redacted copy plus the names
of every field that was removed or masked:

- HIDDEN  -> field is removed from the output (absent, not None)
- MASKED  -> value is rendered through the rule's mask pattern
- FULL    -> value passes through

Fields without a PII rule always pass through and are never reported.

The output record is a read-only MaskedRecord that remembers the level it
applied to each field. Masking it again leaves a field alone only if it was
recorded as MASKED and its value is still mask output for the field's pattern
(the pattern maps it to itself, or it is MASK_PLACEHOLDER). Anything else is
treated as raw and masked again, so "***-**-6789" stays "***-**-6789" while a
raw value slipped into a copied record never passes through.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Mapping

from .fields import FieldAccessResolver
from .patterns import MASK_PLACEHOLDER, apply_mask_pattern
from .types import EntityType, FieldAccessLevel, MaskedFieldResult, Role

logger = logging.getLogger(__name__)


class MaskedRecord(Mapping[str, Any]):
    """A read-only redacted record that knows which access level produced each altered field."""

    __slots__ = ("_data", "_entity", "_applied_levels")

    def __init__(
        self,
        data: Mapping[str, Any],
        entity: EntityType,
        applied_levels: Mapping[str, FieldAccessLevel],
    ) -> None:
        self._data: Mapping[str, Any] = MappingProxyType(dict(data))
        self._entity = entity
        self._applied_levels: Mapping[str, FieldAccessLevel] = MappingProxyType(dict(applied_levels))

    @property
    def entity(self) -> EntityType:
        return self._entity

    @property
    def applied_levels(self) -> Mapping[str, FieldAccessLevel]:
        return self._applied_levels

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"MaskedRecord({dict(self._data)!r}, entity={self._entity.value})"


def _is_mask_output(value: Any, pattern: str | None) -> bool:
    if value == MASK_PLACEHOLDER:
        return True
    return isinstance(value, str) and pattern is not None and apply_mask_pattern(value, pattern) == value


class MaskingEngine:
    def __init__(self, resolver: FieldAccessResolver) -> None:
        self._resolver = resolver

    def mask(
        self,
        record: Mapping[str, Any],
        role: Role,
        entity: EntityType,
    ) -> MaskedFieldResult[MaskedRecord]:
        return self._mask(record, entity, lambda name: self._resolver.access_level(role, entity, name))

    def mask_for_roles(
        self,
        record: Mapping[str, Any],
        roles: Iterable[Role],
        entity: EntityType,
    ) -> MaskedFieldResult[MaskedRecord]:
        """Mask using the most permissive level across all held roles."""
        held = frozenset(roles)
        return self._mask(
            record,
            entity,
            lambda name: self._resolver.effective_access_level(held, entity, name),
        )

    def mask_many(
        self,
        records: Iterable[Mapping[str, Any]],
        role: Role,
        entity: EntityType,
    ) -> MaskedFieldResult[list[MaskedRecord]]:
        """Mask every record; ``masked_fields`` is the union, in first-seen order."""
        data: list[MaskedRecord] = []
        seen: dict[str, None] = {}
        for record in records:
            result = self.mask(record, role, entity)
            data.append(result.data)
            seen.update(dict.fromkeys(result.masked_fields))
        return MaskedFieldResult(data=data, masked_fields=tuple(seen))

    def _mask(
        self,
        record: Mapping[str, Any],
        entity: EntityType,
        level_for: Callable[[str], FieldAccessLevel],
    ) -> MaskedFieldResult[MaskedRecord]:
        matrix = self._resolver.matrix
        previous: Mapping[str, FieldAccessLevel] = {}
        if isinstance(record, MaskedRecord) and record.entity == entity:
            previous = record.applied_levels

        data: dict[str, Any] = {}
        applied: dict[str, FieldAccessLevel] = {}
        touched: list[str] = []

        for name, value in record.items():
            rule = matrix.pii_rule(entity, name)
            if rule is None:
                data[name] = value
                continue

            level = level_for(name)
            if level is FieldAccessLevel.HIDDEN:
                touched.append(name)
                continue

            if previous.get(name) is FieldAccessLevel.MASKED and _is_mask_output(value, rule.mask_pattern):
                # Already masked on an earlier pass; the original value is gone.
                data[name] = value
                applied[name] = FieldAccessLevel.MASKED
                touched.append(name)
                continue

            if level is FieldAccessLevel.FULL or value is None:
                data[name] = value
                continue

            data[name] = apply_mask_pattern(value, rule.mask_pattern)
            applied[name] = FieldAccessLevel.MASKED
            touched.append(name)

        if touched:
            logger.debug("Masked entity=%s fields=%s", entity.value, touched)
        return MaskedFieldResult(data=MaskedRecord(data, entity, applied), masked_fields=tuple(touched))
