"""
Field access resolution for PII fields.

Resolution order for a single role (first match wins):

1. ``field_access_by_role[entity][role] == "*"``        -> FULL
2. explicit allow-list containing the field             -> FULL
   (a list that excludes the field falls through)
3. PII rule for the field with an entry for the role    -> that entry
4. PII rule's ``default_access``; FULL when the field has no PII rule at all

With several roles the effective level is the most permissive one
(HIDDEN < MASKED < FULL).
"""

from __future__ import annotations

from typing import Iterable

from .matrix import PermissionMatrix
from .types import ALL_FIELDS, EntityType, FieldAccessLevel, Role


class FieldAccessResolver:
    def __init__(self, matrix: PermissionMatrix) -> None:
        self._matrix = matrix

    @property
    def matrix(self) -> PermissionMatrix:
        return self._matrix

    def is_regulated(self, entity: EntityType, field_name: str) -> bool:
        """True if the field has a PII rule on this entity."""
        return self._matrix.pii_rule(entity, field_name) is not None

    def access_level(self, role: Role, entity: EntityType, field_name: str) -> FieldAccessLevel:
        visibility = self._matrix.field_visibility(entity, role)
        if visibility == ALL_FIELDS:
            return FieldAccessLevel.FULL
        if visibility is not None and field_name in visibility:
            return FieldAccessLevel.FULL

        rule = self._matrix.pii_rule(entity, field_name)
        if rule is None:
            return FieldAccessLevel.FULL

        explicit = rule.access_by_role.get(role)
        if explicit is not None:
            return explicit
        return rule.default_access

    def effective_access_level(
        self,
        roles: Iterable[Role],
        entity: EntityType,
        field_name: str,
    ) -> FieldAccessLevel:
        """
        Most permissive level across ``roles``.

        With no roles, unregulated fields stay FULL and regulated fields are
        HIDDEN.
        """

        levels = [self.access_level(role, entity, field_name) for role in set(roles)]
        if levels:
            return max(levels)
        if self.is_regulated(entity, field_name):
            return FieldAccessLevel.HIDDEN
        return FieldAccessLevel.FULL

    def fields_at_level(self, role: Role, entity: EntityType, level: FieldAccessLevel) -> list[str]:
        return [
            rule.field_name
            for rule in self._matrix.pii_rules_for(entity)
            if self.access_level(role, entity, rule.field_name) is level
        ]

    def hidden_fields(self, role: Role, entity: EntityType) -> list[str]:
        return self.fields_at_level(role, entity, FieldAccessLevel.HIDDEN)

    def masked_fields(self, role: Role, entity: EntityType) -> list[str]:
        return self.fields_at_level(role, entity, FieldAccessLevel.MASKED)
