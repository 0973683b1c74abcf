"""
Authorization service: the one object callers hold.

Wires a single PermissionMatrix into the evaluator, the field resolver and the
masking engine, and exposes the operations route guards, UI gates and service
layers call. Build it once at startup and share it; every method is a pure
function of its arguments and the matrix.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from ..logging_config import configure_authz_logging
from ..settings import Settings, get_settings
from .evaluator import PermissionEvaluator
from .fields import FieldAccessResolver
from .masking import MaskedRecord, MaskingEngine
from .matrix import PermissionMatrix, load_permission_matrix
from .types import (
    AccessContext,
    ActionType,
    EntityType,
    FieldAccessLevel,
    MaskedFieldResult,
    MembershipMode,
    PermissionCheckResult,
    Role,
)

logger = logging.getLogger(__name__)


class AuthorizationService:
    def __init__(self, matrix: PermissionMatrix) -> None:
        self._matrix = matrix
        self._evaluator = PermissionEvaluator(matrix)
        self._fields = FieldAccessResolver(matrix)
        self._masking = MaskingEngine(self._fields)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> AuthorizationService:
        """Load the matrix named by settings (bundled YAML by default)."""
        settings = settings or get_settings()
        configure_authz_logging(settings.log_level)
        path = settings.resolved_matrix_path()
        service = cls(load_permission_matrix(path))
        logger.info("Authorization service ready matrix=%s", path)
        return service

    @property
    def matrix(self) -> PermissionMatrix:
        return self._matrix

    @property
    def evaluator(self) -> PermissionEvaluator:
        return self._evaluator

    @property
    def fields(self) -> FieldAccessResolver:
        return self._fields

    # ---- Decisions ------------------------------------------------------------------

    def is_allowed(self, role: Role, entity: EntityType, action: ActionType) -> bool:
        return self._evaluator.is_allowed(role, entity, action)

    def evaluate(
        self,
        role: Role,
        entity: EntityType,
        action: ActionType,
        context: AccessContext | None = None,
    ) -> PermissionCheckResult:
        return self._evaluator.evaluate(role, entity, action, context)

    def check(
        self,
        roles: Iterable[Role],
        entity: EntityType,
        action: ActionType,
        context: AccessContext | None = None,
        mode: MembershipMode = MembershipMode.ANY,
    ) -> PermissionCheckResult:
        return self._evaluator.check(roles, entity, action, context, mode)

    def is_allowed_any(self, roles: Iterable[Role], entity: EntityType, action: ActionType) -> bool:
        return self._evaluator.is_allowed_any(roles, entity, action)

    def is_allowed_all(self, roles: Iterable[Role], entity: EntityType, action: ActionType) -> bool:
        return self._evaluator.is_allowed_all(roles, entity, action)

    # ---- Field access ---------------------------------------------------------------

    def access_level(self, role: Role, entity: EntityType, field_name: str) -> FieldAccessLevel:
        return self._fields.access_level(role, entity, field_name)

    def effective_access_level(
        self,
        roles: Iterable[Role],
        entity: EntityType,
        field_name: str,
    ) -> FieldAccessLevel:
        return self._fields.effective_access_level(roles, entity, field_name)

    def mask(
        self,
        record: Mapping[str, Any],
        role: Role,
        entity: EntityType,
    ) -> MaskedFieldResult[MaskedRecord]:
        return self._masking.mask(record, role, entity)

    def mask_for_roles(
        self,
        record: Mapping[str, Any],
        roles: Iterable[Role],
        entity: EntityType,
    ) -> MaskedFieldResult[MaskedRecord]:
        return self._masking.mask_for_roles(record, roles, entity)

    def mask_many(
        self,
        records: Iterable[Mapping[str, Any]],
        role: Role,
        entity: EntityType,
    ) -> MaskedFieldResult[list[MaskedRecord]]:
        return self._masking.mask_many(records, role, entity)
