"""
Permission matrix and YAML loader.

The matrix is static configuration: per entity, which roles may perform which
actions (optionally narrowed by ABAC conditions), which fields are PII and how
each role sees them, and optional per-role field allow-lists.

Key ideas:
- Load YAML once at startup and validate it completely before serving traffic.
- The loaded matrix is read-only; it is passed by reference into the
  evaluator and masking engine, never looked up globally.
- "No rule for (entity, action)" (``rules_for`` returns None) is distinct from
  "rule with no allowed roles".

This module is pure Python with no framework dependency.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .patterns import unknown_placeholders
from .types import (
    ALL_FIELDS,
    ABACConditions,
    ActionType,
    EntityPermissionRule,
    EntityPermissions,
    EntityType,
    FieldAccessLevel,
    FieldVisibility,
    PIIFieldRule,
    Role,
)

logger = logging.getLogger(__name__)


class MatrixConfigError(ValueError):
    """Raised when the permission matrix configuration is invalid."""


# ---- YAML schema -----------------------------------------------------------------------


class ConditionsModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    require_same_org: bool = False
    require_assignment: bool = False
    require_jurisdiction: list[str] | None = None
    require_ownership: bool = False
    require_reauth: bool = False


class ActionRuleModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    roles: list[Role] = Field(default_factory=list)
    conditions: ConditionsModel | None = None


class PIIFieldModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    field: str
    access: dict[Role, FieldAccessLevel] = Field(default_factory=dict)
    default: FieldAccessLevel = FieldAccessLevel.FULL
    mask_pattern: str | None = None


class EntityModel(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Shorthand: "VIEW: [ROLE_A, ROLE_B]" or the long form with conditions.
    actions: dict[ActionType, list[Role] | ActionRuleModel] = Field(default_factory=dict)
    pii_fields: list[PIIFieldModel] = Field(default_factory=list)
    field_access_by_role: dict[Role, Literal["*"] | list[str]] = Field(default_factory=dict)


class MatrixFileModel(BaseModel):
    # Other top-level sections (e.g. "routes") belong to other loaders.
    model_config = ConfigDict(extra="ignore")

    matrix: dict[EntityType, EntityModel]


# ---- Matrix ----------------------------------------------------------------------------


class PermissionMatrix:
    """
    Immutable, validated permission matrix.

    Usage:
        matrix = load_permission_matrix(Path("permission_matrix.yaml"))
        rule = matrix.rules_for(EntityType.WORK_ORDER, ActionType.APPROVE)
    """

    def __init__(self, entities: Mapping[EntityType, EntityPermissions]) -> None:
        _validate(entities)
        self._entities: Mapping[EntityType, EntityPermissions] = MappingProxyType(
            {entity: _freeze(perms) for entity, perms in entities.items()}
        )

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PermissionMatrix:
        """Build from an already-parsed document with a top-level ``matrix`` key."""
        if "matrix" not in raw:
            raise MatrixConfigError("Missing top-level 'matrix' key in permission config")
        try:
            model = MatrixFileModel.model_validate(raw)
        except ValidationError as e:
            raise MatrixConfigError(f"Invalid permission matrix: {e}") from e
        return cls({entity: _entity_from_model(entity, m) for entity, m in model.matrix.items()})

    @classmethod
    def from_yaml(cls, path: Path) -> PermissionMatrix:
        return load_permission_matrix(path)

    # ---- Lookups --------------------------------------------------------------------

    @property
    def entities(self) -> tuple[EntityType, ...]:
        return tuple(self._entities.keys())

    def entity(self, entity: EntityType) -> EntityPermissions | None:
        return self._entities.get(entity)

    def rules_for(self, entity: EntityType, action: ActionType) -> EntityPermissionRule | None:
        perms = self._entities.get(entity)
        if perms is None:
            return None
        return perms.rules.get(action)

    def pii_rules_for(self, entity: EntityType) -> tuple[PIIFieldRule, ...]:
        perms = self._entities.get(entity)
        if perms is None:
            return ()
        return tuple(perms.pii_fields.values())

    def pii_rule(self, entity: EntityType, field_name: str) -> PIIFieldRule | None:
        perms = self._entities.get(entity)
        if perms is None:
            return None
        return perms.pii_fields.get(field_name)

    def field_visibility(self, entity: EntityType, role: Role) -> FieldVisibility | None:
        perms = self._entities.get(entity)
        if perms is None:
            return None
        return perms.field_access_by_role.get(role)


# ---- Loader ----------------------------------------------------------------------------


def load_permission_matrix(path: Path) -> PermissionMatrix:
    """
    Load and validate the permission matrix YAML from disk.

    Expected shape (simplified):

        matrix:
          WORK_ORDER:
            actions:
              VIEW: [OPERATIONS_ADMIN, VIEWER]
              APPROVE:
                roles: [FINANCE_ADMIN, OPERATIONS_ADMIN]
                conditions:
                  require_same_org: true
            pii_fields:
              - field: payee_tax_id
                default: HIDDEN
                mask_pattern: "**-***{last4}"
                access:
                  FINANCE_ADMIN: FULL
                  SUPPORT_AGENT: MASKED
            field_access_by_role:
              SUPER_ADMIN: "*"
              VIEWER: [id, title, status]
    """

    raw_text = path.read_text(encoding="utf-8")
    try:
        raw = yaml.safe_load(raw_text) or {}
    except yaml.YAMLError as e:
        raise MatrixConfigError(f"Permission config is not valid YAML: {path}") from e
    if not isinstance(raw, dict):
        raise MatrixConfigError(f"Permission config must be a mapping: {path}")

    matrix = PermissionMatrix.from_mapping(raw)
    logger.info("Loaded permission matrix path=%s entities=%d", path, len(matrix.entities))
    return matrix


def _entity_from_model(entity: EntityType, model: EntityModel) -> EntityPermissions:
    rules: dict[ActionType, EntityPermissionRule] = {}
    for action, rule_val in model.actions.items():
        if isinstance(rule_val, ActionRuleModel):
            roles = rule_val.roles
            conditions = _conditions_from_model(rule_val.conditions)
        else:
            roles = rule_val
            conditions = None
        rules[action] = EntityPermissionRule(
            entity=entity,
            action=action,
            allowed_roles=frozenset(roles),
            conditions=conditions,
        )

    pii_fields: dict[str, PIIFieldRule] = {}
    for pii in model.pii_fields:
        name = pii.field.strip()
        if not name:
            raise MatrixConfigError(f"entity {entity.value!r} has a PII rule with an empty field name")
        if name in pii_fields:
            raise MatrixConfigError(f"entity {entity.value!r} defines PII field {name!r} more than once")
        pii_fields[name] = PIIFieldRule(
            field_name=name,
            access_by_role=dict(pii.access),
            default_access=pii.default,
            mask_pattern=pii.mask_pattern,
        )

    field_access: dict[Role, FieldVisibility] = {}
    for role, visibility in model.field_access_by_role.items():
        field_access[role] = ALL_FIELDS if visibility == ALL_FIELDS else frozenset(visibility)

    return EntityPermissions(
        entity=entity,
        rules=rules,
        pii_fields=pii_fields,
        field_access_by_role=field_access,
    )


def _conditions_from_model(model: ConditionsModel | None) -> ABACConditions | None:
    if model is None:
        return None
    conditions = ABACConditions(
        require_same_org=model.require_same_org,
        require_assignment=model.require_assignment,
        require_jurisdiction=(
            frozenset(model.require_jurisdiction) if model.require_jurisdiction is not None else None
        ),
        require_ownership=model.require_ownership,
        require_reauth=model.require_reauth,
    )
    return None if conditions.is_empty else conditions


# ---- Validation ------------------------------------------------------------------------


def _validate(entities: Mapping[EntityType, EntityPermissions]) -> None:
    """
    Load-time checks. Hard errors raise MatrixConfigError; allow-list fields
    without a matching PII rule are only logged as warnings.
    """

    for entity, perms in entities.items():
        if not isinstance(entity, EntityType):
            raise MatrixConfigError(f"unknown entity {entity!r}")
        if perms.entity != entity:
            raise MatrixConfigError(f"entity table for {entity.value!r} is labelled {perms.entity!r}")
        if not perms.rules:
            raise MatrixConfigError(f"entity {entity.value!r} has no action rules")

        for action, rule in perms.rules.items():
            if not isinstance(action, ActionType):
                raise MatrixConfigError(f"entity {entity.value!r} references unknown action {action!r}")
            if rule.entity != entity or rule.action != action:
                raise MatrixConfigError(
                    f"rule filed under {entity.value}.{action.value} is for {rule.entity}.{rule.action}"
                )
            _check_roles(rule.allowed_roles, f"{entity.value}.{action.value}")

        for name, pii in perms.pii_fields.items():
            where = f"{entity.value}.pii_fields[{name!r}]"
            if pii.field_name != name:
                raise MatrixConfigError(f"{where} is keyed by a different field {pii.field_name!r}")
            _check_roles(pii.access_by_role.keys(), where)
            levels = set(pii.access_by_role.values()) | {pii.default_access}
            if not all(isinstance(level, FieldAccessLevel) for level in levels):
                raise MatrixConfigError(f"{where} uses an unknown access level")
            if pii.mask_pattern is not None:
                unknown = unknown_placeholders(pii.mask_pattern)
                if unknown:
                    raise MatrixConfigError(f"{where} mask pattern uses unknown placeholders: {unknown}")
            elif FieldAccessLevel.MASKED in levels:
                logger.warning("%s can be MASKED but has no mask_pattern; placeholder will be used", where)

        _check_roles(perms.field_access_by_role.keys(), f"{entity.value}.field_access_by_role")
        for role, visibility in perms.field_access_by_role.items():
            if visibility == ALL_FIELDS:
                continue
            unknown_fields = sorted(set(visibility) - set(perms.pii_fields))
            if unknown_fields:
                logger.warning(
                    "%s.field_access_by_role[%s] lists fields without a PII rule: %s",
                    entity.value,
                    role.value,
                    unknown_fields,
                )


def _check_roles(roles: Any, where: str) -> None:
    unknown = [r for r in roles if not isinstance(r, Role)]
    if unknown:
        raise MatrixConfigError(f"{where} references unknown roles: {unknown}")


def _freeze(perms: EntityPermissions) -> EntityPermissions:
    pii_fields = {
        name: replace(rule, access_by_role=MappingProxyType(dict(rule.access_by_role)))
        for name, rule in perms.pii_fields.items()
    }
    return replace(
        perms,
        rules=MappingProxyType(dict(perms.rules)),
        pii_fields=MappingProxyType(pii_fields),
        field_access_by_role=MappingProxyType(dict(perms.field_access_by_role)),
    )
