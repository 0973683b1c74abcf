"""
Permission evaluator.

Answers "can role R do action A on entity E (with context C)?" against an
injected PermissionMatrix. The role check always runs first; ABAC conditions
are only evaluated for a role that is already allowed, so they can narrow a
grant but never widen one.

All denials are data (DenialReason), never exceptions.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from .matrix import PermissionMatrix
from .roles import ordered_roles
from .types import (
    ABACConditions,
    AccessContext,
    ActionType,
    DenialReason,
    EntityPermissionRule,
    EntityType,
    MembershipMode,
    PermissionCheckResult,
    Role,
)

logger = logging.getLogger(__name__)

_VIEW_ACTIONS = (ActionType.VIEW, ActionType.VIEW_LIST)


# ---- ABAC conditions -------------------------------------------------------------------

# Each check returns None when the condition holds, else the denial.
_ConditionCheck = Callable[[ABACConditions, AccessContext], PermissionCheckResult | None]


def _missing(attribute: str) -> PermissionCheckResult:
    return PermissionCheckResult.deny(
        DenialReason.MISSING_CONTEXT_ATTRIBUTE,
        f"Context attribute {attribute!r} is required",
    )


def _check_same_org(cond: ABACConditions, ctx: AccessContext) -> PermissionCheckResult | None:
    if not cond.require_same_org:
        return None
    if ctx.requester_org_id is None:
        return _missing("requester_org_id")
    if ctx.resource_org_id is None:
        return _missing("resource_org_id")
    if ctx.requester_org_id != ctx.resource_org_id:
        return PermissionCheckResult.deny(DenialReason.ORG_MISMATCH, "Resource belongs to another organization")
    return None


def _check_assignment(cond: ABACConditions, ctx: AccessContext) -> PermissionCheckResult | None:
    if not cond.require_assignment:
        return None
    if ctx.requester_id is None:
        return _missing("requester_id")
    if ctx.assignee_ids is None:
        return _missing("assignee_ids")
    if ctx.requester_id not in ctx.assignee_ids:
        return PermissionCheckResult.deny(DenialReason.ASSIGNMENT_REQUIRED, "Requester is not assigned")
    return None


def _check_jurisdiction(cond: ABACConditions, ctx: AccessContext) -> PermissionCheckResult | None:
    if cond.require_jurisdiction is None:
        return None
    if ctx.jurisdiction is None:
        return _missing("jurisdiction")
    if ctx.jurisdiction not in cond.require_jurisdiction:
        return PermissionCheckResult.deny(
            DenialReason.JURISDICTION_NOT_PERMITTED,
            f"Jurisdiction {ctx.jurisdiction!r} is not permitted",
        )
    return None


def _check_ownership(cond: ABACConditions, ctx: AccessContext) -> PermissionCheckResult | None:
    if not cond.require_ownership:
        return None
    if ctx.requester_id is None:
        return _missing("requester_id")
    if ctx.owner_id is None:
        return _missing("owner_id")
    if ctx.requester_id != ctx.owner_id:
        return PermissionCheckResult.deny(DenialReason.OWNERSHIP_REQUIRED, "Requester does not own the resource")
    return None


def _check_reauth(cond: ABACConditions, ctx: AccessContext) -> PermissionCheckResult | None:
    if not cond.require_reauth or ctx.reauthenticated:
        return None
    return PermissionCheckResult.deny(
        DenialReason.REAUTH_REQUIRED,
        "Recent re-authentication is required",
        requires_reauth=True,
    )


# Evaluation order determines which reason wins when several conditions fail.
_CONDITION_CHECKS: tuple[_ConditionCheck, ...] = (
    _check_same_org,
    _check_assignment,
    _check_jurisdiction,
    _check_ownership,
    _check_reauth,
)


def evaluate_conditions(conditions: ABACConditions, context: AccessContext | None) -> PermissionCheckResult:
    """AND of every present condition; the first failing one is returned."""
    ctx = context if context is not None else AccessContext()
    for check in _CONDITION_CHECKS:
        denial = check(conditions, ctx)
        if denial is not None:
            return denial
    return PermissionCheckResult.allow()


# ---- Evaluator -------------------------------------------------------------------------


class PermissionEvaluator:
    """
    Stateless decision functions over a PermissionMatrix.

    Safe to share between threads: the matrix is read-only and no call keeps
    state between invocations.
    """

    def __init__(self, matrix: PermissionMatrix) -> None:
        self._matrix = matrix

    @property
    def matrix(self) -> PermissionMatrix:
        return self._matrix

    def is_allowed(self, role: Role, entity: EntityType, action: ActionType) -> bool:
        """Role-only check. A missing rule is a deny."""
        rule = self._matrix.rules_for(entity, action)
        if rule is None:
            return False
        return role in rule.allowed_roles

    def evaluate(
        self,
        role: Role,
        entity: EntityType,
        action: ActionType,
        context: AccessContext | None = None,
    ) -> PermissionCheckResult:
        rule = self._matrix.rules_for(entity, action)
        result = self._evaluate_rule(rule, role, entity, action, context)
        logger.debug(
            "Permission: role=%s entity=%s action=%s allowed=%s reason=%s",
            role.value,
            entity.value,
            action.value,
            result.allowed,
            result.reason,
        )
        return result

    def check(
        self,
        roles: Iterable[Role],
        entity: EntityType,
        action: ActionType,
        context: AccessContext | None = None,
        mode: MembershipMode = MembershipMode.ANY,
    ) -> PermissionCheckResult:
        """
        Composite check for a caller holding several roles.

        ANY: allowed if at least one held role is allowed (union).
        ALL: allowed only if every held role is allowed (intersection).
        No roles is a deny in both modes.

        For an ANY denial the most specific reason is reported: a condition
        failure on an otherwise-authorized role beats ROLE_NOT_AUTHORIZED.
        For an ALL denial the first failing role (declaration order) wins.
        """

        held = ordered_roles(roles)
        if not held:
            logger.debug("Permission: no roles entity=%s action=%s", entity.value, action.value)
            return PermissionCheckResult.deny(DenialReason.NO_ROLES_ASSIGNED, "Caller holds no roles")

        results = [self.evaluate(role, entity, action, context) for role in held]

        if mode is MembershipMode.ALL:
            for result in results:
                if not result.allowed:
                    return result
            return PermissionCheckResult.allow()

        denials: list[PermissionCheckResult] = []
        for result in results:
            if result.allowed:
                return result
            denials.append(result)
        for denial in denials:
            if denial.reason is not DenialReason.ROLE_NOT_AUTHORIZED:
                return denial
        return denials[0]

    def is_allowed_for(
        self,
        roles: Iterable[Role],
        entity: EntityType,
        action: ActionType,
        mode: MembershipMode = MembershipMode.ANY,
    ) -> bool:
        """Role-only composite check. No roles is always False."""
        held = set(roles)
        if not held:
            return False
        combine = all if mode is MembershipMode.ALL else any
        return combine(self.is_allowed(role, entity, action) for role in held)

    def is_allowed_any(self, roles: Iterable[Role], entity: EntityType, action: ActionType) -> bool:
        return self.is_allowed_for(roles, entity, action, MembershipMode.ANY)

    def is_allowed_all(self, roles: Iterable[Role], entity: EntityType, action: ActionType) -> bool:
        return self.is_allowed_for(roles, entity, action, MembershipMode.ALL)

    # ---- Discovery helpers --------------------------------------------------------

    def allowed_actions(self, role: Role, entity: EntityType) -> list[ActionType]:
        """Every action the role may perform on the entity (role check only)."""
        perms = self._matrix.entity(entity)
        if perms is None:
            return []
        return [action for action, rule in perms.rules.items() if role in rule.allowed_roles]

    def accessible_entities(self, role: Role) -> list[EntityType]:
        """Entities the role may VIEW or VIEW_LIST."""
        return [
            entity
            for entity in self._matrix.entities
            if any(self.is_allowed(role, entity, action) for action in _VIEW_ACTIONS)
        ]

    def can_access_entity(self, role: Role, entity: EntityType) -> bool:
        return bool(self.allowed_actions(role, entity))

    # ---- Internals ----------------------------------------------------------------

    @staticmethod
    def _evaluate_rule(
        rule: EntityPermissionRule | None,
        role: Role,
        entity: EntityType,
        action: ActionType,
        context: AccessContext | None,
    ) -> PermissionCheckResult:
        if rule is None:
            return PermissionCheckResult.deny(
                DenialReason.NO_RULE_DEFINED,
                f"Action {action.value} is not defined for {entity.value}",
            )
        if not rule.allowed_roles:
            return PermissionCheckResult.deny(
                DenialReason.EXPLICITLY_FORBIDDEN,
                f"Action {action.value} is not allowed for any role on {entity.value}",
            )
        if role not in rule.allowed_roles:
            return PermissionCheckResult.deny(
                DenialReason.ROLE_NOT_AUTHORIZED,
                f"Role {role.value} is not authorized to {action.value} on {entity.value}",
            )
        if rule.conditions is None:
            return PermissionCheckResult.allow()
        return evaluate_conditions(rule.conditions, context)
