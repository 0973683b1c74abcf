"""
Access guard: the caller-side glue between route lookup, the authorization
service and the audit recorder.

The guard asks the service for a decision, then forwards each distinct denial
to the audit recorder exactly once per navigation. A denial is identified by
(path, entity, action): a caller who keeps hitting the same denial on the same
path is reported once, and reported again only after they have been on another
path in between. Recorder failures are logged, leave the denial unreported so
the next attempt retries it, and never change the decision.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from ..permissions.service import AuthorizationService
from ..permissions.types import (
    AccessContext,
    ActionType,
    EntityType,
    MembershipMode,
    PermissionCheckResult,
    Role,
)
from ..settings import Settings, get_settings
from .audit import AuditRecorder, LoggingAuditRecorder
from .routes import RoutePermission, RoutePermissionTable, load_route_permissions

logger = logging.getLogger(__name__)

_DenialKey = tuple[EntityType, ActionType]


@dataclass(frozen=True)
class Principal:
    """An already-authenticated caller. Roles arrive resolved."""

    actor_id: str
    display_name: str
    roles: frozenset[Role]


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    path: str
    required: RoutePermission | None = None
    result: PermissionCheckResult | None = None
    """None when the path needs no permission."""
    audited: bool = False
    """True if the audit recorder accepted a denial from this call."""


class AccessGuard:
    def __init__(
        self,
        service: AuthorizationService,
        routes: RoutePermissionTable,
        audit: AuditRecorder | None = None,
    ) -> None:
        self._service = service
        self._routes = routes
        self._audit: AuditRecorder = audit or LoggingAuditRecorder()
        self._lock = threading.Lock()
        # actor_id -> (current path, denials already reported on it)
        self._reported: dict[str, tuple[str, set[_DenialKey]]] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        audit: AuditRecorder | None = None,
    ) -> AccessGuard:
        settings = settings or get_settings()
        service = AuthorizationService.from_settings(settings)
        routes = load_route_permissions(settings.resolved_matrix_path())
        return cls(service, routes, audit)

    def check_route(
        self,
        principal: Principal,
        path: str,
        context: AccessContext | None = None,
    ) -> GuardDecision:
        """Guard a navigation. Paths with no route entry need no permission."""
        required = self._routes.lookup(path)
        if required is None:
            self._visit(principal.actor_id, path)
            return GuardDecision(allowed=True, path=path)
        return self._decide(principal, path, required.entity, required.action, context, MembershipMode.ANY, required)

    def check(
        self,
        principal: Principal,
        resource_path: str,
        entity: EntityType,
        action: ActionType,
        context: AccessContext | None = None,
        mode: MembershipMode = MembershipMode.ANY,
    ) -> GuardDecision:
        """Guard an explicit (entity, action), e.g. a UI gate or a service call."""
        return self._decide(principal, resource_path, entity, action, context, mode, None)

    def _decide(
        self,
        principal: Principal,
        path: str,
        entity: EntityType,
        action: ActionType,
        context: AccessContext | None,
        mode: MembershipMode,
        required: RoutePermission | None,
    ) -> GuardDecision:
        result = self._service.check(principal.roles, entity, action, context, mode)
        if result.allowed:
            self._visit(principal.actor_id, path)
            return GuardDecision(allowed=True, path=path, required=required, result=result)

        audited = self._report_denial(principal, path, entity, action)
        return GuardDecision(allowed=False, path=path, required=required, result=result, audited=audited)

    def _visit(self, actor_id: str, path: str) -> None:
        """Drop reported denials from any other path; they become reportable again."""
        with self._lock:
            entry = self._reported.get(actor_id)
            if entry is not None and entry[0] != path:
                del self._reported[actor_id]

    def _claim_report(self, actor_id: str, path: str, key: _DenialKey) -> bool:
        with self._lock:
            entry = self._reported.get(actor_id)
            if entry is None or entry[0] != path:
                self._reported[actor_id] = (path, {key})
                return True
            if key in entry[1]:
                return False
            entry[1].add(key)
            return True

    def _release_report(self, actor_id: str, path: str, key: _DenialKey) -> None:
        with self._lock:
            entry = self._reported.get(actor_id)
            if entry is not None and entry[0] == path:
                entry[1].discard(key)

    def _report_denial(
        self,
        principal: Principal,
        path: str,
        entity: EntityType,
        action: ActionType,
    ) -> bool:
        key = (entity, action)
        if not self._claim_report(principal.actor_id, path, key):
            logger.debug(
                "Denial already reported actor=%s path=%s entity=%s action=%s",
                principal.actor_id,
                path,
                entity.value,
                action.value,
            )
            return False

        roles = sorted(principal.roles, key=lambda r: r.value)
        try:
            self._audit.record_access_denied(
                principal.actor_id,
                principal.display_name,
                roles,
                path,
                entity,
                action,
            )
        except Exception as e:
            logger.warning("Audit recorder failed: %s", type(e).__name__, exc_info=False)
            self._release_report(principal.actor_id, path, key)
            return False
        return True
