"""
Audit collaborator interface.

The authorization core never writes audit events itself. Callers (the access
guard) forward denials to an AuditRecorder; any object with a matching
``record_access_denied`` method will do.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from ..permissions.types import ActionType, EntityType, Role

audit_logger = logging.getLogger("authz.audit")


class AuditRecorder(Protocol):
    def record_access_denied(
        self,
        actor_id: str,
        actor_display_name: str,
        roles: Sequence[Role],
        resource_path: str,
        entity: EntityType,
        action: ActionType,
    ) -> None: ...


class LoggingAuditRecorder:
    """Default recorder: one WARNING record per denial on the ``authz.audit`` logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or audit_logger

    def record_access_denied(
        self,
        actor_id: str,
        actor_display_name: str,
        roles: Sequence[Role],
        resource_path: str,
        entity: EntityType,
        action: ActionType,
    ) -> None:
        self._logger.warning(
            "ACCESS_DENIED actor=%s name=%s roles=%s path=%s entity=%s action=%s",
            actor_id,
            actor_display_name,
            [r.value for r in roles],
            resource_path,
            entity.value,
            action.value,
        )
