"""
Caller-side guards built on the authorization core.

Route lookup, the audit collaborator interface and an access guard that
forwards each distinct denial to the audit recorder once.
"""

from .audit import AuditRecorder, LoggingAuditRecorder
from .guard import AccessGuard, GuardDecision, Principal
from .routes import RoutePermission, RoutePermissionTable, load_route_permissions

__all__ = [
    "AccessGuard",
    "AuditRecorder",
    "GuardDecision",
    "LoggingAuditRecorder",
    "Principal",
    "RoutePermission",
    "RoutePermissionTable",
    "load_route_permissions",
]
