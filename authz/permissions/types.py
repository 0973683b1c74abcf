"""
Closed enumerations and value types for the permission system.

Everything here is immutable. Rules, PII field rules and the matrix built from
them are loaded once at startup; only PermissionCheckResult and
MaskedFieldResult are created per call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Generic, Literal, Mapping, TypeVar

T = TypeVar("T")


class Role(StrEnum):
    # Administration & internal operations
    SUPER_ADMIN = "SUPER_ADMIN"
    SYSTEM_ADMIN = "SYSTEM_ADMIN"
    HIRING_MANAGER = "HIRING_MANAGER"
    OPERATIONS_ADMIN = "OPERATIONS_ADMIN"
    # Tokenization business
    TOKENIZATION_MANAGER = "TOKENIZATION_MANAGER"
    VALUATION_OFFICER = "VALUATION_OFFICER"
    PROPERTY_OPERATIONS_MANAGER = "PROPERTY_OPERATIONS_MANAGER"
    INVESTOR_OPERATIONS = "INVESTOR_OPERATIONS"
    # Compliance, risk & oversight
    COMPLIANCE_OFFICER = "COMPLIANCE_OFFICER"
    RISK_ANALYST = "RISK_ANALYST"
    AUDITOR = "AUDITOR"
    # Finance & accounting
    FINANCE_OFFICER = "FINANCE_OFFICER"
    FINANCE_ADMIN = "FINANCE_ADMIN"
    ACCOUNTING_MANAGER = "ACCOUNTING_MANAGER"
    CUSTODY_OFFICER = "CUSTODY_OFFICER"
    # Engineering & product
    BACKEND_ENGINEER = "BACKEND_ENGINEER"
    PLATFORM_ENGINEER = "PLATFORM_ENGINEER"
    SECURITY_ENGINEER = "SECURITY_ENGINEER"
    QA_TEST_ENGINEER = "QA_TEST_ENGINEER"
    # Field operations & support
    TECHNICIAN = "TECHNICIAN"
    SUPPORT_AGENT = "SUPPORT_AGENT"
    VIEWER = "VIEWER"


class EntityType(StrEnum):
    PROJECT = "PROJECT"
    TOKEN = "TOKEN"
    WALLET = "WALLET"
    ESCROW = "ESCROW"
    INVESTOR = "INVESTOR"
    BUSINESS = "BUSINESS"
    WORK_ORDER = "WORK_ORDER"
    PAYOUT_REQUEST = "PAYOUT_REQUEST"
    REPORT = "REPORT"
    AUDIT_LOG = "AUDIT_LOG"
    LEDGER_ENTRY = "LEDGER_ENTRY"
    TAX_PROFILE = "TAX_PROFILE"
    CHECK = "CHECK"
    PAYMENT_CHANNEL = "PAYMENT_CHANNEL"
    AMM_POOL = "AMM_POOL"
    CONTRACT = "CONTRACT"
    KNOWLEDGE_BASE = "KNOWLEDGE_BASE"
    MULTI_SIGN_TX = "MULTI_SIGN_TX"
    BATCH_TRANSACTION = "BATCH_TRANSACTION"
    USER_ROLE = "USER_ROLE"
    NOTIFICATION = "NOTIFICATION"
    SIGNING_POLICY = "SIGNING_POLICY"


class ActionType(StrEnum):
    VIEW = "VIEW"
    VIEW_LIST = "VIEW_LIST"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    EXPORT = "EXPORT"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    EXECUTE = "EXECUTE"
    SIGN = "SIGN"
    FREEZE = "FREEZE"
    UNFREEZE = "UNFREEZE"
    CLAWBACK = "CLAWBACK"
    DISTRIBUTE = "DISTRIBUTE"
    CANCEL = "CANCEL"
    COMPLETE = "COMPLETE"
    ASSIGN = "ASSIGN"
    LOCK = "LOCK"
    UNLOCK = "UNLOCK"
    MINT = "MINT"
    BURN = "BURN"
    RETIRE = "RETIRE"


_ACCESS_RANK = {"HIDDEN": 0, "MASKED": 1, "FULL": 2}


class FieldAccessLevel(StrEnum):
    """
    Per-field visibility. Ordered HIDDEN < MASKED < FULL.

    Comparisons use the lattice rank, not the string value, so
    ``max(levels)`` is the most permissive level.
    """

    HIDDEN = "HIDDEN"
    MASKED = "MASKED"
    FULL = "FULL"

    @property
    def rank(self) -> int:
        return _ACCESS_RANK[self.value]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, FieldAccessLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, FieldAccessLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, FieldAccessLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, FieldAccessLevel):
            return NotImplemented
        return self.rank >= other.rank


class MembershipMode(StrEnum):
    """How a multi-role caller is judged: any held role, or every held role."""

    ANY = "ANY"
    ALL = "ALL"


class DenialReason(StrEnum):
    NO_RULE_DEFINED = "NO_RULE_DEFINED"
    EXPLICITLY_FORBIDDEN = "EXPLICITLY_FORBIDDEN"
    ROLE_NOT_AUTHORIZED = "ROLE_NOT_AUTHORIZED"
    NO_ROLES_ASSIGNED = "NO_ROLES_ASSIGNED"
    ORG_MISMATCH = "ORG_MISMATCH"
    ASSIGNMENT_REQUIRED = "ASSIGNMENT_REQUIRED"
    JURISDICTION_NOT_PERMITTED = "JURISDICTION_NOT_PERMITTED"
    OWNERSHIP_REQUIRED = "OWNERSHIP_REQUIRED"
    MISSING_CONTEXT_ATTRIBUTE = "MISSING_CONTEXT_ATTRIBUTE"
    REAUTH_REQUIRED = "REAUTH_REQUIRED"


ALL_FIELDS: Literal["*"] = "*"

FieldVisibility = Literal["*"] | frozenset[str]
"""Per-role field override: every field, or an explicit allow-list."""


# ---- Rules -----------------------------------------------------------------------------


@dataclass(frozen=True)
class ABACConditions:
    """Attribute conditions that narrow a role grant. All present ones must hold."""

    require_same_org: bool = False
    require_assignment: bool = False
    require_jurisdiction: frozenset[str] | None = None
    require_ownership: bool = False
    require_reauth: bool = False

    @property
    def is_empty(self) -> bool:
        return not (
            self.require_same_org
            or self.require_assignment
            or self.require_jurisdiction is not None
            or self.require_ownership
            or self.require_reauth
        )


@dataclass(frozen=True)
class EntityPermissionRule:
    """
    Which roles may perform one action on one entity.

    An empty ``allowed_roles`` means nobody may do this; it is not the same
    thing as a missing rule.
    """

    entity: EntityType
    action: ActionType
    allowed_roles: frozenset[Role]
    conditions: ABACConditions | None = None


@dataclass(frozen=True)
class PIIFieldRule:
    field_name: str
    access_by_role: Mapping[Role, FieldAccessLevel]
    default_access: FieldAccessLevel = FieldAccessLevel.FULL
    mask_pattern: str | None = None


@dataclass(frozen=True)
class EntityPermissions:
    """One entity's slice of the permission matrix."""

    entity: EntityType
    rules: Mapping[ActionType, EntityPermissionRule]
    pii_fields: Mapping[str, PIIFieldRule] = field(default_factory=dict)
    field_access_by_role: Mapping[Role, FieldVisibility] = field(default_factory=dict)


# ---- Evaluation inputs and results -----------------------------------------------------


@dataclass(frozen=True)
class AccessContext:
    """
    Caller-supplied attributes for ABAC conditions.

    ``None`` means "unknown"; a condition that needs an unknown attribute fails
    with MISSING_CONTEXT_ATTRIBUTE.
    """

    requester_id: str | None = None
    requester_org_id: str | None = None
    resource_org_id: str | None = None
    owner_id: str | None = None
    assignee_ids: frozenset[str] | None = None
    jurisdiction: str | None = None
    reauthenticated: bool = False


@dataclass(frozen=True)
class PermissionCheckResult:
    allowed: bool
    reason: DenialReason | None = None
    requires_reauth: bool = False
    detail: str | None = None

    @classmethod
    def allow(cls) -> PermissionCheckResult:
        return cls(allowed=True)

    @classmethod
    def deny(
        cls,
        reason: DenialReason,
        detail: str | None = None,
        requires_reauth: bool = False,
    ) -> PermissionCheckResult:
        return cls(allowed=False, reason=reason, requires_reauth=requires_reauth, detail=detail)


@dataclass(frozen=True)
class MaskedFieldResult(Generic[T]):
    """Redacted data plus the names of every field that was hidden or masked."""

    data: T
    masked_fields: tuple[str, ...] = ()
