"""
Entity authorization core: permission matrix, evaluator, PII field rules and
field masking.

This package has no dependency on the guards package. Build an
AuthorizationService (or the individual pieces) from a PermissionMatrix and
share it across callers.
"""

from .evaluator import PermissionEvaluator
from .fields import FieldAccessResolver
from .masking import MaskedRecord, MaskingEngine
from .matrix import MatrixConfigError, PermissionMatrix, load_permission_matrix
from .patterns import MASK_PATTERNS, MASK_PLACEHOLDER, apply_mask_pattern
from .service import AuthorizationService
from .types import (
    ABACConditions,
    AccessContext,
    ActionType,
    DenialReason,
    EntityPermissionRule,
    EntityPermissions,
    EntityType,
    FieldAccessLevel,
    MaskedFieldResult,
    MembershipMode,
    PermissionCheckResult,
    PIIFieldRule,
    Role,
)

__all__ = [
    "ABACConditions",
    "AccessContext",
    "ActionType",
    "AuthorizationService",
    "DenialReason",
    "EntityPermissionRule",
    "EntityPermissions",
    "EntityType",
    "FieldAccessLevel",
    "FieldAccessResolver",
    "MASK_PATTERNS",
    "MASK_PLACEHOLDER",
    "MaskedFieldResult",
    "MaskedRecord",
    "MaskingEngine",
    "MatrixConfigError",
    "MembershipMode",
    "PIIFieldRule",
    "PermissionCheckResult",
    "PermissionEvaluator",
    "PermissionMatrix",
    "Role",
    "apply_mask_pattern",
    "load_permission_matrix",
]
