"""
Pytest fixtures for the test suite.

``matrix`` / ``service`` use the bundled permission_matrix.yaml. Tests that
need a precise rule set build a small matrix with ``PermissionMatrix.from_mapping``
via the ``small_matrix`` fixture so they do not depend on the shipped policy.
"""
from __future__ import annotations

from pathlib import Path

import pytest

from authz.permissions.matrix import PermissionMatrix, load_permission_matrix
from authz.permissions.service import AuthorizationService


BUNDLED_MATRIX = Path(__file__).resolve().parents[1] / "authz" / "config" / "permission_matrix.yaml"


SMALL_MATRIX = {
    "matrix": {
        "WORK_ORDER": {
            "actions": {
                "VIEW": ["OPERATIONS_ADMIN", "FINANCE_ADMIN", "VIEWER"],
                "APPROVE": ["FINANCE_ADMIN", "OPERATIONS_ADMIN"],
                "DELETE": [],
                "COMPLETE": {
                    "roles": ["TECHNICIAN"],
                    "conditions": {"require_assignment": True},
                },
            },
            "pii_fields": [
                {
                    "field": "payeeTaxId",
                    "default": "HIDDEN",
                    "mask_pattern": "**-***{last4}",
                    "access": {"FINANCE_ADMIN": "FULL", "OPERATIONS_ADMIN": "MASKED"},
                },
            ],
        },
        "INVESTOR": {
            "actions": {
                "VIEW": ["SUPPORT_AGENT", "COMPLIANCE_OFFICER", "RISK_ANALYST"],
                "UPDATE": {
                    "roles": ["COMPLIANCE_OFFICER"],
                    "conditions": {"require_same_org": True, "require_jurisdiction": ["US", "EU"]},
                },
                "EXPORT": {
                    "roles": ["COMPLIANCE_OFFICER"],
                    "conditions": {"require_reauth": True},
                },
            },
            "pii_fields": [
                {
                    "field": "ssn",
                    "default": "HIDDEN",
                    "mask_pattern": "***-**-{last4}",
                    "access": {"SUPPORT_AGENT": "MASKED", "COMPLIANCE_OFFICER": "FULL"},
                },
                {
                    "field": "email",
                    "default": "MASKED",
                    "mask_pattern": "{first}***@{domain}",
                    "access": {"COMPLIANCE_OFFICER": "FULL"},
                },
                {
                    "field": "dateOfBirth",
                    "default": "HIDDEN",
                    "mask_pattern": "{year}-XX-XX",
                    "access": {"RISK_ANALYST": "MASKED"},
                },
            ],
            "field_access_by_role": {
                "SUPER_ADMIN": "*",
                "RISK_ANALYST": ["email"],
            },
        },
        "PAYOUT_REQUEST": {
            "actions": {
                "UPDATE": {
                    "roles": ["FINANCE_OFFICER", "FINANCE_ADMIN"],
                    "conditions": {"require_ownership": True},
                },
            },
        },
    },
}


@pytest.fixture(scope="session")
def matrix() -> PermissionMatrix:
    """The bundled permission matrix, loaded once per test session."""
    return load_permission_matrix(BUNDLED_MATRIX)


@pytest.fixture(scope="session")
def service(matrix) -> AuthorizationService:
    return AuthorizationService(matrix)


@pytest.fixture
def small_matrix() -> PermissionMatrix:
    return PermissionMatrix.from_mapping(SMALL_MATRIX)


@pytest.fixture
def small_service(small_matrix) -> AuthorizationService:
    return AuthorizationService(small_matrix)
