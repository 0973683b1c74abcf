"""Role catalog: categories, display labels and role-class predicates."""

from __future__ import annotations

from typing import Iterable, Mapping

from .types import Role

ROLE_CATEGORIES: Mapping[str, tuple[Role, ...]] = {
    "ADMINISTRATION": (Role.SUPER_ADMIN, Role.SYSTEM_ADMIN, Role.HIRING_MANAGER, Role.OPERATIONS_ADMIN),
    "TOKENIZATION": (
        Role.TOKENIZATION_MANAGER,
        Role.VALUATION_OFFICER,
        Role.PROPERTY_OPERATIONS_MANAGER,
        Role.INVESTOR_OPERATIONS,
    ),
    "COMPLIANCE": (Role.COMPLIANCE_OFFICER, Role.RISK_ANALYST, Role.AUDITOR),
    "FINANCE": (Role.FINANCE_OFFICER, Role.FINANCE_ADMIN, Role.ACCOUNTING_MANAGER, Role.CUSTODY_OFFICER),
    "ENGINEERING": (
        Role.BACKEND_ENGINEER,
        Role.PLATFORM_ENGINEER,
        Role.SECURITY_ENGINEER,
        Role.QA_TEST_ENGINEER,
    ),
    "FIELD_OPERATIONS": (Role.TECHNICIAN, Role.SUPPORT_AGENT, Role.VIEWER),
}

ROLE_CATEGORY_LABELS: Mapping[str, str] = {
    "ADMINISTRATION": "Administration & Internal Operations",
    "TOKENIZATION": "Tokenization Business",
    "COMPLIANCE": "Compliance, Risk & Oversight",
    "FINANCE": "Finance & Accounting",
    "ENGINEERING": "Engineering & Product",
    "FIELD_OPERATIONS": "Field Operations & Support",
}

ROLE_LABELS: Mapping[Role, str] = {
    Role.SUPER_ADMIN: "Super Administrator",
    Role.SYSTEM_ADMIN: "System Administrator",
    Role.HIRING_MANAGER: "Hiring Manager",
    Role.OPERATIONS_ADMIN: "Operations Administrator",
    Role.TOKENIZATION_MANAGER: "Tokenization Manager",
    Role.VALUATION_OFFICER: "Valuation Officer",
    Role.PROPERTY_OPERATIONS_MANAGER: "Property Operations Manager",
    Role.INVESTOR_OPERATIONS: "Investor Operations",
    Role.COMPLIANCE_OFFICER: "Compliance Officer",
    Role.RISK_ANALYST: "Risk Analyst",
    Role.AUDITOR: "Auditor",
    Role.FINANCE_OFFICER: "Finance Officer",
    Role.FINANCE_ADMIN: "Finance Administrator",
    Role.ACCOUNTING_MANAGER: "Accounting Manager",
    Role.CUSTODY_OFFICER: "Custody Officer",
    Role.BACKEND_ENGINEER: "Backend Engineer",
    Role.PLATFORM_ENGINEER: "Platform Engineer",
    Role.SECURITY_ENGINEER: "Security Engineer",
    Role.QA_TEST_ENGINEER: "QA / Test Engineer",
    Role.TECHNICIAN: "Technician",
    Role.SUPPORT_AGENT: "Support Agent",
    Role.VIEWER: "Viewer",
}

# Assigning these requires SUPER_ADMIN or SYSTEM_ADMIN.
PRIVILEGED_ROLES: frozenset[Role] = frozenset(
    {
        Role.SUPER_ADMIN,
        Role.SYSTEM_ADMIN,
        Role.CUSTODY_OFFICER,
        Role.COMPLIANCE_OFFICER,
        Role.FINANCE_OFFICER,
        Role.FINANCE_ADMIN,
    }
)


def role_label(role: Role) -> str:
    return ROLE_LABELS[role]


def role_category(role: Role) -> str:
    for category, members in ROLE_CATEGORIES.items():
        if role in members:
            return category
    raise KeyError(role)


def ordered_roles(roles: Iterable[Role]) -> tuple[Role, ...]:
    """De-duplicate roles and sort them in declaration order (deterministic evaluation)."""
    order = {role: idx for idx, role in enumerate(Role)}
    return tuple(sorted(set(roles), key=order.__getitem__))


def is_admin_role(role: Role) -> bool:
    return role is Role.SUPER_ADMIN


def is_compliance_role(role: Role) -> bool:
    return role in (Role.SUPER_ADMIN, Role.COMPLIANCE_OFFICER)


def is_custody_role(role: Role) -> bool:
    return role in (Role.SUPER_ADMIN, Role.CUSTODY_OFFICER)


def is_finance_role(role: Role) -> bool:
    return role in (Role.SUPER_ADMIN, Role.FINANCE_OFFICER, Role.FINANCE_ADMIN)


def is_read_only_role(role: Role) -> bool:
    return role in (Role.AUDITOR, Role.VIEWER)


def is_privileged_role(role: Role) -> bool:
    return role in PRIVILEGED_ROLES
