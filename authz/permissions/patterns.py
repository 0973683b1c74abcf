"""
Mask-pattern templates.

A mask pattern is a literal string with a small, closed set of placeholders
that keep a recognizable residual of the original value:

    ***-**-{last4}        123-45-6789           -> ***-**-6789
    {first}***@{domain}   john.doe@example.com  -> j***@example.com
    {first} {lastInitial}.  John Doe            -> John D.

Placeholders that cannot be satisfied by the value (too short, not
email-shaped, ...) make the whole value collapse to MASK_PLACEHOLDER. Nothing
in here raises on bad input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Mapping

MASK_PLACEHOLDER = "****"

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z0-9_]+)\}")
_EMAIL_RE = re.compile(r"^([^@\s]+)@([^@\s]+\.[^@\s]+)$")
_NON_ALNUM_RE = re.compile(r"[^0-9A-Za-z]")
_YEAR_RE = re.compile(r"^\s*(\d{4})")


def _last4(value: str) -> str | None:
    alnum = _NON_ALNUM_RE.sub("", value)
    return alnum[-4:] if len(alnum) >= 4 else None


def _first(value: str) -> str | None:
    email = _EMAIL_RE.match(value.strip())
    if email:
        return email.group(1)[0]
    words = value.split()
    return words[0] if words else None


def _domain(value: str) -> str | None:
    email = _EMAIL_RE.match(value.strip())
    return email.group(2) if email else None


def _year(value: str) -> str | None:
    m = _YEAR_RE.match(value)
    return m.group(1) if m else None


def _last_initial(value: str) -> str | None:
    words = value.split()
    return words[-1][0] if len(words) >= 2 else None


def _address_parts(value: str) -> list[str] | None:
    # "123 Main St, New York, NY 10001" -> ["123 Main St", "New York", "NY 10001"]
    parts = [p.strip() for p in value.split(",") if p.strip()]
    return parts if len(parts) >= 3 else None


def _city(value: str) -> str | None:
    parts = _address_parts(value)
    return parts[-2] if parts else None


def _state(value: str) -> str | None:
    parts = _address_parts(value)
    return parts[-1].split()[0] if parts else None


_RESOLVERS: Mapping[str, Callable[[str], str | None]] = {
    "last4": _last4,
    "first": _first,
    "domain": _domain,
    "year": _year,
    "lastInitial": _last_initial,
    "city": _city,
    "state": _state,
}

MASK_PLACEHOLDERS: frozenset[str] = frozenset(_RESOLVERS)


def pattern_placeholders(pattern: str) -> frozenset[str]:
    """Names of every ``{placeholder}`` used in ``pattern``."""
    return frozenset(_PLACEHOLDER_RE.findall(pattern))


def unknown_placeholders(pattern: str) -> list[str]:
    return sorted(pattern_placeholders(pattern) - MASK_PLACEHOLDERS)


def apply_mask_pattern(value: object, pattern: str | None) -> str:
    """
    Render ``pattern`` against ``value``.

    Non-string values are stringified first. Returns MASK_PLACEHOLDER when
    there is no pattern, when the pattern uses an unknown placeholder, or when
    the value is too short / the wrong shape for any placeholder.
    """

    if not pattern:
        return MASK_PLACEHOLDER
    text = value if isinstance(value, str) else str(value)

    substitutions: dict[str, str] = {}
    for name in pattern_placeholders(pattern):
        resolver = _RESOLVERS.get(name)
        resolved = resolver(text) if resolver else None
        if resolved is None:
            return MASK_PLACEHOLDER
        substitutions[name] = resolved

    return _PLACEHOLDER_RE.sub(lambda m: substitutions[m.group(1)], pattern)


@dataclass(frozen=True)
class MaskPatternConfig:
    pattern: str
    description: str
    example_input: str
    example_output: str


MASK_PATTERNS: Mapping[str, MaskPatternConfig] = {
    "EMAIL": MaskPatternConfig(
        pattern="{first}***@{domain}",
        description="Shows first character and domain",
        example_input="john.doe@example.com",
        example_output="j***@example.com",
    ),
    "PHONE": MaskPatternConfig(
        pattern="***-***-{last4}",
        description="Shows last 4 digits only",
        example_input="555-123-4567",
        example_output="***-***-4567",
    ),
    "SSN": MaskPatternConfig(
        pattern="***-**-{last4}",
        description="Shows last 4 digits only",
        example_input="123-45-6789",
        example_output="***-**-6789",
    ),
    "EIN": MaskPatternConfig(
        pattern="**-***{last4}",
        description="Shows last 4 digits only",
        example_input="12-3456789",
        example_output="**-***6789",
    ),
    "DATE_YEAR_ONLY": MaskPatternConfig(
        pattern="{year}-XX-XX",
        description="Shows year only",
        example_input="1990-05-15",
        example_output="1990-XX-XX",
    ),
    "NAME_INITIAL": MaskPatternConfig(
        pattern="{first} {lastInitial}.",
        description="Shows first name and last initial",
        example_input="John Doe",
        example_output="John D.",
    ),
    "ADDRESS_PARTIAL": MaskPatternConfig(
        pattern="{city}, {state}",
        description="Shows city and state only",
        example_input="123 Main St, New York, NY 10001",
        example_output="New York, NY",
    ),
}
