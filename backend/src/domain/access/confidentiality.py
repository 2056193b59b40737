"""Confidentiality levels and the clearance hierarchy.

Documents carry a confidentiality level and principals carry a security
clearance drawn from the same ascending order:

    public < internal < confidential < restricted < secret < top_secret

The rank of a level is its index in that order. Missing or unrecognised
values resolve to ``internal``.
"""

from enum import Enum
from typing import Optional, Union, List


class ConfidentialityLevel(str, Enum):
    """Confidentiality / clearance levels, declared in ascending order."""
    PUBLIC = "public"
    INTERNAL = "internal"
    CONFIDENTIAL = "confidential"
    RESTRICTED = "restricted"
    SECRET = "secret"
    TOP_SECRET = "top_secret"


LEVEL_ORDER: List[ConfidentialityLevel] = list(ConfidentialityLevel)

DEFAULT_LEVEL = ConfidentialityLevel.INTERNAL

# Older correspondence records use "unclassified" for the lowest level
LEGACY_ALIASES = {
    "unclassified": ConfidentialityLevel.PUBLIC,
}

LevelLike = Union[ConfidentialityLevel, str, None]


def parse_level(value: LevelLike) -> Optional[ConfidentialityLevel]:
    """Parse a level from its stored string form.

    Args:
        value: Level enum, level string (case-insensitive) or None

    Returns:
        The matching ConfidentialityLevel, or None if missing/unknown

    Example:
        >>> parse_level("Top_Secret")
        <ConfidentialityLevel.TOP_SECRET: 'top_secret'>
        >>> parse_level("unclassified")
        <ConfidentialityLevel.PUBLIC: 'public'>
        >>> parse_level("bogus") is None
        True
    """
    if value is None:
        return None
    if isinstance(value, ConfidentialityLevel):
        return value

    normalized = str(value).strip().lower()
    if normalized in LEGACY_ALIASES:
        return LEGACY_ALIASES[normalized]
    try:
        return ConfidentialityLevel(normalized)
    except ValueError:
        return None


def resolve_level(value: LevelLike, default: ConfidentialityLevel = DEFAULT_LEVEL) -> ConfidentialityLevel:
    """Parse a level, falling back to ``default`` when missing or unknown."""
    return parse_level(value) or default


def clearance_rank(value: LevelLike, default: ConfidentialityLevel = DEFAULT_LEVEL) -> int:
    """Integer position of a level in the ascending order.

    Example:
        >>> clearance_rank("public")
        0
        >>> clearance_rank(None)
        1
        >>> clearance_rank("top_secret")
        5
    """
    return LEVEL_ORDER.index(resolve_level(value, default))


def resolve_clearance(principal, default: ConfidentialityLevel = DEFAULT_LEVEL) -> ConfidentialityLevel:
    """Effective clearance of a principal.

    This is the single place where a missing ``security_clearance`` is
    defaulted.

    Args:
        principal: Any object exposing ``security_clearance``
        default: Clearance assumed when the principal has none

    Returns:
        ConfidentialityLevel
    """
    return resolve_level(getattr(principal, "security_clearance", None), default)


def levels_from(minimum: LevelLike) -> List[ConfidentialityLevel]:
    """All levels at or above ``minimum`` (the full order when None)."""
    floor = parse_level(minimum)
    if floor is None:
        return list(LEVEL_ORDER)
    return LEVEL_ORDER[LEVEL_ORDER.index(floor):]
