"""Version number arithmetic.

Versions are decimals with one fractional digit. A minor bump adds 0.1, a
major bump moves to the next whole number. Decimal arithmetic keeps
2.3 + 0.1 equal to 2.4 exactly.
"""

from decimal import Decimal, ROUND_HALF_UP, ROUND_FLOOR, InvalidOperation
from typing import Union

from .models import VersionType

VERSION_QUANTUM = Decimal("0.1")
MINOR_STEP = Decimal("0.1")
INITIAL_VERSION = Decimal("1")

Number = Union[Decimal, int, float, str, None]


def parse_version(value: Number) -> Decimal:
    """Normalize a stored version to a one-decimal Decimal.

    Missing or unparseable values are treated as the initial version 1,
    matching rows created before versioning existed.

    Example:
        >>> parse_version(2.3)
        Decimal('2.3')
        >>> parse_version(None)
        Decimal('1.0')
    """
    if value is None:
        value = INITIAL_VERSION
    try:
        # str() avoids binary float artefacts (2.3 -> 2.29999...)
        version = Decimal(str(value))
    except (InvalidOperation, ValueError):
        version = INITIAL_VERSION
    if not version.is_finite() or version <= 0:
        version = INITIAL_VERSION
    return version.quantize(VERSION_QUANTUM, rounding=ROUND_HALF_UP)


def next_version(current: Number, version_type: VersionType) -> Decimal:
    """Compute the version that follows ``current``.

    Example:
        >>> next_version(Decimal("2.3"), VersionType.MINOR)
        Decimal('2.4')
        >>> next_version(Decimal("2.3"), VersionType.MAJOR)
        Decimal('3.0')
    """
    version = parse_version(current)
    if VersionType(version_type) == VersionType.MAJOR:
        bumped = version.to_integral_value(rounding=ROUND_FLOOR) + 1
    else:
        bumped = version + MINOR_STEP
    return bumped.quantize(VERSION_QUANTUM, rounding=ROUND_HALF_UP)


def format_version(value: Number) -> str:
    """Render a version with exactly one decimal ("3.0", "2.4")"""
    return f"{parse_version(value):.1f}"
