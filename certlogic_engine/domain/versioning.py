"""
Version codec for rule, schema and engine versions.

Dotted versions are folded into one comparable integer:

    "1.0.0" -> 10000, "1.2.0" -> 10200, "2.0.1" -> 20001

Precondition: every component is below 100. Larger components overlap the
next position and produce wrong orderings; this is a known limitation of the
encoding, shared by every CertLogic implementation that compares versions
this way.
"""

# Weight of the major component.
MAJOR_WEIGHT = 100**2

_POSITION_WEIGHTS = (100**2, 100**1, 100**0)

# Value used for missing or non-numeric components.
DEFAULT_COMPONENT = 1


def _component(parts: list[str], index: int) -> int:
    if index >= len(parts):
        return DEFAULT_COMPONENT
    try:
        return int(parts[index])
    except ValueError:
        return DEFAULT_COMPONENT


def to_int(version: str) -> int:
    """
    Convert a dotted version string to its comparable integer.

    Only the first three components (major, minor, patch) are considered.

    Example:
        >>> to_int("1.2.0")
        10200
        >>> to_int("1.x.3")
        10103
    """
    parts = version.split(".")
    return sum(
        _component(parts, index) * weight for index, weight in enumerate(_POSITION_WEIGHTS)
    )


def same_major(a: str, b: str) -> bool:
    """
    Return True when both versions share the major component.

    Compares the major positions of the encoded integers. A plain distance
    check (difference below MAJOR_WEIGHT) would wrongly pair "2.0.0" with
    "1.9.9".

    Example:
        >>> same_major("1.9.9", "1.0.0")
        True
        >>> same_major("2.0.0", "1.9.9")
        False
    """
    return to_int(a) // MAJOR_WEIGHT == to_int(b) // MAJOR_WEIGHT
