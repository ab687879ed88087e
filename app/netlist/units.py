"""
netlist/units.py

SPICE scale-factor suffixes.

    1k -> 1e3     1meg -> 1e6     1m -> 1e-3     1mil -> 1e-3 (prefix "m")

Suffixes are matched case-insensitively by their longest recognised prefix,
so "MEG" wins over "M" and "kOhm" scales like "k". Anything without a
recognised prefix scales by 1.
"""

from types import MappingProxyType

# SPICE suffix multipliers
UNIT_SCALES = MappingProxyType(
    {
        "T": 1e12,
        "G": 1e9,
        "MEG": 1e6,
        "K": 1e3,
        "M": 1e-3,
        "U": 1e-6,
        "N": 1e-9,
        "P": 1e-12,
        "F": 1e-15,
    }
)

# Longest suffix first so MEG is tried before M
_BY_LENGTH = tuple(sorted(UNIT_SCALES.items(), key=lambda item: -len(item[0])))


def match_unit(suffix: str):
    """Return the recognised prefix of `suffix` (upper-cased), or None."""
    upper = suffix.upper()
    for unit, _ in _BY_LENGTH:
        if upper.startswith(unit):
            return unit
    return None


def unit_scale(suffix: str) -> float:
    """Multiplier for a raw unit-suffix lexeme; 1.0 when unrecognised."""
    unit = match_unit(suffix)
    if unit is None:
        return 1.0
    return UNIT_SCALES[unit]


def format_value(value: float) -> str:
    """
    Format a value as a compact SPICE literal using scale suffixes.

    Examples:
        1000.0  -> "1k"
        2.2e6   -> "2.2meg"
        4.7e-6  -> "4.7u"
        0.5     -> "500m"
    """
    if value == 0:
        return "0"

    abs_val = abs(value)

    # Use suffix if it gives a cleaner representation
    for suffix, mult in sorted(UNIT_SCALES.items(), key=lambda x: -x[1]):
        if mult <= abs_val < mult * 1000:
            scaled = value / mult
            if scaled == int(scaled):
                return f"{int(scaled)}{suffix.lower()}"
            return f"{scaled:.6g}{suffix.lower()}"

    if 1 <= abs_val < 1000:
        if value == int(value):
            return str(int(value))
        return f"{value:.6g}"

    return f"{value:.6e}"
