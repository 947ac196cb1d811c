"""Conversion between compatible measurement units.

Only three families are known: mass (g, kg), volume (ml, l) and count (pcs).
Anything else — an empty unit, an unknown token, or a pair from different
families — passes the quantity through unchanged. The converter never raises
and never invents a conversion; callers use compatible() to warn the user.
"""

from profitplate.core.numbers import coerce_number

ALIASES = {
    "gr": "g",
    "lt": "l",
    "pc": "pcs",
}

# token -> (family, factor to the family's smallest unit)
UNITS = {
    "g": ("mass", 1),
    "kg": ("mass", 1000),
    "ml": ("volume", 1),
    "l": ("volume", 1000),
    "pcs": ("count", 1),
}


def normalize_unit(unit) -> str:
    """Lower-case, trimmed, alias-resolved unit token ('' for missing)."""
    if not isinstance(unit, str):
        return ""
    token = unit.strip().lower()
    return ALIASES.get(token, token)


def compatible(from_unit, to_unit) -> bool:
    """True when a quantity in from_unit can be expressed in to_unit."""
    a, b = normalize_unit(from_unit), normalize_unit(to_unit)
    if a == b:
        return True
    return a in UNITS and b in UNITS and UNITS[a][0] == UNITS[b][0]


def convert(quantity, from_unit, to_unit) -> float:
    """Convert quantity between units, e.g. convert(500, 'g', 'kg') == 0.5."""
    qty = coerce_number(quantity)
    a, b = normalize_unit(from_unit), normalize_unit(to_unit)
    if a == b or not compatible(a, b):
        return qty
    return qty * UNITS[a][1] / UNITS[b][1]
