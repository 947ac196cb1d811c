"""Number parsing for form input and the store boundary.

Two policies live here and are kept apart on purpose:

    parse_number()  — used by the form layer; returns a ParseResult so a bad
                      value can be reported back to the user.
    coerce_number() — used by the stores; never fails, turns anything that
                      is not a finite number into 0.

Both accept a comma as the decimal separator ("6,40" == 6.4).
"""

import math
from dataclasses import dataclass
from typing import Optional

from profitplate.errors import ErrorKind


@dataclass(frozen=True)
class ParseResult:
    value: Optional[float] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def parse_number(raw) -> ParseResult:
    """Parse a user-entered number. Empty input is reported as an error too."""
    if isinstance(raw, bool):
        return ParseResult(error="not a number", kind=ErrorKind.NUMERIC_COERCION)
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip().replace(",", ".")
        if not text:
            return ParseResult(error="required", kind=ErrorKind.VALIDATION)
        try:
            value = float(text)
        except ValueError:
            return ParseResult(error=f"{raw!r} is not a number", kind=ErrorKind.NUMERIC_COERCION)
    elif raw is None:
        return ParseResult(error="required", kind=ErrorKind.VALIDATION)
    else:
        return ParseResult(error="not a number", kind=ErrorKind.NUMERIC_COERCION)
    if not math.isfinite(value):
        return ParseResult(error=f"{raw!r} is not a finite number", kind=ErrorKind.NUMERIC_COERCION)
    return ParseResult(value=value)


def coerce_number(raw, default: float = 0.0) -> float:
    """Store-boundary policy: anything unparseable becomes ``default``."""
    result = parse_number(raw)
    return result.value if result.ok else default


def coerce_price(raw) -> float:
    """Like coerce_number, but negative prices are clamped to 0."""
    return max(coerce_number(raw), 0.0)


def optional_price(raw) -> Optional[float]:
    """Parse an optional price; None when missing, unparseable or negative."""
    result = parse_number(raw)
    if not result.ok or result.value < 0:
        return None
    return result.value
