"""Bounded price history for purchases.

History is an ordered list of PriceEntry items, oldest first, capped at
MAX_HISTORY. A new entry is appended only when the observed price differs
from the last recorded one, so saving an unchanged price twice leaves the
history alone. Prices <= 0 mean "unknown" and are never recorded.
Truncation drops the oldest entries by insertion order, not by date.
"""

import math
from typing import Optional

from profitplate.core.numbers import parse_number
from profitplate.core.stamps import now_iso
from profitplate.db.models import PriceEntry

MAX_HISTORY = 10


def _is_price(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) \
        and math.isfinite(value) and value > 0


def reconcile(
    existing_history: list,
    new_price: float,
    existing_price: Optional[float] = None,
    last_updated: Optional[str] = None,
    now: Optional[str] = None,
) -> list[PriceEntry]:
    """Return the history that results from observing new_price at ``now``.

    A legacy record with a price but no history is first seeded with an
    entry for existing_price dated last_updated (or now). Inputs are not
    mutated.
    """
    history = [e for e in (_parse_entry(x) for x in existing_history or []) if e is not None]

    if not history and _is_price(existing_price):
        history.append(PriceEntry(last_updated or now, float(existing_price)))

    last_recorded = history[-1].price_per_unit if history else None

    if _is_price(new_price):
        if not _is_price(last_recorded) or last_recorded != new_price:
            history.append(PriceEntry(now, float(new_price)))

    if not history and _is_price(new_price):
        history.append(PriceEntry(now, float(new_price)))

    return truncate(history)


def truncate(history: list) -> list:
    """Keep the MAX_HISTORY most recent entries."""
    return history[-MAX_HISTORY:]


def sanitize_history(raw_entries, current_price: float = 0.0, seed_date: str = None) -> list[PriceEntry]:
    """Rebuild a history from persisted data, discarding malformed entries.

    Accepts PriceEntry items or dicts using either "pricePerUnit" or the
    older "price" key. If nothing usable remains and current_price is
    positive, the history is re-seeded with that price dated seed_date
    (or the current time when no date is known).
    """
    history = []
    if isinstance(raw_entries, list):
        for entry in raw_entries:
            parsed = _parse_entry(entry)
            if parsed is not None:
                history.append(parsed)
    if not history and _is_price(current_price):
        history.append(PriceEntry(seed_date or now_iso(), float(current_price)))
    return truncate(history)


def _parse_entry(entry) -> Optional[PriceEntry]:
    if isinstance(entry, PriceEntry):
        date, price = entry.date, entry.price_per_unit
    elif isinstance(entry, dict):
        date = entry.get("date")
        price = entry.get("pricePerUnit", entry.get("price_per_unit", entry.get("price")))
    else:
        return None
    if not isinstance(date, str) or not date.strip():
        return None
    result = parse_number(price)
    if not result.ok or not _is_price(result.value):
        return None
    return PriceEntry(date, result.value)
