"""Purchase catalog — the ingredients a business buys, with their price history.

The store loads the "purchases" collection once, keeps it in memory, and
writes the whole collection back after every mutation. Reads hand out deep
copies, so callers can only change store state through upsert() and delete().

A new collection is persisted before it replaces the in-memory list; if the
write fails, StorageWriteError propagates and the store still holds the last
committed state.
"""

import copy
import logging
import threading
from dataclasses import fields
from typing import Callable, Optional, Union

from profitplate.core import price_history
from profitplate.core.numbers import coerce_price
from profitplate.core.stamps import generate_id, now_iso
from profitplate.db.database import load_collection, save_collection
from profitplate.db.models import Purchase, field_names, normalize_keys, record_id, to_record

logger = logging.getLogger(__name__)

COLLECTION = "purchases"

# Fields upsert() always computes itself; a patch can never set them directly.
_FORCED = {"id", "created_at", "updated_at", "price_per_unit", "price_history", "is_demo"}
_TEXT_FIELDS = {"name", "category", "subtype", "supplier", "unit", "notes",
                "currency", "invoice_number", "invoice_date", "created_at", "updated_at"}


def purchase_from_record(raw, now: str = None) -> Optional[Purchase]:
    """Build a sanitized Purchase from a persisted dict, or None if unusable.

    Older records may carry ``latestPrice`` instead of ``pricePerUnit``. now dates
    the seeded history entry of a record that has no timestamps.
    """
    if isinstance(raw, Purchase):
        return sanitize(copy.deepcopy(raw), now=now)
    if not isinstance(raw, dict):
        return None
    data = normalize_keys(raw)
    if "price_per_unit" not in data and "latest_price" in data:
        data["price_per_unit"] = data["latest_price"]
    purchase_id = record_id(data.get("id"))
    if purchase_id is None:
        return None
    known = field_names(Purchase)
    purchase = Purchase(id=purchase_id)
    for key, value in data.items():
        if key in known and key != "id":
            setattr(purchase, key, value)
    return sanitize(purchase, now=now)


def sanitize(purchase: Purchase, now: str = None) -> Purchase:
    """Repair types in place: clamp the price, rebuild and re-seed history."""
    purchase.price_per_unit = coerce_price(purchase.price_per_unit)
    for name in _TEXT_FIELDS:
        value = getattr(purchase, name)
        if value is not None and not isinstance(value, str):
            setattr(purchase, name, str(value))
    if purchase.name is None:
        purchase.name = ""
    purchase.is_demo = bool(purchase.is_demo)
    purchase.price_history = price_history.sanitize_history(
        purchase.price_history,
        current_price=purchase.price_per_unit,
        seed_date=purchase.updated_at or purchase.created_at or now,
    )
    return purchase


class PurchaseStore:
    """Owns the purchase collection.

    storage is any object with get_item/set_item (see profitplate.db.database).
    clock returns an ISO timestamp; id_factory returns a fresh purchase id.
    """

    def __init__(self, storage, clock: Callable[[], str] = now_iso,
                 id_factory: Callable[[], str] = None):
        self._storage = storage
        self._clock = clock
        self._new_id = id_factory or (lambda: generate_id("p_"))
        self._lock = threading.RLock()
        self._items: list[Purchase] = self._load()

    def _load(self) -> list[Purchase]:
        raw_items = load_collection(self._storage, COLLECTION, [])
        now = self._clock()
        items = []
        seen = set()
        for raw in raw_items:
            purchase = purchase_from_record(raw, now=now)
            if purchase is None:
                logger.warning("Dropping malformed purchase record: %r", raw)
                continue
            if purchase.id in seen:
                logger.warning("Dropping duplicate purchase id %s", purchase.id)
                continue
            seen.add(purchase.id)
            items.append(purchase)
        return items

    def _commit(self, items: list[Purchase]) -> None:
        save_collection(self._storage, COLLECTION, [to_record(p) for p in items])
        self._items = items

    def _index_of(self, purchase_id) -> int:
        purchase_id = record_id(purchase_id)
        for i, p in enumerate(self._items):
            if p.id == purchase_id:
                return i
        return -1

    def list(self) -> list[Purchase]:
        """Return copies of all purchases in stored order."""
        with self._lock:
            return copy.deepcopy(self._items)

    def get(self, purchase_id: str) -> Optional[Purchase]:
        """Return a copy of one purchase, or None if not found."""
        with self._lock:
            i = self._index_of(purchase_id)
            return copy.deepcopy(self._items[i]) if i >= 0 else None

    def upsert(self, patch: Union[dict, Purchase]) -> Purchase:
        """Insert a new purchase or merge ``patch`` into an existing one.

        patch may use snake_case or camelCase keys. Only the keys present are
        applied; everything else is kept from the stored record. id,
        created_at, updated_at, price_per_unit and price_history are always
        resolved here. Returns a copy of the stored record.
        """
        if isinstance(patch, Purchase):
            patch = {f.name: getattr(patch, f.name) for f in fields(patch)}
        patch = normalize_keys(patch)
        known = field_names(Purchase)

        with self._lock:
            now = self._clock()
            given_id = record_id(patch.get("id"))
            index = self._index_of(given_id) if given_id else -1
            existing = self._items[index] if index >= 0 else None

            purchase_id = given_id or self._new_id()
            created_at = (existing.created_at if existing else None) or patch.get("created_at") or now

            if "price_per_unit" in patch:
                price = coerce_price(patch["price_per_unit"])
            else:
                price = existing.price_per_unit if existing else 0.0

            history = price_history.reconcile(
                existing.price_history if existing else [],
                price,
                existing_price=existing.price_per_unit if existing else None,
                last_updated=existing.updated_at if existing else None,
                now=now,
            )

            merged = copy.deepcopy(existing) if existing else Purchase(id=purchase_id)
            for key, value in patch.items():
                if key in known and key not in _FORCED:
                    setattr(merged, key, copy.deepcopy(value))
            merged.id = purchase_id
            merged.created_at = created_at
            merged.updated_at = now
            merged.price_per_unit = price
            merged.price_history = history
            # Editing a sample record makes it the user's own.
            merged.is_demo = False
            merged = sanitize(merged, now=now)

            items = list(self._items)
            if existing is not None:
                items[index] = merged
            else:
                items.append(merged)
            self._commit(items)
            logger.debug("Saved purchase %s (price %.4f, %d history entries)",
                         merged.id, merged.price_per_unit, len(merged.price_history))
            return copy.deepcopy(merged)

    def delete(self, purchase_id: str) -> bool:
        """Delete a purchase by ID. Returns False if it did not exist."""
        with self._lock:
            index = self._index_of(purchase_id)
            if index < 0:
                return False
            items = self._items[:index] + self._items[index + 1:]
            self._commit(items)
            logger.info("Deleted purchase %s", purchase_id)
            return True

    def replace_all(self, records: list) -> int:
        """Overwrite the whole collection (sample-data import). Returns count kept."""
        with self._lock:
            now = self._clock()
            items = [p for p in (purchase_from_record(r, now=now) for r in records) if p is not None]
            self._commit(items)
            return len(items)
