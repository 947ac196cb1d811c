"""Dataclass models for the persisted collections.

Each class maps 1:1 to a record in a JSON collection. Fields use Optional
types for values the forms may leave blank. Persisted records use camelCase
keys (pricePerUnit, priceHistory, ...); to_record() and FIELD_NAMES handle the
mapping between the two spellings.
"""

import copy
import re
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Optional


@dataclass
class PriceEntry:
    """One observed price of a purchase, dated when it was recorded."""
    date: str
    price_per_unit: float


@dataclass
class Purchase:
    """An ingredient as bought from a supplier.

    price_per_unit is the current price in ``unit``. price_history holds at
    most ten PriceEntry items in insertion (chronological) order.
    is_demo marks sample data; any user edit clears it.
    """

    id: str
    name: str = ""
    category: Optional[str] = None
    subtype: Optional[str] = None
    supplier: Optional[str] = None
    unit: Optional[str] = None
    price_per_unit: float = 0.0
    notes: Optional[str] = None
    currency: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    price_history: list = field(default_factory=list)  # list[PriceEntry]
    is_demo: bool = False


@dataclass
class RecipeIngredient:
    """A single line within a recipe (e.g. '500 g of purchase p_butter').

    price_per_unit_snapshot is the purchase price frozen when the line was
    captured; it is only used for costing when auto-recalculate is off.
    """

    purchase_id: str
    quantity: float = 0.0
    unit: Optional[str] = None
    price_per_unit_snapshot: Optional[float] = None


@dataclass
class Recipe:
    """A sellable dish yielding ``portions`` units per batch."""

    id: str
    name: str = ""
    portions: float = 1
    selling_price_per_portion: Optional[float] = None
    archived: bool = False
    notes: Optional[str] = None
    currency: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    ingredients: list = field(default_factory=list)  # list[RecipeIngredient]
    is_demo: bool = False


@dataclass
class Settings:
    """Formatting and costing preferences, stored as one JSON object."""
    language: str = "en"
    currency: str = "EUR"
    locale: str = "eu"
    auto_recalc: bool = True
    show_advanced: bool = True


def camel(name: str) -> str:
    """price_per_unit -> pricePerUnit"""
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def snake(name: str) -> str:
    """pricePerUnit -> price_per_unit"""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def field_names(cls) -> set[str]:
    return {f.name for f in fields(cls)}


def to_record(obj) -> dict:
    """Convert a model (with nested models) to a camelCase JSON-ready dict."""
    record = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if isinstance(value, list):
            value = [to_record(v) if is_dataclass(v) else copy.deepcopy(v) for v in value]
        elif is_dataclass(value):
            value = to_record(value)
        record[camel(f.name)] = value
    return record


def normalize_keys(data: dict) -> dict:
    """Return a copy of data with camelCase keys rewritten to snake_case."""
    return {snake(k): v for k, v in data.items() if isinstance(k, str)}


def record_id(value) -> Optional[str]:
    """Normalize a record id to a non-blank string, or None if there is none."""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None
