"""Recipe costing — batch cost, cost per portion and margin.

Formula:
    batch_cost       = Σ convert(line.quantity, line.unit, purchase.unit) × unit_price
    cost_per_portion = batch_cost / portions            (0 when portions <= 0)
    margin           = selling_price - cost_per_portion (only with a selling price)
    margin_percent   = margin / selling_price × 100

unit_price is the purchase's live price when auto-recalculate is on. When it
is off, a line's frozen price_per_unit_snapshot wins, falling back to the
live price. A line whose purchase no longer exists costs 0 and is flagged
``missing``; the computation itself never fails.

Everything here is pure: no store is read or written. Capturing snapshots
produces a new Recipe that the caller must save.
"""

import copy
from dataclasses import dataclass, field
from typing import Iterable, Optional, Union

from profitplate.core import units
from profitplate.core.numbers import coerce_number
from profitplate.db.models import Purchase, Recipe

LIVE = "live"
SNAPSHOT = "snapshot"
NONE = "none"


@dataclass
class CostLine:
    """Cost breakdown for a single ingredient line."""
    purchase_id: str
    purchase_name: Optional[str]
    quantity: float
    unit: Optional[str]
    converted_quantity: float  # in the purchase's unit
    base_unit: Optional[str]
    unit_price: float
    price_source: str  # "live", "snapshot" or "none"
    cost: float
    missing: bool = False
    unit_mismatch: bool = False


@dataclass
class CostBreakdown:
    """Full costing result for a recipe."""
    recipe_id: Optional[str]
    batch_cost: float
    cost_per_portion: float
    margin_per_portion: Optional[float] = None
    margin_percent: Optional[float] = None
    lines: list = field(default_factory=list)  # list[CostLine]

    @property
    def missing_references(self) -> list[str]:
        return [line.purchase_id for line in self.lines if line.missing]

    @property
    def has_warnings(self) -> bool:
        return any(line.missing or line.unit_mismatch for line in self.lines)


def _catalog(purchases: Union[dict, Iterable[Purchase]]) -> dict:
    if isinstance(purchases, dict):
        return purchases
    return {p.id: p for p in purchases}


def _resolve_price(line, purchase: Optional[Purchase], auto_recalc: bool) -> tuple[float, str]:
    if not auto_recalc and line.price_per_unit_snapshot is not None:
        return float(line.price_per_unit_snapshot), SNAPSHOT
    if purchase is not None:
        return float(purchase.price_per_unit or 0.0), LIVE
    return 0.0, NONE


def compute_costs(recipe: Recipe, purchases, auto_recalc: bool = True) -> CostBreakdown:
    """Cost a recipe against a purchase catalog (list of Purchase or id -> Purchase)."""
    catalog = _catalog(purchases)
    lines = []
    batch_cost = 0.0

    for ing in recipe.ingredients:
        purchase = catalog.get(ing.purchase_id)
        quantity = coerce_number(ing.quantity)

        if purchase is None and ing.price_per_unit_snapshot is None:
            lines.append(CostLine(
                purchase_id=ing.purchase_id, purchase_name=None,
                quantity=quantity, unit=ing.unit,
                converted_quantity=quantity, base_unit=None,
                unit_price=0.0, price_source=NONE, cost=0.0, missing=True,
            ))
            continue

        unit_price, source = _resolve_price(ing, purchase, auto_recalc)
        base_unit = purchase.unit if purchase is not None else ing.unit
        converted = units.convert(quantity, ing.unit, base_unit)
        cost = converted * unit_price
        batch_cost += cost
        lines.append(CostLine(
            purchase_id=ing.purchase_id,
            purchase_name=purchase.name if purchase is not None else None,
            quantity=quantity,
            unit=ing.unit,
            converted_quantity=converted,
            base_unit=base_unit,
            unit_price=unit_price,
            price_source=source,
            cost=cost,
            missing=purchase is None,
            unit_mismatch=not units.compatible(ing.unit, base_unit),
        ))

    portions = coerce_number(recipe.portions)
    cost_per_portion = batch_cost / portions if portions > 0 else 0.0

    result = CostBreakdown(
        recipe_id=recipe.id,
        batch_cost=batch_cost,
        cost_per_portion=cost_per_portion,
        lines=lines,
    )
    selling = recipe.selling_price_per_portion
    if selling is not None and selling > 0:
        result.margin_per_portion = selling - cost_per_portion
        result.margin_percent = result.margin_per_portion / selling * 100
    return result


def needs_backfill(recipe: Recipe, purchases) -> bool:
    """True if any line lacks a snapshot but has a live purchase to take one from."""
    catalog = _catalog(purchases)
    return any(
        ing.price_per_unit_snapshot is None and ing.purchase_id in catalog
        for ing in recipe.ingredients
    )


def capture_snapshots(recipe: Recipe, purchases, only_missing: bool = True) -> Recipe:
    """Return a copy of recipe with live prices frozen into its lines.

    With only_missing, lines that already carry a snapshot keep it (the
    backfill case); otherwise every resolvable line is refreshed. Lines whose
    purchase is gone are left untouched.
    """
    catalog = _catalog(purchases)
    updated = copy.deepcopy(recipe)
    for ing in updated.ingredients:
        purchase = catalog.get(ing.purchase_id)
        if purchase is None:
            continue
        if only_missing and ing.price_per_unit_snapshot is not None:
            continue
        ing.price_per_unit_snapshot = float(purchase.price_per_unit or 0.0)
    return updated
