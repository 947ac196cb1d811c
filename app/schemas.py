"""Pydantic request models and JSON response helpers.

Request bodies use the same camelCase keys as the persisted records.
Numeric form fields accept strings so "6,40" reaches the validator intact.
"""
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from profitplate.core.costing import CostBreakdown
from profitplate.db.models import to_record

Number = Union[float, str, None]


class _Form(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PurchaseForm(_Form):
    """Purchase form payload. Omit id to create a new purchase."""
    id: Optional[str] = None
    name: Optional[str] = None
    category: Optional[str] = None
    subtype: Optional[str] = None
    supplier: Optional[str] = None
    unit: Optional[str] = None
    price_per_unit: Number = None
    notes: Optional[str] = None
    currency: Optional[str] = None
    invoice_number: Optional[str] = None
    invoice_date: Optional[str] = None


class IngredientLine(_Form):
    purchase_id: Optional[str] = None
    quantity: Number = None
    unit: Optional[str] = None
    price_per_unit_snapshot: Optional[float] = None


class RecipeForm(_Form):
    """Recipe form payload. Omit id to create a new recipe."""
    id: Optional[str] = None
    name: Optional[str] = None
    portions: Number = None
    selling_price_per_portion: Number = None
    notes: Optional[str] = None
    currency: Optional[str] = None
    ingredients: List[IngredientLine] = []


class SettingsForm(_Form):
    language: Optional[str] = None
    currency: Optional[str] = None
    locale: Optional[str] = None
    auto_recalc: Optional[bool] = None
    show_advanced: Optional[bool] = None


def form_data(form: BaseModel) -> dict:
    """Only the fields the client actually sent, snake_case keys."""
    return form.model_dump(exclude_unset=True)


def costs_record(costs: CostBreakdown) -> dict:
    record = to_record(costs)
    record["missingReferences"] = costs.missing_references
    record["hasWarnings"] = costs.has_warnings
    return record


def issues_detail(issues) -> list[dict]:
    return [{"field": i.field, "message": i.message, "kind": i.kind.value} for i in issues]
