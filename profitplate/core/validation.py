"""Form validation, applied before a payload reaches a store.

The stores only coerce types; the business rules for what a purchase or a
recipe form must contain live here. Each check returns a list of FieldIssue
(empty when valid); ensure_valid() turns a non-empty list into a
ValidationError.
"""

from profitplate.core.numbers import parse_number
from profitplate.db.models import normalize_keys
from profitplate.errors import ErrorKind, FieldIssue, ValidationError

PURCHASE_REQUIRED = ("name", "category", "unit")


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def check_purchase(data: dict) -> list[FieldIssue]:
    """A purchase needs a name, category, unit and a non-negative price."""
    values = normalize_keys(data)
    issues = [FieldIssue(name, "required") for name in PURCHASE_REQUIRED if _blank(values.get(name))]
    price = parse_number(values.get("price_per_unit"))
    if not price.ok:
        issues.append(FieldIssue("price_per_unit", price.error, price.kind))
    elif price.value < 0:
        issues.append(FieldIssue("price_per_unit", "must not be negative"))
    return issues


def check_recipe(data: dict) -> list[FieldIssue]:
    """A recipe needs a name, a positive portion count and at least one ingredient."""
    values = normalize_keys(data)
    issues = []
    if _blank(values.get("name")):
        issues.append(FieldIssue("name", "required"))

    portions = parse_number(values.get("portions"))
    if not portions.ok:
        issues.append(FieldIssue("portions", portions.error, portions.kind))
    elif portions.value <= 0:
        issues.append(FieldIssue("portions", "must be greater than zero"))

    selling = values.get("selling_price_per_portion")
    if not _blank(selling):
        parsed = parse_number(selling)
        if not parsed.ok:
            issues.append(FieldIssue("selling_price_per_portion", parsed.error, parsed.kind))
        elif parsed.value < 0:
            issues.append(FieldIssue("selling_price_per_portion", "must not be negative"))

    ingredients = values.get("ingredients") or []
    if not ingredients:
        issues.append(FieldIssue("ingredients", "add at least one ingredient"))
    for i, line in enumerate(ingredients):
        line = normalize_keys(line) if isinstance(line, dict) else {}
        if _blank(line.get("purchase_id")):
            issues.append(FieldIssue(f"ingredients[{i}].purchase_id", "required"))
        qty = parse_number(line.get("quantity"))
        if not qty.ok:
            issues.append(FieldIssue(f"ingredients[{i}].quantity", qty.error, qty.kind))
        elif qty.value < 0:
            issues.append(FieldIssue(f"ingredients[{i}].quantity", "must not be negative"))
    return issues


def missing_references(data: dict, purchase_ids) -> list[FieldIssue]:
    """Report ingredient lines that point at purchases not in purchase_ids."""
    known = set(purchase_ids)
    issues = []
    for i, line in enumerate(normalize_keys(data).get("ingredients") or []):
        if not isinstance(line, dict):
            continue
        purchase_id = normalize_keys(line).get("purchase_id")
        if not _blank(purchase_id) and purchase_id not in known:
            issues.append(FieldIssue(
                f"ingredients[{i}].purchase_id",
                f"unknown purchase {purchase_id!r}",
                ErrorKind.MISSING_REFERENCE,
            ))
    return issues


def ensure_valid(issues: list[FieldIssue]) -> None:
    if issues:
        raise ValidationError(issues)
