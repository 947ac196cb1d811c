"""Sample purchases, recipes and settings for trying ProfitPlate out.

load_sample_data() OVERWRITES all three collections. Every seeded record is
marked isDemo; the mark disappears as soon as the user edits the record.
"""
from profitplate.core.stamps import now_iso


def _purchase(id, name, category, subtype, supplier, invoice, invoice_date,
              unit, price, notes, history):
    now = now_iso()
    return {
        "id": id, "name": name, "category": category, "subtype": subtype,
        "supplier": supplier, "invoiceNumber": invoice, "invoiceDate": invoice_date,
        "unit": unit, "pricePerUnit": price, "notes": notes,
        "createdAt": now, "updatedAt": now,
        "priceHistory": [{"date": d, "pricePerUnit": p} for d, p in history],
        "isDemo": True,
    }


def demo_purchases() -> list[dict]:
    return [
        _purchase("p_butter_1kg", "Butter 82% 1kg", "Dairy & Eggs", "Butter", "Nicolas",
                  "INV-2025-001", "2025-01-10", "kg", 16.0,
                  "Keep refrigerated. For sauces, baking.",
                  [("2025-01-10", 15.5), ("2025-02-01", 16.0)]),
        # 7.00 € / 5 kg
        _purchase("p_pasta_spaghetti_5kg", "Spaghetti 5kg", "Dry Goods", "Pasta", "Metro",
                  "INV-2025-002", "2025-02-05", "kg", 1.4, "Dry storage.",
                  [("2025-02-05", 1.4)]),
        _purchase("p_parmigiano_1kg", "Parmigiano Reggiano 1kg", "Dairy & Eggs", "Cheese",
                  "Italian supplier", "INV-2025-003", "2025-02-08", "kg", 18.0,
                  "Use for grating & finishing.", [("2025-02-08", 18.0)]),
        # 24 € / 3 kg
        _purchase("p_bacon_3kg", "Smoked bacon 3kg", "Meat & Fish", "Pork", "Metro",
                  "INV-2025-004", "2025-02-10", "kg", 8.0, "", [("2025-02-10", 8.0)]),
        # 6.90 € / 30
        _purchase("p_eggs_30pcs", "Eggs L – tray 30 pcs", "Dairy & Eggs", "Eggs", "Local farm",
                  "INV-2025-005", "2025-02-12", "pcs", 0.23, "", [("2025-02-12", 0.23)]),
    ]


def demo_recipes() -> list[dict]:
    now = now_iso()
    return [
        {
            "id": "r_carbonara", "name": "Pasta Carbonara", "portions": 10,
            "sellingPricePerPortion": 16.0, "archived": False,
            "notes": "Classic carbonara, no cream.",
            "ingredients": [
                {"purchaseId": "p_pasta_spaghetti_5kg", "quantity": 0.10, "unit": "kg"},
                {"purchaseId": "p_bacon_3kg", "quantity": 0.025, "unit": "kg"},
                {"purchaseId": "p_parmigiano_1kg", "quantity": 0.015, "unit": "kg"},
                {"purchaseId": "p_eggs_30pcs", "quantity": 1, "unit": "pcs"},
            ],
            "createdAt": now, "updatedAt": now, "isDemo": True,
        },
        {
            "id": "r_butter_pasta", "name": "Butter pasta (kids)", "portions": 8,
            "sellingPricePerPortion": 9.0, "archived": False,
            "notes": "Simple kid-friendly pasta.",
            "ingredients": [
                {"purchaseId": "p_pasta_spaghetti_5kg", "quantity": 0.09, "unit": "kg"},
                {"purchaseId": "p_butter_1kg", "quantity": 0.012, "unit": "kg"},
                {"purchaseId": "p_parmigiano_1kg", "quantity": 0.012, "unit": "kg"},
            ],
            "createdAt": now, "updatedAt": now, "isDemo": True,
        },
    ]


DEMO_SETTINGS = {
    "language": "en",
    "currency": "EUR",
    "locale": "eu",
    "autoRecalc": True,
    "showAdvanced": True,
}


def load_sample_data(service) -> tuple[int, int]:
    """Overwrite purchases, recipes and settings. Returns (purchases, recipes) loaded."""
    return service.replace_all(demo_purchases(), demo_recipes(), dict(DEMO_SETTINGS))


def seed_if_empty(service) -> bool:
    """Load the sample data only if there are no purchases and no recipes yet."""
    if service.list_purchases() or service.list_recipes(include_archived=True):
        return False  # Already has data
    load_sample_data(service)
    return True
