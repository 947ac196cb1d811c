import json

import pytest

from profitplate.core.recipes import RecipeStore
from profitplate.db.database import MemoryStorage

FLOUR = {"name": "Flour", "category": "Dry Goods", "unit": "kg", "pricePerUnit": 10}


def _bread(purchase_id, **overrides):
    recipe = {
        "name": "Bread", "portions": 5, "sellingPricePerPortion": 3,
        "ingredients": [{"purchaseId": purchase_id, "quantity": 500, "unit": "g"}],
    }
    recipe.update(overrides)
    return recipe


# ── Store ──────────────────────────────────────────────────────────────────────

def test_upsert_creates_and_replaces(service):
    r = service.upsert_recipe(_bread("p1"))
    assert r.id == "id_1"
    assert r.archived is False
    assert r.ingredients[0].quantity == 500

    r2 = service.upsert_recipe({"id": r.id, "name": "Sourdough"})
    assert r2.name == "Sourdough"
    assert r2.created_at == r.created_at
    assert len(r2.ingredients) == 1
    assert len(service.list_recipes()) == 1


def test_archive_excluded_by_default(service):
    keep = service.upsert_recipe(_bread("p1", name="Keep"))
    old = service.upsert_recipe(_bread("p1", name="Old"))
    service.set_recipe_archived(old.id, True)

    assert [r.name for r in service.list_recipes()] == ["Keep"]
    assert [r.name for r in service.list_recipes(include_archived=True)] == ["Keep", "Old"]
    assert service.get_recipe(old.id).archived is True
    assert service.get_recipe(keep.id).archived is False


def test_edit_preserves_archived_flag(service):
    r = service.upsert_recipe(_bread("p1"))
    service.set_recipe_archived(r.id, True)
    edited = service.upsert_recipe({"id": r.id, "name": "Renamed", "portions": 4})
    assert edited.archived is True


def test_unarchive(service):
    r = service.upsert_recipe(_bread("p1"))
    service.set_recipe_archived(r.id, True)
    assert service.set_recipe_archived(r.id, False).archived is False
    assert len(service.list_recipes()) == 1


def test_set_archived_unknown_recipe(service):
    assert service.set_recipe_archived("nope", True) is None


def test_delete_is_idempotent(service):
    r = service.upsert_recipe(_bread("p1"))
    assert service.delete_recipe(r.id) is True
    assert service.delete_recipe(r.id) is False
    assert service.list_recipes(include_archived=True) == []


def test_list_returns_copies(service):
    service.upsert_recipe(_bread("p1"))
    listed = service.list_recipes()
    listed[0].ingredients.clear()
    assert len(service.list_recipes()[0].ingredients) == 1


def test_legacy_selling_price_and_demo_marker():
    storage = MemoryStorage({"recipes": json.dumps([
        {"id": "r_demo", "name": "Carbonara", "portions": "10", "sellingPrice": 16,
         "ingredients": [{"purchaseId": "p1", "quantity": "0,1", "unit": "kg"}, "junk"],
         "isDemo": True},
        ["not", "a", "recipe"],
    ])})
    store = RecipeStore(storage)
    r = store.get("r_demo")
    assert r.selling_price_per_portion == 16
    assert r.portions == 10
    assert r.ingredients[0].quantity == pytest.approx(0.1)
    assert len(r.ingredients) == 1
    assert r.is_demo is True
    assert store.upsert({"id": "r_demo", "notes": "edited"}).is_demo is False


def test_numeric_id_survives_reload(storage):
    saved = RecipeStore(storage).upsert({**_bread("p1"), "id": 42})
    assert saved.id == "42"
    reloaded = RecipeStore(storage)
    assert reloaded.get("42").name == "Bread"
    assert reloaded.set_archived(42, True).archived is True
    assert len(reloaded.list(include_archived=True)) == 1


def test_costing_scenario_through_service(service):
    flour = service.upsert_purchase({**FLOUR, "id": "p1"})
    r = service.upsert_recipe(_bread(flour.id))
    costs = service.compute_costs(r.id)
    assert costs.batch_cost == pytest.approx(5)
    assert costs.cost_per_portion == pytest.approx(1)
    assert costs.margin_per_portion == pytest.approx(2)
    assert costs.margin_percent == pytest.approx(66.67, abs=0.01)


def test_deleted_purchase_flags_missing(service):
    flour = service.upsert_purchase(FLOUR)
    r = service.upsert_recipe(_bread(flour.id))
    service.delete_purchase(flour.id)
    costs = service.compute_costs(r.id)
    assert costs.batch_cost == 0
    assert costs.missing_references == [flour.id]


def test_compute_costs_unknown_recipe(service):
    assert service.compute_costs("nope") is None


def test_snapshot_freeze(service):
    service.save_settings({"autoRecalc": False})
    flour = service.upsert_purchase(FLOUR)
    r = service.upsert_recipe(_bread(flour.id))
    r = service.backfill_snapshots(r.id)
    assert r.ingredients[0].price_per_unit_snapshot == 10

    service.upsert_purchase({"id": flour.id, "pricePerUnit": 15})
    assert service.compute_costs(r.id).batch_cost == pytest.approx(5)

    service.refresh_snapshots(r.id)
    assert service.compute_costs(r.id).batch_cost == pytest.approx(7.5)


def test_backfill_skips_write_when_nothing_missing(service, storage):
    flour = service.upsert_purchase(FLOUR)
    r = service.upsert_recipe(_bread(flour.id))
    service.backfill_snapshots(r.id)
    before = storage.get_item("recipes")
    service.backfill_snapshots(r.id)
    assert storage.get_item("recipes") == before


def test_list_recipe_costs(service):
    flour = service.upsert_purchase(FLOUR)
    service.upsert_recipe(_bread(flour.id))
    [(recipe, costs)] = service.list_recipe_costs()
    assert recipe.name == "Bread"
    assert costs.cost_per_portion == pytest.approx(1)


# ── HTTP ───────────────────────────────────────────────────────────────────────

@pytest.fixture
def flour_id(client):
    return client.post("/purchases", json=FLOUR).json()["id"]


def test_recipe_save_and_costs(client, flour_id):
    resp = client.post("/recipes", json=_bread(flour_id, name="HTTP Bread"))
    assert resp.status_code == 200
    recipe = resp.json()

    costs = client.get(f"/recipes/{recipe['id']}/costs").json()
    assert costs["batchCost"] == pytest.approx(5)
    assert costs["costPerPortion"] == pytest.approx(1)
    assert costs["marginPercent"] == pytest.approx(66.67, abs=0.01)
    assert costs["missingReferences"] == []
    assert costs["lines"][0]["convertedQuantity"] == pytest.approx(0.5)


def test_recipe_save_rejects_invalid(client):
    resp = client.post("/recipes", json={"name": "", "portions": 0, "ingredients": []})
    assert resp.status_code == 422
    fields = {issue["field"] for issue in resp.json()["detail"]}
    assert {"name", "portions", "ingredients"} <= fields


def test_recipe_save_rejects_unknown_purchase(client):
    resp = client.post("/recipes", json=_bread("does-not-exist"))
    assert resp.status_code == 422
    assert resp.json()["detail"][0]["kind"] == "missing_reference"


def test_recipe_archive_flow(client, flour_id):
    recipe = client.post("/recipes", json=_bread(flour_id, name="ZZZ Archive Me")).json()

    assert client.post(f"/recipes/{recipe['id']}/archive").json()["archived"] is True
    names = [r["name"] for r in client.get("/recipes").json()]
    assert "ZZZ Archive Me" not in names
    names = [r["name"] for r in client.get("/recipes", params={"include_archived": True}).json()]
    assert "ZZZ Archive Me" in names

    assert client.post(f"/recipes/{recipe['id']}/unarchive").json()["archived"] is False


def test_recipe_list_search(client, flour_id):
    client.post("/recipes", json=_bread(flour_id, name="ZZZ Unique Search Target"))
    resp = client.get("/recipes", params={"q": "ZZZ Unique"})
    assert resp.status_code == 200
    assert [r["name"] for r in resp.json()] == ["ZZZ Unique Search Target"]
    assert resp.json()[0]["costs"]["costPerPortion"] == pytest.approx(1)


def test_recipe_delete(client, flour_id):
    recipe = client.post("/recipes", json=_bread(flour_id, name="Delete Me")).json()
    assert client.delete(f"/recipes/{recipe['id']}").json() == {"deleted": True}
    assert client.get(f"/recipes/{recipe['id']}").status_code == 404


def test_recipe_detail_not_found(client):
    assert client.get("/recipes/99999").status_code == 404
    assert client.get("/recipes/99999/costs").status_code == 404
