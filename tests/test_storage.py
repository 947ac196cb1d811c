import pytest

from profitplate.core.service import ProfitPlate
from profitplate.db.database import MemoryStorage, SQLiteStorage
from profitplate.errors import ErrorKind, StorageWriteError

FLOUR = {"name": "Flour", "category": "Dry Goods", "unit": "kg", "pricePerUnit": 10}


class QuotaStorage(MemoryStorage):
    """Accepts writes until ``full`` is set, then rejects every write."""

    def __init__(self):
        super().__init__()
        self.full = False

    def set_item(self, key, value):
        if self.full:
            raise StorageWriteError(f"quota exceeded writing {key}")
        super().set_item(key, value)


def test_sqlite_storage_round_trip(tmp_path):
    db_path = tmp_path / "pp.db"
    service = ProfitPlate(SQLiteStorage(db_path))
    p = service.upsert_purchase(FLOUR)
    service.upsert_recipe({"name": "Bread", "portions": 2,
                           "ingredients": [{"purchaseId": p.id, "quantity": 1, "unit": "kg"}]})

    reopened = ProfitPlate(SQLiteStorage(db_path))
    assert [x.name for x in reopened.list_purchases()] == ["Flour"]
    assert reopened.list_recipes()[0].ingredients[0].purchase_id == p.id


def test_sqlite_keys_are_namespaced(tmp_path):
    storage = SQLiteStorage(tmp_path / "pp.db")
    storage.set_item("purchases", "[]")
    other = SQLiteStorage(tmp_path / "pp.db", namespace="other")
    assert other.get_item("purchases") is None
    storage.remove_item("purchases")
    assert storage.get_item("purchases") is None


def test_failed_write_leaves_memory_unchanged():
    storage = QuotaStorage()
    service = ProfitPlate(storage)
    p = service.upsert_purchase(FLOUR)
    storage.full = True

    with pytest.raises(StorageWriteError) as excinfo:
        service.upsert_purchase({"id": p.id, "pricePerUnit": 12})
    assert excinfo.value.kind is ErrorKind.STORAGE_WRITE
    assert service.get_purchase(p.id).price_per_unit == 10

    with pytest.raises(StorageWriteError):
        service.delete_purchase(p.id)
    assert service.get_purchase(p.id) is not None


def test_load_survives_unwritable_storage():
    storage = QuotaStorage()
    storage.items["purchases"] = "{broken"
    storage.full = True
    service = ProfitPlate(storage)
    assert service.list_purchases() == []


def test_write_failure_answers_507(client, caplog):
    from app.dependencies import get_service
    from app.main import app

    storage = QuotaStorage()
    storage.full = True
    app.dependency_overrides[get_service] = lambda: ProfitPlate(storage)
    try:
        with caplog.at_level("ERROR", logger="app.main"):
            resp = client.post("/purchases", json=FLOUR)
    finally:
        app.dependency_overrides.pop(get_service, None)
    assert resp.status_code == 507
    assert resp.json()["error"] == "storage_write"
    assert "Storage write failed on /purchases: quota exceeded writing purchases" in caplog.text
