"""Recipe library — create, read, update, archive and delete recipes.

Each recipe has an embedded list of RecipeIngredient lines referencing
purchases by id. Like the purchase catalog, the whole "recipes" collection is
written back after every mutation and reads return copies.

Archived recipes are hidden from list() by default but are never removed by
archiving; delete() is the only way to drop one.
"""

import copy
import logging
import threading
from dataclasses import fields
from typing import Callable, Optional, Union

from profitplate.core.numbers import coerce_number, optional_price
from profitplate.core.stamps import generate_id, now_iso
from profitplate.db.database import load_collection, save_collection
from profitplate.db.models import Recipe, RecipeIngredient, field_names, normalize_keys, record_id, to_record

logger = logging.getLogger(__name__)

COLLECTION = "recipes"

_FORCED = {"id", "created_at", "updated_at", "is_demo"}


def ingredient_from_record(raw) -> Optional[RecipeIngredient]:
    """Build a RecipeIngredient from a dict or model, or None if unusable."""
    if isinstance(raw, RecipeIngredient):
        data = {f.name: getattr(raw, f.name) for f in fields(raw)}
    elif isinstance(raw, dict):
        data = normalize_keys(raw)
    else:
        return None
    purchase_id = data.get("purchase_id")
    if purchase_id is None or purchase_id == "":
        return None
    unit = data.get("unit")
    return RecipeIngredient(
        purchase_id=str(purchase_id),
        quantity=coerce_number(data.get("quantity")),
        unit=str(unit) if unit is not None else None,
        price_per_unit_snapshot=optional_price(data.get("price_per_unit_snapshot")),
    )


def recipe_from_record(raw) -> Optional[Recipe]:
    """Build a sanitized Recipe from a persisted dict, or None if unusable.

    Sample data written by older versions uses ``sellingPrice``.
    """
    if isinstance(raw, Recipe):
        return sanitize(copy.deepcopy(raw))
    if not isinstance(raw, dict):
        return None
    data = normalize_keys(raw)
    if "selling_price_per_portion" not in data and "selling_price" in data:
        data["selling_price_per_portion"] = data["selling_price"]
    recipe_id = record_id(data.get("id"))
    if recipe_id is None:
        return None
    known = field_names(Recipe)
    recipe = Recipe(id=recipe_id)
    for key, value in data.items():
        if key in known and key != "id":
            setattr(recipe, key, value)
    return sanitize(recipe)


def sanitize(recipe: Recipe) -> Recipe:
    """Coerce numeric fields and drop malformed ingredient lines, in place."""
    recipe.name = "" if recipe.name is None else str(recipe.name)
    recipe.portions = coerce_number(recipe.portions)
    recipe.selling_price_per_portion = optional_price(recipe.selling_price_per_portion)
    recipe.archived = bool(recipe.archived)
    recipe.is_demo = bool(recipe.is_demo)
    lines = recipe.ingredients if isinstance(recipe.ingredients, list) else []
    recipe.ingredients = [i for i in (ingredient_from_record(r) for r in lines) if i is not None]
    return recipe


class RecipeStore:
    """Owns the recipe collection. Same storage/clock/id contract as PurchaseStore."""

    def __init__(self, storage, clock: Callable[[], str] = now_iso,
                 id_factory: Callable[[], str] = None):
        self._storage = storage
        self._clock = clock
        self._new_id = id_factory or (lambda: generate_id("r_"))
        self._lock = threading.RLock()
        self._items: list[Recipe] = self._load()

    def _load(self) -> list[Recipe]:
        items = []
        seen = set()
        for raw in load_collection(self._storage, COLLECTION, []):
            recipe = recipe_from_record(raw)
            if recipe is None or recipe.id in seen:
                logger.warning("Dropping malformed recipe record: %r", raw)
                continue
            seen.add(recipe.id)
            items.append(recipe)
        return items

    def _commit(self, items: list[Recipe]) -> None:
        save_collection(self._storage, COLLECTION, [to_record(r) for r in items])
        self._items = items

    def _index_of(self, recipe_id) -> int:
        recipe_id = record_id(recipe_id)
        for i, r in enumerate(self._items):
            if r.id == recipe_id:
                return i
        return -1

    def list(self, include_archived: bool = False) -> list[Recipe]:
        """Return copies of recipes in stored order, archived ones only on request."""
        with self._lock:
            return [copy.deepcopy(r) for r in self._items if include_archived or not r.archived]

    def get(self, recipe_id: str) -> Optional[Recipe]:
        """Return a copy of one recipe (archived or not), or None if not found."""
        with self._lock:
            i = self._index_of(recipe_id)
            return copy.deepcopy(self._items[i]) if i >= 0 else None

    def upsert(self, recipe: Union[dict, Recipe]) -> Recipe:
        """Replace-or-insert by id and persist immediately.

        A dict patch only overwrites the keys it carries, so editing a
        recipe's name or ingredients keeps its archived flag. A Recipe
        instance is taken as the complete record.
        """
        if isinstance(recipe, Recipe):
            patch = {f.name: getattr(recipe, f.name) for f in fields(recipe)}
        else:
            patch = normalize_keys(recipe)
        if "selling_price_per_portion" not in patch and "selling_price" in patch:
            patch["selling_price_per_portion"] = patch["selling_price"]
        known = field_names(Recipe)

        with self._lock:
            now = self._clock()
            given_id = record_id(patch.get("id"))
            index = self._index_of(given_id) if given_id else -1
            existing = self._items[index] if index >= 0 else None

            recipe_id = given_id or self._new_id()
            merged = copy.deepcopy(existing) if existing else Recipe(id=recipe_id)
            for key, value in patch.items():
                if key in known and key not in _FORCED:
                    setattr(merged, key, copy.deepcopy(value))
            merged.id = recipe_id
            merged.created_at = (existing.created_at if existing else None) or patch.get("created_at") or now
            merged.updated_at = now
            merged.is_demo = False
            merged = sanitize(merged)

            items = list(self._items)
            if existing is not None:
                items[index] = merged
            else:
                items.append(merged)
            self._commit(items)
            logger.debug("Saved recipe %s with %d ingredient lines", merged.id, len(merged.ingredients))
            return copy.deepcopy(merged)

    def delete(self, recipe_id: str) -> bool:
        """Delete a recipe by ID. Returns False if it did not exist."""
        with self._lock:
            index = self._index_of(recipe_id)
            if index < 0:
                return False
            self._commit(self._items[:index] + self._items[index + 1:])
            logger.info("Deleted recipe %s", recipe_id)
            return True

    def set_archived(self, recipe_id: str, archived: bool = True) -> Optional[Recipe]:
        """Flip the archived flag. Returns the updated recipe, or None if not found."""
        with self._lock:
            if self._index_of(recipe_id) < 0:
                return None
            return self.upsert({"id": recipe_id, "archived": bool(archived)})

    def replace_all(self, records: list) -> int:
        """Overwrite the whole collection (sample-data import). Returns count kept."""
        with self._lock:
            items = [r for r in (recipe_from_record(raw) for raw in records) if r is not None]
            self._commit(items)
            return len(items)
