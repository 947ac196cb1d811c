"""The ProfitPlate core as one object: both stores, settings and costing.

This is the only surface the UI layer (app/routers) talks to. It is built
once per process around a storage port, and takes an optional clock and id
supplier so tests can pin timestamps and identifiers.

    service = ProfitPlate(SQLiteStorage())
    p = service.upsert_purchase({"name": "Butter", "unit": "kg", "pricePerUnit": "6,40"})
    costs = service.compute_costs("r_carbonara")
"""

import logging
from typing import Callable, Optional, Union

from profitplate import config
from profitplate.core import costing, units
from profitplate.core.purchases import PurchaseStore
from profitplate.core.recipes import RecipeStore
from profitplate.core.stamps import now_iso
from profitplate.db.models import Purchase, Recipe, Settings

logger = logging.getLogger(__name__)


class ProfitPlate:
    def __init__(self, storage, clock: Callable[[], str] = now_iso,
                 id_factory: Callable[[], str] = None):
        self.storage = storage
        self.purchases = PurchaseStore(storage, clock=clock, id_factory=id_factory)
        self.recipes = RecipeStore(storage, clock=clock, id_factory=id_factory)

    # ── Settings ───────────────────────────────────────────────────────────────

    def get_settings(self) -> Settings:
        return config.get_settings(self.storage)

    def save_settings(self, changes: dict) -> Settings:
        return config.save_settings(self.storage, changes)

    # ── Purchases ──────────────────────────────────────────────────────────────

    def list_purchases(self) -> list[Purchase]:
        return self.purchases.list()

    def get_purchase(self, purchase_id: str) -> Optional[Purchase]:
        return self.purchases.get(purchase_id)

    def upsert_purchase(self, patch: Union[dict, Purchase]) -> Purchase:
        return self.purchases.upsert(patch)

    def delete_purchase(self, purchase_id: str) -> bool:
        return self.purchases.delete(purchase_id)

    # ── Recipes ────────────────────────────────────────────────────────────────

    def list_recipes(self, include_archived: bool = False) -> list[Recipe]:
        return self.recipes.list(include_archived=include_archived)

    def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        return self.recipes.get(recipe_id)

    def upsert_recipe(self, recipe: Union[dict, Recipe]) -> Recipe:
        return self.recipes.upsert(recipe)

    def delete_recipe(self, recipe_id: str) -> bool:
        return self.recipes.delete(recipe_id)

    def set_recipe_archived(self, recipe_id: str, archived: bool) -> Optional[Recipe]:
        return self.recipes.set_archived(recipe_id, archived)

    # ── Costing ────────────────────────────────────────────────────────────────

    def compute_costs(self, recipe: Union[str, Recipe],
                      auto_recalc: Optional[bool] = None) -> Optional[costing.CostBreakdown]:
        """Cost a recipe (or recipe id) against the current purchase catalog.

        auto_recalc defaults to the stored setting. Returns None for an
        unknown recipe id.
        """
        if isinstance(recipe, str):
            recipe = self.recipes.get(recipe)
            if recipe is None:
                return None
        if auto_recalc is None:
            auto_recalc = self.get_settings().auto_recalc
        return costing.compute_costs(recipe, self.purchases.list(), auto_recalc=auto_recalc)

    def list_recipe_costs(self, include_archived: bool = False) -> list[tuple[Recipe, costing.CostBreakdown]]:
        """Each listed recipe paired with its cost breakdown (recipe list view)."""
        auto_recalc = self.get_settings().auto_recalc
        purchases = self.purchases.list()
        return [
            (recipe, costing.compute_costs(recipe, purchases, auto_recalc=auto_recalc))
            for recipe in self.recipes.list(include_archived=include_archived)
        ]

    def backfill_snapshots(self, recipe_id: str) -> Optional[Recipe]:
        """Freeze live prices into lines that have no snapshot yet, and save.

        Only writes when something changed. Returns the (possibly unchanged)
        recipe, or None if it does not exist.
        """
        recipe = self.recipes.get(recipe_id)
        if recipe is None:
            return None
        purchases = self.purchases.list()
        if not costing.needs_backfill(recipe, purchases):
            return recipe
        updated = costing.capture_snapshots(recipe, purchases, only_missing=True)
        logger.info("Backfilling price snapshots for recipe %s", recipe_id)
        return self.recipes.upsert({"id": recipe_id, "ingredients": updated.ingredients})

    def refresh_snapshots(self, recipe_id: str) -> Optional[Recipe]:
        """Re-freeze every resolvable line at the current live price, and save."""
        recipe = self.recipes.get(recipe_id)
        if recipe is None:
            return None
        updated = costing.capture_snapshots(recipe, self.purchases.list(), only_missing=False)
        return self.recipes.upsert({"id": recipe_id, "ingredients": updated.ingredients})

    # ── Units ──────────────────────────────────────────────────────────────────

    @staticmethod
    def convert_quantity(quantity, from_unit, to_unit) -> float:
        return units.convert(quantity, from_unit, to_unit)

    # ── Bulk import ────────────────────────────────────────────────────────────

    def replace_all(self, purchases: list, recipes: list, settings: dict = None) -> tuple[int, int]:
        """Overwrite all collections at once. Returns (purchases, recipes) kept."""
        n_purchases = self.purchases.replace_all(purchases)
        n_recipes = self.recipes.replace_all(recipes)
        if settings is not None:
            config.save_settings(self.storage, settings)
        return n_purchases, n_recipes
