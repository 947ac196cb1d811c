from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.exceptions import HTTPException

from app.dependencies import get_service
from app.schemas import RecipeForm, costs_record, form_data
from profitplate.core.service import ProfitPlate
from profitplate.core.validation import check_recipe, ensure_valid, missing_references
from profitplate.db.models import to_record

router = APIRouter(prefix="/recipes", tags=["recipes"])


def _get_or_404(service: ProfitPlate, recipe_id: str):
    recipe = service.get_recipe(recipe_id)
    if recipe is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


@router.get("")
def recipes_list(include_archived: bool = False, q: str = "",
                 service: ProfitPlate = Depends(get_service)):
    rows = []
    for recipe, costs in service.list_recipe_costs(include_archived=include_archived):
        if q and q.lower() not in recipe.name.lower():
            continue
        rows.append({**to_record(recipe), "costs": costs_record(costs)})
    return rows


@router.get("/{recipe_id}")
def recipes_detail(recipe_id: str, service: ProfitPlate = Depends(get_service)):
    return to_record(_get_or_404(service, recipe_id))


@router.post("")
def recipes_save(form: RecipeForm, service: ProfitPlate = Depends(get_service)):
    data = form_data(form)
    known_ids = [p.id for p in service.list_purchases()]
    ensure_valid(check_recipe(data) + missing_references(data, known_ids))
    recipe = service.upsert_recipe(data)
    # With auto-recalculate off, new lines get today's price frozen in.
    if not service.get_settings().auto_recalc:
        recipe = service.backfill_snapshots(recipe.id)
    return to_record(recipe)


@router.delete("/{recipe_id}")
def recipes_delete(recipe_id: str, service: ProfitPlate = Depends(get_service)):
    return {"deleted": service.delete_recipe(recipe_id)}


@router.post("/{recipe_id}/archive")
def recipes_archive(recipe_id: str, service: ProfitPlate = Depends(get_service)):
    _get_or_404(service, recipe_id)
    return to_record(service.set_recipe_archived(recipe_id, True))


@router.post("/{recipe_id}/unarchive")
def recipes_unarchive(recipe_id: str, service: ProfitPlate = Depends(get_service)):
    _get_or_404(service, recipe_id)
    return to_record(service.set_recipe_archived(recipe_id, False))


@router.get("/{recipe_id}/costs")
def recipes_costs(recipe_id: str, auto_recalc: Optional[bool] = None,
                  service: ProfitPlate = Depends(get_service)):
    recipe = _get_or_404(service, recipe_id)
    return costs_record(service.compute_costs(recipe, auto_recalc=auto_recalc))


@router.post("/{recipe_id}/snapshots/refresh")
def recipes_refresh_snapshots(recipe_id: str, service: ProfitPlate = Depends(get_service)):
    _get_or_404(service, recipe_id)
    return to_record(service.refresh_snapshots(recipe_id))
