from fastapi import APIRouter, Depends

from app.dependencies import get_service
from demo.seed import load_sample_data
from profitplate.core.service import ProfitPlate

router = APIRouter(prefix="/demo", tags=["demo"])


@router.post("/load")
def demo_load(service: ProfitPlate = Depends(get_service)):
    """Overwrite purchases, recipes and settings with the sample data."""
    purchases, recipes = load_sample_data(service)
    return {"purchases": purchases, "recipes": recipes}
