from fastapi import APIRouter, Depends

from app.dependencies import get_service
from profitplate.core import units
from profitplate.core.service import ProfitPlate

router = APIRouter(prefix="/units", tags=["units"])


@router.get("/convert")
def units_convert(quantity: str = "0", from_unit: str = "", to_unit: str = "",
                  service: ProfitPlate = Depends(get_service)):
    # Incompatible units come back unchanged; "compatible" tells the UI to warn.
    return {
        "quantity": service.convert_quantity(quantity, from_unit, to_unit),
        "fromUnit": units.normalize_unit(from_unit),
        "toUnit": units.normalize_unit(to_unit),
        "compatible": units.compatible(from_unit, to_unit),
    }
