from fastapi import APIRouter, Depends

from app.dependencies import get_service
from app.schemas import SettingsForm, form_data
from profitplate.core.service import ProfitPlate
from profitplate.db.models import to_record

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("")
def settings_page(service: ProfitPlate = Depends(get_service)):
    return to_record(service.get_settings())


@router.post("")
def settings_save(form: SettingsForm, service: ProfitPlate = Depends(get_service)):
    changes = {k: v for k, v in form_data(form).items() if v is not None}
    return to_record(service.save_settings(changes))
