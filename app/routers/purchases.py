from fastapi import APIRouter, Depends
from fastapi.exceptions import HTTPException

from app.dependencies import get_service
from app.schemas import PurchaseForm, form_data
from profitplate.core.service import ProfitPlate
from profitplate.core.validation import check_purchase, ensure_valid
from profitplate.db.models import to_record

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.get("")
def purchases_list(category: str = "", service: ProfitPlate = Depends(get_service)):
    items = service.list_purchases()
    if category:
        items = [p for p in items if (p.category or "").lower() == category.lower()]
    return [to_record(p) for p in items]


@router.get("/{purchase_id}")
def purchases_detail(purchase_id: str, service: ProfitPlate = Depends(get_service)):
    purchase = service.get_purchase(purchase_id)
    if purchase is None:
        raise HTTPException(status_code=404, detail="Purchase not found")
    return to_record(purchase)


@router.post("")
def purchases_save(form: PurchaseForm, service: ProfitPlate = Depends(get_service)):
    data = form_data(form)
    ensure_valid(check_purchase(data))
    return to_record(service.upsert_purchase(data))


@router.delete("/{purchase_id}")
def purchases_delete(purchase_id: str, service: ProfitPlate = Depends(get_service)):
    return {"deleted": service.delete_purchase(purchase_id)}
