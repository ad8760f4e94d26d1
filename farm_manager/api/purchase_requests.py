from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from farm_manager.api.auth import get_current_user
from farm_manager.database import get_db
from farm_manager.models.user import User
from farm_manager.schemas.purchase_request import (
    PurchaseRequestFinalize,
    PurchaseRequestOut,
    PurchaseRequestProgress,
    PurchaseRequestUpdate,
)
from farm_manager.services import purchase_request_service

router = APIRouter(prefix="/purchase-requests", tags=["Purchase Requests"])


@router.get("/{request_id}", response_model=PurchaseRequestOut)
def get_purchase_request(request_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return purchase_request_service.get_purchase_request(db, request_id, user)


@router.patch("/{request_id}", response_model=PurchaseRequestOut)
def patch_purchase_request(
    request_id: str,
    data: PurchaseRequestUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return purchase_request_service.apply_patch(db, request_id, data, user)


@router.post("/{request_id}/in-progress", response_model=PurchaseRequestOut)
def mark_in_progress(
    request_id: str,
    data: PurchaseRequestProgress,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return purchase_request_service.mark_in_progress(db, request_id, data.andamento, user)


@router.post("/{request_id}/finalize", response_model=PurchaseRequestOut)
def finalize(
    request_id: str,
    data: PurchaseRequestFinalize,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return purchase_request_service.finalize(db, request_id, data.finalizado_por, user)


@router.delete("/{request_id}", status_code=204)
def delete_purchase_request(request_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    purchase_request_service.delete_purchase_request(db, request_id, user)
