from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from farm_manager.api.auth import get_current_user
from farm_manager.database import get_db
from farm_manager.models.inventory import InventoryTransactionType
from farm_manager.models.user import User
from farm_manager.schemas.farm import FarmCreate, FarmMemberAdd, FarmOut
from farm_manager.schemas.inventory import InventoryItemCreate, InventoryItemOut, InventoryTransactionOut
from farm_manager.schemas.purchase_request import PurchaseRequestCreate, PurchaseRequestOut
from farm_manager.services import farm_service, inventory_service, purchase_request_service

router = APIRouter(prefix="/farms", tags=["Farms"])


@router.get("", response_model=list[FarmOut])
def list_farms(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return farm_service.list_farms(db, user)


@router.post("", response_model=FarmOut, status_code=201)
def create_farm(data: FarmCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return farm_service.create_farm(db, data, user)


@router.post("/{farm_id}/members", response_model=FarmOut)
def add_member(
    farm_id: str, data: FarmMemberAdd, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    return farm_service.add_member(db, farm_id, data.user_id, user)


# --- Inventory ---

@router.get("/{farm_id}/inventory", response_model=list[InventoryItemOut])
def list_inventory(
    farm_id: str,
    category: str | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return inventory_service.list_items(db, farm_id, user, category=category)


@router.post("/{farm_id}/inventory", response_model=InventoryItemOut, status_code=201)
def create_inventory_item(
    farm_id: str, data: InventoryItemCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    return inventory_service.create_item(db, farm_id, data, user)


@router.get("/{farm_id}/inventory/critical", response_model=list[InventoryItemOut])
def critical_inventory(farm_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return inventory_service.list_critical_items(db, farm_id, user)


@router.get("/{farm_id}/inventory/transactions", response_model=list[InventoryTransactionOut])
def farm_transactions(
    farm_id: str,
    item_id: str | None = None,
    type: InventoryTransactionType | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 500,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return inventory_service.list_farm_transactions(
        db, farm_id, user,
        item_id=item_id, txn_type=type, start=start, end=end, search=search, skip=skip, limit=limit,
    )


# --- Purchase requests ---

@router.get("/{farm_id}/purchase-requests", response_model=list[PurchaseRequestOut])
def list_purchase_requests(
    farm_id: str,
    status: str | None = None,
    urgente: bool | None = None,
    search: str | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return purchase_request_service.list_purchase_requests(
        db, farm_id, user, status=status, urgente=urgente, search=search
    )


@router.post("/{farm_id}/purchase-requests", response_model=PurchaseRequestOut, status_code=201)
def create_purchase_request(
    farm_id: str, data: PurchaseRequestCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    return purchase_request_service.create_purchase_request(db, farm_id, data, user)
