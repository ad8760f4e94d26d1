from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from farm_manager.api.auth import get_current_user
from farm_manager.database import get_db
from farm_manager.models.user import User
from farm_manager.schemas.inventory import (
    InventoryAdjustmentCreate,
    InventoryEntryCreate,
    InventoryItemOut,
    InventoryItemUpdate,
    InventoryTransactionOut,
    InventoryWithdrawalCreate,
    LedgerCheckOut,
    LedgerOperationOut,
)
from farm_manager.services import inventory_service

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def _operation_result(db: Session, txn, user: User) -> LedgerOperationOut:
    item = inventory_service.get_item(db, txn.inventory_id, user)
    return LedgerOperationOut(
        transaction=InventoryTransactionOut.model_validate(txn),
        item=InventoryItemOut.model_validate(item),
    )


@router.get("/{item_id}", response_model=InventoryItemOut)
def get_item(item_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return inventory_service.get_item(db, item_id, user)


@router.patch("/{item_id}", response_model=InventoryItemOut)
def update_item(
    item_id: str, data: InventoryItemUpdate, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    return inventory_service.update_item(db, item_id, data, user)


@router.post("/{item_id}/entry", response_model=LedgerOperationOut, status_code=201)
def register_entry(
    item_id: str, data: InventoryEntryCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)
):
    txn = inventory_service.register_entry(db, item_id, data, user)
    return _operation_result(db, txn, user)


@router.post("/{item_id}/withdrawal", response_model=LedgerOperationOut, status_code=201)
def register_withdrawal(
    item_id: str,
    data: InventoryWithdrawalCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = inventory_service.register_withdrawal(db, item_id, data, user)
    return _operation_result(db, txn, user)


@router.post("/{item_id}/adjustment", response_model=LedgerOperationOut, status_code=201)
def register_adjustment(
    item_id: str,
    data: InventoryAdjustmentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    txn = inventory_service.register_adjustment(db, item_id, data, user)
    return _operation_result(db, txn, user)


@router.get("/{item_id}/transactions", response_model=list[InventoryTransactionOut])
def item_transactions(
    item_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    search: str | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return inventory_service.list_item_transactions(db, item_id, user, start=start, end=end, search=search)


@router.get("/{item_id}/ledger-check", response_model=LedgerCheckOut)
def ledger_check(item_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return inventory_service.verify_ledger(db, item_id, user)
