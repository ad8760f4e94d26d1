"""Inventory ledger.

An item's quantity only changes through ``register_entry``,
``register_withdrawal`` and ``register_adjustment``. Each of them locks the
item row, writes the new quantity and appends one InventoryTransaction in
the same database transaction, so ``previous_balance`` of every row equals
``new_balance`` of the row before it.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import or_
from sqlalchemy.orm import Session

from farm_manager.config import settings
from farm_manager.exceptions import InsufficientStockError, NotFoundError, ValidationError
from farm_manager.models.inventory import InventoryItem, InventoryTransaction, InventoryTransactionType
from farm_manager.models.user import User
from farm_manager.schemas.inventory import (
    InventoryAdjustmentCreate,
    InventoryEntryCreate,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryWithdrawalCreate,
)
from farm_manager.services import farm_service

logger = logging.getLogger(__name__)

QUANTITY_PLACES = 3
# integer digits left by Numeric(14, 3) and Numeric(14, 2)
QUANTITY_DIGITS = 11
PRICE_DIGITS = 12
PRICE_QUANT = Decimal("0.01")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _check_places(value: Decimal, field: str) -> None:
    if value.as_tuple().exponent < -QUANTITY_PLACES:
        raise ValidationError(f"{field} supports at most {QUANTITY_PLACES} decimal places")


def _check_digits(value: Decimal, field: str, digits: int = QUANTITY_DIGITS) -> None:
    if abs(value) >= Decimal(10) ** digits:
        raise ValidationError(f"{field} is too large (at most {digits} integer digits)")


def _require_positive(value: Decimal, field: str) -> Decimal:
    if value is None or not value.is_finite() or value <= 0:
        raise ValidationError(f"{field} must be a positive number")
    _check_places(value, field)
    _check_digits(value, field)
    return value


def _require_non_negative(value: Decimal, field: str) -> Decimal:
    if value is None or not value.is_finite() or value < 0:
        raise ValidationError(f"{field} must be zero or a positive number")
    _check_places(value, field)
    _check_digits(value, field)
    return value


# --- Items ---

def _scoped_items(db: Session, user: User):
    q = db.query(InventoryItem)
    farm_ids = farm_service.accessible_farm_ids(db, user)
    if farm_ids is not None:
        q = q.filter(InventoryItem.farm_id.in_(farm_ids))
    return q


def get_item(db: Session, item_id: str, user: User, lock: bool = False) -> InventoryItem:
    q = _scoped_items(db, user).filter(InventoryItem.id == item_id)
    if lock:
        q = q.with_for_update()
    item = q.first()
    if not item:
        raise NotFoundError("Inventory item not found")
    return item


def create_item(db: Session, farm_id: str, data: InventoryItemCreate, user: User) -> InventoryItem:
    farm = farm_service.get_farm(db, farm_id, user)
    if not data.name.strip():
        raise ValidationError("name is required")
    quantity = _require_non_negative(data.quantity, "quantity")
    if data.minimum_level is not None:
        _require_non_negative(data.minimum_level, "minimumLevel")
    item = InventoryItem(
        farm_id=farm.id,
        name=data.name.strip(),
        category=data.category.strip(),
        quantity=quantity,
        initial_quantity=quantity,
        unit=data.unit.strip(),
        minimum_level=data.minimum_level,
        version=0,
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def list_items(db: Session, farm_id: str, user: User, category: str | None = None) -> list[InventoryItem]:
    farm_service.get_farm(db, farm_id, user)
    q = db.query(InventoryItem).filter(InventoryItem.farm_id == farm_id)
    if category:
        q = q.filter(InventoryItem.category == category)
    return q.order_by(InventoryItem.name).all()


def list_critical_items(db: Session, farm_id: str, user: User) -> list[InventoryItem]:
    farm_service.get_farm(db, farm_id, user)
    return (
        db.query(InventoryItem)
        .filter(
            InventoryItem.farm_id == farm_id,
            InventoryItem.minimum_level.isnot(None),
            InventoryItem.quantity <= InventoryItem.minimum_level,
        )
        .order_by(InventoryItem.name)
        .all()
    )


def update_item(db: Session, item_id: str, data: InventoryItemUpdate, user: User) -> InventoryItem:
    item = get_item(db, item_id, user)
    update_data = data.model_dump(exclude_unset=True)
    if "name" in update_data and not (update_data["name"] or "").strip():
        raise ValidationError("name cannot be blank")
    if update_data.get("minimum_level") is not None:
        _require_non_negative(update_data["minimum_level"], "minimumLevel")
    for field, value in update_data.items():
        setattr(item, field, value.strip() if isinstance(value, str) else value)
    db.commit()
    db.refresh(item)
    return item


# --- Ledger ---

def _record(
    db: Session,
    item_id: str,
    user: User,
    txn_type: InventoryTransactionType,
    compute,
    date: datetime | None = None,
    **fields,
) -> InventoryTransaction:
    """Lock the item, apply ``compute(previous) -> (magnitude, new_balance)``
    and append the matching transaction row. Rolls back on any error."""
    try:
        item = get_item(db, item_id, user, lock=True)
        previous = Decimal(item.quantity)
        magnitude, new_balance = compute(previous)
        _check_digits(new_balance, "resulting balance")

        item.quantity = new_balance
        item.version = (item.version or 0) + 1
        txn = InventoryTransaction(
            inventory_id=item.id,
            farm_id=item.farm_id,
            user_id=user.id,
            type=txn_type,
            quantity=magnitude,
            previous_balance=previous,
            new_balance=new_balance,
            sequence=item.version,
            date=date or _utcnow(),
            **fields,
        )
        db.add(txn)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(txn)
    logger.info(
        "Inventory %s on item %s: %s -> %s (user %s)",
        txn_type.value, item_id, previous, new_balance, user.username,
    )
    return txn


def register_entry(db: Session, item_id: str, data: InventoryEntryCreate, user: User) -> InventoryTransaction:
    quantity = _require_positive(data.quantity, "quantity")
    unit_price = data.unit_price
    total_price = None
    if unit_price is not None:
        if not unit_price.is_finite() or unit_price < 0:
            raise ValidationError("unitPrice must be zero or a positive number")
        _check_digits(unit_price, "unitPrice", PRICE_DIGITS)
        total_price = (quantity * unit_price).quantize(PRICE_QUANT)
        _check_digits(total_price, "totalPrice", PRICE_DIGITS)

    return _record(
        db, item_id, user, InventoryTransactionType.IN,
        lambda previous: (quantity, previous + quantity),
        date=data.date,
        document_number=_clean(data.document_number),
        unit_price=unit_price,
        total_price=total_price,
        destination_or_source=_clean(data.source),
        notes=_clean(data.notes),
    )


def register_withdrawal(
    db: Session,
    item_id: str,
    data: InventoryWithdrawalCreate,
    user: User,
    allow_negative: bool | None = None,
) -> InventoryTransaction:
    quantity = _require_positive(data.quantity, "quantity")
    if allow_negative is None:
        allow_negative = settings.ALLOW_NEGATIVE_STOCK

    def compute(previous: Decimal):
        new_balance = previous - quantity
        if new_balance < 0 and not allow_negative:
            raise InsufficientStockError(
                f"Insufficient stock. Current: {previous}, requested withdrawal: {quantity}"
            )
        return quantity, new_balance

    return _record(
        db, item_id, user, InventoryTransactionType.OUT, compute,
        date=data.date,
        destination_or_source=_clean(data.destination),
        notes=_clean(data.notes),
    )


def register_adjustment(
    db: Session, item_id: str, data: InventoryAdjustmentCreate, user: User
) -> InventoryTransaction:
    new_quantity = _require_non_negative(data.new_quantity, "newQuantity")
    return _record(
        db, item_id, user, InventoryTransactionType.ADJUST,
        lambda previous: (abs(new_quantity - previous), new_quantity),
        date=data.date,
        notes=_clean(data.notes),
    )


# --- Queries ---

def _apply_filters(q, start: datetime | None, end: datetime | None, search: str | None):
    if start:
        q = q.filter(InventoryTransaction.date >= start)
    if end:
        q = q.filter(InventoryTransaction.date <= end)
    term = (search or "").strip()
    if term:
        matching_types = [t for t in InventoryTransactionType if term.lower() in t.value.lower()]
        conditions = [
            InventoryTransaction.notes.icontains(term, autoescape=True),
            InventoryTransaction.document_number.icontains(term, autoescape=True),
        ]
        if matching_types:
            conditions.append(InventoryTransaction.type.in_(matching_types))
        q = q.filter(or_(*conditions))
    return q


def list_item_transactions(
    db: Session,
    item_id: str,
    user: User,
    start: datetime | None = None,
    end: datetime | None = None,
    search: str | None = None,
) -> list[InventoryTransaction]:
    item = get_item(db, item_id, user)
    q = db.query(InventoryTransaction).filter(InventoryTransaction.inventory_id == item.id)
    q = _apply_filters(q, start, end, search)
    return q.order_by(InventoryTransaction.sequence.desc()).all()


def list_farm_transactions(
    db: Session,
    farm_id: str,
    user: User,
    item_id: str | None = None,
    txn_type: InventoryTransactionType | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 500,
) -> list[InventoryTransaction]:
    farm_service.get_farm(db, farm_id, user)
    q = db.query(InventoryTransaction).filter(InventoryTransaction.farm_id == farm_id)
    if item_id:
        q = q.filter(InventoryTransaction.inventory_id == item_id)
    if txn_type:
        q = q.filter(InventoryTransaction.type == txn_type)
    q = _apply_filters(q, start, end, search)
    return (
        q.order_by(InventoryTransaction.date.desc(), InventoryTransaction.sequence.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )


def verify_ledger(db: Session, item_id: str, user: User) -> dict:
    """Walk the item's transactions oldest first and check the balance chain."""
    item = get_item(db, item_id, user)
    txns = (
        db.query(InventoryTransaction)
        .filter(InventoryTransaction.inventory_id == item.id)
        .order_by(InventoryTransaction.sequence)
        .all()
    )
    balance = Decimal(item.initial_quantity)
    first_break = None
    for txn in txns:
        if first_break is None and Decimal(txn.previous_balance) != balance:
            first_break = txn.sequence
        balance = Decimal(txn.new_balance)

    current = Decimal(item.quantity)
    consistent = first_break is None and balance == current and len(txns) == (item.version or 0)
    if not consistent:
        logger.warning("Ledger for item %s is inconsistent (break at %s)", item.id, first_break)
    return {
        "consistent": consistent,
        "transaction_count": len(txns),
        "initial_quantity": Decimal(item.initial_quantity),
        "expected_balance": balance,
        "current_quantity": current,
        "first_break_sequence": first_break,
    }
