from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from farm_manager.models.inventory import InventoryTransactionType

CAMEL_CONFIG = {"alias_generator": to_camel, "populate_by_name": True}


# --- Item schemas ---

class InventoryItemCreate(BaseModel):
    name: str
    category: str = ""
    quantity: Decimal = Decimal("0")
    unit: str = ""
    minimum_level: Decimal | None = None

    model_config = CAMEL_CONFIG


class InventoryItemUpdate(BaseModel):
    # quantity is deliberately absent: it only moves through the ledger
    name: str | None = None
    category: str | None = None
    unit: str | None = None
    minimum_level: Decimal | None = None

    model_config = CAMEL_CONFIG


class InventoryItemOut(BaseModel):
    id: str
    farm_id: str
    name: str
    category: str
    quantity: Decimal
    unit: str
    minimum_level: Decimal | None = None
    initial_quantity: Decimal
    version: int
    is_critical: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {**CAMEL_CONFIG, "from_attributes": True}


# --- Ledger commands ---

class InventoryEntryCreate(BaseModel):
    quantity: Decimal
    document_number: str | None = None
    unit_price: Decimal | None = None
    source: str | None = None  # supplier
    notes: str | None = None
    date: datetime | None = None

    model_config = CAMEL_CONFIG


class InventoryWithdrawalCreate(BaseModel):
    quantity: Decimal
    destination: str | None = None
    notes: str | None = None
    date: datetime | None = None

    model_config = CAMEL_CONFIG


class InventoryAdjustmentCreate(BaseModel):
    new_quantity: Decimal
    notes: str | None = None
    date: datetime | None = None

    model_config = CAMEL_CONFIG


# --- Ledger output ---

class InventoryTransactionOut(BaseModel):
    id: str
    inventory_id: str
    farm_id: str
    user_id: str
    type: InventoryTransactionType
    quantity: Decimal
    previous_balance: Decimal
    new_balance: Decimal
    sequence: int
    date: datetime
    document_number: str | None = None
    notes: str | None = None
    destination_or_source: str | None = None
    unit_price: Decimal | None = None
    total_price: Decimal | None = None

    model_config = {**CAMEL_CONFIG, "from_attributes": True}


class LedgerOperationOut(BaseModel):
    transaction: InventoryTransactionOut
    item: InventoryItemOut

    model_config = CAMEL_CONFIG


class LedgerCheckOut(BaseModel):
    consistent: bool
    transaction_count: int
    initial_quantity: Decimal
    expected_balance: Decimal
    current_quantity: Decimal
    first_break_sequence: int | None = None

    model_config = CAMEL_CONFIG
