import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from farm_manager.database import Base


class InventoryTransactionType(str, PyEnum):
    IN = "IN"
    OUT = "OUT"
    ADJUST = "ADJUST"


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    farm_id: Mapped[str] = mapped_column(String, ForeignKey("farms.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    category: Mapped[str] = mapped_column(String, default="")  # feed, medicine, seeds, fertilizer...
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), default=Decimal("0"))
    unit: Mapped[str] = mapped_column(String, default="")  # kg, liters, bags...
    minimum_level: Mapped[Decimal | None] = mapped_column(Numeric(14, 3), nullable=True)

    # Opening balance; the first ledger row starts from here
    initial_quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), default=Decimal("0"))

    # Bumped by every ledger operation
    version: Mapped[int] = mapped_column(Integer, default=0)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())

    transactions: Mapped[list["InventoryTransaction"]] = relationship(
        "InventoryTransaction", back_populates="item", order_by="InventoryTransaction.sequence"
    )

    @property
    def is_critical(self) -> bool:
        return self.minimum_level is not None and self.quantity <= self.minimum_level


class InventoryTransaction(Base):
    """Append-only audit row for every change to an item's quantity."""

    __tablename__ = "inventory_transactions"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    inventory_id: Mapped[str] = mapped_column(String, ForeignKey("inventory_items.id"), nullable=False, index=True)
    farm_id: Mapped[str] = mapped_column(String, ForeignKey("farms.id"), nullable=False, index=True)
    user_id: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)
    type: Mapped[str] = mapped_column(
        Enum(InventoryTransactionType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    quantity: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    previous_balance: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    new_balance: Mapped[Decimal] = mapped_column(Numeric(14, 3), nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)  # item version after this row
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)

    document_number: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    destination_or_source: Mapped[str | None] = mapped_column(String, nullable=True)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)
    total_price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())

    item: Mapped["InventoryItem"] = relationship("InventoryItem", back_populates="transactions")
