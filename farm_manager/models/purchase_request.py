import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from farm_manager.database import Base


class PurchaseRequestStatus(str, PyEnum):
    NOVA = "NOVA"
    EM_ANDAMENTO = "EM_ANDAMENTO"
    FINALIZADA = "FINALIZADA"


class PurchaseRequest(Base):
    __tablename__ = "purchase_requests"

    id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    farm_id: Mapped[str] = mapped_column(String, ForeignKey("farms.id"), nullable=False, index=True)
    produto: Mapped[str] = mapped_column(String, nullable=False)
    quantidade: Mapped[str] = mapped_column(String, nullable=False)  # free text, e.g. "20 sacos"
    observacao: Mapped[str | None] = mapped_column(Text, nullable=True)
    responsavel: Mapped[str] = mapped_column(String, nullable=False)
    data: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    urgente: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[str] = mapped_column(
        Enum(PurchaseRequestStatus, values_callable=lambda x: [e.value for e in x]),
        default=PurchaseRequestStatus.NOVA,
        index=True,
    )
    andamento: Mapped[str | None] = mapped_column(Text, nullable=True)
    finalizado_por: Mapped[str | None] = mapped_column(String, nullable=True)
    created_by: Mapped[str] = mapped_column(String, ForeignKey("users.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), onupdate=func.now())
