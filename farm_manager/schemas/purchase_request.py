from datetime import datetime

from pydantic import BaseModel

from farm_manager.models.purchase_request import PurchaseRequestStatus
from farm_manager.schemas.inventory import CAMEL_CONFIG


class PurchaseRequestCreate(BaseModel):
    produto: str
    quantidade: str
    responsavel: str
    data: datetime
    urgente: bool = False
    observacao: str | None = None
    farm_id: str | None = None  # optional echo of the path farm

    model_config = CAMEL_CONFIG


class PurchaseRequestUpdate(BaseModel):
    """Body of PATCH /purchase-requests/{id}.

    Plain fields edit the request; ``status`` together with ``andamento`` or
    ``finalizado_por`` drives a workflow transition.
    """

    produto: str | None = None
    quantidade: str | None = None
    responsavel: str | None = None
    data: datetime | None = None
    urgente: bool | None = None
    observacao: str | None = None
    status: PurchaseRequestStatus | None = None
    andamento: str | None = None
    finalizado_por: str | None = None

    model_config = CAMEL_CONFIG


class PurchaseRequestProgress(BaseModel):
    andamento: str

    model_config = CAMEL_CONFIG


class PurchaseRequestFinalize(BaseModel):
    finalizado_por: str

    model_config = CAMEL_CONFIG


class PurchaseRequestOut(BaseModel):
    id: str
    farm_id: str
    produto: str
    quantidade: str
    observacao: str | None = None
    responsavel: str
    data: datetime
    urgente: bool
    status: PurchaseRequestStatus
    andamento: str | None = None
    finalizado_por: str | None = None
    created_by: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {**CAMEL_CONFIG, "from_attributes": True}
