from datetime import datetime

from pydantic import BaseModel

from farm_manager.schemas.inventory import CAMEL_CONFIG


class FarmCreate(BaseModel):
    name: str
    location: str = ""

    model_config = CAMEL_CONFIG


class FarmMemberAdd(BaseModel):
    user_id: str

    model_config = CAMEL_CONFIG


class FarmOut(BaseModel):
    id: str
    name: str
    location: str
    owner_id: str
    created_at: datetime | None = None

    model_config = {**CAMEL_CONFIG, "from_attributes": True}
