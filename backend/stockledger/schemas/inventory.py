from datetime import datetime

from pydantic import BaseModel, ConfigDict

from stockledger.models.movement import MovementKind


class ReceiveRequest(BaseModel):
    sku: str
    name: str
    quantity: int


class IssueRequest(BaseModel):
    quantity: int


class ItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    sku: str
    name: str
    quantity: int
    created_at: datetime
    updated_at: datetime


class MovementRead(BaseModel):
    id: int
    item_id: int
    user_id: int | None = None
    kind: MovementKind
    quantity: int
    created_at: datetime
    sku: str
    item_name: str
    username: str | None = None
