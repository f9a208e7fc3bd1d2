"""Order chat schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class MessageCreate(BaseModel):
    content: str


class MessageRead(BaseModel):
    id: int
    order_id: int
    sender_id: int
    sender_type: str
    content: str
    created_at: datetime
    read_at: datetime | None

    model_config = ConfigDict(from_attributes=True)


class MarkReadResponse(BaseModel):
    marked: int
