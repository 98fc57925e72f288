from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


class PushTokenRegister(BaseModel):
    client_code: str = Field(..., min_length=1, alias="clientCode")
    push_token: str = Field(..., min_length=1, alias="pushToken")

    class Config:
        populate_by_name = True


class NotificationSend(BaseModel):
    client_id: int = Field(..., alias="clientId")
    body: str = Field(..., min_length=1)
    title: Optional[str] = None
    type: Literal["message", "holiday", "birthday", "anniversary"] = "message"
    holiday: Optional[str] = None
    include_booking_link: bool = Field(False, alias="includeBookingLink")

    class Config:
        populate_by_name = True


class NotificationRead(BaseModel):
    client_code: str = Field(..., min_length=1, alias="clientCode")

    class Config:
        populate_by_name = True


class NotificationOut(BaseModel):
    id: int
    client_id: int
    type: str
    holiday: Optional[str]
    title: str
    body: str
    include_booking_link: Optional[bool]
    status: str
    sent_at: Optional[datetime]
    read_at: Optional[datetime]

    class Config:
        from_attributes = True
