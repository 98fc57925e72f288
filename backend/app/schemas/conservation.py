from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


class AlertAction(BaseModel):
    alert_id: int = Field(..., alias="alertId")

    class Config:
        populate_by_name = True


class AlertCreate(BaseModel):
    client_name: str = Field(..., min_length=1, alias="clientName")
    policy_number: Optional[str] = Field(None, alias="policyNumber")
    carrier: Optional[str] = None
    reason: Literal["lapsed_payment", "cancellation", "other"] = "other"
    source: Literal["paste", "email_forward"] = "paste"

    class Config:
        populate_by_name = True


class AlertResolve(AlertAction):
    status: Literal["saved", "lost"]
    notes: Optional[str] = None


class AlertNotes(AlertAction):
    notes: Optional[str] = None


class AlertOut(BaseModel):
    id: int
    client_id: Optional[int]
    policy_id: Optional[int]
    source: Optional[str]
    client_name: str
    policy_number: Optional[str]
    carrier: Optional[str]
    reason: Optional[str]
    priority: Optional[str]
    is_chargeback_risk: Optional[bool]
    policy_age_days: Optional[int]
    status: str
    scheduled_outreach_at: Optional[datetime]
    outreach_sent_at: Optional[datetime]
    push_sent_at: Optional[datetime]
    initial_message: Optional[str]
    notes: Optional[str]
    created_at: Optional[datetime]
    resolved_at: Optional[datetime]

    class Config:
        from_attributes = True
