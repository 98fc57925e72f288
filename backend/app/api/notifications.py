"""Manual agent messages and the client-side read receipt."""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import get_current_agent
from app.models.agent import Agent
from app.models.client import Client
from app.models.notification import NotificationRecord, NotificationType
from app.schemas.notification import NotificationOut, NotificationRead, NotificationSend
from app.services.holidays import HOLIDAYS_BY_ID
from app.services.notifications import NotificationDispatcher
from app.services.push_gateway import ExpoPushGateway, get_push_gateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


def _agent_client(db: Session, agent: Agent, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id, Client.agent_id == agent.id).first()
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return client


@router.post("/send")
def send_notification(
    payload: NotificationSend,
    current_agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
    gateway: ExpoPushGateway = Depends(get_push_gateway),
):
    """Send a one-off push from the agent to one of their clients."""
    client = _agent_client(db, current_agent, payload.client_id)
    if not client.push_token:
        raise HTTPException(status_code=422, detail="Client has not enabled push notifications")

    holiday = None
    if payload.type == NotificationType.HOLIDAY.value:
        holiday = HOLIDAYS_BY_ID.get(payload.holiday or "")
        if not holiday:
            raise HTTPException(status_code=400, detail="Unknown holiday")

    title = payload.title or (f"{holiday.name} Greetings" if holiday else f"Message from {current_agent.display_name}")
    data = {}
    if payload.include_booking_link and current_agent.scheduling_url:
        data["schedulingUrl"] = current_agent.scheduling_url
        data["includeBookingLink"] = True

    result = NotificationDispatcher(db, gateway).dispatch(
        client,
        title,
        payload.body,
        NotificationType(payload.type),
        data=data,
        holiday=holiday.id if holiday else None,
        include_booking_link=payload.include_booking_link,
    )
    db.commit()

    return {
        "success": result.sent,
        "status": result.status.value,
        "notificationId": result.record.id,
    }


@router.get("/client/{client_id}")
def list_client_notifications(
    client_id: int,
    current_agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    client = _agent_client(db, current_agent, client_id)
    records = db.query(NotificationRecord).filter(
        NotificationRecord.client_id == client.id
    ).order_by(NotificationRecord.sent_at.desc(), NotificationRecord.id.desc()).all()
    return [NotificationOut.model_validate(r).model_dump(mode="json") for r in records]


@router.post("/{notification_id}/read")
def mark_read(notification_id: int, payload: NotificationRead, db: Session = Depends(get_db)):
    """Read receipt from the client app. The client code proves ownership."""
    code = payload.client_code.strip().upper()
    record = db.query(NotificationRecord).join(Client).filter(
        NotificationRecord.id == notification_id,
        Client.client_code == code,
    ).first()
    if not record:
        raise HTTPException(status_code=404, detail="Notification not found")

    if record.read_at is None:
        record.read_at = datetime.utcnow()
        db.commit()
    return {"success": True}
