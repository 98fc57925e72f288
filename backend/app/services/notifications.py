"""Notification dispatcher: one push, one NotificationRecord.

The record is written whatever the gateway says, so failed sends show up in
the agent dashboard instead of disappearing. No retries happen here.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.models.client import Client
from app.models.notification import NotificationRecord, NotificationType, DeliveryStatus
from app.services.push_gateway import ExpoPushGateway, get_push_gateway

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    status: DeliveryStatus
    provider_response: dict
    record: NotificationRecord

    @property
    def sent(self) -> bool:
        return self.status == DeliveryStatus.SENT


class NotificationDispatcher:
    def __init__(self, db: Session, gateway: Optional[ExpoPushGateway] = None):
        self.db = db
        self.gateway = gateway or get_push_gateway()

    def dispatch(
        self,
        client: Client,
        title: str,
        body: str,
        notification_type: NotificationType,
        data: Optional[dict] = None,
        holiday: Optional[str] = None,
        include_booking_link: bool = False,
        now: Optional[datetime] = None,
    ) -> DispatchResult:
        """Send one push to `client` and append its NotificationRecord.

        Callers must skip clients without a push token; the dispatcher is never
        the place where a missing address turns into a record.
        """
        if not client.push_token:
            raise ValueError(f"Client {client.id} has no push token")

        push_data = {
            "type": notification_type.value,
            "agentId": client.agent_id,
            "clientId": client.id,
        }
        if holiday:
            push_data["holiday"] = holiday
        if data:
            push_data.update(data)

        response = self.gateway.send(client.push_token, title, body, data=push_data)
        status = DeliveryStatus.SENT if response.ok else DeliveryStatus.FAILED
        if not response.ok:
            logger.warning(
                f"Expo push error ({notification_type.value}) for client {client.id}: "
                f"{response.error_message or response.payload}"
            )

        record = NotificationRecord(
            client_id=client.id,
            type=notification_type.value,
            holiday=holiday,
            title=title,
            body=body,
            include_booking_link=include_booking_link,
            status=status.value,
            provider_response=response.payload,
            sent_at=now or datetime.utcnow(),
            read_at=None,
        )
        self.db.add(record)
        self.db.flush()

        return DispatchResult(status=status, provider_response=response.payload, record=record)
