"""Notification history: one append-only row per push dispatch attempt."""
import enum
from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, JSON, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class NotificationType(str, enum.Enum):
    MESSAGE = "message"
    ANNIVERSARY = "anniversary"
    BIRTHDAY = "birthday"
    HOLIDAY = "holiday"
    CONSERVATION = "conservation"


class DeliveryStatus(str, enum.Enum):
    SENT = "sent"
    FAILED = "failed"


class NotificationRecord(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False, index=True)

    type = Column(String, nullable=False)  # NotificationType value
    holiday = Column(String, nullable=True)  # holiday id for type=holiday
    title = Column(String, nullable=False)
    body = Column(Text, nullable=False)
    include_booking_link = Column(Boolean, default=False)

    # Delivery
    status = Column(String, nullable=False)  # DeliveryStatus value
    provider_response = Column(JSON, nullable=True)

    sent_at = Column(DateTime, server_default=func.now())
    read_at = Column(DateTime, nullable=True)  # set by the client app

    client = relationship("Client", back_populates="notifications")
