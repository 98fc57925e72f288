from app.models.agent import Agent
from app.models.client import Client, Policy, PolicyStatus
from app.models.notification import NotificationRecord, NotificationType, DeliveryStatus
from app.models.conservation import ConservationAlert, AlertStatus, ConservationReason

__all__ = [
    "Agent",
    "Client",
    "Policy",
    "PolicyStatus",
    "NotificationRecord",
    "NotificationType",
    "DeliveryStatus",
    "ConservationAlert",
    "AlertStatus",
    "ConservationReason",
]
