"""Grace-period expiry check for conservation alerts.

Runs every few minutes. An alert whose outreach deadline has passed gets one
push to the linked client; `outreach_sent_at` is the fired marker that keeps
later ticks from sending again. Outreach does not resolve the alert: it stays
outreach_scheduled until the agent marks it saved or lost.
"""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.models.conservation import AlertStatus, ConservationAlert
from app.services.conservation import OutreachSummary, fire_outreach
from app.services.notifications import NotificationDispatcher
from app.services.push_gateway import ExpoPushGateway

logger = logging.getLogger(__name__)


def due_alerts(db: Session, now: datetime) -> list[ConservationAlert]:
    return db.query(ConservationAlert).filter(
        ConservationAlert.status == AlertStatus.OUTREACH_SCHEDULED.value,
        ConservationAlert.scheduled_outreach_at.isnot(None),
        ConservationAlert.scheduled_outreach_at <= now,
        ConservationAlert.outreach_sent_at.is_(None),
    ).order_by(ConservationAlert.id).all()


def run_conservation_outreach(
    db: Session,
    now: Optional[datetime] = None,
    gateway: Optional[ExpoPushGateway] = None,
) -> OutreachSummary:
    now = now or datetime.utcnow()
    summary = OutreachSummary()
    dispatcher = NotificationDispatcher(db, gateway)

    for alert in due_alerts(db, now):
        try:
            fire_outreach(alert, dispatcher, now, summary)
            db.commit()
        except Exception:
            db.rollback()
            summary.errors += 1
            logger.exception(f"Conservation outreach failed for alert {alert.id}")

    if summary.fired or summary.errors:
        logger.info(
            f"Conservation outreach: fired={summary.fired} sent={summary.sent} "
            f"failed={summary.failed} skipped={summary.skipped} errors={summary.errors}"
        )
    return summary
