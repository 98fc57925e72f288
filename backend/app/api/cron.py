"""Scheduled-job endpoints.

Called by the external scheduler with `Authorization: Bearer <CRON_SECRET>`.
Daily: birthday (13:00 UTC), holiday (14:00 UTC), anniversary (15:00 UTC).
Every 30 minutes: conservation outreach.
"""
import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import require_cron_secret
from app.services.conservation_scheduler import run_conservation_outreach
from app.services.push_gateway import ExpoPushGateway, get_push_gateway
from app.services.touchpoints import run_touchpoint

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/cron",
    tags=["Cron"],
    dependencies=[Depends(require_cron_secret)],
)


@router.get("/birthday-check")
def birthday_check(
    db: Session = Depends(get_db),
    gateway: ExpoPushGateway = Depends(get_push_gateway),
):
    """Push a birthday card to every client whose birthday is today (UTC)."""
    summary = run_touchpoint(db, "birthday", gateway=gateway)
    return {
        "success": True,
        "pushNotificationsSent": summary.sent,
        "failed": summary.failed,
        "skipped": summary.skipped,
        "errors": summary.errors,
    }


@router.get("/holiday-check")
def holiday_check(
    db: Session = Depends(get_db),
    gateway: ExpoPushGateway = Depends(get_push_gateway),
):
    """Push a holiday card to every client of every opted-in agent."""
    summary = run_touchpoint(db, "holiday", gateway=gateway)
    if not summary.holiday:
        return {
            "success": True,
            "holiday": None,
            "message": "No holiday today",
            "pushNotificationsSent": 0,
            "skipped": 0,
        }
    return {
        "success": True,
        "holiday": summary.holiday,
        "pushNotificationsSent": summary.sent,
        "failed": summary.failed,
        "skipped": summary.skipped,
        "errors": summary.errors,
    }


@router.get("/anniversary-check")
def anniversary_check(
    db: Session = Depends(get_db),
    gateway: ExpoPushGateway = Depends(get_push_gateway),
):
    """Agent digest + client check-in push for policies nearing their anniversary."""
    summary = run_touchpoint(db, "anniversary", gateway=gateway)
    return {
        "success": True,
        "emailsSent": summary.emails_sent,
        "policiesFlagged": summary.flagged,
        "pushNotificationsSent": summary.sent,
        "failed": summary.failed,
        "skipped": summary.skipped,
        "errors": summary.errors,
    }


@router.get("/conservation-outreach")
def conservation_outreach(
    db: Session = Depends(get_db),
    gateway: ExpoPushGateway = Depends(get_push_gateway),
):
    """Fire scheduled outreach for alerts past their grace period."""
    summary = run_conservation_outreach(db, gateway=gateway)
    return {
        "success": True,
        "outreachFired": summary.fired,
        "pushNotificationsSent": summary.sent,
        "failed": summary.failed,
        "skipped": summary.skipped,
        "errors": summary.errors,
    }
