"""Conservation alert API: intake, outreach scheduling, cancel and resolve.

All endpoints act on the calling agent's own alerts.
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import get_current_agent
from app.models.agent import Agent
from app.schemas.conservation import AlertAction, AlertCreate, AlertNotes, AlertOut, AlertResolve
from app.services.conservation import AlertConflict, AlertNotFound, ConservationService
from app.services.notifications import NotificationDispatcher
from app.services.push_gateway import ExpoPushGateway, get_push_gateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/conservation", tags=["Conservation"])


def _alert_json(alert) -> dict:
    return AlertOut.model_validate(alert).model_dump(mode="json")


def _run(action):
    try:
        return action()
    except AlertNotFound:
        raise HTTPException(status_code=404, detail="Alert not found")
    except AlertConflict as e:
        raise HTTPException(status_code=422, detail=e.reason.value)


@router.get("/alerts")
def list_alerts(
    status: Optional[str] = Query(None),
    current_agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    service = ConservationService(db, current_agent)
    return [_alert_json(a) for a in service.list_alerts(status)]


@router.post("/create")
def create_alert(
    payload: AlertCreate,
    current_agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    """Open an alert from a lapse notice and auto-arm outreach for high-priority matches."""
    service = ConservationService(db, current_agent)
    alert, matched = service.create_alert(
        client_name=payload.client_name.strip(),
        policy_number=payload.policy_number,
        carrier=payload.carrier,
        reason=payload.reason,
        source=payload.source,
    )
    return {"success": True, "alertId": alert.id, "matched": matched, "alert": _alert_json(alert)}


@router.post("/schedule-outreach")
def schedule_outreach(
    payload: AlertAction,
    current_agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    """Arm auto-outreach: it fires once the grace period elapses unless canceled."""
    service = ConservationService(db, current_agent)
    alert = _run(lambda: service.schedule_outreach(payload.alert_id))
    return {"success": True, "alert": _alert_json(alert)}


@router.post("/outreach")
def send_outreach(
    payload: AlertAction,
    current_agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
    gateway: ExpoPushGateway = Depends(get_push_gateway),
):
    """Send the rescue message now instead of waiting out the grace period."""
    service = ConservationService(db, current_agent)
    alert, summary = _run(lambda: service.send_outreach(payload.alert_id, NotificationDispatcher(db, gateway)))
    return {"success": True, "pushSent": summary.sent == 1, "alert": _alert_json(alert)}


@router.post("/cancel-outreach")
def cancel_outreach(
    payload: AlertAction,
    current_agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    """Cancel a scheduled auto-outreach during the grace period."""
    service = ConservationService(db, current_agent)
    _run(lambda: service.cancel_outreach(payload.alert_id))
    return {"success": True}


@router.patch("/update")
def resolve_alert(
    payload: AlertResolve,
    current_agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    """Mark an alert saved or lost. Saved reactivates the linked policy."""
    service = ConservationService(db, current_agent)
    _run(lambda: service.resolve(payload.alert_id, payload.status, payload.notes))
    return {"success": True}


@router.patch("/notes")
def update_notes(
    payload: AlertNotes,
    current_agent: Agent = Depends(get_current_agent),
    db: Session = Depends(get_db),
):
    service = ConservationService(db, current_agent)
    alert = _run(lambda: service.update_notes(payload.alert_id, payload.notes))
    return {"success": True, "alert": _alert_json(alert)}
