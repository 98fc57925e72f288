from dataclasses import asdict

from app.celery_app import celery_app
from app.core.database import SessionLocal
from app.services.conservation_scheduler import run_conservation_outreach
from app.services.touchpoints import run_touchpoint


def _run_touchpoint_task(name: str) -> dict:
    db = SessionLocal()
    try:
        return asdict(run_touchpoint(db, name))
    finally:
        db.close()


@celery_app.task(name="run_birthday_check")
def run_birthday_check():
    """
    Daily birthday cards for clients with a push token
    """
    return _run_touchpoint_task("birthday")


@celery_app.task(name="run_holiday_check")
def run_holiday_check():
    """
    Daily holiday cards; a no-op on days that are not a recognized holiday
    """
    return _run_touchpoint_task("holiday")


@celery_app.task(name="run_anniversary_check")
def run_anniversary_check():
    """
    Daily anniversary digest to agents and check-in push to clients
    """
    return _run_touchpoint_task("anniversary")


@celery_app.task(name="run_conservation_outreach")
def run_conservation_outreach_task():
    """
    Fire conservation outreach whose grace period has elapsed
    """
    db = SessionLocal()
    try:
        return asdict(run_conservation_outreach(db))
    finally:
        db.close()
