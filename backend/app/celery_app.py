from celery import Celery
from celery.schedules import crontab
from app.core.config import settings

celery_app = Celery(
    "agentforlife",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.tasks.async_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
)

# Daily touchpoints run one hour apart; outreach checks the grace periods every 30 minutes
celery_app.conf.beat_schedule = {
    "birthday-check": {
        "task": "run_birthday_check",
        "schedule": crontab(hour=13, minute=0),
    },
    "holiday-check": {
        "task": "run_holiday_check",
        "schedule": crontab(hour=14, minute=0),
    },
    "anniversary-check": {
        "task": "run_anniversary_check",
        "schedule": crontab(hour=15, minute=0),
    },
    "conservation-outreach": {
        "task": "run_conservation_outreach",
        "schedule": crontab(minute="*/30"),
    },
}
