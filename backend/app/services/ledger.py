"""Idempotency ledger over the touchpoint dedup fields.

The markers live on the Client and Policy rows themselves; these classes put
one `has_fired` / `mark_fired` contract in front of them.

The check is a fast-path skip, not a lock. Schedulers write the marker and
commit right after each dispatch, so a run that crashes between the push and
the commit can send that one occurrence again on rerun.
"""
from datetime import datetime
from typing import Protocol

from sqlalchemy.orm import Session

from app.models.client import Client, Policy
from app.services.occurrences import next_anniversary


class IdempotencyLedger(Protocol):
    def has_fired(self, entity_id: int, occurrence_key: str) -> bool:
        ...

    def mark_fired(self, entity_id: int, occurrence_key: str, fired_at: datetime) -> None:
        ...


class _RowLedger:
    model = None

    def __init__(self, db: Session):
        self.db = db

    def _load(self, entity_id: int):
        entity = self.db.get(self.model, entity_id)
        if entity is None:
            raise LookupError(f"{self.model.__name__} {entity_id} not found")
        return entity


class BirthdayLedger(_RowLedger):
    """`Client.birthday_notified_at` holds the last year a birthday push went out."""
    model = Client

    def has_fired(self, entity_id: int, occurrence_key: str) -> bool:
        return self._load(entity_id).birthday_notified_at == occurrence_key

    def mark_fired(self, entity_id: int, occurrence_key: str, fired_at: datetime) -> None:
        self._load(entity_id).birthday_notified_at = occurrence_key


class HolidayLedger(_RowLedger):
    """`Client.holiday_notified_at` maps "{holiday}_{year}" keys to True."""
    model = Client

    def has_fired(self, entity_id: int, occurrence_key: str) -> bool:
        notified = self._load(entity_id).holiday_notified_at or {}
        return bool(notified.get(occurrence_key))

    def mark_fired(self, entity_id: int, occurrence_key: str, fired_at: datetime) -> None:
        client = self._load(entity_id)
        # Reassign so SQLAlchemy sees the JSON change
        notified = dict(client.holiday_notified_at or {})
        notified[occurrence_key] = True
        client.holiday_notified_at = notified


class AnniversaryLedger(_RowLedger):
    """One timestamp column per audience on Policy.

    A stored timestamp covers the anniversary year whose anchor is the next
    anniversary at or after it, so the same column serves every year.
    """
    model = Policy

    def __init__(self, db: Session, field: str):
        super().__init__(db)
        if field not in ("anniversary_agent_notified_at", "anniversary_client_notified_at"):
            raise ValueError(f"Unknown anniversary marker: {field}")
        self.field = field

    @staticmethod
    def _year(occurrence_key: str) -> int:
        return int(occurrence_key.rsplit("_", 1)[-1])

    def has_fired(self, entity_id: int, occurrence_key: str) -> bool:
        policy = self._load(entity_id)
        notified_at = getattr(policy, self.field)
        if notified_at is None or policy.created_at is None:
            return False
        return next_anniversary(policy.created_at, notified_at).year == self._year(occurrence_key)

    def mark_fired(self, entity_id: int, occurrence_key: str, fired_at: datetime) -> None:
        setattr(self._load(entity_id), self.field, fired_at)
