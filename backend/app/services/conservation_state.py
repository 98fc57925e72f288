"""Conservation alert lifecycle.

    new -> outreach_scheduled -> saved | lost
    outreach_scheduled -> new          (cancel, only before the deadline)
    new -> saved | lost                (resolve without outreach)

Manual outreach (`send_now`) leaves the status alone.

The transition functions are pure: they look at a status (and deadline) and
return `Ok` with the next state or `Conflict` with the reason shown to the
agent. Callers persist an `Ok` and surface a `Conflict` as a 422.
"""
import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from app.models.conservation import AlertStatus


class ConflictReason(str, enum.Enum):
    ALREADY_RESOLVED = "Alert is already resolved"
    ALREADY_SCHEDULED = "Outreach is already scheduled for this alert"
    NOT_MATCHED = "Alert is not matched to a client. Match a client first."
    NOT_SCHEDULED = "Outreach can only be canceled while status is outreach_scheduled"
    GRACE_PERIOD_EXPIRED = "Grace period has already expired. Outreach may have been sent."
    INVALID_RESOLUTION = 'Status must be "saved" or "lost"'


@dataclass(frozen=True)
class Ok:
    status: AlertStatus
    scheduled_outreach_at: Optional[datetime] = None


@dataclass(frozen=True)
class Conflict:
    reason: ConflictReason

    @property
    def message(self) -> str:
        return self.reason.value


Transition = Union[Ok, Conflict]

RESOLUTIONS = (AlertStatus.SAVED, AlertStatus.LOST)


def arm(status, has_client: bool, now: datetime, grace_period: timedelta) -> Transition:
    """new -> outreach_scheduled with the deadline set to now + grace period."""
    status = AlertStatus(status)
    if status.is_terminal:
        return Conflict(ConflictReason.ALREADY_RESOLVED)
    if status == AlertStatus.OUTREACH_SCHEDULED:
        return Conflict(ConflictReason.ALREADY_SCHEDULED)
    if not has_client:
        return Conflict(ConflictReason.NOT_MATCHED)
    return Ok(AlertStatus.OUTREACH_SCHEDULED, scheduled_outreach_at=now + grace_period)


def cancel(status, scheduled_outreach_at: Optional[datetime], now: datetime) -> Transition:
    """outreach_scheduled -> new, strictly before the deadline.

    A status still reading outreach_scheduled after the deadline does not mean
    the outreach has not fired: the scheduler may already be past it.
    """
    status = AlertStatus(status)
    if status != AlertStatus.OUTREACH_SCHEDULED:
        return Conflict(ConflictReason.NOT_SCHEDULED)
    if scheduled_outreach_at is not None and now >= scheduled_outreach_at:
        return Conflict(ConflictReason.GRACE_PERIOD_EXPIRED)
    return Ok(AlertStatus.NEW, scheduled_outreach_at=None)


def resolve(status, outcome) -> Transition:
    """{new, outreach_scheduled} -> {saved, lost}. Terminal states are final."""
    status = AlertStatus(status)
    try:
        outcome = AlertStatus(outcome)
    except ValueError:
        return Conflict(ConflictReason.INVALID_RESOLUTION)
    if outcome not in RESOLUTIONS:
        return Conflict(ConflictReason.INVALID_RESOLUTION)
    if status.is_terminal:
        return Conflict(ConflictReason.ALREADY_RESOLVED)
    return Ok(outcome)


def send_now(status, has_client: bool, scheduled_outreach_at: Optional[datetime]) -> Transition:
    """Manual outreach on an open, matched alert. The status and any deadline stay as they are."""
    status = AlertStatus(status)
    if status.is_terminal:
        return Conflict(ConflictReason.ALREADY_RESOLVED)
    if not has_client:
        return Conflict(ConflictReason.NOT_MATCHED)
    return Ok(status, scheduled_outreach_at=scheduled_outreach_at)
