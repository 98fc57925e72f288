"""Conservation alert service: intake, matching, arming, cancel and resolve.

Every state change goes through `conservation_state`; this module loads the
alert for the calling agent, applies the transition and keeps the linked
policy in sync.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.agent import Agent
from app.models.client import Client, Policy, PolicyStatus
from app.models.conservation import AlertStatus, ConservationAlert, ConservationReason
from app.models.notification import NotificationType
from app.services import conservation_state
from app.services.conservation_state import Conflict, ConflictReason
from app.services.notifications import NotificationDispatcher

logger = logging.getLogger(__name__)


class AlertNotFound(Exception):
    pass


class AlertConflict(Exception):
    def __init__(self, reason: ConflictReason):
        self.reason = reason
        super().__init__(reason.value)


def grace_period() -> timedelta:
    return timedelta(minutes=settings.CONSERVATION_GRACE_PERIOD_MINUTES)


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def find_match(agent: Agent, client_name: str, policy_number: Optional[str]) -> Optional[tuple[Client, Policy]]:
    """Match an intake to one of the agent's clients and policies.

    A policy-number hit wins anywhere in the client's book; a name hit alone
    falls back to the client's first policy.
    """
    wanted_name = _normalize(client_name)
    wanted_number = _normalize(policy_number)

    for client in agent.clients:
        name = _normalize(client.name)
        name_match = bool(name) and wanted_name not in ("", "unknown") and (
            name == wanted_name or wanted_name in name or name in wanted_name
        )

        for policy in client.policies:
            number = _normalize(policy.policy_number)
            number_match = wanted_number not in ("", "unknown") and number != "" and (
                number == wanted_number or wanted_number in number
            )
            if name_match or number_match:
                return client, policy

        if name_match and client.policies:
            return client, client.policies[0]

    return None


def build_outreach_message(agent: Agent, client_name: str, policy_type: Optional[str], reason: str) -> str:
    first_name = (client_name or "there").split()[0]
    agent_first = agent.display_name.split()[0]
    policy_label = f"your {policy_type} policy" if policy_type else "your policy"

    if reason == ConservationReason.LAPSED_PAYMENT.value:
        issue = f"a missed payment on {policy_label}"
    elif reason == ConservationReason.CANCELLATION.value:
        issue = f"a cancellation notice on {policy_label}"
    else:
        issue = f"an issue with {policy_label}"

    message = (
        f"Hi {first_name}, it's {agent_first}. I just saw {issue} and wanted to reach out personally "
        f"before your coverage is affected. These are usually easy to fix and I'm happy to help."
    )
    if agent.scheduling_url:
        message += f" Grab a time that works for you: {agent.scheduling_url}"
    else:
        message += " Reply here or give me a call whenever works."
    return message


@dataclass
class OutreachSummary:
    fired: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0


def fire_outreach(
    alert: ConservationAlert,
    dispatcher: NotificationDispatcher,
    now: datetime,
    summary: OutreachSummary,
) -> None:
    """Push the alert's outreach message to the linked client and stamp the alert.

    `outreach_sent_at` is set whatever the delivery outcome; `push_sent_at` only
    when the gateway accepted the push.
    """
    agent = alert.agent
    client = alert.client

    if client and client.push_token:
        message = alert.initial_message or build_outreach_message(
            agent, alert.client_name, alert.policy.policy_type if alert.policy else None, alert.reason
        )
        data = {"type": NotificationType.CONSERVATION.value}
        if agent.scheduling_url:
            data["schedulingUrl"] = agent.scheduling_url
            data["includeBookingLink"] = True

        result = dispatcher.dispatch(
            client,
            f"Message from {agent.display_name}",
            message,
            NotificationType.CONSERVATION,
            data=data,
            include_booking_link=bool(agent.scheduling_url),
            now=now,
        )
        if result.sent:
            alert.push_sent_at = now
            summary.sent += 1
        else:
            summary.failed += 1
    else:
        summary.skipped += 1
        logger.info(f"Conservation alert {alert.id}: client has no push token, outreach left to the agent")

    alert.outreach_sent_at = now
    summary.fired += 1


class ConservationService:
    def __init__(self, db: Session, agent: Agent):
        self.db = db
        self.agent = agent

    def get_alert(self, alert_id: int) -> ConservationAlert:
        alert = self.db.query(ConservationAlert).filter(
            ConservationAlert.id == alert_id,
            ConservationAlert.agent_id == self.agent.id,
        ).first()
        if not alert:
            raise AlertNotFound(alert_id)
        return alert

    def list_alerts(self, status: Optional[str] = None) -> list[ConservationAlert]:
        query = self.db.query(ConservationAlert).filter(ConservationAlert.agent_id == self.agent.id)
        if status:
            query = query.filter(ConservationAlert.status == status)
        return query.order_by(ConservationAlert.id.desc()).all()

    def create_alert(
        self,
        client_name: str,
        policy_number: Optional[str] = None,
        carrier: Optional[str] = None,
        reason: str = ConservationReason.OTHER.value,
        source: str = "paste",
        now: Optional[datetime] = None,
    ) -> tuple[ConservationAlert, bool]:
        """Open an alert for a lapse signal. Returns (alert, matched)."""
        now = now or datetime.utcnow()
        match = find_match(self.agent, client_name, policy_number)

        client = policy = None
        policy_age = None
        chargeback_risk = False
        if match:
            client, policy = match
            if policy.created_at:
                policy_age = (now - policy.created_at).days
                chargeback_risk = policy_age < settings.CHARGEBACK_WINDOW_DAYS

        priority = "high" if match and chargeback_risk else "low"
        display_name = client.name if client and client.name else client_name

        alert = ConservationAlert(
            agent_id=self.agent.id,
            client_id=client.id if client else None,
            policy_id=policy.id if policy else None,
            source=source,
            client_name=display_name,
            policy_number=policy_number or (policy.policy_number if policy else None),
            carrier=carrier or (policy.carrier if policy else None),
            reason=reason,
            priority=priority,
            is_chargeback_risk=chargeback_risk,
            policy_age_days=policy_age,
            status=AlertStatus.NEW.value,
            initial_message=build_outreach_message(
                self.agent, display_name, policy.policy_type if policy else None, reason
            ),
            created_at=now,
        )
        self.db.add(alert)

        if priority == "high":
            self._apply(alert, conservation_state.arm(alert.status, True, now, grace_period()))

        if policy and policy.status == PolicyStatus.ACTIVE.value:
            policy.status = PolicyStatus.LAPSED.value

        self.db.commit()
        self.db.refresh(alert)
        logger.info(
            f"Conservation alert {alert.id} created for agent {self.agent.id} "
            f"(matched={match is not None}, priority={priority}, status={alert.status})"
        )
        return alert, match is not None

    def schedule_outreach(self, alert_id: int, now: Optional[datetime] = None) -> ConservationAlert:
        now = now or datetime.utcnow()
        alert = self.get_alert(alert_id)
        self._apply(alert, conservation_state.arm(alert.status, alert.client_id is not None, now, grace_period()))
        alert.outreach_sent_at = None
        alert.push_sent_at = None
        self.db.commit()
        return alert

    def cancel_outreach(self, alert_id: int, now: Optional[datetime] = None) -> ConservationAlert:
        now = now or datetime.utcnow()
        alert = self.get_alert(alert_id)
        self._apply(alert, conservation_state.cancel(alert.status, alert.scheduled_outreach_at, now))
        self.db.commit()
        logger.info(f"Conservation outreach canceled for alert {alert.id}")
        return alert

    def resolve(
        self,
        alert_id: int,
        outcome: str,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ConservationAlert:
        now = now or datetime.utcnow()
        alert = self.get_alert(alert_id)
        result = conservation_state.resolve(alert.status, outcome)
        if isinstance(result, Conflict):
            raise AlertConflict(result.reason)

        alert.status = result.status.value
        alert.resolved_at = now
        if notes is not None:
            alert.notes = notes

        # Saved brings the policy back; lost leaves it Lapsed
        if result.status == AlertStatus.SAVED and alert.policy_id:
            policy = self.db.get(Policy, alert.policy_id)
            if policy:
                policy.status = PolicyStatus.ACTIVE.value

        self.db.commit()
        logger.info(f"Conservation alert {alert.id} resolved as {alert.status}")
        return alert

    def send_outreach(
        self,
        alert_id: int,
        dispatcher: NotificationDispatcher,
        now: Optional[datetime] = None,
    ) -> tuple[ConservationAlert, OutreachSummary]:
        """Agent-triggered outreach, skipping whatever is left of the grace period.

        Stamping `outreach_sent_at` keeps the scheduler from firing the same
        alert again.
        """
        now = now or datetime.utcnow()
        alert = self.get_alert(alert_id)
        self._apply(
            alert,
            conservation_state.send_now(alert.status, alert.client_id is not None, alert.scheduled_outreach_at),
        )
        summary = OutreachSummary()
        fire_outreach(alert, dispatcher, now, summary)
        self.db.commit()
        logger.info(f"Manual conservation outreach for alert {alert.id} (pushed={summary.sent == 1})")
        return alert, summary

    def update_notes(self, alert_id: int, notes: Optional[str]) -> ConservationAlert:
        alert = self.get_alert(alert_id)
        alert.notes = notes
        self.db.commit()
        return alert

    @staticmethod
    def _apply(alert: ConservationAlert, result) -> None:
        if isinstance(result, Conflict):
            raise AlertConflict(result.reason)
        alert.status = result.status.value
        alert.scheduled_outreach_at = result.scheduled_outreach_at
