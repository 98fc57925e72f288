"""Daily touchpoints: birthday, holiday and policy-anniversary pushes.

`TouchpointScheduler` owns the traversal (agents -> clients -> due
occurrences -> dispatch -> mark) and each `Touchpoint` decides what is due and
what the client hears. A due occurrence is marked in the ledger after the
dispatch whatever the delivery status, so a dead token is not retried daily.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from itertools import groupby
from typing import Optional

from sqlalchemy.orm import Session

from app.models.agent import Agent
from app.models.client import Client, Policy
from app.models.notification import NotificationType
from app.services.anniversary_email import send_anniversary_digest
from app.services.holidays import Holiday, holiday_for
from app.services.ledger import AnniversaryLedger, BirthdayLedger, HolidayLedger
from app.services.notifications import NotificationDispatcher
from app.services.occurrences import (
    AnniversaryResolver,
    BirthdayResolver,
    HolidayResolver,
    Occurrence,
)
from app.services.push_gateway import ExpoPushGateway

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    touchpoint: str
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: int = 0
    flagged: int = 0
    emails_sent: int = 0
    holiday: Optional[str] = None


@dataclass
class DueOccurrence:
    client: Client
    occurrence: Occurrence
    policy: Optional[Policy] = None
    push_eligible: bool = True


@dataclass
class PushMessage:
    title: str
    body: str
    data: dict = field(default_factory=dict)
    holiday: Optional[str] = None


class Touchpoint:
    name = ""
    notification_type = NotificationType.MESSAGE
    # Birthday and holiday cards only exist as pushes
    requires_push_token = True

    def prepare(self, now: datetime) -> bool:
        """False when nothing can be due today."""
        return True

    def applies_to(self, agent: Agent) -> bool:
        return True

    def collect(self, agent: Agent, client: Client, now: datetime) -> list[DueOccurrence]:
        raise NotImplementedError

    def build_message(self, agent: Agent, client: Client, due: list[DueOccurrence]) -> PushMessage:
        raise NotImplementedError

    def before_dispatch(self, agent: Agent, due: list[DueOccurrence], summary: RunSummary) -> None:
        pass

    def mark(self, due: DueOccurrence, now: datetime, pushed: bool) -> None:
        raise NotImplementedError


class BirthdayTouchpoint(Touchpoint):
    name = "birthday"
    notification_type = NotificationType.BIRTHDAY

    def __init__(self, db: Session):
        self.resolver = BirthdayResolver()
        self.ledger = BirthdayLedger(db)

    def collect(self, agent, client, now):
        occurrence = self.resolver.resolve(client, now)
        if not occurrence.due or self.ledger.has_fired(client.id, occurrence.dedup_key):
            return []
        return [DueOccurrence(client=client, occurrence=occurrence)]

    def build_message(self, agent, client, due):
        body = (
            f"Happy Birthday, {client.first_name}! Today is your day. I hope it's filled with the "
            f"people and moments that mean the most to you. It's a privilege to be the one looking "
            f"after your family's protection. Enjoy every minute. - {agent.signature}"
        )
        return PushMessage(title="Happy Birthday! \U0001F382", body=body)

    def mark(self, due, now, pushed):
        self.ledger.mark_fired(due.client.id, due.occurrence.dedup_key, now)


class HolidayTouchpoint(Touchpoint):
    name = "holiday"
    notification_type = NotificationType.HOLIDAY

    def __init__(self, db: Session):
        self.resolver = HolidayResolver()
        self.ledger = HolidayLedger(db)
        self.holiday: Optional[Holiday] = None

    def prepare(self, now):
        self.holiday = holiday_for(now.date())
        return self.holiday is not None

    def applies_to(self, agent):
        return agent.auto_holiday_cards is not False

    def collect(self, agent, client, now):
        occurrence = self.resolver.resolve(client, now)
        if not occurrence.due or self.ledger.has_fired(client.id, occurrence.dedup_key):
            return []
        return [DueOccurrence(client=client, occurrence=occurrence)]

    def build_message(self, agent, client, due):
        holiday = due[0].occurrence.holiday
        return PushMessage(
            title=f"{holiday.name} Greetings",
            body=holiday.render_greeting(client.first_name, agent.signature),
            holiday=holiday.id,
        )

    def mark(self, due, now, pushed):
        self.ledger.mark_fired(due.client.id, due.occurrence.dedup_key, now)


class AnniversaryTouchpoint(Touchpoint):
    """Policies nearing their anniversary.

    Two independent gates per policy: the agent digest (set only once the
    digest email went out, so a failed send is retried the next day) and the
    client push (only clients with a push token, one push per client).
    """
    name = "anniversary"
    notification_type = NotificationType.ANNIVERSARY
    requires_push_token = False

    def __init__(self, db: Session, window_days: Optional[int] = None, send_digest=send_anniversary_digest):
        self.resolver = AnniversaryResolver(window_days)
        self.agent_ledger = AnniversaryLedger(db, "anniversary_agent_notified_at")
        self.client_ledger = AnniversaryLedger(db, "anniversary_client_notified_at")
        self.send_digest = send_digest
        self.digest_sent: set[int] = set()

    def collect(self, agent, client, now):
        hits = []
        for policy in client.policies:
            occurrence = self.resolver.resolve(policy, now)
            if not occurrence.due:
                continue
            if self.agent_ledger.has_fired(policy.id, occurrence.dedup_key):
                continue
            push_eligible = bool(client.push_token) and not self.client_ledger.has_fired(
                policy.id, occurrence.dedup_key
            )
            hits.append(DueOccurrence(client=client, occurrence=occurrence, policy=policy, push_eligible=push_eligible))
        return hits

    def before_dispatch(self, agent, due, summary):
        if self.send_digest(agent, due):
            self.digest_sent.add(agent.id)
            summary.emails_sent += 1
        else:
            logger.warning(f"Anniversary digest not delivered to agent {agent.id}, will retry next run")

    def build_message(self, agent, client, due):
        if len(due) == 1:
            policy_label = f"your {due[0].policy.policy_type or 'insurance'} policy"
        else:
            policy_label = f"{len(due)} of your policies"
        body = (
            f"Hi {client.first_name}, it's been almost a year since we set up {policy_label}. "
            f"A lot can change in a year, and I'd love to make sure your coverage still fits your "
            f"life. I'm here whenever you'd like to chat. - {agent.display_name}"
        )
        return PushMessage(title="Policy Check-In", body=body)

    def mark(self, due, now, pushed):
        key = due.occurrence.dedup_key
        if due.client.agent_id in self.digest_sent:
            self.agent_ledger.mark_fired(due.policy.id, key, now)
        if pushed:
            self.client_ledger.mark_fired(due.policy.id, key, now)


class TouchpointScheduler:
    """Runs one touchpoint over every agent's book."""

    def __init__(
        self,
        db: Session,
        touchpoint: Touchpoint,
        dispatcher: NotificationDispatcher,
        now: Optional[datetime] = None,
    ):
        self.db = db
        self.touchpoint = touchpoint
        self.dispatcher = dispatcher
        self.now = now or datetime.utcnow()

    def run(self) -> RunSummary:
        summary = RunSummary(touchpoint=self.touchpoint.name)
        if not self.touchpoint.prepare(self.now):
            logger.info(f"{self.touchpoint.name} check: nothing due on {self.now.date()}")
            return summary

        holiday = getattr(self.touchpoint, "holiday", None)
        if holiday:
            summary.holiday = holiday.id

        agents = self.db.query(Agent).order_by(Agent.id).all()
        for agent in agents:
            if not self.touchpoint.applies_to(agent):
                continue
            try:
                self._run_agent(agent, summary)
            except Exception:
                self.db.rollback()
                summary.errors += 1
                logger.exception(f"{self.touchpoint.name} check failed for agent {agent.id}")

        logger.info(
            f"{self.touchpoint.name} check done: sent={summary.sent} failed={summary.failed} "
            f"skipped={summary.skipped} errors={summary.errors}"
        )
        return summary

    def _run_agent(self, agent: Agent, summary: RunSummary) -> None:
        due: list[DueOccurrence] = []
        for client in agent.clients:
            if self.touchpoint.requires_push_token and not client.push_token:
                summary.skipped += 1
                continue
            try:
                due.extend(self.touchpoint.collect(agent, client, self.now))
            except Exception:
                self.db.rollback()
                summary.errors += 1
                logger.exception(f"{self.touchpoint.name} check failed for client {client.id}")

        if not due:
            return

        summary.flagged += len(due)
        self.touchpoint.before_dispatch(agent, due, summary)

        for _, group in groupby(due, key=lambda d: d.client.id):
            self._deliver(agent, list(group), summary)

    def _deliver(self, agent: Agent, group: list[DueOccurrence], summary: RunSummary) -> None:
        client = group[0].client
        try:
            eligible = [d for d in group if d.push_eligible]
            pushed = False
            if client.push_token and eligible:
                message = self.touchpoint.build_message(agent, client, eligible)
                result = self.dispatcher.dispatch(
                    client,
                    message.title,
                    message.body,
                    self.touchpoint.notification_type,
                    data=message.data,
                    holiday=message.holiday,
                    now=self.now,
                )
                pushed = True
                if result.sent:
                    summary.sent += 1
                else:
                    summary.failed += 1

            for d in group:
                self.touchpoint.mark(d, self.now, pushed=pushed and d.push_eligible)
            self.db.commit()
        except Exception:
            self.db.rollback()
            summary.errors += 1
            logger.exception(f"{self.touchpoint.name} push failed for client {client.id}")


TOUCHPOINTS = {
    "birthday": BirthdayTouchpoint,
    "holiday": HolidayTouchpoint,
    "anniversary": AnniversaryTouchpoint,
}


def run_touchpoint(
    db: Session,
    name: str,
    now: Optional[datetime] = None,
    gateway: Optional[ExpoPushGateway] = None,
) -> RunSummary:
    touchpoint = TOUCHPOINTS[name](db)
    dispatcher = NotificationDispatcher(db, gateway)
    return TouchpointScheduler(db, touchpoint, dispatcher, now=now).run()
