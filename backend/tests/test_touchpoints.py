"""Tests for the daily touchpoint runs.

Covers:
- Birthday and holiday at-most-once delivery per occurrence
- Holiday opt-out
- Anniversary agent digest + client push gates
- Per-client and per-agent failure isolation
"""

from datetime import datetime
from unittest.mock import MagicMock

from app.models.notification import NotificationRecord
from app.services.notifications import NotificationDispatcher
from app.services.touchpoints import (
    AnniversaryTouchpoint,
    BirthdayTouchpoint,
    TouchpointScheduler,
    run_touchpoint,
)
from tests.factories import FakePushGateway, create_agent, create_client, create_policy


def _run_anniversary(db, gateway, now, send_digest):
    touchpoint = AnniversaryTouchpoint(db, window_days=30, send_digest=send_digest)
    return TouchpointScheduler(db, touchpoint, NotificationDispatcher(db, gateway), now=now).run()


class TestBirthdayTouchpoint:
    """Tests for birthday pushes."""

    def test_second_run_same_day_sends_nothing(self, db_session, push_gateway):
        client = create_client(db_session, create_agent(db_session), date_of_birth="1990-03-15")
        now = datetime(2026, 3, 15, 13, 0)

        first = run_touchpoint(db_session, "birthday", now=now, gateway=push_gateway)
        second = run_touchpoint(db_session, "birthday", now=now, gateway=push_gateway)

        assert first.sent == 1
        assert second.sent == 0
        assert len(push_gateway.sent) == 1
        assert push_gateway.sent[0]["title"] == "Happy Birthday! \U0001F382"
        assert "Jordan" in push_gateway.sent[0]["body"]
        assert client.birthday_notified_at == "2026"
        assert db_session.query(NotificationRecord).filter_by(type="birthday").count() == 1

    def test_fires_again_next_year(self, db_session, push_gateway):
        create_client(db_session, create_agent(db_session), date_of_birth="03/15/1990")

        run_touchpoint(db_session, "birthday", now=datetime(2026, 3, 15, 13), gateway=push_gateway)
        summary = run_touchpoint(db_session, "birthday", now=datetime(2027, 3, 15, 13), gateway=push_gateway)

        assert summary.sent == 1
        assert len(push_gateway.sent) == 2

    def test_client_without_token_is_skipped_and_not_marked(self, db_session, push_gateway):
        client = create_client(
            db_session, create_agent(db_session), date_of_birth="1990-03-15", push_token=None
        )

        summary = run_touchpoint(db_session, "birthday", now=datetime(2026, 3, 15, 13), gateway=push_gateway)

        assert summary.skipped == 1
        assert summary.sent == 0
        assert client.birthday_notified_at is None

    def test_failed_push_is_marked_and_not_retried(self, db_session):
        create_client(
            db_session,
            create_agent(db_session),
            date_of_birth="1990-03-15",
            push_token="ExponentPushToken[dead]",
        )
        gateway = FakePushGateway(fail_tokens={"ExponentPushToken[dead]"})
        now = datetime(2026, 3, 15, 13)

        first = run_touchpoint(db_session, "birthday", now=now, gateway=gateway)
        second = run_touchpoint(db_session, "birthday", now=now, gateway=gateway)

        assert first.failed == 1
        assert second.failed == 0
        assert len(gateway.sent) == 1
        record = db_session.query(NotificationRecord).one()
        assert record.status == "failed"


class TestHolidayTouchpoint:
    """Tests for holiday cards."""

    def test_christmas_sent_once_per_client(self, db_session, push_gateway):
        agent = create_agent(db_session)
        client = create_client(db_session, agent)
        now = datetime(2025, 12, 25, 14, 0)

        first = run_touchpoint(db_session, "holiday", now=now, gateway=push_gateway)
        second = run_touchpoint(db_session, "holiday", now=now, gateway=push_gateway)

        assert first.holiday == "christmas"
        assert first.sent == 1
        assert second.sent == 0
        assert push_gateway.sent[0]["title"] == "Christmas Greetings"
        assert push_gateway.sent[0]["data"]["holiday"] == "christmas"
        assert client.holiday_notified_at == {"christmas_2025": True}

    def test_opted_out_agent_is_skipped(self, db_session, push_gateway):
        agent = create_agent(db_session, auto_holiday_cards=False)
        create_client(db_session, agent)

        summary = run_touchpoint(db_session, "holiday", now=datetime(2025, 12, 25, 14), gateway=push_gateway)

        assert summary.sent == 0
        assert push_gateway.sent == []

    def test_no_holiday_is_a_no_op(self, db_session, push_gateway):
        create_client(db_session, create_agent(db_session))

        summary = run_touchpoint(db_session, "holiday", now=datetime(2025, 12, 26, 14), gateway=push_gateway)

        assert summary.holiday is None
        assert summary.sent == 0
        assert push_gateway.sent == []


class TestAnniversaryTouchpoint:
    """Tests for anniversary digests and check-in pushes."""

    def test_policy_fifteen_days_out(self, db_session, push_gateway):
        client = create_client(db_session, create_agent(db_session))
        policy = create_policy(db_session, client, created_at=datetime(2024, 1, 15, 10, 0))
        now = datetime(2025, 1, 1, 9, 0)
        send_digest = MagicMock(return_value=True)

        summary = _run_anniversary(db_session, push_gateway, now, send_digest)

        assert summary.flagged == 1
        assert summary.emails_sent == 1
        assert summary.sent == 1
        hits = send_digest.call_args[0][1]
        assert hits[0].occurrence.days_until == 15
        assert hits[0].occurrence.due is True
        assert policy.anniversary_agent_notified_at == now
        assert policy.anniversary_client_notified_at == now
        assert push_gateway.sent[0]["title"] == "Policy Check-In"
        assert "your Term Life policy" in push_gateway.sent[0]["body"]

        again = _run_anniversary(db_session, push_gateway, now, send_digest)

        assert again.flagged == 0
        assert again.sent == 0
        assert send_digest.call_count == 1
        assert len(push_gateway.sent) == 1

    def test_client_without_token_gets_no_push(self, db_session, push_gateway):
        client = create_client(db_session, create_agent(db_session), push_token=None)
        policy = create_policy(db_session, client)
        now = datetime(2025, 1, 1, 9, 0)
        send_digest = MagicMock(return_value=True)

        summary = _run_anniversary(db_session, push_gateway, now, send_digest)

        assert summary.flagged == 1
        assert summary.sent == 0
        assert push_gateway.sent == []
        assert policy.anniversary_agent_notified_at == now
        assert policy.anniversary_client_notified_at is None

        # Registering later in the same anniversary year does not trigger a push
        client.push_token = "ExponentPushToken[late]"
        db_session.commit()
        later = _run_anniversary(db_session, push_gateway, datetime(2025, 1, 5, 9), send_digest)

        assert later.sent == 0
        assert push_gateway.sent == []

    def test_one_push_per_client_for_several_policies(self, db_session, push_gateway):
        client = create_client(db_session, create_agent(db_session))
        create_policy(db_session, client, created_at=datetime(2024, 1, 15, 10))
        create_policy(db_session, client, created_at=datetime(2024, 1, 20, 10))

        summary = _run_anniversary(db_session, push_gateway, datetime(2025, 1, 1, 9), MagicMock(return_value=True))

        assert summary.flagged == 2
        assert summary.sent == 1
        assert "2 of your policies" in push_gateway.sent[0]["body"]

    def test_undelivered_digest_is_retried_next_day(self, db_session, push_gateway):
        client = create_client(db_session, create_agent(db_session))
        policy = create_policy(db_session, client, created_at=datetime(2024, 1, 15, 10))
        failing_digest = MagicMock(return_value=False)
        working_digest = MagicMock(return_value=True)

        first = _run_anniversary(db_session, push_gateway, datetime(2025, 1, 1, 9), failing_digest)

        assert first.emails_sent == 0
        assert first.sent == 1
        assert policy.anniversary_agent_notified_at is None
        assert policy.anniversary_client_notified_at == datetime(2025, 1, 1, 9)

        retry = _run_anniversary(db_session, push_gateway, datetime(2025, 1, 2, 9), working_digest)

        assert working_digest.call_count == 1
        assert retry.emails_sent == 1
        assert retry.sent == 0
        assert len(push_gateway.sent) == 1
        assert policy.anniversary_agent_notified_at == datetime(2025, 1, 2, 9)


class TestFailureIsolation:
    """Tests for per-client and per-agent error containment."""

    def test_collect_failure_for_one_client_spares_the_rest(self, db_session, push_gateway):
        agent = create_agent(db_session)
        broken = create_client(db_session, agent, date_of_birth="1990-03-15")
        healthy = create_client(db_session, agent, date_of_birth="1990-03-15")
        broken_id = broken.id
        touchpoint = BirthdayTouchpoint(db_session)
        real_collect = touchpoint.collect

        def collect(agent, client, now):
            if client.id == broken_id:
                raise RuntimeError("bad row")
            return real_collect(agent, client, now)

        touchpoint.collect = collect
        dispatcher = NotificationDispatcher(db_session, push_gateway)

        summary = TouchpointScheduler(db_session, touchpoint, dispatcher, now=datetime(2026, 3, 15, 13)).run()

        assert summary.errors == 1
        assert summary.sent == 1
        assert push_gateway.sent[0]["to"] == healthy.push_token
        assert healthy.birthday_notified_at == "2026"

    def test_one_agent_failing_does_not_stop_the_next(self, db_session, push_gateway):
        broken = create_agent(db_session, name="Broken Agent")
        healthy = create_agent(db_session, name="Healthy Agent")
        broken_policy = create_policy(db_session, create_client(db_session, broken))
        healthy_policy = create_policy(db_session, create_client(db_session, healthy))
        broken_id = broken.id

        def send_digest(agent, hits):
            if agent.id == broken_id:
                raise RuntimeError("mail outage")
            return True

        summary = _run_anniversary(db_session, push_gateway, datetime(2025, 1, 1, 9), send_digest)

        assert summary.errors == 1
        assert summary.sent == 1
        assert broken_policy.anniversary_agent_notified_at is None
        assert healthy_policy.anniversary_agent_notified_at is not None
