"""Integration tests for the conservation alert endpoints."""

from datetime import datetime, timedelta

from tests.factories import auth_headers, create_agent, create_alert, create_client, create_policy


class TestAuth:
    """Tests for agent session checks."""

    def test_missing_token(self, api_client):
        assert api_client.get("/api/conservation/alerts").status_code == 401

    def test_garbage_token(self, api_client):
        response = api_client.get("/api/conservation/alerts", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401


class TestCreate:
    """Tests for POST /api/conservation/create."""

    def test_matched_young_policy_is_armed(self, api_client, db_session):
        agent = create_agent(db_session)
        client = create_client(db_session, agent)
        policy = create_policy(db_session, client, created_at=datetime.utcnow() - timedelta(days=60))

        response = api_client.post(
            "/api/conservation/create",
            json={"clientName": "Jordan Sample", "policyNumber": policy.policy_number, "reason": "lapsed_payment"},
            headers=auth_headers(agent),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["matched"] is True
        assert body["alert"]["priority"] == "high"
        assert body["alert"]["status"] == "outreach_scheduled"
        db_session.refresh(policy)
        assert policy.status == "Lapsed"

    def test_missing_client_name_is_400(self, api_client, db_session):
        agent = create_agent(db_session)

        response = api_client.post("/api/conservation/create", json={}, headers=auth_headers(agent))

        assert response.status_code == 400


class TestCancelOutreach:
    """Tests for POST /api/conservation/cancel-outreach."""

    def test_cancel_within_grace_period(self, api_client, db_session):
        agent = create_agent(db_session)
        client = create_client(db_session, agent)
        alert = create_alert(
            db_session,
            agent,
            client_id=client.id,
            status="outreach_scheduled",
            scheduled_outreach_at=datetime.utcnow() + timedelta(hours=23),
        )

        response = api_client.post(
            "/api/conservation/cancel-outreach", json={"alertId": alert.id}, headers=auth_headers(agent)
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        db_session.refresh(alert)
        assert alert.status == "new"
        assert alert.scheduled_outreach_at is None

    def test_cancel_after_grace_period_is_422(self, api_client, db_session):
        agent = create_agent(db_session)
        client = create_client(db_session, agent)
        alert = create_alert(
            db_session,
            agent,
            client_id=client.id,
            status="outreach_scheduled",
            scheduled_outreach_at=datetime.utcnow() - timedelta(hours=1),
        )

        response = api_client.post(
            "/api/conservation/cancel-outreach", json={"alertId": alert.id}, headers=auth_headers(agent)
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Grace period has already expired. Outreach may have been sent."
        db_session.refresh(alert)
        assert alert.status == "outreach_scheduled"

    def test_cancel_when_not_scheduled_is_422(self, api_client, db_session):
        agent = create_agent(db_session)
        alert = create_alert(db_session, agent)

        response = api_client.post(
            "/api/conservation/cancel-outreach", json={"alertId": alert.id}, headers=auth_headers(agent)
        )

        assert response.status_code == 422

    def test_other_agents_alert_is_404(self, api_client, db_session):
        owner = create_agent(db_session)
        intruder = create_agent(db_session, name="Other Agent")
        alert = create_alert(db_session, owner)

        response = api_client.post(
            "/api/conservation/cancel-outreach", json={"alertId": alert.id}, headers=auth_headers(intruder)
        )

        assert response.status_code == 404
        assert response.json()["detail"] == "Alert not found"


class TestScheduleOutreach:
    """Tests for POST /api/conservation/schedule-outreach."""

    def test_arms_matched_alert(self, api_client, db_session):
        agent = create_agent(db_session)
        client = create_client(db_session, agent)
        alert = create_alert(db_session, agent, client_id=client.id)

        response = api_client.post(
            "/api/conservation/schedule-outreach", json={"alertId": alert.id}, headers=auth_headers(agent)
        )

        assert response.status_code == 200
        assert response.json()["alert"]["status"] == "outreach_scheduled"
        assert response.json()["alert"]["scheduled_outreach_at"] is not None

    def test_unmatched_alert_is_422(self, api_client, db_session):
        agent = create_agent(db_session)
        alert = create_alert(db_session, agent)

        response = api_client.post(
            "/api/conservation/schedule-outreach", json={"alertId": alert.id}, headers=auth_headers(agent)
        )

        assert response.status_code == 422


class TestManualOutreach:
    """Tests for POST /api/conservation/outreach."""

    def test_pushes_now_and_stamps_alert(self, api_client, db_session, push_gateway):
        agent = create_agent(db_session)
        client = create_client(db_session, agent)
        alert = create_alert(db_session, agent, client_id=client.id, initial_message="Quick fix, call me.")

        response = api_client.post(
            "/api/conservation/outreach", json={"alertId": alert.id}, headers=auth_headers(agent)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["pushSent"] is True
        assert body["alert"]["status"] == "new"
        assert push_gateway.sent[0]["to"] == client.push_token
        assert push_gateway.sent[0]["data"]["type"] == "conservation"
        db_session.refresh(alert)
        assert alert.outreach_sent_at is not None
        assert alert.push_sent_at is not None

    def test_unmatched_alert_is_422(self, api_client, db_session, push_gateway):
        agent = create_agent(db_session)
        alert = create_alert(db_session, agent)

        response = api_client.post(
            "/api/conservation/outreach", json={"alertId": alert.id}, headers=auth_headers(agent)
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Alert is not matched to a client. Match a client first."
        assert push_gateway.sent == []

    def test_resolved_alert_is_422(self, api_client, db_session, push_gateway):
        agent = create_agent(db_session)
        client = create_client(db_session, agent)
        alert = create_alert(db_session, agent, client_id=client.id, status="saved")

        response = api_client.post(
            "/api/conservation/outreach", json={"alertId": alert.id}, headers=auth_headers(agent)
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "Alert is already resolved"
        assert push_gateway.sent == []

    def test_other_agents_alert_is_404(self, api_client, db_session, push_gateway):
        owner = create_agent(db_session)
        intruder = create_agent(db_session, name="Other Agent")
        client = create_client(db_session, owner)
        alert = create_alert(db_session, owner, client_id=client.id)

        response = api_client.post(
            "/api/conservation/outreach", json={"alertId": alert.id}, headers=auth_headers(intruder)
        )

        assert response.status_code == 404
        assert push_gateway.sent == []


class TestUpdate:
    """Tests for PATCH /api/conservation/update and /notes."""

    def test_saved_reactivates_policy_and_is_final(self, api_client, db_session):
        agent = create_agent(db_session)
        client = create_client(db_session, agent)
        policy = create_policy(db_session, client, status="Lapsed")
        alert = create_alert(db_session, agent, client_id=client.id, policy_id=policy.id)
        headers = auth_headers(agent)

        saved = api_client.patch(
            "/api/conservation/update",
            json={"alertId": alert.id, "status": "saved", "notes": "Updated card on file"},
            headers=headers,
        )
        again = api_client.patch(
            "/api/conservation/update", json={"alertId": alert.id, "status": "lost"}, headers=headers
        )

        assert saved.status_code == 200
        assert again.status_code == 422
        assert again.json()["detail"] == "Alert is already resolved"
        db_session.refresh(policy)
        db_session.refresh(alert)
        assert policy.status == "Active"
        assert alert.status == "saved"
        assert alert.notes == "Updated card on file"

    def test_invalid_status_is_400(self, api_client, db_session):
        agent = create_agent(db_session)
        alert = create_alert(db_session, agent)

        response = api_client.patch(
            "/api/conservation/update",
            json={"alertId": alert.id, "status": "maybe"},
            headers=auth_headers(agent),
        )

        assert response.status_code == 400

    def test_notes(self, api_client, db_session):
        agent = create_agent(db_session)
        alert = create_alert(db_session, agent)

        response = api_client.patch(
            "/api/conservation/notes",
            json={"alertId": alert.id, "notes": "Left voicemail"},
            headers=auth_headers(agent),
        )

        assert response.status_code == 200
        assert response.json()["alert"]["notes"] == "Left voicemail"


class TestListAlerts:
    """Tests for GET /api/conservation/alerts."""

    def test_lists_own_alerts_with_status_filter(self, api_client, db_session):
        agent = create_agent(db_session)
        other = create_agent(db_session, name="Other Agent")
        create_alert(db_session, agent, status="new")
        create_alert(db_session, agent, status="saved")
        create_alert(db_session, other, status="new")

        everything = api_client.get("/api/conservation/alerts", headers=auth_headers(agent))
        only_new = api_client.get("/api/conservation/alerts?status=new", headers=auth_headers(agent))

        assert len(everything.json()) == 2
        assert [a["status"] for a in only_new.json()] == ["new"]
