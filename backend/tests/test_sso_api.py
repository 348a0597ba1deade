from datetime import datetime, timedelta, timezone

import pytest
from httpx import AsyncClient


async def start_session(client: AsyncClient, app_id: str, headers: dict) -> dict:
    response = await client.post(
        "/api/v1/miniapp/session/start", json={"appId": app_id}, headers=headers
    )
    assert response.status_code == 200, response.text
    return response.json()


async def request_ticket(client: AsyncClient, app_id: str, nonce: str, headers: dict) -> str:
    response = await client.post(
        "/api/v1/sso/ticket",
        json={"appId": app_id, "sessionNonce": nonce},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()["ticket"]


class TestSessionStart:
    """Tests for the session start endpoint."""

    @pytest.mark.asyncio
    async def test_start_session(self, client: AsyncClient, test_app, auth_headers):
        data = await start_session(client, test_app.id, auth_headers)

        assert data["appId"] == test_app.id
        assert len(data["sessionNonce"]) == 64
        assert data["origin"] == "https://mini.example"
        assert data["startUrl"] == "https://mini.example/start?x=1"
        assert data["allowedPostMessageOrigins"] == ["https://mini.example"]
        expires_at = datetime.fromisoformat(data["expiresAt"].replace("Z", "+00:00"))
        assert expires_at > datetime.now(timezone.utc) + timedelta(minutes=29)

    @pytest.mark.asyncio
    async def test_unauthenticated(self, client: AsyncClient, test_app):
        response = await client.post("/api/v1/miniapp/session/start", json={"appId": test_app.id})
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    @pytest.mark.asyncio
    async def test_invalid_token(self, client: AsyncClient, test_app):
        response = await client.post(
            "/api/v1/miniapp/session/start",
            json={"appId": test_app.id},
            headers={"Authorization": "Bearer invalid-token"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_expired_host_token(self, client: AsyncClient, test_app, host_token):
        token = host_token("u1", expires_delta=timedelta(hours=-1))
        response = await client.post(
            "/api/v1/miniapp/session/start",
            json={"appId": test_app.id},
            headers={"Authorization": f"Bearer {token}"},
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_forward_auth_header(self, client: AsyncClient, test_app, monkeypatch):
        from miniapp_sso.utils import auth

        monkeypatch.setattr(auth.settings, "auth_trust_header", True)
        response = await client.post(
            "/api/v1/miniapp/session/start",
            json={"appId": test_app.id},
            headers={"Remote-User": "proxy-user"},
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_missing_app_id(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/miniapp/session/start", json={}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json()["error"] == "Validation error"

    @pytest.mark.asyncio
    async def test_app_not_found(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/miniapp/session/start", json={"appId": "nope"}, headers=auth_headers
        )
        assert response.status_code == 404
        assert response.json() == {"error": "App not found"}

    @pytest.mark.asyncio
    async def test_app_not_active(self, client: AsyncClient, make_app, auth_headers):
        mini_app = await make_app(status="disabled")
        response = await client.post(
            "/api/v1/miniapp/session/start", json={"appId": mini_app.id}, headers=auth_headers
        )
        assert response.status_code == 403
        assert response.json() == {"error": "App is not active"}

    @pytest.mark.asyncio
    async def test_not_iframe(self, client: AsyncClient, make_app, auth_headers):
        mini_app = await make_app(launch_mode="external")
        response = await client.post(
            "/api/v1/miniapp/session/start", json={"appId": mini_app.id}, headers=auth_headers
        )
        assert response.status_code == 400
        assert response.json() == {"error": "App does not support iframe mode"}

    @pytest.mark.asyncio
    async def test_start_url_not_allowed(self, client: AsyncClient, make_app, auth_headers):
        mini_app = await make_app(launch_url="https://evil.example/start")
        response = await client.post(
            "/api/v1/miniapp/session/start", json={"appId": mini_app.id}, headers=auth_headers
        )
        assert response.status_code == 400
        assert "startUrl not allowed" in response.json()["error"]


class TestTicketEndpoint:
    """Tests for the ticket endpoint."""

    @pytest.mark.asyncio
    async def test_request_ticket(self, client: AsyncClient, test_app, auth_headers):
        session = await start_session(client, test_app.id, auth_headers)
        response = await client.post(
            "/api/v1/sso/ticket",
            json={"appId": test_app.id, "sessionNonce": session["sessionNonce"]},
            headers=auth_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["expiresIn"] == 60
        assert data["ticket"].count(".") == 2

    @pytest.mark.asyncio
    async def test_missing_session_nonce(self, client: AsyncClient, test_app, auth_headers):
        response = await client.post(
            "/api/v1/sso/ticket", json={"appId": test_app.id}, headers=auth_headers
        )
        assert response.status_code == 400
        assert "sessionNonce" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_missing_app_id(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/sso/ticket", json={"sessionNonce": "abc"}, headers=auth_headers
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_unauthenticated(self, client: AsyncClient, test_app):
        response = await client.post(
            "/api/v1/sso/ticket", json={"appId": test_app.id, "sessionNonce": "abc"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_app_not_found(self, client: AsyncClient, auth_headers):
        response = await client.post(
            "/api/v1/sso/ticket",
            json={"appId": "nope", "sessionNonce": "abc"},
            headers=auth_headers,
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_session(self, client: AsyncClient, test_app, auth_headers):
        response = await client.post(
            "/api/v1/sso/ticket",
            json={"appId": test_app.id, "sessionNonce": "0" * 64},
            headers=auth_headers,
        )
        assert response.status_code == 403
        assert response.json() == {"error": "Invalid session"}

    @pytest.mark.asyncio
    async def test_other_users_session(
        self, client: AsyncClient, test_app, auth_headers, host_token
    ):
        session = await start_session(client, test_app.id, auth_headers)
        other_headers = {"Authorization": f"Bearer {host_token('u2')}"}
        response = await client.post(
            "/api/v1/sso/ticket",
            json={"appId": test_app.id, "sessionNonce": session["sessionNonce"]},
            headers=other_headers,
        )
        assert response.status_code == 403


class TestIntrospectEndpoint:
    """Tests for the introspection endpoint."""

    @pytest.mark.asyncio
    async def test_missing_fields_still_200(self, client: AsyncClient):
        response = await client.post("/api/v1/sso/introspect", json={})
        assert response.status_code == 200
        assert response.json() == {"valid": False, "reason": "ticket and appId are required"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"content": b""},
            {"content": b"not json", "headers": {"Content-Type": "application/json"}},
            {"json": ["x"]},
            {"json": {"ticket": 123, "appId": "a"}},
            {"json": {"ticket": "t", "appId": None}},
        ],
        ids=["empty", "not-json", "array", "numeric-ticket", "null-app-id"],
    )
    async def test_malformed_body_still_200(self, client: AsyncClient, body):
        response = await client.post("/api/v1/sso/introspect", **body)
        assert response.status_code == 200
        assert response.json() == {"valid": False, "reason": "ticket and appId are required"}

    @pytest.mark.asyncio
    async def test_garbage_ticket_is_a_verdict(self, client: AsyncClient, test_app):
        response = await client.post(
            "/api/v1/sso/introspect", json={"ticket": "garbage", "appId": test_app.id}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["valid"] is False
        assert data["reason"].startswith("invalid ticket")
        assert "sub" not in data

    @pytest.mark.asyncio
    async def test_no_host_auth_required(self, client: AsyncClient, test_app, auth_headers):
        session = await start_session(client, test_app.id, auth_headers)
        ticket = await request_ticket(client, test_app.id, session["sessionNonce"], auth_headers)

        response = await client.post(
            "/api/v1/sso/introspect", json={"ticket": ticket, "appId": test_app.id}
        )
        assert response.status_code == 200
        assert response.json()["valid"] is True


class TestEndToEnd:
    """Full host → mini-app → mini-app backend flow."""

    @pytest.mark.asyncio
    async def test_full_flow(self, client: AsyncClient, test_app, auth_headers):
        session = await start_session(client, test_app.id, auth_headers)
        nonce = session["sessionNonce"]

        ticket_response = await client.post(
            "/api/v1/sso/ticket",
            json={"appId": test_app.id, "sessionNonce": nonce},
            headers=auth_headers,
        )
        assert ticket_response.status_code == 200
        assert ticket_response.json()["expiresIn"] == 60
        ticket = ticket_response.json()["ticket"]

        first = await client.post(
            "/api/v1/sso/introspect", json={"ticket": ticket, "appId": test_app.id}
        )
        assert first.status_code == 200
        assert first.json() == {
            "valid": True,
            "sub": "u1",
            "scopes": ["profile", "email"],
            "appOrigin": "https://mini.example",
        }

        second = await client.post(
            "/api/v1/sso/introspect", json={"ticket": ticket, "appId": test_app.id}
        )
        assert second.status_code == 200
        assert second.json() == {"valid": False, "reason": "ticket already used"}

    @pytest.mark.asyncio
    async def test_same_session_issues_independent_tickets(
        self, client: AsyncClient, test_app, auth_headers
    ):
        session = await start_session(client, test_app.id, auth_headers)
        first = await request_ticket(client, test_app.id, session["sessionNonce"], auth_headers)
        second = await request_ticket(client, test_app.id, session["sessionNonce"], auth_headers)

        for ticket in (first, second):
            response = await client.post(
                "/api/v1/sso/introspect", json={"ticket": ticket, "appId": test_app.id}
            )
            assert response.json()["valid"] is True
