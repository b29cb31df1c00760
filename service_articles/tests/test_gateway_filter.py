"""
Unit tests for the gateway-only access filter.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.datastructures import Headers

from service_articles.app.gateway.gateway_filter import (
    GATEWAY_HEADER,
    INVALID_TOKEN_MESSAGE,
    IP_NOT_ALLOWED_MESSAGE,
    MISSING_TOKEN_MESSAGE,
    GatewayAccessPolicy,
    GatewayOnlyMiddleware,
    resolve_client_ip,
)
from shared.config import ArticlesConfig
from shared.metrics import MetricsCollector

TOKEN = "gateway-secret"


class TestResolveClientIp:
    """Test cases for client address resolution."""

    def test_first_forwarded_hop_wins(self):
        """Test the first X-Forwarded-For entry is used."""
        headers = {"x-forwarded-for": " 10.0.0.1 , 10.0.0.2", "x-real-ip": "10.0.0.9"}

        assert resolve_client_ip(headers, "192.168.1.1") == "10.0.0.1"

    def test_real_ip_when_no_forwarded_for(self):
        """Test X-Real-IP is used when X-Forwarded-For is absent."""
        assert resolve_client_ip({"x-real-ip": "10.0.0.9"}, "192.168.1.1") == "10.0.0.9"

    def test_peer_address_last(self):
        """Test the connection peer is the final fallback."""
        assert resolve_client_ip({}, "192.168.1.1") == "192.168.1.1"
        assert resolve_client_ip({}, None) is None


class TestGatewayAccessPolicy:
    """Test cases for GatewayAccessPolicy."""

    @pytest.fixture
    def policy(self):
        """Create an enforcing policy."""
        return GatewayAccessPolicy(
            enabled=True,
            token=TOKEN,
            allowed_ips=["127.0.0.1", "::1"],
            bypass_paths=["/health", "/metrics", "/articles/health"],
        )

    def test_valid_request_accepted(self, policy):
        """Test a request with the token from an allowed address passes."""
        decision = policy.evaluate("/articles", {GATEWAY_HEADER: TOKEN}, "127.0.0.1")

        assert decision.allowed
        assert decision.reason == "accepted"
        assert decision.client_ip == "127.0.0.1"

    def test_header_lookup_is_case_insensitive(self, policy):
        """Test the token header name is matched case-insensitively."""
        decision = policy.evaluate("/articles", {"x-gateway-internal": TOKEN}, "127.0.0.1")

        assert decision.allowed

    def test_missing_token(self, policy):
        """Test a request without the token header is rejected."""
        decision = policy.evaluate("/articles", {}, "127.0.0.1")

        assert not decision.allowed
        assert decision.reason == "missing_token"
        assert decision.message == MISSING_TOKEN_MESSAGE

    def test_invalid_token(self, policy):
        """Test a wrong token is rejected."""
        decision = policy.evaluate("/articles", {GATEWAY_HEADER: "wrong"}, "127.0.0.1")

        assert not decision.allowed
        assert decision.reason == "invalid_token"
        assert decision.message == INVALID_TOKEN_MESSAGE

    def test_ip_not_allowed(self, policy):
        """Test a valid token from an unknown address is rejected."""
        headers = {GATEWAY_HEADER: TOKEN, "X-Forwarded-For": "203.0.113.7"}

        decision = policy.evaluate("/articles", headers, "127.0.0.1")

        assert not decision.allowed
        assert decision.reason == "ip_not_allowed"
        assert decision.client_ip == "203.0.113.7"
        assert decision.message == IP_NOT_ALLOWED_MESSAGE

    @pytest.mark.parametrize("path", ["/health", "/metrics", "/articles/health"])
    def test_bypass_paths(self, policy, path):
        """Test bypass paths need neither token nor allowed address."""
        decision = policy.evaluate(path, {}, "203.0.113.7")

        assert decision.allowed
        assert decision.reason == "bypass"

    def test_disabled_policy_allows_everything(self):
        """Test enforcement can be switched off."""
        policy = GatewayAccessPolicy(False, TOKEN, [], [])

        decision = policy.evaluate("/articles", {}, "203.0.113.7")

        assert decision.allowed
        assert decision.reason == "disabled"

    def test_empty_token_never_matches(self):
        """Test an unset shared secret rejects even an empty header."""
        policy = GatewayAccessPolicy(True, "", ["127.0.0.1"], [])

        decision = policy.evaluate("/articles", {GATEWAY_HEADER: ""}, "127.0.0.1")

        assert not decision.allowed
        assert decision.reason == "invalid_token"

    def test_repeated_token_header_uses_first_value(self, policy):
        """Test only the first gateway token header is considered."""
        first_valid = Headers(raw=[
            (b"x-gateway-internal", TOKEN.encode()),
            (b"x-gateway-internal", b"wrong"),
        ])
        first_wrong = Headers(raw=[
            (b"x-gateway-internal", b"wrong"),
            (b"x-gateway-internal", TOKEN.encode()),
        ])

        assert policy.evaluate("/articles", first_valid, "127.0.0.1").allowed
        assert policy.evaluate("/articles", first_wrong, "127.0.0.1").reason == "invalid_token"

    def test_from_config(self):
        """Test the policy is built from service configuration."""
        config = ArticlesConfig(gateway_token=TOKEN, allowed_ips=["10.1.1.1"])

        policy = GatewayAccessPolicy.from_config(config)

        assert policy.enabled is True
        assert policy.token == TOKEN
        assert policy.allowed_ips == frozenset({"10.1.1.1"})
        assert "/articles/health" in policy.bypass_paths


class TestGatewayOnlyMiddleware:
    """Test cases for GatewayOnlyMiddleware on a minimal app."""

    @pytest.fixture
    def metrics(self):
        """Create an articles metrics collector."""
        return MetricsCollector("articles")

    @pytest.fixture
    def client(self, metrics):
        """Create a test client around a guarded app."""
        app = FastAPI()
        policy = GatewayAccessPolicy(True, TOKEN, ["127.0.0.1"], ["/health"])
        app.add_middleware(GatewayOnlyMiddleware, policy=policy, metrics=metrics)

        @app.get("/articles")
        async def articles():
            return {"ok": True}

        @app.get("/health")
        async def health():
            return {"status": "ok"}

        return TestClient(app)

    def test_accepted_request_reaches_route(self, client):
        """Test an accepted request is passed through."""
        response = client.get("/articles", headers={GATEWAY_HEADER: TOKEN, "X-Forwarded-For": "127.0.0.1"})

        assert response.status_code == 200
        assert response.json() == {"ok": True}

    def test_rejection_payload(self, client, metrics):
        """Test rejections return the structured Forbidden body and count."""
        response = client.get("/articles", headers={"X-Forwarded-For": "127.0.0.1"})

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "Forbidden"
        assert body["status"] == 403
        assert body["message"] == MISSING_TOKEN_MESSAGE
        assert body["timestamp"].endswith("Z")
        assert metrics.registry.get_sample_value(
            "gateway_rejections_total", {"reason": "missing_token"}
        ) == 1.0

    def test_peer_address_checked_without_forwarding_headers(self, client):
        """Test the connection peer is checked when no forwarding header is sent."""
        response = client.get("/articles", headers={GATEWAY_HEADER: TOKEN})

        assert response.status_code == 403
        assert response.json()["message"] == IP_NOT_ALLOWED_MESSAGE

    def test_bypass_path(self, client):
        """Test bypass paths are served without the token."""
        response = client.get("/health")

        assert response.status_code == 200

    def test_repeated_token_header_over_http(self, client):
        """Test a request carrying the token header twice is judged by the first one."""
        accepted = client.get("/articles", headers=[
            ("X-Gateway-Internal", TOKEN),
            ("X-Gateway-Internal", "wrong"),
            ("X-Forwarded-For", "127.0.0.1"),
        ])
        rejected = client.get("/articles", headers=[
            ("X-Gateway-Internal", "wrong"),
            ("X-Gateway-Internal", TOKEN),
            ("X-Forwarded-For", "127.0.0.1"),
        ])

        assert accepted.status_code == 200
        assert rejected.status_code == 403
        assert rejected.json()["message"] == INVALID_TOKEN_MESSAGE
