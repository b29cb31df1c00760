"""
Gateway-only access filter.

Rejects any request that did not come through the API gateway. A request
passes when enforcement is disabled, when its path is on the bypass list,
or when it carries the shared gateway token and originates from an allowed
address.
"""

import hmac
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config import ArticlesConfig
from shared.errors import forbidden_payload
from shared.logging import get_logger, set_client_ip
from shared.metrics import MetricsCollector

GATEWAY_HEADER = "X-Gateway-Internal"

MISSING_TOKEN_MESSAGE = "Direct access not allowed. Please use the API Gateway."
INVALID_TOKEN_MESSAGE = "Invalid gateway token."
IP_NOT_ALLOWED_MESSAGE = "Access from this IP address is not allowed."


@dataclass(frozen=True)
class GatewayDecision:
    """Outcome of evaluating one request."""
    allowed: bool
    reason: str
    client_ip: Optional[str] = None
    message: Optional[str] = None


def resolve_client_ip(headers: Mapping[str, str], peer_host: Optional[str]) -> Optional[str]:
    """First X-Forwarded-For hop, else X-Real-IP, else the connection peer."""
    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return peer_host


class GatewayAccessPolicy:
    """Stateless per-request gateway validation."""

    def __init__(self, enabled: bool, token: str, allowed_ips: Iterable[str],
                 bypass_paths: Iterable[str]):
        self.enabled = enabled
        self.token = token or ""
        self.allowed_ips = frozenset(allowed_ips)
        self.bypass_paths = tuple(bypass_paths)

    @classmethod
    def from_config(cls, config: ArticlesConfig) -> "GatewayAccessPolicy":
        return cls(
            enabled=config.gateway_only,
            token=config.gateway_token,
            allowed_ips=config.allowed_ips,
            bypass_paths=config.bypass_paths,
        )

    def is_bypass_path(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.bypass_paths)

    def is_allowed_ip(self, ip_address: Optional[str]) -> bool:
        return ip_address is not None and ip_address in self.allowed_ips

    def token_matches(self, presented: str) -> bool:
        # An unset secret must never match, not even an empty header
        if not self.token:
            return False
        return hmac.compare_digest(presented.encode(), self.token.encode())

    def evaluate(self, path: str, headers: Mapping[str, str], peer_host: Optional[str]) -> GatewayDecision:
        """Decide on one request. Repeated headers resolve to their first value."""
        if not isinstance(headers, Headers):
            headers = Headers(headers=dict(headers))
        client_ip = resolve_client_ip(headers, peer_host)

        if not self.enabled:
            return GatewayDecision(True, "disabled", client_ip)

        if self.is_bypass_path(path):
            return GatewayDecision(True, "bypass", client_ip)

        presented = headers.get(GATEWAY_HEADER)
        if presented is None:
            return GatewayDecision(False, "missing_token", client_ip, MISSING_TOKEN_MESSAGE)

        if not self.token_matches(presented):
            return GatewayDecision(False, "invalid_token", client_ip, INVALID_TOKEN_MESSAGE)

        if not self.is_allowed_ip(client_ip):
            return GatewayDecision(False, "ip_not_allowed", client_ip, IP_NOT_ALLOWED_MESSAGE)

        return GatewayDecision(True, "accepted", client_ip)


class GatewayOnlyMiddleware(BaseHTTPMiddleware):
    """Applies a GatewayAccessPolicy before routing."""

    def __init__(self, app, policy: GatewayAccessPolicy, metrics: Optional[MetricsCollector] = None):
        super().__init__(app)
        self.policy = policy
        self.metrics = metrics
        self.logger = get_logger("articles.gateway")

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        peer_host = request.client.host if request.client else None
        decision = self.policy.evaluate(path, request.headers, peer_host)
        set_client_ip(decision.client_ip)

        if not decision.allowed:
            self.logger.warning(
                "Gateway validation failed",
                path=path,
                client_ip=decision.client_ip,
                reason=decision.reason
            )
            if self.metrics:
                self.metrics.increment_counter("gateway_rejections_total", reason=decision.reason)
            return JSONResponse(status_code=403, content=forbidden_payload(decision.message))

        self.logger.debug(
            "Gateway validation passed",
            path=path,
            client_ip=decision.client_ip,
            reason=decision.reason
        )
        return await call_next(request)
