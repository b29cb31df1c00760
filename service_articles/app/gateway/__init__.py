"""
Request-level access control.

- gateway_filter: Middleware that only admits requests forwarded by the
  API gateway (shared token header plus caller address allow-list).
- premium: Role-header check applied to premium article detail.

Both are stateless; the gateway is trusted to have authenticated the end
user before forwarding.
"""

from .gateway_filter import GatewayAccessPolicy, GatewayDecision, GatewayOnlyMiddleware, resolve_client_ip
from .premium import PremiumContentGate, parse_roles

__all__ = [
    "GatewayAccessPolicy",
    "GatewayDecision",
    "GatewayOnlyMiddleware",
    "PremiumContentGate",
    "parse_roles",
    "resolve_client_ip",
]
