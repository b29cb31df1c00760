"""
Role-based gate for premium article detail.
"""

from typing import Iterable, List, Optional

from shared.errors import AuthorizationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

ROLES_HEADER = "X-User-Roles"
PREMIUM_DENIED_MESSAGE = "Premium content requires a paid subscription."


def parse_roles(header: Optional[str]) -> List[str]:
    """Split a comma-separated role header into trimmed, non-empty tokens."""
    if not header:
        return []
    return [role.strip() for role in header.split(",") if role.strip()]


class PremiumContentGate:
    """Checks the gateway-supplied role claims for a paid role."""

    def __init__(self, paid_roles: Iterable[str], metrics: Optional[MetricsCollector] = None):
        self.paid_roles = frozenset(role.lower() for role in paid_roles)
        self.metrics = metrics
        self.logger = get_logger("articles.premium_gate")

    def has_paid_role(self, roles_header: Optional[str]) -> bool:
        return any(role.lower() in self.paid_roles for role in parse_roles(roles_header))

    def authorize(self, roles_header: Optional[str]) -> None:
        """Raise AuthorizationError unless a paid role is present."""
        if self.has_paid_role(roles_header):
            return

        self.logger.info("Premium access denied", roles=parse_roles(roles_header))
        if self.metrics:
            self.metrics.increment_counter("premium_denials_total")
        raise AuthorizationError(PREMIUM_DENIED_MESSAGE)
