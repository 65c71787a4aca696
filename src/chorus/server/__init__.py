"""HTTP transport and its entitlement seam."""

from chorus.server.app import AgentRequest, build_agent, create_app
from chorus.server.entitlements import Entitlements, QuotaEntitlements, UnlimitedEntitlements

__all__ = [
    "AgentRequest",
    "Entitlements",
    "QuotaEntitlements",
    "UnlimitedEntitlements",
    "build_agent",
    "create_app",
]
