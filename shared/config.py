"""Environment-based configuration for route-sentinel."""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Config:
    # OAuth server objects whose reachability is checked
    oauth_namespace: str = field(
        default_factory=lambda: os.getenv("OAUTH_NAMESPACE", "openshift-authentication")
    )
    oauth_route_name: str = field(
        default_factory=lambda: os.getenv("OAUTH_ROUTE_NAME", "oauth-openshift")
    )
    oauth_service_name: str = field(
        default_factory=lambda: os.getenv("OAUTH_SERVICE_NAME", "oauth-openshift")
    )
    oauth_service_port: int = field(
        default_factory=lambda: int(os.getenv("OAUTH_SERVICE_PORT", "443"))
    )
    oauth_endpoints_port: int = field(
        default_factory=lambda: int(os.getenv("OAUTH_ENDPOINTS_PORT", "6443"))
    )

    # Slack
    slack_webhook_url: str = field(
        default_factory=lambda: os.getenv("SLACK_WEBHOOK_URL", "")
    )

    # Scheduling
    check_interval_seconds: int = field(
        default_factory=lambda: int(os.getenv("CHECK_INTERVAL_SECONDS", "60"))
    )
    probe_timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("PROBE_TIMEOUT_SECONDS", "5"))
    )


def load_config() -> Config:
    return Config()
