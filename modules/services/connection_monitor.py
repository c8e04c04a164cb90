"""Connection-health state machine gating discovery requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

from modules.remote.errors import CredentialMissing, is_quota_failure

if TYPE_CHECKING:  # pragma: no cover
    from modules.remote.client import HealthReport, StudioClient

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Observable link states."""

    CHECKING = "checking"
    ONLINE = "online"
    OFFLINE = "offline"
    ERROR = "error"
    THROTTLED = "throttled"


@dataclass(slots=True)
class ErrorBanner:
    """User-facing failure summary; ``kind`` is ``quota`` or ``hard``."""

    message: str
    details: Optional[str] = None
    kind: str = "hard"


class ConnectionMonitor:
    """Tracks link health and the cooldown counter after quota failures."""

    def __init__(self, discovery_cooldown_seconds: int = 30, probe_cooldown_seconds: int = 15) -> None:
        self.discovery_cooldown_seconds = discovery_cooldown_seconds
        self.probe_cooldown_seconds = probe_cooldown_seconds
        self.state = ConnectionState.CHECKING
        self.cooldown = 0
        self.banner: Optional[ErrorBanner] = None

    @property
    def discovery_allowed(self) -> bool:
        return self.cooldown <= 0

    @property
    def status_label(self) -> str:
        if self.cooldown > 0:
            return "COOLING..."
        return self.state.value

    def _throttle(self, seconds: int) -> None:
        self.state = ConnectionState.THROTTLED
        self.cooldown = max(0, int(seconds))

    def apply_health_report(self, report: "HealthReport") -> ConnectionState:
        """Transition according to a probe outcome."""
        if report.reachable:
            self.state = ConnectionState.ONLINE
            self.banner = None
        elif report.credential_missing:
            self.state = ConnectionState.OFFLINE
            self.banner = ErrorBanner(report.message, report.details, kind="hard")
        elif report.is_quota_limited:
            self._throttle(self.probe_cooldown_seconds)
            self.banner = ErrorBanner(report.message, report.details, kind="quota")
        else:
            self.state = ConnectionState.ERROR
            self.banner = ErrorBanner(report.message, report.details, kind="hard")
        logger.info("Connection state -> %s (cooldown=%ds)", self.state.value, self.cooldown)
        return self.state

    async def check(self, client: "StudioClient") -> "HealthReport":
        """(Re)enter ``checking`` and run a probe, whatever the current state."""
        self.state = ConnectionState.CHECKING
        report = await client.probe_health()
        self.apply_health_report(report)
        return report

    def record_discovery_failure(self, exc: BaseException) -> ErrorBanner:
        """Classify a failed discovery call for the banner and the cooldown."""
        if isinstance(exc, CredentialMissing):
            self.state = ConnectionState.OFFLINE
            self.banner = ErrorBanner("API Key Missing.", str(exc), kind="hard")
        elif is_quota_failure(exc):
            self._throttle(self.discovery_cooldown_seconds)
            self.banner = ErrorBanner(
                "Neural Overload",
                "The API endpoint is heavily throttled. Attempting automatic recovery...",
                kind="quota",
            )
        else:
            self.banner = ErrorBanner("Link Interrupted", str(exc), kind="hard")
        logger.warning("Discovery failed (%s): %s", self.banner.kind, exc)
        return self.banner

    def clear_banner(self) -> None:
        self.banner = None

    def tick(self) -> ConnectionState:
        """Advance the cooldown by one second."""
        if self.cooldown > 0:
            self.cooldown -= 1
        if self.cooldown == 0 and self.state is ConnectionState.THROTTLED:
            self.state = ConnectionState.ONLINE
            logger.info("Cooldown finished; connection back online.")
        return self.state
