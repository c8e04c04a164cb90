"""Connection state machine and cooldown tests."""

from __future__ import annotations

import asyncio

from modules.remote.client import HealthReport
from modules.remote.errors import CredentialMissing, HardRemoteFailure, TransientRemoteFailure
from modules.services.connection_monitor import ConnectionMonitor, ConnectionState


class StubClient:
    def __init__(self, report: HealthReport) -> None:
        self.report = report
        self.calls = 0

    async def probe_health(self) -> HealthReport:
        self.calls += 1
        return self.report


def test_starts_checking_and_allows_discovery():
    monitor = ConnectionMonitor()

    assert monitor.state is ConnectionState.CHECKING
    assert monitor.discovery_allowed
    assert monitor.status_label == "checking"


def test_successful_probe_goes_online():
    monitor = ConnectionMonitor()
    client = StubClient(HealthReport(reachable=True, message="Neural Link Online"))

    asyncio.run(monitor.check(client))

    assert monitor.state is ConnectionState.ONLINE
    assert monitor.banner is None
    assert client.calls == 1


def test_quota_probe_throttles_with_probe_cooldown():
    monitor = ConnectionMonitor(probe_cooldown_seconds=15)
    report = HealthReport(reachable=False, message="Quota Alert", is_quota_limited=True, details="429")

    asyncio.run(monitor.check(StubClient(report)))

    assert monitor.state is ConnectionState.THROTTLED
    assert monitor.cooldown == 15
    assert monitor.status_label == "COOLING..."
    assert not monitor.discovery_allowed
    assert monitor.banner.kind == "quota"


def test_hard_probe_failure_is_error():
    monitor = ConnectionMonitor()
    monitor.apply_health_report(HealthReport(reachable=False, message="Neural Static", details="500"))

    assert monitor.state is ConnectionState.ERROR
    assert monitor.cooldown == 0
    assert monitor.banner.message == "Neural Static"


def test_missing_credential_is_offline():
    monitor = ConnectionMonitor()
    monitor.apply_health_report(HealthReport(reachable=False, message="API Key Missing.", credential_missing=True))

    assert monitor.state is ConnectionState.OFFLINE

    other = ConnectionMonitor()
    other.record_discovery_failure(CredentialMissing("API_KEY_NOT_FOUND"))
    assert other.state is ConnectionState.OFFLINE


def test_check_reenters_checking_from_any_state():
    monitor = ConnectionMonitor()
    monitor.state = ConnectionState.ERROR
    seen = []

    class ObservingClient(StubClient):
        async def probe_health(self) -> HealthReport:
            seen.append(monitor.state)
            return await super().probe_health()

    asyncio.run(monitor.check(ObservingClient(HealthReport(reachable=True, message="ok"))))

    assert seen == [ConnectionState.CHECKING]
    assert monitor.state is ConnectionState.ONLINE


def test_quota_discovery_failure_starts_thirty_second_cooldown():
    monitor = ConnectionMonitor()
    monitor.state = ConnectionState.ONLINE

    banner = monitor.record_discovery_failure(TransientRemoteFailure("429 quota exhausted"))

    assert banner.message == "Neural Overload"
    assert banner.kind == "quota"
    assert monitor.state is ConnectionState.THROTTLED
    assert monitor.cooldown == 30


def test_hard_discovery_failure_only_sets_banner():
    monitor = ConnectionMonitor()
    monitor.state = ConnectionState.ONLINE

    banner = monitor.record_discovery_failure(HardRemoteFailure("400 bad request"))

    assert banner.message == "Link Interrupted"
    assert banner.details == "400 bad request"
    assert monitor.state is ConnectionState.ONLINE
    assert monitor.discovery_allowed


def test_tick_counts_down_and_restores_online():
    monitor = ConnectionMonitor(discovery_cooldown_seconds=3)
    monitor.record_discovery_failure(RuntimeError("429"))

    monitor.tick()
    monitor.tick()
    assert monitor.cooldown == 1
    assert monitor.state is ConnectionState.THROTTLED

    monitor.tick()
    assert monitor.cooldown == 0
    assert monitor.state is ConnectionState.ONLINE
    assert monitor.discovery_allowed

    monitor.tick()
    assert monitor.cooldown == 0
