"""
Unit tests for the polling scheduler and service wiring.
"""

import threading
from unittest.mock import Mock

import pytest

from sentinel_agent.collectors import ProcessMonitor
from sentinel_agent.config import build_config
from sentinel_agent.models.telemetry import SystemStats
from sentinel_agent.orchestration import PollingScheduler, build_services
from sentinel_agent.watchdog import Watchdog


@pytest.fixture
def monitor():
    monitor = Mock(spec=ProcessMonitor)
    monitor.poll.return_value = SystemStats(php_fpm_cpu_percent=75.0)
    return monitor


@pytest.mark.unit
class TestPollingScheduler:
    """Test cases for PollingScheduler."""

    def test_tick_feeds_watchdog(self, monitor):
        """Test a tick polls and forwards the web CPU to the watchdog."""
        watchdog = Mock(spec=Watchdog)
        scheduler = PollingScheduler(monitor, watchdog, threshold=50, log_path="/var/log/access.log")
        scheduler.tick()
        monitor.poll.assert_called_once_with()
        watchdog.check.assert_called_once_with(75.0, 50, "/var/log/access.log")

    def test_start_and_stop(self, monitor):
        """Test the loop runs in the background until stopped."""
        polled = threading.Event()
        monitor.poll.side_effect = lambda: polled.set() or SystemStats()
        scheduler = PollingScheduler(monitor, Mock(spec=Watchdog), 50, "", interval=0.01)

        scheduler.start()
        assert polled.wait(timeout=5)
        assert scheduler.is_running
        assert scheduler.stop(timeout=5) is True
        assert not scheduler.is_running

    def test_start_twice_raises(self, monitor):
        """Test a running scheduler cannot be started again."""
        scheduler = PollingScheduler(monitor, Mock(spec=Watchdog), 50, "", interval=0.01)
        scheduler.start()
        try:
            with pytest.raises(RuntimeError):
                scheduler.start()
        finally:
            scheduler.stop(timeout=5)

    def test_failing_tick_does_not_stop_loop(self, monitor):
        """Test exceptions in a tick are logged and polling continues."""
        calls = []
        recovered = threading.Event()

        def poll():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            recovered.set()
            return SystemStats()

        monitor.poll.side_effect = poll
        scheduler = PollingScheduler(monitor, Mock(spec=Watchdog), 50, "", interval=0.01)
        scheduler.start()
        try:
            assert recovered.wait(timeout=5)
        finally:
            scheduler.stop(timeout=5)

    def test_stop_when_not_running(self, monitor):
        """Test stopping an idle scheduler is a no-op."""
        scheduler = PollingScheduler(monitor, Mock(spec=Watchdog), 50, "")
        assert scheduler.stop() is True


@pytest.mark.unit
class TestBuildServices:
    """Test cases for component wiring."""

    def test_components_follow_config(self, sample_config_data):
        """Test configuration values reach the components."""
        services = build_services(build_config(sample_config_data))
        assert services.store.capacity == 10
        assert services.scheduler.threshold == 80
        assert services.scheduler.interval == 0.5
        assert services.watchdog.incident_ttl.total_seconds() == 300
        assert services.audit_manager.injector is services.injector
        assert "http://127.0.0.1:8899/projects/ingest" in services.injector.probe_script
