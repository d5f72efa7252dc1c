"""
Unit tests for the PHP process monitor.

Tests aggregation per tier, handle retention across polls, purging of
vanished processes, per-process failure handling and the status snapshot.
"""

from unittest.mock import patch

import psutil
import pytest

from sentinel_agent.classification import TierClassifier
from sentinel_agent.collectors import ProcessMonitor
from sentinel_agent.config import default_rules
from sentinel_agent.models.config import MonitorConfig

MB = 1024 * 1024
MODULE = "sentinel_agent.collectors.process_monitor"


@pytest.fixture
def monitor():
    return ProcessMonitor(MonitorConfig(), TierClassifier(default_rules()))


@pytest.fixture
def process_table(mock_process_factory):
    """A small process table: two FPM workers, one artisan job, noise."""
    return {
        101: mock_process_factory(101, "php-fpm8.3", ["php-fpm: pool www"], rss=10 * MB, cpu=5.0),
        102: mock_process_factory(102, "php-fpm8.3", ["php-fpm: pool www"], rss=20 * MB, cpu=7.5),
        201: mock_process_factory(201, "php", ["php", "artisan", "queue:work"], rss=30 * MB, cpu=50.0),
        301: mock_process_factory(301, "nginx", ["nginx: worker process"], rss=40 * MB, cpu=1.0),
        302: mock_process_factory(302, "php", ["php", "composer.phar"], rss=50 * MB, cpu=1.0),
    }


def _patch_table(table):
    """Patch psutil so that pids() and Process() serve the given table."""

    def make_process(pid):
        if pid not in table:
            raise psutil.NoSuchProcess(pid)
        return table[pid]

    return (
        patch(f"{MODULE}.psutil.pids", side_effect=lambda: list(table)),
        patch(f"{MODULE}.psutil.Process", side_effect=make_process),
    )


@pytest.mark.unit
class TestProcessMonitorPoll:
    """Test cases for ProcessMonitor.poll."""

    def test_aggregates_by_tier(self, monitor, process_table):
        """Test web and cli figures are summed separately."""
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch, process_patch:
            stats = monitor.poll()

        assert stats.php_web_memory_mb == 30
        assert stats.php_cli_memory_mb == 30
        assert stats.php_fpm_cpu_percent == pytest.approx(12.5)
        assert stats.php_fpm_worker_count == 2
        assert stats.agent_thread_count >= 1

    def test_megabytes_use_integer_division(self, monitor, mock_process_factory):
        """Test summed bytes are floored to whole MiB."""
        table = {
            1: mock_process_factory(1, "php-fpm", [], rss=MB // 2 + 1),
            2: mock_process_factory(2, "php-fpm", [], rss=MB // 2 + 1),
        }
        pids_patch, process_patch = _patch_table(table)
        with pids_patch, process_patch:
            stats = monitor.poll()
        assert stats.php_web_memory_mb == 1

    def test_handles_are_reused(self, monitor, process_table):
        """Test each pid gets one handle across many polls."""
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch, process_patch as process_cls:
            for _ in range(20):
                monitor.poll()
            assert process_cls.call_count == len(process_table)
        assert monitor.handle_count == len(process_table)

    def test_cpu_is_non_negative_across_polls(self, monitor, process_table):
        """Test CPU readings stay non-negative on consecutive polls."""
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch, process_patch:
            first = monitor.poll()
            second = monitor.poll()
        assert first.php_fpm_cpu_percent >= 0
        assert second.php_fpm_cpu_percent >= 0

    def test_vanished_pids_are_purged(self, monitor, process_table):
        """Test handles of processes absent from a poll are dropped."""
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch, process_patch:
            monitor.poll()
            for pid in (102, 201, 301):
                del process_table[pid]
            stats = monitor.poll()
        assert monitor.handle_count == 2
        assert stats.php_fpm_worker_count == 1
        assert stats.php_cli_memory_mb == 0

    def test_reused_pid_gets_new_handle(self, monitor, process_table, mock_process_factory):
        """Test a handle whose process is gone is replaced."""
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch, process_patch:
            monitor.poll()
            process_table[101].is_running.return_value = False
            replacement = mock_process_factory(101, "php", ["php", "artisan", "tinker"], rss=5 * MB)
            process_table[101] = replacement
            stats = monitor.poll()
        assert stats.php_fpm_worker_count == 1
        assert stats.php_cli_memory_mb == 35

    def test_process_creation_failure_skips_pid(self, monitor, process_table):
        """Test a pid that vanishes before Process() is skipped."""
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch as pids, process_patch:
            pids.side_effect = lambda: list(process_table) + [999]
            stats = monitor.poll()
        assert stats.php_fpm_worker_count == 2
        assert monitor.handle_count == len(process_table)

    def test_name_and_cmdline_failures_skip_process(self, monitor, process_table):
        """Test unreadable names or command lines exclude the process."""
        process_table[101].name.side_effect = psutil.AccessDenied(101)
        process_table[102].cmdline.side_effect = psutil.NoSuchProcess(102)
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch, process_patch:
            stats = monitor.poll()
        assert stats.php_fpm_worker_count == 0
        assert stats.php_web_memory_mb == 0

    def test_memory_and_cpu_failures_count_as_zero(self, monitor, process_table):
        """Test failed readings contribute zero but keep the worker."""
        process_table[101].memory_info.side_effect = psutil.AccessDenied(101)
        process_table[102].cpu_percent.side_effect = psutil.NoSuchProcess(102)
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch, process_patch:
            stats = monitor.poll()
        assert stats.php_fpm_worker_count == 2
        assert stats.php_web_memory_mb == 20
        assert stats.php_fpm_cpu_percent == pytest.approx(5.0)

    def test_non_php_processes_are_not_inspected(self, monitor, process_table):
        """Test the name prefilter avoids reading other processes' cmdline."""
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch, process_patch:
            monitor.poll()
        process_table[301].cmdline.assert_not_called()

    def test_sample_processes(self, monitor, process_table):
        """Test the classified samples of the last poll are exposed."""
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch, process_patch:
            monitor.poll()
        samples = {s.pid: s for s in monitor.sample_processes()}
        assert set(samples) == {101, 102, 201}
        assert samples[201].tier == "cli"
        assert samples[201].command_line == "php artisan queue:work"


@pytest.mark.unit
class TestProcessMonitorStatus:
    """Test cases for ProcessMonitor.get_status."""

    def test_status_before_first_poll(self, monitor):
        """Test zeros are reported before any poll."""
        with patch(f"{MODULE}.probe_tcp_port", return_value=False):
            status = monitor.get_status()
        assert status.php_fpm is False
        assert status.system_stats.php_web_memory_mb == 0
        assert status.system_stats.agent_memory_mb >= 0

    def test_port_probe_detects_fpm(self, monitor):
        """Test the control port is used when no worker memory is seen."""
        with patch(f"{MODULE}.probe_tcp_port", return_value=True) as probe:
            status = monitor.get_status()
        assert status.php_fpm is True
        probe.assert_called_once_with("127.0.0.1", 9000, 0.1)

    def test_web_memory_detects_fpm(self, monitor, process_table):
        """Test visible FPM workers short-circuit the port probe."""
        pids_patch, process_patch = _patch_table(process_table)
        with pids_patch, process_patch:
            monitor.poll()
        with patch(f"{MODULE}.probe_tcp_port") as probe:
            status = monitor.get_status()
        assert status.php_fpm is True
        probe.assert_not_called()
        assert status.to_dict()["system_stats"]["php_fpm_worker_count"] == 2
