"""
PHP process telemetry collected with the 'psutil' library.

This module provides the ProcessMonitor class, which periodically sweeps the
process table, classifies PHP processes into web and cli tiers and aggregates
their memory and CPU figures together with the agent's own footprint.
"""

import dataclasses
import logging
import os
import threading
from typing import Dict, List, Optional

import psutil

from ..classification import TierClassifier
from ..models.config import MonitorConfig
from ..models.telemetry import ProcessSample, RuntimeStatus, SystemStats
from ..system import ReadWriteLock, probe_tcp_port

logger = logging.getLogger(__name__)

_MIB = 1024 * 1024


class ProcessMonitor:
    """
    Samples PHP processes and keeps the latest aggregate as a snapshot.

    ``psutil.Process.cpu_percent(interval=None)`` measures usage since the
    previous call on the same object, so the monitor retains one handle per
    pid between polls. The scheduler thread is the only caller of ``poll()``;
    HTTP handlers read the snapshot through ``get_status()`` and
    ``sample_processes()``.

    Attributes:
        config: Monitor settings (runtime marker, control endpoint, timeouts).
        classifier: Assigns each PHP process to the web or cli tier.
    """

    def __init__(self, config: MonitorConfig, classifier: TierClassifier):
        self.config = config
        self.classifier = classifier
        self._lock = ReadWriteLock()
        self._handles: Dict[int, psutil.Process] = {}
        self._snapshot = SystemStats()
        self._samples: List[ProcessSample] = []
        self._self_process = psutil.Process(os.getpid())

    def poll(self) -> SystemStats:
        """
        Sweep the process table once and replace the snapshot.

        Per-process failures (the process exited, access denied) skip that
        process or contribute zero; they never abort the sweep. Handles of
        pids absent from this sweep are dropped.

        Returns:
            The aggregate of this sweep, including the agent's self-health.
        """
        with self._lock.read_locked():
            previous = dict(self._handles)

        marker = self.config.runtime_marker.lower()
        handles: Dict[int, psutil.Process] = {}
        samples: List[ProcessSample] = []
        web_bytes = 0
        cli_bytes = 0
        web_cpu = 0.0
        web_workers = 0

        for pid in psutil.pids():
            proc = self._get_handle(pid, previous.get(pid))
            if proc is None:
                continue
            handles[pid] = proc

            sample = self._sample_process(proc, marker)
            if sample is None:
                continue
            samples.append(sample)

            if sample.tier == "web":
                web_bytes += sample.resident_memory_bytes
                web_cpu += sample.cpu_percent
                web_workers += 1
            elif sample.tier == "cli":
                cli_bytes += sample.resident_memory_bytes

        agent_memory_mb, agent_threads = self._self_health()
        stats = SystemStats(
            agent_memory_mb=agent_memory_mb,
            agent_thread_count=agent_threads,
            php_web_memory_mb=web_bytes // _MIB,
            php_cli_memory_mb=cli_bytes // _MIB,
            php_fpm_cpu_percent=web_cpu,
            php_fpm_worker_count=web_workers,
        )

        with self._lock.write_locked():
            self._handles = handles
            self._snapshot = stats
            self._samples = samples

        logger.debug(
            f"Polled {len(handles)} processes: {web_workers} web workers, "
            f"web={stats.php_web_memory_mb}MB cli={stats.php_cli_memory_mb}MB "
            f"cpu={web_cpu:.1f}%"
        )
        return stats

    def _get_handle(self, pid: int, existing: Optional[psutil.Process]) -> Optional[psutil.Process]:
        """Reuse the retained handle unless its pid now names a different process."""
        if existing is not None:
            try:
                if existing.is_running():
                    return existing
            except psutil.Error:
                pass
        try:
            return psutil.Process(pid)
        except psutil.Error:
            # Process vanished between pids() and here, or is inaccessible.
            return None

    def _sample_process(self, proc: psutil.Process, marker: str) -> Optional[ProcessSample]:
        try:
            name = proc.name() or ""
        except psutil.Error:
            return None

        # Cheap prefilter before the expensive cmdline read.
        if marker not in name.lower():
            return None

        try:
            cmdline = " ".join(proc.cmdline() or [])
        except psutil.Error:
            return None

        tier = self.classifier.classify(name, cmdline)
        if tier is None:
            return None

        try:
            rss = proc.memory_info().rss
        except psutil.Error:
            rss = 0

        try:
            cpu = proc.cpu_percent(interval=None)
        except psutil.Error:
            cpu = 0.0

        return ProcessSample(
            pid=proc.pid,
            name=name,
            command_line=cmdline,
            resident_memory_bytes=rss,
            cpu_percent=cpu,
            tier=tier,
        )

    def _self_health(self) -> tuple:
        try:
            rss = self._self_process.memory_info().rss
        except psutil.Error as e:
            logger.warning(f"Could not read agent memory usage: {e}")
            rss = 0
        return rss // _MIB, threading.active_count()

    def get_status(self) -> RuntimeStatus:
        """
        Report whether PHP-FPM looks alive, with the latest statistics.

        FPM counts as detected when the last poll saw web-tier memory, or
        when the well-known control port accepts a connection.
        """
        with self._lock.read_locked():
            snapshot = self._snapshot

        agent_memory_mb, agent_threads = self._self_health()
        stats = dataclasses.replace(
            snapshot,
            agent_memory_mb=agent_memory_mb,
            agent_thread_count=agent_threads,
        )

        php_fpm = stats.php_web_memory_mb > 0 or probe_tcp_port(
            self.config.control_host,
            self.config.control_port,
            self.config.probe_timeout,
        )
        return RuntimeStatus(php_fpm=php_fpm, system_stats=stats)

    def sample_processes(self) -> List[ProcessSample]:
        """Return the classified processes seen by the last poll."""
        with self._lock.read_locked():
            return list(self._samples)

    @property
    def handle_count(self) -> int:
        """Number of retained process handles."""
        with self._lock.read_locked():
            return len(self._handles)
