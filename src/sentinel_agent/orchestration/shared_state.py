"""
Shared component instances for the orchestration layer and the HTTP surface.

Components are built once from the configuration and passed explicitly to
the scheduler and to the app factory; nothing here is a module-level
singleton.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from ..classification import TierClassifier
from ..collectors import ProcessMonitor
from ..injection import AuditManager, Injector
from ..models.config import AppConfig
from ..storage import PerformanceStore
from ..watchdog import Watchdog
from .scheduler import PollingScheduler

logger = logging.getLogger(__name__)


@dataclass
class AgentServices:
    """
    All long-lived components of a running agent.

    This replaces the long parameter list the app factory would otherwise take.
    """

    config: AppConfig
    injector: Injector
    audit_manager: AuditManager
    store: PerformanceStore
    monitor: ProcessMonitor
    watchdog: Watchdog
    scheduler: PollingScheduler


def build_services(config: AppConfig, injector: Optional[Injector] = None) -> AgentServices:
    """
    Wire up the agent's components from a validated configuration.

    Args:
        config: The application configuration.
        injector: Optional replacement injector (tests pass one with a stub probe).
    """
    injector = injector or Injector.from_config(config)
    classifier = TierClassifier(config.rules, cache_size=config.monitor.classification_cache_size)
    monitor = ProcessMonitor(config.monitor, classifier)
    watchdog = Watchdog(
        cooldown=timedelta(seconds=config.watchdog.cooldown_seconds),
        incident_ttl=timedelta(seconds=config.watchdog.incident_ttl_seconds),
        tail_lines=config.watchdog.tail_lines,
        tail_max_bytes=config.watchdog.tail_max_bytes,
    )
    scheduler = PollingScheduler(
        monitor,
        watchdog,
        threshold=config.watchdog.cpu_threshold,
        log_path=config.watchdog.log_path,
        interval=config.monitor.interval_seconds,
    )
    services = AgentServices(
        config=config,
        injector=injector,
        audit_manager=AuditManager(injector),
        store=PerformanceStore(config.store.capacity),
        monitor=monitor,
        watchdog=watchdog,
        scheduler=scheduler,
    )
    logger.debug(
        f"Agent services built (store capacity {config.store.capacity}, "
        f"poll interval {config.monitor.interval_seconds}s)"
    )
    return services
