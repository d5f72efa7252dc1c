"""
Sentinel agent: runtime observability for PHP/Laravel applications.

The agent samples PHP-FPM and artisan processes, raises CPU incidents with
the access log lines most likely responsible, collects per-request
performance figures reported by an injected probe, and serves all of it over
a small HTTP API.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- system: Shared-state locking and liveness probes
- classification: Process tier rules
- collectors: Process telemetry
- storage: Performance entry buffer and analysis
- watchdog: CPU incident detection
- injection: Probe installation into PHP projects
- logs: Laravel log parsing
- orchestration: Component wiring and the polling scheduler
- server: FastAPI control surface
- cli: Command-line interface

Usage:
    From command line:
        sentinel-agent [--config conf/config.toml] [--port 8888]

    Programmatically:
        from sentinel_agent import get_config, build_services, create_app
        app = create_app(build_services(get_config()))
"""

__version__ = "0.1.0"

# Main interfaces
from .config import clear_config_cache, get_config, set_config_path
from .orchestration import AgentServices, build_services
from .server import create_app

__all__ = [
    "__version__",
    "AgentServices",
    "build_services",
    "clear_config_cache",
    "create_app",
    "get_config",
    "set_config_path",
]
