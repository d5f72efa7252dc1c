"""
Pytest configuration and shared fixtures for the Sentinel agent test suite.

This module provides common fixtures, test utilities, and configuration
for all test modules in the project.
"""

import shutil
import sys
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_config_data():
    """Sample main configuration data for testing."""
    return {
        "server": {
            "host": "127.0.0.1",
            "port": 8899,
            "cors_origins": ["http://localhost:3000"],
        },
        "monitor": {
            "interval_seconds": 0.5,
            "runtime_marker": "php",
            "control_host": "127.0.0.1",
            "control_port": 9000,
            "probe_timeout": 0.05,
            "classification_cache_size": 128,
        },
        "watchdog": {
            "cpu_threshold": 80,
            "log_path": "",
            "cooldown_seconds": 60,
            "incident_ttl_seconds": 300,
            "tail_lines": 15,
            "tail_max_bytes": 20000,
        },
        "store": {"capacity": 10},
        "injector": {"probe_timeout": 0.1, "slow_query_threshold_ms": 50},
    }


@pytest.fixture
def sample_rules_config():
    """Sample tier rules for testing."""
    return [
        {
            "priority": 100,
            "tier": "web",
            "match_field": "name",
            "match_type": "regex",
            "patterns": "fpm|cgi",
        },
        {
            "priority": 80,
            "tier": "cli",
            "match_field": "cmdline",
            "match_type": "contains",
            "patterns": "artisan",
        },
        {
            "priority": 60,
            "tier": "cli",
            "match_field": "name",
            "match_type": "in_list",
            "patterns": ["php8.2", "php8.3"],
        },
    ]


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def config_files(temp_dir, sample_config_data, sample_rules_config):
    """Create temporary configuration files for testing."""
    import toml

    config_file = temp_dir / "config.toml"
    config_data = dict(sample_config_data)
    config_data["paths"] = {"rules_config": "rules.toml"}
    with open(config_file, "w") as f:
        toml.dump(config_data, f)

    rules_file = temp_dir / "rules.toml"
    with open(rules_file, "w") as f:
        toml.dump({"rules": sample_rules_config}, f)

    return {
        "config": config_file,
        "rules": rules_file,
        "dir": temp_dir,
    }


# ============================================================================
# PHP Project Fixtures
# ============================================================================


LARAVEL_11_INDEX = """<?php

use Illuminate\\Http\\Request;

define('LARAVEL_START', microtime(true));

// Determine if the application is in maintenance mode...
if (file_exists($maintenance = __DIR__.'/../storage/framework/maintenance.php')) {
    require $maintenance;
}

// Register the Composer autoloader...
require __DIR__.'/../vendor/autoload.php';

// Bootstrap Laravel and handle the request...
(require_once __DIR__.'/../bootstrap/app.php')
    ->handleRequest(Request::capture());
"""


@pytest.fixture
def laravel_project(temp_dir):
    """A minimal Laravel 11 project layout with public/index.php."""
    project = temp_dir / "shop"
    (project / "public").mkdir(parents=True)
    (project / "storage" / "logs").mkdir(parents=True)
    (project / "public" / "index.php").write_bytes(LARAVEL_11_INDEX.encode("utf-8"))
    return project


# ============================================================================
# Mock Fixtures
# ============================================================================


def make_mock_process(pid, name, cmdline, rss=0, cpu=0.0):
    """Create a mock psutil.Process with fixed readings."""
    proc = Mock()
    proc.pid = pid
    proc.name.return_value = name
    proc.cmdline.return_value = cmdline
    proc.memory_info.return_value = Mock(rss=rss)
    proc.cpu_percent.return_value = cpu
    proc.is_running.return_value = True
    return proc


@pytest.fixture
def mock_process_factory():
    """Provide the mock process constructor."""
    return make_mock_process


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield  # Run the test

    from sentinel_agent.config import clear_config_cache, set_config_path

    clear_config_cache()
    # Always reset to original config path
    set_config_path(original_config_path)
