"""
Probe injection into PHP projects.

- Injector: writes the probe and edits the front controller
- AuditManager: registry of instrumented projects
- patterns: span-based bootstrap expression matching
- probe: the PHP probe script
"""

from .injector import (
    ENTRY_FILENAME,
    INCLUDE_STATEMENT,
    PROBE_FILENAME,
    Injector,
    resolve_public_dir,
)
from .manager import AuditManager, normalize_project_path
from .patterns import (
    HOOK_PREFIX,
    HOOK_SUFFIX,
    apply_smart_hook,
    find_bootstrap_group,
    find_include_offset,
    find_matching_paren,
    remove_smart_hook,
)
from .probe import ingest_url, render_probe_script

__all__ = [
    "AuditManager",
    "ENTRY_FILENAME",
    "HOOK_PREFIX",
    "HOOK_SUFFIX",
    "INCLUDE_STATEMENT",
    "Injector",
    "PROBE_FILENAME",
    "apply_smart_hook",
    "find_bootstrap_group",
    "find_include_offset",
    "find_matching_paren",
    "ingest_url",
    "normalize_project_path",
    "remove_smart_hook",
    "render_probe_script",
    "resolve_public_dir",
]
