"""
Installation and removal of the performance probe in a PHP project.

Enabling an audit writes the probe script into the project's public
directory, adds an include of it to the front controller and, when the
bootstrap expression can be found, hooks the application container so the
probe can enable the query log. Disabling reverses those edits.
"""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Union

from ..models.config import AppConfig
from ..models.runtime import InjectionResult
from ..validation import (
    EntryFileUnreadable,
    ErrorSeverity,
    InjectorError,
    WriteFailed,
    handle_file_error,
)
from .patterns import OPEN_TAG, apply_smart_hook, find_include_offset, remove_smart_hook
from .probe import ingest_url, render_probe_script

logger = logging.getLogger(__name__)

PROBE_FILENAME = "sentinel_inspector.php"
ENTRY_FILENAME = "index.php"
INCLUDE_STATEMENT = f"include_once __DIR__.'/{PROBE_FILENAME}';"

# Entry files are round-tripped byte for byte: no newline translation, and
# undecodable bytes survive as surrogates.
_TEXT_IO = {"encoding": "utf-8", "errors": "surrogateescape", "newline": ""}


def resolve_public_dir(project_path: Union[str, Path]) -> Path:
    """Return ``<project>/public`` when it is a directory, else the project root."""
    project = Path(project_path)
    public_dir = project / "public"
    return public_dir if public_dir.is_dir() else project


def _read_entry_file(entry_file: Path) -> str:
    try:
        with open(entry_file, "r", **_TEXT_IO) as f:
            return f.read()
    except OSError as e:
        raise EntryFileUnreadable(f"Cannot read entry file: {e}", path=str(entry_file)) from e


def _atomic_write(path: Path, content: str) -> None:
    """Write to a temporary sibling, copy the original mode, then replace."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", **_TEXT_IO) as f:
            f.write(content)
        if path.exists():
            shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except OSError as e:
        try:
            os.unlink(tmp_name)
        except OSError:
            pass
        raise WriteFailed(f"Cannot write {path.name}: {e}", path=str(path)) from e


class Injector:
    """
    Edits a project's front controller to load the probe.

    Attributes:
        probe_script: PHP source written as ``sentinel_inspector.php``.
    """

    def __init__(self, probe_script: str):
        self.probe_script = probe_script

    @classmethod
    def from_config(cls, config: AppConfig) -> "Injector":
        """Build an injector whose probe reports to this agent's ingest endpoint."""
        url = ingest_url(config.server.host, config.server.port)
        return cls(
            render_probe_script(
                url,
                timeout=config.injector.probe_timeout,
                slow_query_threshold_ms=config.injector.slow_query_threshold_ms,
            )
        )

    def enable_audit(self, project_path: Union[str, Path]) -> InjectionResult:
        """
        Install the probe into a project.

        The entry file is read before anything is written, so an unreadable
        entry file leaves the project untouched, and a failed entry write
        also removes the probe it just created. Enabling an already
        instrumented project only refreshes the probe script.

        The include goes after the open tag, or after leading
        ``declare(...);`` statements when the file has them.

        Raises:
            EntryFileUnreadable: The entry file is missing or unreadable.
            WriteFailed: The probe or the entry file could not be written.
            InjectorError: The entry file has no ``<?php`` tag to hook into.
        """
        public_dir = resolve_public_dir(project_path)
        entry_file = public_dir / ENTRY_FILENAME
        probe_file = public_dir / PROBE_FILENAME

        content = _read_entry_file(entry_file)
        already_injected = INCLUDE_STATEMENT in content
        insert_at = find_include_offset(content)
        if insert_at is None and not already_injected:
            raise InjectorError(f"No '{OPEN_TAG}' tag found in entry file", path=str(entry_file))

        probe_existed = probe_file.exists()
        try:
            with open(probe_file, "w", encoding="utf-8", newline="") as f:
                f.write(self.probe_script)
        except OSError as e:
            raise WriteFailed(f"Cannot write probe script: {e}", path=str(probe_file)) from e
        logger.info(f"Probe script written to {probe_file}")

        if already_injected:
            logger.info(f"Audit already injected into {entry_file}")
            return InjectionResult(entry_file=entry_file, probe_file=probe_file, already_injected=True)

        new_content = content[:insert_at] + "\n" + INCLUDE_STATEMENT + content[insert_at:]

        new_content, hooked = apply_smart_hook(new_content)
        if hooked:
            logger.info(f"Smart hook applied to bootstrap expression in {entry_file}")
        else:
            logger.info(f"Bootstrap expression not found in {entry_file}, using include only")

        try:
            _atomic_write(entry_file, new_content)
        except WriteFailed:
            # Entry file untouched: drop the probe written above.
            if not probe_existed:
                self._remove_probe(probe_file)
            raise
        logger.info(f"Audit enabled for {project_path}")
        return InjectionResult(
            entry_file=entry_file,
            probe_file=probe_file,
            already_injected=False,
            smart_hook_applied=hooked,
        )

    @staticmethod
    def _remove_probe(probe_file: Path) -> None:
        try:
            probe_file.unlink()
            logger.info(f"Removed probe script {probe_file}")
        except FileNotFoundError:
            pass
        except OSError as e:
            handle_file_error(
                error=e,
                context=f"removing probe script {probe_file}",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )

    def disable_audit(self, project_path: Union[str, Path]) -> bool:
        """
        Remove the probe from a project.

        Best effort: a missing probe file or entry file is not an error.

        Returns:
            True if the entry file was rewritten.

        Raises:
            WriteFailed: The cleaned entry file could not be written.
        """
        public_dir = resolve_public_dir(project_path)
        entry_file = public_dir / ENTRY_FILENAME
        probe_file = public_dir / PROBE_FILENAME

        self._remove_probe(probe_file)

        try:
            content = _read_entry_file(entry_file)
        except EntryFileUnreadable as e:
            logger.info(f"Nothing to restore for {project_path}: {e}")
            return False

        new_content = content.replace("\n" + INCLUDE_STATEMENT, "")
        new_content = new_content.replace(INCLUDE_STATEMENT, "")
        new_content, unhooked = remove_smart_hook(new_content)
        if unhooked:
            logger.info(f"Smart hook removed from {entry_file}")

        if new_content == content:
            logger.debug(f"Entry file {entry_file} already clean")
            return False

        _atomic_write(entry_file, new_content)
        logger.info(f"Audit disabled for {project_path}")
        return True
