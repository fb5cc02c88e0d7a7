#!/usr/bin/env python3
"""
Plugin state reconciliation against the ``claude`` CLI.

The synced marketplace, plugin and settings documents form a declarative
manifest. Replaying it runs three phases in a fixed order (add marketplaces,
install plugins, enable plugins), one external invocation at a time. A
snapshot of the local state taken before the import makes the replay
idempotent: anything already registered, installed or enabled is skipped.
"""

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Protocol, Sequence, Union

from .config import SyncFileSet, SyncPaths, DEFAULT_FILE_SET
from .errors import PluginToolUnavailableError
from ..utils.fs import read_json_safe
from ..utils.logger import get_logger

VERSION_TIMEOUT = 5
COMMAND_TIMEOUT = 120


class RunResult(NamedTuple):
    """Outcome of one external invocation."""
    succeeded: bool
    timed_out: bool = False


class PluginTool(Protocol):
    """Capability the state machine needs from the plugin manager."""

    def is_available(self) -> bool:
        ...

    def run(self, args: Sequence[str]) -> RunResult:
        ...


class ClaudeCli:
    """Runs the ``claude`` executable with argument lists, never through a shell."""

    def __init__(self, executable: str = 'claude',
                 version_timeout: float = VERSION_TIMEOUT,
                 command_timeout: float = COMMAND_TIMEOUT):
        self.logger = get_logger(f"{__name__}.ClaudeCli")
        self.executable = executable
        self.version_timeout = version_timeout
        self.command_timeout = command_timeout

    def is_available(self) -> bool:
        """Check that the executable answers ``--version``."""
        try:
            subprocess.run(
                [self.executable, '--version'],
                capture_output=True,
                timeout=self.version_timeout,
                check=True
            )
            return True
        except (OSError, subprocess.SubprocessError) as e:
            self.logger.debug(f"{self.executable} --version failed: {e}")
            return False

    def run(self, args: Sequence[str]) -> RunResult:
        """Run one command, inheriting the terminal so progress stays visible."""
        cmd = [self.executable, *args]
        try:
            result = subprocess.run(cmd, timeout=self.command_timeout)
        except subprocess.TimeoutExpired:
            return RunResult(succeeded=False, timed_out=True)
        except OSError as e:
            self.logger.debug(f"Failed to start {' '.join(cmd)}: {e}")
            return RunResult(succeeded=False)
        return RunResult(succeeded=result.returncode == 0)


@dataclass
class ExistingPluginState:
    """Local plugin state captured before an import overwrites anything."""
    marketplaces: Optional[Dict[str, Any]] = None
    plugins: Optional[Dict[str, Any]] = None
    settings: Optional[Dict[str, Any]] = None

    @classmethod
    def capture(cls, paths: SyncPaths,
                fileset: SyncFileSet = DEFAULT_FILE_SET) -> 'ExistingPluginState':
        plugins_dir = paths.claude_home / fileset.plugins_dir

        def _read(path: Path) -> Optional[Dict[str, Any]]:
            data = read_json_safe(path)
            return data if isinstance(data, dict) else None

        return cls(
            marketplaces=_read(plugins_dir / fileset.marketplaces_file),
            plugins=_read(plugins_dir / fileset.plugins_file),
            settings=_read(paths.claude_home / fileset.settings_file),
        )

    def has_marketplace(self, name: str) -> bool:
        return isinstance(self.marketplaces, dict) and name in self.marketplaces

    def is_installed(self, key: str) -> bool:
        """A plugin counts as installed only if an entry has a non-empty installPath."""
        registry = self.plugins.get('plugins') if isinstance(self.plugins, dict) else None
        if not isinstance(registry, dict):
            return False
        entries = registry.get(key)
        if not isinstance(entries, list):
            return False
        return any(isinstance(e, dict) and e.get('installPath') for e in entries)

    def is_enabled(self, key: str) -> bool:
        enabled = self.settings.get('enabledPlugins') if isinstance(self.settings, dict) else None
        return isinstance(enabled, dict) and enabled.get(key) is True


@dataclass(frozen=True)
class MarketplaceSource:
    """The ``source`` record of a marketplace entry."""
    source: str
    repo: Optional[str] = None
    url: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: Any) -> Optional['MarketplaceSource']:
        if not isinstance(entry, Mapping):
            return None
        source = entry.get('source')
        if not isinstance(source, Mapping):
            return None
        return cls(
            source=str(source.get('source', '')),
            repo=source.get('repo') if isinstance(source.get('repo'), str) else None,
            url=source.get('url') if isinstance(source.get('url'), str) else None,
        )

    @property
    def install_argument(self) -> Optional[str]:
        """Bare repo identifier for GitHub sources, the URL otherwise."""
        if self.source == 'github':
            return self.repo or None
        return self.url or None


@dataclass
class PhaseResult:
    """Counters for one phase."""
    name: str
    succeeded: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    timed_out: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def invocations(self) -> int:
        return len(self.succeeded) + len(self.failed)


@dataclass
class PluginSyncReport:
    """Outcome of a full replay."""
    marketplaces: PhaseResult = field(default_factory=lambda: PhaseResult('marketplaces'))
    plugins: PhaseResult = field(default_factory=lambda: PhaseResult('plugins'))
    enabled: PhaseResult = field(default_factory=lambda: PhaseResult('enable'))

    @property
    def invocations(self) -> int:
        return sum(p.invocations for p in (self.marketplaces, self.plugins, self.enabled))

    @property
    def failures(self) -> int:
        return sum(len(p.failed) for p in (self.marketplaces, self.plugins, self.enabled))


class PluginStateMachine:
    """Replays a plugin manifest through a ``PluginTool``."""

    def __init__(self, tool: Optional[PluginTool] = None):
        self.logger = get_logger(f"{__name__}.PluginStateMachine")
        self.tool = tool or ClaudeCli()

    def _invoke(self, args: List[str], label: str, phase: PhaseResult) -> bool:
        result = self.tool.run(args)
        if result.succeeded:
            phase.succeeded.append(label)
            return True

        phase.failed.append(label)
        if result.timed_out:
            phase.timed_out.append(label)
            self.logger.warning(f"Timed out: claude {' '.join(args)}")
        return False

    def reinstall(self,
                  marketplaces_file: Union[str, Path],
                  plugins_file: Union[str, Path],
                  settings_file: Union[str, Path],
                  existing_state: Optional[ExistingPluginState] = None) -> PluginSyncReport:
        """
        Bring the local plugin manager in line with the manifest.

        Args:
            marketplaces_file: Synced marketplace registry
            plugins_file: Synced installed-plugin registry
            settings_file: Settings document whose ``enabledPlugins`` is replayed
            existing_state: Local state captured before the import

        Returns:
            PluginSyncReport with per-phase results

        Raises:
            PluginToolUnavailableError: if the plugin tool does not respond
        """
        if not self.tool.is_available():
            raise PluginToolUnavailableError('claude CLI not found. Cannot reinstall plugins.')

        existing = existing_state or ExistingPluginState()
        report = PluginSyncReport()

        self._add_marketplaces(read_json_safe(marketplaces_file), existing, report.marketplaces)
        self._install_plugins(read_json_safe(plugins_file), existing, report.plugins)
        self._enable_plugins(read_json_safe(settings_file), existing, report.enabled)

        if report.failures:
            self.logger.warning(f"Plugin reinstallation finished with {report.failures} failures")
        else:
            self.logger.ok('Plugin reinstallation complete')
        return report

    def _add_marketplaces(self, marketplaces: Any, existing: ExistingPluginState,
                          phase: PhaseResult):
        self.logger.info('Phase 1: Adding plugin marketplaces...')
        if not isinstance(marketplaces, dict):
            return

        for name, entry in marketplaces.items():
            if existing.has_marketplace(name):
                self.logger.info(f"Marketplace already registered: {name}")
                phase.skipped.append(name)
                continue

            source = MarketplaceSource.from_entry(entry)
            arg = source.install_argument if source else None
            if not arg:
                self.logger.warning(f"Unknown marketplace source for {name}")
                phase.skipped.append(name)
                continue

            if self._invoke(['plugin', 'marketplace', 'add', '--', arg], name, phase):
                self.logger.ok(f"Added marketplace: {name}")
            else:
                self.logger.warning(f"Failed to add marketplace: {name}")

    def _install_plugins(self, plugins: Any, existing: ExistingPluginState,
                         phase: PhaseResult):
        self.logger.info('Phase 2: Installing plugins...')
        registry = plugins.get('plugins') if isinstance(plugins, dict) else None
        if not isinstance(registry, dict):
            return

        for key in registry:
            if existing.is_installed(key):
                self.logger.info(f"Plugin already installed: {key}")
                phase.skipped.append(key)
                continue

            if self._invoke(['plugin', 'install', '--', key], key, phase):
                self.logger.ok(f"Installed plugin: {key}")
            else:
                self.logger.warning(f"Failed to install plugin: {key}")

    def _enable_plugins(self, settings: Any, existing: ExistingPluginState,
                        phase: PhaseResult):
        self.logger.info('Phase 3: Enabling plugins...')
        enabled = settings.get('enabledPlugins') if isinstance(settings, dict) else None
        if not isinstance(enabled, dict):
            return

        for key, value in enabled.items():
            if value is not True:
                continue
            if existing.is_enabled(key):
                self.logger.info(f"Plugin already enabled: {key}")
                phase.skipped.append(key)
                continue

            if self._invoke(['plugin', 'enable', '--', key], key, phase):
                self.logger.ok(f"Enabled plugin: {key}")
            else:
                self.logger.warning(f"Failed to enable plugin: {key}")


def reinstall_plugins(marketplaces_file: Union[str, Path],
                      plugins_file: Union[str, Path],
                      settings_file: Union[str, Path],
                      existing_state: Optional[ExistingPluginState] = None,
                      tool: Optional[PluginTool] = None) -> PluginSyncReport:
    """Replay a plugin manifest with the production ``claude`` CLI."""
    return PluginStateMachine(tool).reinstall(
        marketplaces_file, plugins_file, settings_file, existing_state
    )
