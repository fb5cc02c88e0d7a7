#!/usr/bin/env python3
"""
Export and import between the local configuration tree and the synced tree.

Export copies the catalog from ``~/.claude`` into ``<sync dir>/data``,
sanitizing plugin registries and asking before MCP server definitions with
secrets leave the machine. Import validates the synced tree, snapshots the
local tree, and writes validated data back, keeping local MCP servers and
optionally replaying the plugin manifest.

Import steps are planned first and then either described (dry run) or
applied, so a dry run performs no writes and starts no external processes.
"""

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .backup import BackupStore
from .config import SyncFileSet, SyncPaths, DEFAULT_FILE_SET
from .errors import ConfigNotFoundError
from .plugins import ExistingPluginState, PluginStateMachine, PluginSyncReport, PluginTool
from .sanitize import mcp_servers_have_env, sanitize_marketplaces, sanitize_plugins, servers_with_env
from .skills import export_skills, import_skills
from .validate import (
    validate_json_file,
    validate_marketplaces_json,
    validate_plugins_json,
    validate_settings_json,
)
from ..utils.fs import copy_dir_clean, copy_path, read_json_safe, write_json_safe
from ..utils.logger import get_logger

ConfirmCallback = Callable[[str], bool]

MCP_ENV_WARNING = (
    'MCP server configs contain "env" fields that may include secrets '
    '(API keys, tokens): {servers}. Export anyway?'
)


def _decline(message: str) -> bool:
    return False


@dataclass
class PlannedAction:
    """One import step: what it touches, how to describe it, how to perform it."""
    label: str
    description: str
    apply: Callable[[], Any]


@dataclass
class ExportReport:
    """Artifacts written and skipped by an export."""
    exported: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


@dataclass
class ImportReport:
    """Artifacts imported and skipped by an import."""
    dry_run: bool = False
    imported: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    planned: List[str] = field(default_factory=list)
    backup_dir: Optional[Path] = None
    plugin_report: Optional[PluginSyncReport] = None


class Reconciler:
    """Moves the catalog between the local tree and the synced tree."""

    def __init__(self,
                 paths: SyncPaths,
                 fileset: SyncFileSet = DEFAULT_FILE_SET,
                 confirm: Optional[ConfirmCallback] = None,
                 plugin_tool: Optional[PluginTool] = None,
                 backup_store: Optional[BackupStore] = None):
        """
        Initialize reconciler.

        Args:
            paths: Local and synced tree locations
            fileset: Catalog of syncable artifacts
            confirm: Asks the operator a yes/no question; declines when omitted
            plugin_tool: Plugin manager used when plugins are reinstalled
            backup_store: Store used to snapshot the local tree before import
        """
        self.logger = get_logger(f"{__name__}.Reconciler")
        self.paths = paths
        self.fileset = fileset
        self.confirm = confirm or _decline
        self.plugin_tool = plugin_tool
        self.backup_store = backup_store or BackupStore(paths, fileset)

    @property
    def local_plugins_dir(self) -> Path:
        return self.paths.claude_home / self.fileset.plugins_dir

    @property
    def synced_plugins_dir(self) -> Path:
        return self.paths.data_dir / self.fileset.plugins_dir

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(self) -> ExportReport:
        """
        Copy the local catalog into the synced tree.

        Returns:
            ExportReport listing exported and skipped artifacts

        Raises:
            ConfigNotFoundError: if the local configuration root is missing
        """
        home = self.paths.claude_home
        if not home.exists():
            raise ConfigNotFoundError(
                f"Claude config directory not found: {home}. "
                "Make sure Claude Code has been run at least once."
            )

        data_dir = self.paths.data_dir
        data_dir.mkdir(parents=True, exist_ok=True)
        report = ExportReport()

        for name in self.fileset.files:
            src = home / name
            if src.is_file():
                copy_path(src, data_dir / name)
                report.exported.append(name)
                self.logger.info(f"Exported: {name}")
            else:
                report.skipped.append(name)
                self.logger.warning(f"Not found: {name}")

        for name in self.fileset.dirs:
            src = home / name
            if src.is_dir():
                copy_dir_clean(src, data_dir / name)
                report.exported.append(f"{name}/")
                self.logger.info(f"Exported: {name}/")
            else:
                report.skipped.append(f"{name}/")
                self.logger.warning(f"Not found: {name}/")

        skills_src = home / self.fileset.skills_dir
        if skills_src.exists():
            export_skills(
                skills_src,
                data_dir / self.fileset.skills_dir,
                self.paths.external_skills_file(self.fileset),
            )
            report.exported.append(f"{self.fileset.skills_dir}/")
        else:
            report.skipped.append(f"{self.fileset.skills_dir}/")
            self.logger.warning(f"Skills directory not found: {skills_src}")

        self._export_registries(report)
        self._export_mcp_servers(report)

        self.logger.ok('Export complete')
        return report

    def _export_registries(self, report: ExportReport):
        sanitizers = (
            (self.fileset.plugins_file, sanitize_plugins),
            (self.fileset.marketplaces_file, sanitize_marketplaces),
        )
        for name, sanitize in sanitizers:
            rel = f"{self.fileset.plugins_dir}/{name}"
            data = read_json_safe(self.local_plugins_dir / name)
            if not isinstance(data, dict):
                report.skipped.append(rel)
                self.logger.debug(f"No usable {rel}, skipping")
                continue

            write_json_safe(self.synced_plugins_dir / name, sanitize(data))
            report.exported.append(rel)
            self.logger.info(f"Exported: {rel} (sanitized)")

    def _export_mcp_servers(self, report: ExportReport):
        mcp_file = self.fileset.mcp_file
        document = read_json_safe(self.paths.claude_json)
        servers = document.get('mcpServers') if isinstance(document, dict) else None
        if not isinstance(servers, dict):
            report.skipped.append(mcp_file)
            return

        if mcp_servers_have_env(servers):
            names = ', '.join(servers_with_env(servers))
            if not self.confirm(MCP_ENV_WARNING.format(servers=names)):
                report.skipped.append(mcp_file)
                self.logger.warning(f"Skipped: {mcp_file} (declined due to env secrets)")
                return

        write_json_safe(self.paths.data_dir / mcp_file, servers)
        report.exported.append(mcp_file)
        self.logger.info(f"Exported: {mcp_file} (from {self.paths.claude_json.name})")

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def import_(self, reinstall_plugins: bool = True, dry_run: bool = False) -> ImportReport:
        """
        Write the synced tree into the local tree.

        Args:
            reinstall_plugins: Replay the plugin manifest through the plugin tool
            dry_run: Only report what would happen

        Returns:
            ImportReport describing what was (or would be) done

        Raises:
            ConfigNotFoundError: if the synced tree is missing
            PluginToolUnavailableError: if plugins are reinstalled without the tool
        """
        data_dir = self.paths.data_dir
        if not data_dir.exists():
            raise ConfigNotFoundError(
                f"Config directory not found: {data_dir}. "
                'Run "vibe-sync export" or "vibe-sync pull" first.'
            )

        report = ImportReport(dry_run=dry_run)

        # Must precede any write: the settings import may replace the
        # document the enable phase compares against.
        existing = ExistingPluginState.capture(self.paths, self.fileset)

        actions: List[PlannedAction] = []
        actions.extend(self._plan_files(reinstall_plugins, report))
        actions.extend(self._plan_dirs())
        actions.extend(self._plan_skills())
        actions.extend(self._plan_mcp_servers(report))
        if reinstall_plugins:
            actions.extend(self._plan_plugins(existing, report))

        if dry_run:
            for action in actions:
                report.planned.append(action.label)
                self.logger.info(f"[dry-run] Would {action.description}")
            if not reinstall_plugins:
                self.logger.info('[dry-run] Plugin sync would be skipped')
            self.logger.info(f"[dry-run] {len(actions)} actions planned, no changes made")
            return report

        report.backup_dir = self.backup_store.backup_existing()

        for action in actions:
            try:
                result = action.apply()
            except OSError as e:
                # shutil.Error is an OSError subclass
                report.skipped.append(action.label)
                self.logger.warning(f"Failed to import {action.label}: {e}")
                continue
            if isinstance(result, PluginSyncReport):
                report.plugin_report = result
            report.imported.append(action.label)
            self.logger.info(f"Imported: {action.label}")

        if not reinstall_plugins:
            self.logger.info('Plugin sync skipped')

        self.logger.ok('Import complete')
        return report

    def _plan_files(self, reinstall_plugins: bool, report: ImportReport) -> List[PlannedAction]:
        actions = []
        for name in self.fileset.files:
            src = self.paths.data_dir / name
            dest = self.paths.claude_home / name
            if not src.is_file():
                continue

            if not name.endswith('.json'):
                actions.append(self._copy_action(name, src, dest))
                continue

            is_settings = name == self.fileset.settings_file
            result = validate_settings_json(src) if is_settings else validate_json_file(src)
            if not result.valid:
                for error in result.errors:
                    self.logger.warning(f"Skipping {name}: {error}")
                report.skipped.append(name)
                continue

            if is_settings and not reinstall_plugins and 'enabledPlugins' in result.data:
                # Plugins are not being installed here, so do not reference them
                stripped = copy.deepcopy(result.data)
                del stripped['enabledPlugins']
                actions.append(PlannedAction(
                    label=name,
                    description=f"import {name} without enabledPlugins",
                    apply=lambda dest=dest, data=stripped: write_json_safe(dest, data),
                ))
            else:
                actions.append(self._copy_action(name, src, dest))
        return actions

    @staticmethod
    def _copy_action(label: str, src: Path, dest: Path) -> PlannedAction:
        return PlannedAction(
            label=label,
            description=f"import {label}",
            apply=lambda: copy_path(src, dest),
        )

    def _plan_dirs(self) -> List[PlannedAction]:
        actions = []
        for name in self.fileset.dirs:
            src = self.paths.data_dir / name
            if not src.is_dir():
                continue
            dest = self.paths.claude_home / name
            actions.append(PlannedAction(
                label=f"{name}/",
                description=f"import {name}/",
                apply=lambda src=src, dest=dest: copy_dir_clean(src, dest),
            ))
        return actions

    def _plan_skills(self) -> List[PlannedAction]:
        src = self.paths.data_dir / self.fileset.skills_dir
        manifest = self.paths.external_skills_file(self.fileset)
        if not src.is_dir() and not manifest.is_file():
            return []
        return [PlannedAction(
            label=f"{self.fileset.skills_dir}/",
            description=f"import {self.fileset.skills_dir}/ and recreate external skill links",
            apply=lambda: import_skills(src, self.paths.claude_home / self.fileset.skills_dir, manifest),
        )]

    def _plan_mcp_servers(self, report: ImportReport) -> List[PlannedAction]:
        mcp_file = self.fileset.mcp_file
        src = self.paths.data_dir / mcp_file
        if not src.is_file():
            return []

        result = validate_json_file(src)
        if not result.valid:
            for error in result.errors:
                self.logger.warning(f"Skipping {mcp_file}: {error}")
            report.skipped.append(mcp_file)
            return []

        target = self.paths.claude_json
        document: Dict[str, Any] = {}
        if target.exists():
            loaded = read_json_safe(target)
            if not isinstance(loaded, dict):
                self.logger.warning(f"Cannot parse {target}, leaving MCP servers untouched")
                report.skipped.append(mcp_file)
                return []
            document = loaded

        local = document.get('mcpServers', {})
        if not isinstance(local, dict):
            self.logger.warning(f"mcpServers in {target} is not an object, leaving it untouched")
            report.skipped.append(mcp_file)
            return []

        # Local definitions win; only unknown servers are added
        added = {name: server for name, server in result.data.items() if name not in local}
        if not added:
            self.logger.info('MCP servers already up to date')
            return []

        merged = dict(document)
        merged['mcpServers'] = {**local, **added}
        return [PlannedAction(
            label=mcp_file,
            description=f"add MCP servers to {target.name}: {', '.join(added)}",
            apply=lambda: write_json_safe(target, merged),
        )]

    def _plan_plugins(self, existing: ExistingPluginState,
                      report: ImportReport) -> List[PlannedAction]:
        plugins_dir = self.synced_plugins_dir
        validators = {
            self.fileset.marketplaces_file: validate_marketplaces_json,
            self.fileset.plugins_file: validate_plugins_json,
        }
        present = [name for name in validators if (plugins_dir / name).is_file()]
        if not present:
            self.logger.info('No plugin registries found in sync repo, skipping plugin sync')
            return []

        failed = False
        for name in present:
            result = validators[name](plugins_dir / name)
            if not result.valid:
                failed = True
                for error in result.errors:
                    self.logger.warning(f"Invalid {self.fileset.plugins_dir}/{name}: {error}")

        if failed:
            self.logger.warning('Skipping plugin sync due to validation errors')
            report.skipped.append(f"{self.fileset.plugins_dir}/")
            return []

        machine = PluginStateMachine(self.plugin_tool)
        return [PlannedAction(
            label='plugins',
            description='reinstall plugins from synced registries',
            apply=lambda: machine.reinstall(
                plugins_dir / self.fileset.marketplaces_file,
                plugins_dir / self.fileset.plugins_file,
                self.paths.data_dir / self.fileset.settings_file,
                existing,
            ),
        )]
