"""
Local-versus-synced difference report used by ``vibe-sync status``.
"""

import difflib
import json
import os
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.text import Text

from .config import SyncFileSet, SyncPaths, DEFAULT_FILE_SET
from ..utils.fs import OS_ARTIFACTS, read_json_safe


def _read_normalized(path: Path) -> str:
    return path.read_text(encoding='utf-8', errors='replace').replace('\r\n', '\n')


def _listing(directory: Path):
    # Symlinked entries are tracked by the external skills manifest
    return sorted(
        name for name in os.listdir(directory)
        if name not in OS_ARTIFACTS and not (directory / name).is_symlink()
    )


def dirs_equal(a: Path, b: Path) -> bool:
    """Compare two trees by names and line-ending-normalized content."""
    a_entries, b_entries = _listing(a), _listing(b)
    if a_entries != b_entries:
        return False

    for name in a_entries:
        a_path, b_path = a / name, b / name
        try:
            if a_path.is_dir() != b_path.is_dir():
                return False
            if a_path.is_dir():
                if not dirs_equal(a_path, b_path):
                    return False
            elif _read_normalized(a_path) != _read_normalized(b_path):
                return False
        except OSError:
            return False
    return True


class DiffReporter:
    """Prints differences between the local tree and the synced tree."""

    def __init__(self, paths: SyncPaths, fileset: SyncFileSet = DEFAULT_FILE_SET,
                 console: Optional[Console] = None):
        self.paths = paths
        self.fileset = fileset
        self.console = console or Console()

    def _print_patch(self, label: str, local_text: str, repo_text: str):
        patch = difflib.unified_diff(
            local_text.splitlines(keepends=True),
            repo_text.splitlines(keepends=True),
            fromfile=f"local/{label}",
            tofile=f"repo/{label}",
        )
        for line in patch:
            line = line.rstrip('\n')
            if line.startswith('@@'):
                style = 'cyan'
            elif line.startswith('+'):
                style = 'green'
            elif line.startswith('-'):
                style = 'red'
            else:
                style = None
            self.console.print(Text(line, style=style) if style else Text(line))

    def _compare_texts(self, label: str, local_text: Optional[str],
                       repo_text: Optional[str]) -> bool:
        if local_text is None and repo_text is None:
            return False
        if local_text is None:
            self.console.print(f"  [yellow]{label}: exists in repo but not locally[/yellow]")
            return True
        if repo_text is None:
            self.console.print(f"  [yellow]{label}: exists locally but not in repo[/yellow]")
            return True
        if local_text == repo_text:
            return False

        self.console.print(f"  [yellow]{label}: differs[/yellow]")
        self._print_patch(label, local_text, repo_text)
        return True

    def show_diff(self, local_path: Path, repo_path: Path, label: str) -> bool:
        """Report one artifact. Returns True when local and synced differ."""
        local_exists, repo_exists = local_path.exists(), repo_path.exists()
        if not (local_exists and repo_exists):
            return self._compare_texts(
                label,
                '' if local_exists else None,
                '' if repo_exists else None,
            )

        if local_path.is_dir() or repo_path.is_dir():
            if local_path.is_dir() and repo_path.is_dir() and dirs_equal(local_path, repo_path):
                return False
            self.console.print(f"  [yellow]{label}: differs[/yellow]")
            return True

        return self._compare_texts(label, _read_normalized(local_path), _read_normalized(repo_path))

    def _mcp_texts(self):
        document = read_json_safe(self.paths.claude_json)
        local: Any = document.get('mcpServers') if isinstance(document, dict) else None
        local_text = json.dumps(local, indent=2, ensure_ascii=False) + '\n' \
            if isinstance(local, dict) else None

        repo_path = self.paths.data_dir / self.fileset.mcp_file
        repo_text = _read_normalized(repo_path) if repo_path.exists() else None
        return local_text, repo_text

    def report(self) -> bool:
        """Compare every catalog artifact. Returns True if anything differs."""
        home, data = self.paths.claude_home, self.paths.data_dir
        has_diff = False

        labels = [(name, name) for name in self.fileset.files]
        labels += [(name, f"{name}/") for name in self.fileset.dirs]
        labels.append((self.fileset.skills_dir, f"{self.fileset.skills_dir}/"))
        for name, label in labels:
            has_diff |= self.show_diff(home / name, data / name, label)

        for name in self.fileset.plugin_files:
            rel = Path(self.fileset.plugins_dir) / name
            has_diff |= self.show_diff(home / rel, data / rel, rel.as_posix())

        local_text, repo_text = self._mcp_texts()
        has_diff |= self._compare_texts(self.fileset.mcp_file, local_text, repo_text)

        if not has_diff:
            self.console.print("[green]✓ No differences found[/green]")
        return has_diff
