"""
Shared fixtures for vibe-sync tests.
"""

import pytest

from vibesync.core.config import SyncPaths
from tests.helpers import FakePluginTool, write_json


@pytest.fixture
def sync_paths(tmp_path):
    """SyncPaths pointing into a temporary home directory."""
    home = tmp_path / "home"
    home.mkdir()
    return SyncPaths(
        claude_home=home / ".claude",
        claude_json=home / ".claude.json",
        sync_dir=home / ".vibe-sync",
    )


@pytest.fixture
def fake_tool():
    """A plugin tool that succeeds for everything."""
    return FakePluginTool()


@pytest.fixture
def populated_home(sync_paths):
    """A local configuration tree with one of every artifact."""
    home = sync_paths.claude_home
    home.mkdir(parents=True)

    write_json(home / "settings.json", {
        "theme": "dark",
        "enabledPlugins": {"formatter@tools": True, "linter@tools": False},
    })
    (home / "CLAUDE.md").write_text("# Global instructions\n", encoding='utf-8')

    (home / "commands").mkdir()
    (home / "commands" / "review.md").write_text("Review the diff\n", encoding='utf-8')
    (home / "commands" / ".DS_Store").write_bytes(b"\x00")
    (home / "agents").mkdir()
    (home / "agents" / "planner.md").write_text("Plan first\n", encoding='utf-8')

    skill = home / "skills" / "writing"
    skill.mkdir(parents=True)
    (skill / "SKILL.md").write_text("Write clearly\n", encoding='utf-8')

    write_json(home / "plugins" / "installed_plugins.json", {
        "version": 1,
        "plugins": {
            "formatter@tools": [
                {"version": "1.2.0", "installPath": "/home/me/.claude/plugins/cache/formatter"}
            ],
        },
    })
    write_json(home / "plugins" / "known_marketplaces.json", {
        "tools": {
            "source": {"source": "github", "repo": "acme/tools"},
            "installLocation": "/home/me/.claude/plugins/marketplaces/tools",
        },
    })

    write_json(sync_paths.claude_json, {
        "numStartups": 3,
        "mcpServers": {"files": {"command": "mcp-files", "args": ["--root", "/"]}},
    })
    return home
