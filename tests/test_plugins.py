#!/usr/bin/env python3
"""
Tests for the plugin state machine and the claude CLI adapter.
"""

import subprocess
from unittest.mock import patch, MagicMock

import pytest

from vibesync.core.errors import PluginToolUnavailableError
from vibesync.core.plugins import (
    ClaudeCli,
    ExistingPluginState,
    MarketplaceSource,
    PluginStateMachine,
    reinstall_plugins,
)
from tests.helpers import FakePluginTool, write_json


@pytest.fixture
def manifest(tmp_path):
    """Synced registries describing two marketplaces and two plugins."""
    marketplaces = write_json(tmp_path / "known_marketplaces.json", {
        "tools": {"source": {"source": "github", "repo": "acme/tools"}},
        "internal": {"source": {"source": "git", "url": "https://git.example.com/m.git"}},
    })
    plugins = write_json(tmp_path / "installed_plugins.json", {
        "version": 1,
        "plugins": {
            "formatter@tools": [{"version": "1.0"}],
            "linter@internal": [{"version": "2.0"}],
        },
    })
    settings = write_json(tmp_path / "settings.json", {
        "enabledPlugins": {"formatter@tools": True, "linter@internal": False},
    })
    return marketplaces, plugins, settings


def installed_state():
    """Local state matching the manifest fixture after a full replay."""
    return ExistingPluginState(
        marketplaces={"tools": {}, "internal": {}},
        plugins={"plugins": {
            "formatter@tools": [{"installPath": "/p/formatter"}],
            "linter@internal": [{"installPath": "/p/linter"}],
        }},
        settings={"enabledPlugins": {"formatter@tools": True}},
    )


class TestMarketplaceSource:
    """Test marketplace argument selection."""

    def test_github_uses_bare_repo(self):
        """Test that GitHub sources pass owner/name."""
        source = MarketplaceSource.from_entry({"source": {"source": "github", "repo": "acme/tools"}})
        assert source.install_argument == "acme/tools"

    def test_other_sources_use_url(self):
        """Test that non-GitHub sources pass their URL."""
        source = MarketplaceSource.from_entry({"source": {"source": "git", "url": "https://x/y.git"}})
        assert source.install_argument == "https://x/y.git"

    def test_unusable_entries(self):
        """Test entries without a usable argument."""
        assert MarketplaceSource.from_entry("nope") is None
        assert MarketplaceSource.from_entry({"source": "github"}) is None
        assert MarketplaceSource.from_entry({"source": {"source": "github"}}).install_argument is None


class TestExistingPluginState:
    """Test the pre-import snapshot."""

    def test_installed_requires_install_path(self):
        """Test that an entry without installPath is not installed."""
        state = ExistingPluginState(plugins={"plugins": {
            "a@m": [{"version": "1"}],
            "b@m": [{"installPath": ""}],
            "c@m": [{"version": "1"}, {"installPath": "/p/c"}],
        }})

        assert state.is_installed("a@m") is False
        assert state.is_installed("b@m") is False
        assert state.is_installed("c@m") is True
        assert state.is_installed("missing@m") is False

    def test_enabled_requires_true(self):
        """Test that only a literal true counts as enabled."""
        state = ExistingPluginState(settings={"enabledPlugins": {"a@m": True, "b@m": "true"}})

        assert state.is_enabled("a@m") is True
        assert state.is_enabled("b@m") is False

    def test_empty_state(self):
        """Test that an empty snapshot has nothing."""
        state = ExistingPluginState()

        assert not state.has_marketplace("tools")
        assert not state.is_installed("a@m")
        assert not state.is_enabled("a@m")

    def test_capture_reads_local_tree(self, sync_paths, populated_home):
        """Test capturing registries and settings from disk."""
        state = ExistingPluginState.capture(sync_paths)

        assert state.has_marketplace("tools")
        assert state.is_installed("formatter@tools")
        assert state.is_enabled("formatter@tools")
        assert not state.is_enabled("linter@tools")


class TestPluginStateMachine:
    """Test the three-phase replay."""

    def test_fresh_machine_runs_every_phase_in_order(self, manifest):
        """Test the exact invocations against an empty local state."""
        tool = FakePluginTool()

        report = PluginStateMachine(tool).reinstall(*manifest)

        assert tool.calls == [
            ["plugin", "marketplace", "add", "--", "acme/tools"],
            ["plugin", "marketplace", "add", "--", "https://git.example.com/m.git"],
            ["plugin", "install", "--", "formatter@tools"],
            ["plugin", "install", "--", "linter@internal"],
            ["plugin", "enable", "--", "formatter@tools"],
        ]
        assert report.invocations == 5
        assert report.failures == 0

    def test_second_run_is_a_no_op(self, manifest):
        """Test that a fully reconciled state triggers no invocations."""
        tool = FakePluginTool()

        report = PluginStateMachine(tool).reinstall(*manifest, existing_state=installed_state())

        assert tool.calls == []
        assert report.invocations == 0
        assert report.marketplaces.skipped == ["tools", "internal"]
        assert report.plugins.skipped == ["formatter@tools", "linter@internal"]
        assert report.enabled.skipped == ["formatter@tools"]

    def test_registered_but_not_installed(self, manifest):
        """Test that a plugin without installPath is installed again."""
        state = installed_state()
        state.plugins["plugins"]["linter@internal"] = [{"version": "2.0"}]
        tool = FakePluginTool()

        PluginStateMachine(tool).reinstall(*manifest, existing_state=state)

        assert tool.calls == [["plugin", "install", "--", "linter@internal"]]

    def test_failures_do_not_stop_later_items(self, manifest):
        """Test that one failure is counted and the rest still run."""
        tool = FakePluginTool(fail=["acme/tools", "formatter@tools"])

        report = PluginStateMachine(tool).reinstall(*manifest)

        assert len(tool.calls) == 5
        assert report.marketplaces.failed == ["tools"]
        assert report.plugins.failed == ["formatter@tools"]
        assert report.enabled.failed == ["formatter@tools"]
        assert report.failures == 3

    def test_timeout_counts_as_failure(self, manifest):
        """Test that a timed-out invocation is a failure and the next item runs."""
        tool = FakePluginTool(timeout=["formatter@tools"])

        report = PluginStateMachine(tool).reinstall(*manifest)

        assert "formatter@tools" in report.plugins.timed_out
        assert "formatter@tools" in report.plugins.failed
        assert report.plugins.succeeded == ["linter@internal"]

    def test_unavailable_tool_raises_before_any_run(self, manifest):
        """Test that a failed availability check aborts the replay."""
        tool = FakePluginTool(available=False)

        with pytest.raises(PluginToolUnavailableError):
            PluginStateMachine(tool).reinstall(*manifest)
        assert tool.calls == []

    def test_unknown_marketplace_source_is_skipped(self, tmp_path):
        """Test that a marketplace with no usable source runs nothing."""
        marketplaces = write_json(tmp_path / "m.json", {"odd": {"source": {"source": "npm"}}})
        tool = FakePluginTool()

        report = PluginStateMachine(tool).reinstall(
            marketplaces, tmp_path / "missing.json", tmp_path / "missing-settings.json"
        )

        assert tool.calls == []
        assert report.marketplaces.skipped == ["odd"]

    def test_flag_like_keys_are_passed_after_separator(self, tmp_path):
        """Test that keys starting with a dash stay positional."""
        plugins = write_json(tmp_path / "p.json", {"plugins": {"--global": [{}]}})
        tool = FakePluginTool()

        PluginStateMachine(tool).reinstall(tmp_path / "none.json", plugins, tmp_path / "none2.json")

        assert tool.calls == [["plugin", "install", "--", "--global"]]

    def test_module_function_uses_given_tool(self, manifest):
        """Test the reinstall_plugins convenience wrapper."""
        tool = FakePluginTool()

        report = reinstall_plugins(*manifest, tool=tool)

        assert report.invocations == 5


class TestClaudeCli:
    """Test the subprocess adapter."""

    @patch('vibesync.core.plugins.subprocess.run')
    def test_is_available_success(self, mock_run):
        """Test that a zero exit from --version means available."""
        mock_run.return_value = MagicMock(returncode=0)

        assert ClaudeCli().is_available() is True
        args, kwargs = mock_run.call_args
        assert args[0] == ['claude', '--version']
        assert kwargs['timeout'] == 5

    @patch('vibesync.core.plugins.subprocess.run')
    def test_is_available_missing_executable(self, mock_run):
        """Test that a missing executable means unavailable."""
        mock_run.side_effect = FileNotFoundError("claude")

        assert ClaudeCli().is_available() is False

    @patch('vibesync.core.plugins.subprocess.run')
    def test_is_available_timeout(self, mock_run):
        """Test that a hanging version check means unavailable."""
        mock_run.side_effect = subprocess.TimeoutExpired(['claude'], 5)

        assert ClaudeCli().is_available() is False

    @patch('vibesync.core.plugins.subprocess.run')
    def test_run_uses_argument_list(self, mock_run):
        """Test that commands run without a shell and with the command timeout."""
        mock_run.return_value = MagicMock(returncode=0)

        result = ClaudeCli().run(['plugin', 'install', '--', 'a@m'])

        assert result.succeeded is True
        args, kwargs = mock_run.call_args
        assert args[0] == ['claude', 'plugin', 'install', '--', 'a@m']
        assert kwargs['timeout'] == 120
        assert 'shell' not in kwargs

    @patch('vibesync.core.plugins.subprocess.run')
    def test_run_nonzero_exit(self, mock_run):
        """Test that a non-zero exit is a failure."""
        mock_run.return_value = MagicMock(returncode=1)

        result = ClaudeCli().run(['plugin', 'enable', '--', 'a@m'])

        assert result.succeeded is False
        assert result.timed_out is False

    @patch('vibesync.core.plugins.subprocess.run')
    def test_run_timeout(self, mock_run):
        """Test that a timeout is reported as such."""
        mock_run.side_effect = subprocess.TimeoutExpired(['claude'], 120)

        result = ClaudeCli().run(['plugin', 'install', '--', 'a@m'])

        assert result.succeeded is False
        assert result.timed_out is True
