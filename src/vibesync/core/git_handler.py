#!/usr/bin/env python3
"""
Git repository handler for vibe-sync.

This module wraps the sync repository: initialization, remotes, commit and
push, and a pull that falls back to "remote wins" after stashing local work
when histories have diverged.
"""

from datetime import datetime
from pathlib import Path
from typing import Optional, List, Union

from git import Repo, GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from .errors import VibeSyncError
from ..utils.logger import get_logger

DEFAULT_REMOTE = 'origin'
DEFAULT_GITIGNORE = ".DS_Store\nThumbs.db\nbackups/\nlogs/\n"


class GitError(VibeSyncError):
    """Custom exception for Git-related errors."""
    pass


class GitHandler:
    """Handles Git repository operations for the sync directory."""

    def __init__(self, repo_path: Union[str, Path]):
        """
        Initialize Git handler.

        Args:
            repo_path: Path to the sync repository (need not exist yet)
        """
        self.logger = get_logger(f"{__name__}.GitHandler")
        self.repo_path = Path(repo_path)
        self.repo: Optional[Repo] = None

        if (self.repo_path / '.git').exists():
            try:
                self.repo = Repo(self.repo_path)
            except (InvalidGitRepositoryError, NoSuchPathError) as e:
                raise GitError(f"Not a usable git repository: {self.repo_path}: {e}")

    def _require_repo(self) -> Repo:
        if self.repo is None:
            raise GitError(f"Sync repository not initialized: {self.repo_path}")
        return self.repo

    @property
    def is_initialized(self) -> bool:
        return self.repo is not None

    def init(self) -> Repo:
        """Create the repository if needed."""
        if self.repo is None:
            self.repo_path.mkdir(parents=True, exist_ok=True)
            self.repo = Repo.init(self.repo_path)
            self.logger.ok(f"Initialized git repository at {self.repo_path}")
        return self.repo

    def ensure_gitignore(self) -> bool:
        """Write the default .gitignore unless one already exists."""
        gitignore_path = self.repo_path / '.gitignore'
        if gitignore_path.exists():
            return False
        gitignore_path.write_text(DEFAULT_GITIGNORE, encoding='utf-8')
        return True

    @property
    def remotes(self) -> List[str]:
        """Get list of remote names."""
        if self.repo is None:
            return []
        return [remote.name for remote in self.repo.remotes]

    def has_remote(self) -> bool:
        return bool(self.remotes)

    def get_remote_url(self, name: str = DEFAULT_REMOTE) -> Optional[str]:
        """Fetch URL of a remote, or None when it is not configured."""
        if name not in self.remotes:
            return None
        return next(iter(self.repo.remote(name).urls), None)

    def add_remote(self, name: str, url: str):
        """Add a remote, replacing one with the same name."""
        repo = self._require_repo()
        if name in self.remotes:
            repo.delete_remote(repo.remote(name))
        repo.create_remote(name, url)
        self.logger.ok(f"Remote added: {url}")

    def set_remote_url(self, name: str, url: str):
        """Point an existing remote at a new URL, adding it if missing."""
        repo = self._require_repo()
        if name in self.remotes:
            repo.remote(name).set_url(url)
            self.logger.ok(f"Remote updated: {url}")
        else:
            self.add_remote(name, url)

    @property
    def current_branch(self) -> str:
        """Get the current branch name."""
        try:
            return self._require_repo().active_branch.name
        except TypeError:
            # Detached HEAD
            return "main"

    def is_clean(self) -> bool:
        """Check if the work tree has no staged, modified or untracked files."""
        return not self._require_repo().is_dirty(untracked_files=True)

    def set_upstream(self, branch: str, remote: str = DEFAULT_REMOTE):
        self._require_repo().git.branch(f'--set-upstream-to={remote}/{branch}', branch)

    def commit_and_push(self, message: Optional[str] = None) -> bool:
        """
        Stage everything, commit if there are changes, and push.

        Returns:
            True if a commit was created
        """
        repo = self.init()
        try:
            repo.git.add(A=True)
            committed = False
            if repo.is_dirty(untracked_files=True):
                if not message:
                    timestamp = datetime.now().strftime('%Y-%m-%d_%H:%M:%S')
                    message = f"sync: update claude configs {timestamp}"
                repo.index.commit(message)
                committed = True
                self.logger.ok(f"Committed: {message}")
            else:
                self.logger.info("No changes to commit")

            if self.has_remote():
                branch = self.current_branch
                repo.git.push('-u', DEFAULT_REMOTE, branch)
                self.logger.ok("Pushed to remote")
            else:
                self.logger.warning("No remote configured. Run: vibe-sync init")
            return committed
        except GitCommandError as e:
            raise GitError(f"Git command failed: {e.stderr.strip() if e.stderr else e}")

    def pull_from_remote(self):
        """
        Pull from origin, resetting to the remote version when that fails.

        Local changes are stashed before a hard reset so they can be recovered
        with ``git stash pop``.

        Raises:
            GitError: if no remote is configured or the remote is unreachable
        """
        repo = self._require_repo()
        if not self.has_remote():
            raise GitError("No remote configured. Run: vibe-sync init")

        branch = self.current_branch
        try:
            repo.git.pull()
        except GitCommandError:
            try:
                # Branch may have no upstream tracking yet
                repo.git.pull(DEFAULT_REMOTE, branch)
                self.set_upstream(branch)
            except GitCommandError:
                self.logger.warning("Merge conflict detected, resetting to remote version")
                self._reset_to_remote(branch)
        self.logger.ok("Pulled from remote")

    def _reset_to_remote(self, branch: str):
        repo = self._require_repo()
        try:
            repo.git.fetch(DEFAULT_REMOTE, branch)
            if repo.head.is_valid() and not self.is_clean():
                stamp = datetime.now().strftime('%Y%m%dT%H%M%S')
                repo.git.stash('push', '--include-untracked', '-m', f"vibe-sync before reset {stamp}")
                self.logger.warning("Local changes stashed; recover them with: git stash pop")
            repo.git.reset('--hard', f'{DEFAULT_REMOTE}/{branch}')
            self.set_upstream(branch)
        except GitCommandError as e:
            raise GitError(f"Failed to pull from remote: {e.stderr.strip() if e.stderr else e}")

    def pull_initial(self) -> Optional[str]:
        """Pull existing data into a fresh repository, trying main then master.

        Returns:
            The branch pulled, or None when the remote has no data
        """
        repo = self._require_repo()
        for branch in ('main', 'master'):
            try:
                repo.git.pull(DEFAULT_REMOTE, branch)
                if repo.active_branch.name != branch:
                    repo.git.branch('-M', branch)
                self.set_upstream(branch)
                return branch
            except GitCommandError:
                self.logger.debug(f"No branch '{branch}' on remote")
        return None
