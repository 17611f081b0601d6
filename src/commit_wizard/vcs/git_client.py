"""
Git client implementation for commit_wizard.

This module wraps the Git operations required by the commit wizard:
reading the staged file list and diffs, inspecting single files and
creating commits that are scoped to an explicit set of paths. All
commands are executed as argument vectors so that commit messages and
paths never pass through a shell.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


logger = logging.getLogger(__name__)
# Attach a null handler to avoid logging errors when the root logger is not
# configured.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


class GitError(Exception):
    """Raised when a Git command fails."""

    pass


@dataclass
class GitStatus:
    """Snapshot of the staging area."""

    has_staged: bool
    staged_files: List[str] = field(default_factory=list)
    diff: str = ""


@dataclass
class CommitResult:
    """Outcome of a commit attempt."""

    success: bool
    hash: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None


@dataclass
class DiffStats:
    added: int = 0
    removed: int = 0
    files: int = 0


class GitClient:
    """Client for interacting with a Git repository."""

    def __init__(self, repo_root: Path) -> None:
        self.repo_root = Path(repo_root)

    # ------------------------------------------------------------------
    # Static helpers
    # ------------------------------------------------------------------
    @staticmethod
    def find_repo_root(start: Path) -> Optional[Path]:
        """Find the root of the Git repository starting from ``start``.

        Walk upwards until a ``.git`` entry is found or the filesystem
        root is reached.
        """
        current = Path(start).resolve()
        while True:
            if (current / ".git").exists():
                return current
            if current.parent == current:
                return None
            current = current.parent

    # ------------------------------------------------------------------
    # Basic Git commands
    # ------------------------------------------------------------------
    def _run(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        """Run a Git command in the repository root.

        Raises
        ------
        GitError
            If the binary cannot be executed, or if the command exits with
            a non-zero status when ``check`` is True.
        """
        full_cmd = ["git"] + args
        logger.debug("Executing Git command: %s", full_cmd)
        try:
            result = subprocess.run(
                full_cmd,
                cwd=self.repo_root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as exc:
            logger.error("Unable to execute git: %s", exc)
            raise GitError(f"Unable to execute git: {exc}") from exc

        if check and result.returncode != 0:
            logger.error(
                "Git command failed: %s\nSTDOUT: %s\nSTDERR: %s",
                " ".join(full_cmd),
                result.stdout,
                result.stderr,
            )
            raise GitError(result.stderr.strip() or result.stdout.strip() or f"git exited with {result.returncode}")
        return result

    def is_repository(self) -> bool:
        """Return True if ``repo_root`` is inside a Git work tree."""
        try:
            result = self._run(["rev-parse", "--git-dir"], check=False)
        except GitError:
            return False
        return result.returncode == 0

    # ------------------------------------------------------------------
    # Staging area inspection
    # ------------------------------------------------------------------
    def get_staged_files(self) -> List[str]:
        result = self._run(["diff", "--cached", "--name-only"])
        return [line for line in result.stdout.splitlines() if line.strip()]

    def get_status(self) -> GitStatus:
        """Return the staged file list and the combined staged diff.

        Raises
        ------
        GitError
            If either git command fails.
        """
        staged_files = self.get_staged_files()
        diff = self._run(["diff", "--cached"]).stdout if staged_files else ""
        return GitStatus(has_staged=bool(staged_files), staged_files=staged_files, diff=diff.strip())

    def has_staged_changes(self) -> bool:
        return bool(self.get_staged_files())

    def get_file_diff(self, path: str) -> str:
        """Return the staged diff of a single file."""
        return self._run(["diff", "--cached", "--", path]).stdout

    def get_file_status(self, path: str) -> str:
        """Return the porcelain status line(s) of ``path`` (may be empty)."""
        return self._run(["status", "--porcelain", "--", path]).stdout.strip()

    def read_working_file(self, path: str) -> Optional[str]:
        """Return the working tree content of ``path`` or None if absent."""
        abs_path = self.repo_root / path
        if not abs_path.is_file():
            return None
        try:
            return abs_path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Could not read %s: %s", path, exc)
            return None

    def get_diff_stats(self) -> DiffStats:
        """Return added/removed line counts of the staged changes.

        Binary files (reported as ``-``) count as zero lines. Failures are
        logged and reported as empty stats.
        """
        try:
            output = self._run(["diff", "--cached", "--numstat"]).stdout
        except GitError as exc:
            logger.warning("Could not compute diff stats: %s", exc)
            return DiffStats()
        stats = DiffStats()
        for line in output.splitlines():
            if not line.strip():
                continue
            parts = line.split("\t")
            stats.files += 1
            if len(parts) >= 2:
                if parts[0].isdigit():
                    stats.added += int(parts[0])
                if parts[1].isdigit():
                    stats.removed += int(parts[1])
        return stats

    # ------------------------------------------------------------------
    # Committing
    # ------------------------------------------------------------------
    def _head_hash(self) -> str:
        return self._run(["rev-parse", "HEAD"]).stdout.strip()

    def _commit(self, args: List[str], message: str) -> CommitResult:
        try:
            self._run(args)
            commit_hash = self._head_hash()
        except GitError as exc:
            return CommitResult(success=False, error=str(exc))
        logger.debug("Created commit %s", commit_hash)
        return CommitResult(success=True, hash=commit_hash, message=message)

    def execute_commit(self, message: str) -> CommitResult:
        """Commit everything that is currently staged."""
        return self._commit(["commit", "-m", message], message)

    def execute_file_commit(self, path: str, message: str) -> CommitResult:
        """Commit only ``path``; other staged files stay staged."""
        return self._commit(["commit", "-m", message, "--", path], message)

    def execute_scoped_commit(self, paths: List[str], message: str) -> CommitResult:
        """Commit exactly ``paths``; other staged files stay staged."""
        if not paths:
            return CommitResult(success=False, error="No files given for commit")
        return self._commit(["commit", "-m", message, "--"] + list(paths), message)
