"""
Diff extraction utilities.

This module obtains diffs for the files of a commit scope. The staged
diff (``git diff --cached``) is used whenever it has content. For files
whose staged diff is empty, a unified-diff-like block is synthesised
from the file's current content so that the message generator still
sees what the file contains:

* untracked files on disk become a ``new file`` hunk against
  ``/dev/null``;
* staged files on disk with an empty diff (for example a file that was
  deleted and recreated with identical content) become a hunk that adds
  the whole content against a one-line placeholder.

The synthesised blocks are an approximation of a diff, meant only as
context for the language model; they are not guaranteed to apply with
``git apply`` or ``patch``. The "recreated" case cannot be told apart
from other reasons for an empty staged diff.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from commit_wizard.grouping.group_model import FileGroup
from commit_wizard.vcs.git_client import GitClient, GitError


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


FILE_DIFF_LIMIT = 4000
SYNTHETIC_CONTENT_LIMIT = 2000
TOTAL_DIFF_LIMIT = 8000

DIFF_TRUNCATED = "\n... (diff truncated)"
CONTENT_TRUNCATED = "\n... (content truncated)"
TOTAL_TRUNCATED = "\n... (total diff truncated)"


def truncate(text: str, limit: int, marker: str) -> str:
    return text[:limit] + marker if len(text) > limit else text


def _added_lines(content: str) -> List[str]:
    content = truncate(content, SYNTHETIC_CONTENT_LIMIT, CONTENT_TRUNCATED)
    return content.split("\n")


def synthesize_new_file_diff(path: str, content: str) -> str:
    """Render ``content`` as a diff that creates ``path``."""
    lines = _added_lines(content)
    header = [
        f"diff --git a/{path} b/{path}",
        "new file mode 100644",
        "--- /dev/null",
        f"+++ b/{path}",
        f"@@ -0,0 +1,{len(lines)} @@",
    ]
    return "\n".join(header + [f"+{line}" for line in lines])


def synthesize_recreated_file_diff(path: str, content: str) -> str:
    """Render ``content`` as a diff that rewrites ``path`` completely."""
    lines = _added_lines(content)
    header = [
        f"diff --git a/{path} b/{path}",
        f"--- a/{path}",
        f"+++ b/{path}",
        f"@@ -1 +1,{len(lines)} @@",
    ]
    return "\n".join(header + [f"+{line}" for line in lines])


def _staged_diff(git: GitClient, path: str) -> Optional[str]:
    """Return the capped staged diff, "" when empty, None when git failed."""
    try:
        diff = git.get_file_diff(path)
    except GitError as exc:
        logger.warning("Could not read diff for %s: %s", path, exc)
        return None
    if not diff.strip():
        return ""
    return truncate(diff, FILE_DIFF_LIMIT, DIFF_TRUNCATED)


def _synthesized_diff(git: GitClient, path: str, staged: Iterable[str]) -> str:
    content = git.read_working_file(path)
    if content is None:
        return ""
    try:
        status = git.get_file_status(path)
    except GitError as exc:
        logger.debug("Could not read status for %s: %s", path, exc)
        status = ""
    if status.startswith("??"):
        logger.debug("Synthesising new-file diff for untracked %s (approximation)", path)
        return synthesize_new_file_diff(path, content)
    if path in staged:
        logger.debug("Synthesising full-content diff for staged %s with empty diff (approximation)", path)
        return synthesize_recreated_file_diff(path, content)
    return ""


def reconstruct_group_diff(
    git: GitClient,
    group: FileGroup,
    staged_files: Optional[Sequence[str]] = None,
) -> str:
    """Return a usable diff for exactly ``group.files``.

    Parameters
    ----------
    git : GitClient
        Client used to read diffs, statuses and file contents.
    group : FileGroup
        The group to build a diff for. ``group.diff`` is not modified.
    staged_files : Sequence[str], optional
        The staged file list. Read from git when omitted and needed.

    Returns
    -------
    str
        The combined diff, or an empty string when no file contributes.
        This function never raises.
    """
    parts: List[str] = []
    staged: Optional[set] = set(staged_files) if staged_files is not None else None
    for path in group.files:
        diff = _staged_diff(git, path)
        if diff is None:
            continue
        if diff:
            parts.append(diff)
            continue
        if staged is None:
            try:
                staged = set(git.get_staged_files())
            except GitError as exc:
                logger.warning("Could not list staged files: %s", exc)
                staged = set()
        synthetic = _synthesized_diff(git, path, staged)
        if synthetic:
            parts.append(synthetic)
        else:
            logger.debug("No diff content available for %s", path)

    combined = "\n".join(parts)
    return truncate(combined, TOTAL_DIFF_LIMIT, TOTAL_TRUNCATED)

