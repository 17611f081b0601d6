"""
Version control integration.

This package contains the :class:`GitClient`, a thin wrapper around the
``git`` command line used to read the staging area and to create
commits scoped to explicit file sets.
"""

from .git_client import CommitResult, GitClient, GitError, GitStatus  # noqa: F401
