"""
Utilities for building diffs of commit scopes.

The :mod:`commit_wizard.diff.diff_extractor` module reads staged diffs
and reconstructs a usable diff for files where git reports none.
"""

from .diff_extractor import reconstruct_group_diff  # noqa: F401
