"""
Grouping of staged files into commits.

This package holds the :class:`FileGroup` model, the smart split
:class:`GroupingEngine` with its :class:`AnalysisCache`, the local path
heuristics in :mod:`commit_wizard.grouping.change_classifier` and the
:class:`GroupEditor` used to adjust groups interactively.
"""

from .cache import AnalysisCache  # noqa: F401
from .change_classifier import detect_commit_type, group_by_path  # noqa: F401
from .group_editor import GroupEditError, GroupEditor  # noqa: F401
from .group_model import FileGroup  # noqa: F401
from .smart_split import GroupingEngine, GroupingError  # noqa: F401
