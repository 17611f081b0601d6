"""
User decisions exchanged between the orchestrator and the presentation
layer.
"""

from __future__ import annotations

import enum


class MessageAction(enum.Enum):
    """Choice made after previewing a generated commit message."""

    COMMIT = "commit"
    EDIT = "edit"
    COPY = "copy"
    CANCEL = "cancel"


class SplitAction(enum.Enum):
    """Choice made after reviewing the smart split groups."""

    PROCEED = "proceed"
    MANUAL = "manual"
    CANCEL = "cancel"
