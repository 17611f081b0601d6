"""Commit orchestration for commit_wizard."""

from .actions import MessageAction, SplitAction  # noqa: F401
from .commit_orchestrator import (  # noqa: F401
    CommitOrchestrator,
    CommitRecord,
    RunMode,
    RunState,
    SessionOutcome,
    validate_message,
)
