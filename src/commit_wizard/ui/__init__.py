"""Terminal user interface for commit_wizard."""

from .prompts import ClickPresenter  # noqa: F401
