"""
Language model integration for commit_wizard.

This package contains the :class:`OpenAIClient` for the chat completions
API and the :class:`CommitMessageGenerator` which turns diffs into
commit message suggestions.
"""

from .openai_client import LLMError, OpenAIClient  # noqa: F401
from .commit_message_generator import CommitMessageGenerator, CommitSuggestion  # noqa: F401
