"""
Commit message generation using a language model.

This module provides the :class:`CommitMessageGenerator` class, which
asks the model (via :class:`OpenAIClient`) for a commit message for a
diff and the list of files it touches. The result is a
:class:`CommitSuggestion` carrying the message, its Conventional Commit
type and a confidence score.

Generation failures are reported in a :class:`GenerationResult` rather
than raised, so that :meth:`CommitMessageGenerator.generate_with_retry`
can retry them with exponential backoff and report a single aggregated
error when every attempt fails.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from textwrap import dedent
from typing import Callable, Optional, Sequence

from commit_wizard.grouping.change_classifier import detect_commit_type
from commit_wizard.llm.openai_client import LLMError, OpenAIClient


logger = logging.getLogger(__name__)
# Attach a null handler to prevent logging errors when no handlers are
# configured on the root logger.
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


LANGUAGE_NAMES = {
    "pt": "Portuguese",
    "en": "English",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
}

STYLE_INSTRUCTIONS = {
    "conventional": (
        "- Use the format: type(scope): description\n"
        "- Valid types: feat, fix, docs, style, refactor, test, chore, build, ci\n"
        '- Example: "feat(auth): add email validation"\n'
        "- Keep the first line under 50 characters"
    ),
    "simple": (
        "- Use a simple and direct format\n"
        "- Start with an imperative verb\n"
        '- Example: "fix form validation"\n'
        "- Maximum 50 characters"
    ),
    "detailed": (
        "- First line: summary under 50 characters\n"
        "- Add an explanatory body if needed\n"
        "- Use the imperative mood\n"
        "- Be descriptive but concise"
    ),
}

# Checked in order; the first matching prefix decides the type.
_TYPE_PATTERNS = (
    ("feat", re.compile(r"^(feat|feature)(\([^)]+\))?!?:", re.IGNORECASE)),
    ("fix", re.compile(r"^(fix|bugfix)(\([^)]+\))?!?:", re.IGNORECASE)),
    ("docs", re.compile(r"^(docs|documentation)(\([^)]+\))?!?:", re.IGNORECASE)),
    ("style", re.compile(r"^(style|format)(\([^)]+\))?!?:", re.IGNORECASE)),
    ("refactor", re.compile(r"^(refactor|refactoring)(\([^)]+\))?!?:", re.IGNORECASE)),
    ("test", re.compile(r"^(test|testing)(\([^)]+\))?!?:", re.IGNORECASE)),
    ("chore", re.compile(r"^(chore|maintenance)(\([^)]+\))?!?:", re.IGNORECASE)),
    ("build", re.compile(r"^build(\([^)]+\))?!?:", re.IGNORECASE)),
    ("ci", re.compile(r"^(ci|continuous-integration)(\([^)]+\))?!?:", re.IGNORECASE)),
)

SUGGESTION_CONFIDENCE = 0.8


@dataclass(frozen=True)
class CommitSuggestion:
    """A generated commit message."""

    message: str
    type: str
    confidence: float


@dataclass(frozen=True)
class GenerationResult:
    success: bool
    suggestion: Optional[CommitSuggestion] = None
    error: Optional[str] = None


def extract_commit_type_from_message(message: str) -> Optional[str]:
    """Return the Conventional Commit type named by ``message``'s prefix."""
    first_line = message.strip().splitlines()[0] if message.strip() else ""
    for commit_type, pattern in _TYPE_PATTERNS:
        if pattern.match(first_line):
            return commit_type
    return None


def clean_message(raw: str) -> str:
    """Strip surrounding code fences and whitespace from a model reply."""
    message = raw.strip()
    message = re.sub(r"^```[a-zA-Z]*\s*", "", message)
    message = re.sub(r"\s*```$", "", message)
    return message.strip()


class CommitMessageGenerator:
    """Generate commit messages for diffs using a language model."""

    def __init__(
        self,
        client: OpenAIClient,
        config,
        sleep: Callable[[float], None] = time.sleep,
        backoff_base: float = 1.0,
    ) -> None:
        self.client = client
        self.config = config
        self._sleep = sleep
        self.backoff_base = backoff_base

    def build_prompt(self, diff: str, filenames: Sequence[str]) -> str:
        """Construct the prompt for a single commit message."""
        language = LANGUAGE_NAMES.get(self.config.language, "English")
        style = self.config.commit_style
        instructions = STYLE_INSTRUCTIONS.get(style, STYLE_INSTRUCTIONS["conventional"])
        custom = self.config.prompt.custom_instructions
        custom_line = f"\n- Custom instructions: {custom}" if custom else ""
        max_diff = self.config.prompt.max_diff_size
        if len(diff) > max_diff:
            diff = diff[:max_diff] + "\n... (diff truncated)"
        files_block = "\n".join(f"- {name}" for name in filenames)

        prompt = dedent(
            """
            You are an assistant specialised in writing Git commit messages.

            CONTEXT:
            - Language: {language}
            - Style: {style}{custom_line}

            CHANGED FILES:
            {files_block}

            INSTRUCTIONS:
            {instructions}

            Analyse the diff below and write ONE commit message that:
            1. Is clear and concise
            2. Describes what changed
            3. Follows the {style} style
            4. Is written in {language}
            5. Contains ONLY the commit message, with no explanation or formatting

            DIFF:
            ```
            {diff}
            ```

            Commit message:
            """
        ).strip()
        # Substituted after dedent so multi-line values do not break it.
        return prompt.format(
            language=language,
            style=style,
            custom_line=custom_line,
            files_block=files_block,
            instructions=instructions,
            diff=diff,
        )

    def generate(self, diff: str, filenames: Sequence[str]) -> GenerationResult:
        """Generate one commit suggestion; failures are returned, not raised."""
        prompt = self.build_prompt(diff, filenames)
        try:
            raw = self.client.complete(
                prompt,
                max_tokens=self.config.openai.max_tokens,
                temperature=self.config.openai.temperature,
            )
        except LLMError as exc:
            return GenerationResult(success=False, error=str(exc))

        message = clean_message(raw)
        if not message:
            return GenerationResult(success=False, error="OpenAI returned an empty response")
        commit_type = extract_commit_type_from_message(message) or detect_commit_type(diff, filenames)
        return GenerationResult(
            success=True,
            suggestion=CommitSuggestion(message=message, type=commit_type, confidence=SUGGESTION_CONFIDENCE),
        )

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (0-based)."""
        return self.backoff_base * (2 ** attempt)

    def generate_with_retry(
        self,
        diff: str,
        filenames: Sequence[str],
        max_attempts: Optional[int] = None,
    ) -> GenerationResult:
        """Call :meth:`generate` until it succeeds or attempts run out.

        Intermediate failures are only logged; the returned error names the
        attempt count and the last underlying error.
        """
        attempts = max_attempts if max_attempts is not None else self.config.openai.retries
        attempts = max(1, attempts)
        last_error = "unknown error"
        for attempt in range(attempts):
            result = self.generate(diff, filenames)
            if result.success:
                return result
            last_error = result.error or "unknown error"
            logger.debug("Generation attempt %d/%d failed: %s", attempt + 1, attempts, last_error)
            if attempt < attempts - 1:
                self._sleep(self.backoff_delay(attempt))
        logger.warning("Commit message generation failed after %d attempts", attempts)
        return GenerationResult(
            success=False,
            error=f"Failed after {attempts} attempts. Last error: {last_error}",
        )

