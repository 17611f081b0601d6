"""
Smart split: grouping staged files into logical commits.

The :class:`GroupingEngine` asks the language model to partition the
staged files into groups of related changes. It consults the
:class:`~commit_wizard.grouping.cache.AnalysisCache` first, picks a
prompt based on the size of the combined diff, validates the model's
JSON reply and repairs it so that every staged file ends up in exactly
one group.

Transport failures are raised as :class:`GroupingError`. A reply that
cannot be parsed is either replaced by the local path heuristic (the
default) or raised as well, depending on
``smart_split.heuristic_fallback``.
"""

from __future__ import annotations

import enum
import json
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, List, Optional, Sequence

from commit_wizard.grouping.cache import AnalysisCache
from commit_wizard.grouping.change_classifier import group_by_path
from commit_wizard.grouping.group_model import (
    DEFAULT_GROUP_DESCRIPTION,
    DEFAULT_GROUP_NAME,
    FileGroup,
    clamp_confidence,
    new_group_id,
    unique_paths,
)
from commit_wizard.llm.openai_client import LLMError, OpenAIClient


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# Above this many diff characters only file names are sent.
FALLBACK_PROMPT_THRESHOLD = 6000
# Diff characters included in the context prompt.
CONTEXT_DIFF_LIMIT = 8000
CLASSIFICATION_MAX_TOKENS = 800
CLASSIFICATION_TEMPERATURE = 0.3
REMAINING_GROUP_NAME = "Remaining changes"


class GroupingError(Exception):
    """Raised when the staged files could not be grouped."""

    def __init__(self, cause: str) -> None:
        self.cause = cause
        super().__init__(cause)


class ClassificationStatus(enum.Enum):
    OK = "ok"
    MALFORMED = "malformed"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class Classification:
    """Parsed classifier reply.

    ``groups`` holds the raw group objects when ``status`` is OK;
    ``reason`` explains a MALFORMED reply or a failed request.
    """

    status: ClassificationStatus
    groups: List[Any] = field(default_factory=list)
    reason: str = ""


# ----------------------------------------------------------------------
# Prompts
# ----------------------------------------------------------------------
_RESPONSE_FORMAT = """{{
  "groups": [
    {{
      "id": "group-1",
      "name": "Group name",
      "description": "Short description",
      "files": ["file1.py", "file2.py"],
      "confidence": {confidence}
    }}
  ]
}}"""


def _extension_stats(files: Sequence[str]) -> str:
    counts: "OrderedDict[str, int]" = OrderedDict()
    for path in files:
        suffix = PurePosixPath(path).suffix.lstrip(".") or "no-extension"
        counts[suffix] = counts.get(suffix, 0) + 1
    return ", ".join(f"{ext}: {count}" for ext, count in counts.items())


def build_context_analysis_prompt(files: Sequence[str], overall_diff: str, max_groups: int) -> str:
    """Prompt that includes the (truncated) combined diff."""
    if len(overall_diff) > CONTEXT_DIFF_LIMIT:
        diff = overall_diff[:CONTEXT_DIFF_LIMIT] + "\n... (diff truncated)"
    else:
        diff = overall_diff
    return (
        "Analyse the modified files and group them into logical commits.\n\n"
        f"FILES ({len(files)}): {', '.join(files)}\n"
        f"TYPES: {_extension_stats(files)}\n\n"
        f"DIFF SUMMARY:\n```\n{diff}\n```\n\n"
        f"Group related files. At most {max_groups} groups. "
        "Every file must appear in exactly one group. Answer in JSON:\n"
        + _RESPONSE_FORMAT.format(confidence=0.8)
    )


def build_fallback_prompt(files: Sequence[str], max_groups: int) -> str:
    """Prompt that only lists file names, grouped by directory."""
    by_dir: "OrderedDict[str, int]" = OrderedDict()
    for path in files:
        directory = str(PurePosixPath(path).parent)
        directory = "root" if directory == "." else directory
        by_dir[directory] = by_dir.get(directory, 0) + 1
    dir_stats = "\n".join(f"{directory}: {count} file(s)" for directory, count in by_dir.items())
    return (
        "Group these files into logical commits based on their directories:\n\n"
        f"FILES BY DIRECTORY:\n{dir_stats}\n\n"
        f"FULL LIST: {', '.join(files)}\n\n"
        f"Group by related functionality. At most {max_groups} groups. "
        "Every file must appear in exactly one group. JSON:\n"
        + _RESPONSE_FORMAT.format(confidence=0.7)
    )


# ----------------------------------------------------------------------
# Reply parsing and repair
# ----------------------------------------------------------------------
def _first_json_object(text: str) -> Optional[Any]:
    """Return the first well-formed JSON object embedded in ``text``."""
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            start = text.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = text.find("{", start + 1)
    return None


def parse_classification(content: str) -> Classification:
    """Parse the classifier's free-text reply into a :class:`Classification`."""
    data = _first_json_object(content)
    if data is None:
        return Classification(ClassificationStatus.MALFORMED, reason="response contains no JSON object")
    groups = data.get("groups")
    if not isinstance(groups, list):
        return Classification(ClassificationStatus.MALFORMED, reason="'groups' is missing or not a list")
    return Classification(ClassificationStatus.OK, groups=groups)


def _text_or(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def build_groups(raw_groups: Sequence[Any], files: Sequence[str]) -> List[FileGroup]:
    """Turn raw classifier groups into a complete partition of ``files``.

    Paths unknown to the input and paths already claimed by an earlier
    group are discarded, empty groups are dropped, and input files the
    classifier forgot are appended to the first group.
    """
    wanted = set(files)
    claimed = set()
    used_ids = set()
    groups: List[FileGroup] = []

    for raw in raw_groups:
        if not isinstance(raw, dict):
            logger.debug("Ignoring non-object group entry: %r", raw)
            continue
        raw_files = raw.get("files")
        members: List[str] = []
        if isinstance(raw_files, list):
            for path in raw_files:
                if isinstance(path, str) and path in wanted and path not in claimed:
                    claimed.add(path)
                    members.append(path)
        if not members:
            continue
        group_id = raw.get("id")
        if not isinstance(group_id, str) or not group_id.strip() or group_id in used_ids:
            group_id = new_group_id()
        used_ids.add(group_id)
        groups.append(
            FileGroup(
                id=group_id,
                name=_text_or(raw.get("name"), DEFAULT_GROUP_NAME),
                description=_text_or(raw.get("description"), DEFAULT_GROUP_DESCRIPTION),
                files=members,
                confidence=clamp_confidence(raw.get("confidence")),
            )
        )

    missing = [path for path in files if path not in claimed]
    if missing:
        logger.debug("Classifier left out %d file(s): %s", len(missing), missing)
        if groups:
            groups[0].files.extend(missing)
        else:
            groups.append(
                FileGroup(
                    name=REMAINING_GROUP_NAME,
                    description="Files the classifier did not assign to a group",
                    files=list(missing),
                )
            )
    return groups


def _merge_smallest(groups: List[FileGroup]) -> None:
    """Merge the smallest group into the next smallest one, in place.

    Size is the number of files; on ties the later group counts as
    smaller. The receiving group keeps its position, id and name, gains
    the files in order and keeps the lower of the two confidences.
    """
    order = sorted(range(len(groups)), key=lambda i: (len(groups[i].files), -i))
    source_index, target_index = order[0], order[1]
    source = groups[source_index]
    target = groups[target_index]
    target.files.extend(source.files)
    target.confidence = min(target.confidence, source.confidence)
    del groups[source_index]


def enforce_group_limits(groups: List[FileGroup], max_groups: int, min_group_size: int = 1) -> List[FileGroup]:
    """Merge groups until the count and minimum size limits hold."""
    groups = list(groups)
    max_groups = max(1, max_groups)
    while len(groups) > 1 and (
        len(groups) > max_groups or min(len(group.files) for group in groups) < min_group_size
    ):
        _merge_smallest(groups)
    return groups


# ----------------------------------------------------------------------
# Engine
# ----------------------------------------------------------------------
class GroupingEngine:
    """Partition staged files into commit groups.

    Parameters
    ----------
    client : OpenAIClient
        Client used for the classification request.
    config : WizardConfig
        Run configuration.
    cache : AnalysisCache, optional
        Shared analysis cache. When omitted a private one is built from
        ``config.cache``.
    """

    def __init__(self, client: OpenAIClient, config, cache: Optional[AnalysisCache] = None) -> None:
        self.client = client
        self.config = config
        self.cache = cache if cache is not None else AnalysisCache.from_config(config)

    def cache_key(self, files: Sequence[str], combined_diff: str) -> str:
        return AnalysisCache.make_key(
            files,
            combined_diff,
            self.config.openai.model,
            self.config.openai.temperature,
        )

    def build_prompt(self, files: Sequence[str], combined_diff: str) -> str:
        max_groups = self.config.smart_split.max_groups
        if len(combined_diff) > FALLBACK_PROMPT_THRESHOLD:
            logger.warning(
                "Diff too large (%d chars); grouping by file names only",
                len(combined_diff),
            )
            return build_fallback_prompt(files, max_groups)
        return build_context_analysis_prompt(files, combined_diff, max_groups)

    def classify(self, files: Sequence[str], combined_diff: str) -> Classification:
        """Send the classification request and parse the reply.

        A failed request comes back as TRANSPORT_ERROR rather than raising.
        """
        prompt = self.build_prompt(files, combined_diff)
        try:
            content = self.client.complete(
                prompt,
                max_tokens=CLASSIFICATION_MAX_TOKENS,
                temperature=CLASSIFICATION_TEMPERATURE,
            )
        except LLMError as exc:
            return Classification(ClassificationStatus.TRANSPORT_ERROR, reason=str(exc))
        return parse_classification(content)

    def group(self, files: Sequence[str], combined_diff: str) -> List[FileGroup]:
        """Return an ordered list of groups covering every file exactly once.

        Raises
        ------
        GroupingError
            If the API key is missing, the request fails, or the reply is
            malformed and the heuristic fallback is disabled.
        """
        files = unique_paths(files)
        if not files:
            return []
        if not self.config.openai.api_key:
            raise GroupingError("OpenAI API key not found")

        split_config = self.config.smart_split
        key = self.cache_key(files, combined_diff)
        cached = self.cache.get(key)
        if cached.hit:
            logger.debug("Reusing cached analysis for %d file(s)", len(files))
            return cached.groups

        classification = self.classify(files, combined_diff)
        if classification.status is ClassificationStatus.TRANSPORT_ERROR:
            raise GroupingError(f"Context analysis failed: {classification.reason}")
        if classification.status is ClassificationStatus.MALFORMED:
            if not split_config.heuristic_fallback:
                raise GroupingError(f"Invalid response from the classifier: {classification.reason}")
            logger.warning(
                "Classifier reply unusable (%s); grouping by path instead",
                classification.reason,
            )
            groups = group_by_path(files)
            return enforce_group_limits(groups, split_config.max_groups, split_config.min_group_size)

        groups = build_groups(classification.groups, files)
        groups = enforce_group_limits(groups, split_config.max_groups, split_config.min_group_size)
        self.cache.set(key, groups)
        return groups


def low_confidence_groups(groups: Sequence[FileGroup], threshold: float) -> List[FileGroup]:
    return [group for group in groups if group.confidence < threshold]

