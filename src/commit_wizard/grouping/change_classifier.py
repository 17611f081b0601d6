"""
Heuristics for classifying changes without a language model.

Two helpers live here:

* :func:`detect_commit_type` infers a Conventional Commit type from a
  diff and the names of the changed files. It is used when the model's
  message carries no recognisable type prefix.
* :func:`group_by_path` partitions a file list into groups using only
  path information. The grouping engine falls back to it when the
  remote classifier returns something that cannot be parsed.

Both are intentionally simple and deterministic so that they can be
unit tested without a language model.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Tuple

from commit_wizard.grouping.group_model import FileGroup, new_group_id, unique_paths


COMMIT_TYPES = ("feat", "fix", "docs", "style", "refactor", "test", "chore", "build", "ci")

HEURISTIC_CONFIDENCE = 0.4

_DOC_SUFFIXES = {".md", ".rst", ".txt", ".adoc"}
_STYLE_SUFFIXES = {".css", ".scss", ".sass", ".less"}
_BUILD_NAMES = {
    "dockerfile",
    "docker-compose.yml",
    "package.json",
    "pyproject.toml",
    "setup.py",
    "setup.cfg",
    "makefile",
    "tsconfig.json",
}


def classify_path(file_path: str) -> str:
    """Return the category of ``file_path`` based on its name alone.

    Returns one of ``docs``, ``test``, ``ci``, ``build``, ``style`` or
    ``source``.
    """
    path = PurePosixPath(file_path)
    name = path.name.lower()
    parts = [part.lower() for part in path.parts]

    if ".github" in parts or name in {".gitlab-ci.yml", ".travis.yml"}:
        return "ci"
    if (
        name.startswith("test_")
        or name.endswith(("_test.py", ".test.ts", ".test.js", ".spec.ts", ".spec.js"))
        or "tests" in parts
        or "__tests__" in parts
    ):
        return "test"
    if path.suffix.lower() in _DOC_SUFFIXES or "docs" in parts[:-1]:
        return "docs"
    if name in _BUILD_NAMES or path.suffix.lower() in {".yml", ".yaml"}:
        return "build"
    if path.suffix.lower() in _STYLE_SUFFIXES:
        return "style"
    return "source"


def detect_commit_type(diff: str, filenames: Iterable[str]) -> str:
    """Infer a Conventional Commit type from a diff and file names.

    The checks run in a fixed order (tests, docs, build, style, fix,
    feat, refactor) and the first match wins; ``chore`` is the default.
    """
    diff_lower = diff.lower()
    files_str = " ".join(filenames).lower()

    if "test" in files_str or "spec" in files_str or "test(" in diff_lower:
        return "test"
    if "readme" in files_str or ".md" in files_str or "docs" in files_str:
        return "docs"
    if any(token in files_str for token in ("package.json", "dockerfile", ".yml", ".yaml", "webpack", "tsconfig", "pyproject.toml")):
        return "build"
    if ".css" in files_str or ".scss" in files_str or "style" in diff_lower or "format" in diff_lower:
        return "style"
    if re.search(r"fix|bug|error|issue", diff_lower):
        return "fix"
    if re.search(r"add|new|create|implement", diff_lower):
        return "feat"
    if re.search(r"refactor|restructure|rename", diff_lower):
        return "refactor"
    return "chore"


_CATEGORY_LABELS: Dict[str, Tuple[str, str]] = {
    "docs": ("Documentation", "Documentation updates"),
    "test": ("Tests", "Test additions and changes"),
    "ci": ("Continuous integration", "CI pipeline configuration"),
    "build": ("Build configuration", "Build and dependency configuration"),
    "style": ("Styles", "Stylesheet changes"),
}


def _top_directory(file_path: str) -> str:
    parts = PurePosixPath(file_path).parts
    return parts[0] if len(parts) > 1 else "root"


def group_by_path(files: Iterable[str]) -> List[FileGroup]:
    """Partition ``files`` into groups using path heuristics only.

    Non-source categories (docs, tests, CI, build, styles) each form one
    group; source files are grouped by their top-level directory. Groups
    appear in the order their first file appears in ``files``.
    """
    buckets: Dict[str, List[str]] = {}
    labels: Dict[str, Tuple[str, str]] = {}
    for file_path in unique_paths(files):
        category = classify_path(file_path)
        if category == "source":
            directory = _top_directory(file_path)
            bucket = f"source:{directory}"
            labels.setdefault(bucket, (f"Changes in {directory}", f"Source changes under {directory}"))
        else:
            bucket = category
            labels.setdefault(bucket, _CATEGORY_LABELS[category])
        buckets.setdefault(bucket, []).append(file_path)

    groups: List[FileGroup] = []
    for bucket, paths in buckets.items():
        name, description = labels[bucket]
        groups.append(
            FileGroup(
                id=new_group_id(),
                name=name,
                description=description,
                files=paths,
                confidence=HEURISTIC_CONFIDENCE,
            )
        )
    return groups
