"""
Data models for commit grouping.

A :class:`FileGroup` represents a set of staged files that should be
committed together. Groups are produced by the smart split engine (or
the local path heuristic), may be edited by the user, and are consumed
once by the commit orchestrator.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List


DEFAULT_GROUP_NAME = "Unnamed group"
DEFAULT_GROUP_DESCRIPTION = "No description"
DEFAULT_CONFIDENCE = 0.5


def new_group_id() -> str:
    """Return a fresh, never reused group identifier."""
    return f"group-{uuid.uuid4().hex[:12]}"


def unique_paths(paths: Iterable[str]) -> List[str]:
    """Return ``paths`` without duplicates, keeping first occurrences."""
    seen = set()
    result: List[str] = []
    for path in paths:
        if path not in seen:
            seen.add(path)
            result.append(path)
    return result


def clamp_confidence(value: Any, default: float = DEFAULT_CONFIDENCE) -> float:
    """Coerce ``value`` into a float in ``[0, 1]``.

    Booleans and non numeric values fall back to ``default``.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return min(1.0, max(0.0, float(value)))


@dataclass
class FileGroup:
    """A group of files destined for a single commit.

    Attributes
    ----------
    id : str
        Opaque unique identifier.
    name : str
        Human readable label.
    description : str
        Short explanation of why the files belong together.
    files : List[str]
        Repository relative paths, in commit order.
    diff : str
        Reconstructed diff for exactly these files. Empty until diff
        reconstruction runs.
    confidence : float
        Heuristic quality score in ``[0, 1]``.
    """

    id: str = field(default_factory=new_group_id)
    name: str = DEFAULT_GROUP_NAME
    description: str = DEFAULT_GROUP_DESCRIPTION
    files: List[str] = field(default_factory=list)
    diff: str = ""
    confidence: float = DEFAULT_CONFIDENCE

    def copy(self) -> "FileGroup":
        return FileGroup(
            id=self.id,
            name=self.name,
            description=self.description,
            files=list(self.files),
            diff=self.diff,
            confidence=self.confidence,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "files": list(self.files),
            "diff": self.diff,
            "confidence": self.confidence,
        }


def copy_groups(groups: Iterable[FileGroup]) -> List[FileGroup]:
    return [group.copy() for group in groups]
