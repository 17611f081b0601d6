"""
In-memory cache for smart split analyses.

The cache maps a fingerprint of an analysis request (the sorted file
set, a prefix of the combined diff and the model parameters) to the
list of :class:`FileGroup` objects produced for it. Entries expire
after a configurable number of minutes and the number of stored
entries is bounded.

One instance lives for the duration of a process and is passed to the
grouping engine explicitly; nothing is persisted to disk.
"""

from __future__ import annotations

import hashlib
import json
import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from commit_wizard.grouping.group_model import FileGroup, copy_groups, unique_paths


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


# Number of diff characters that take part in the fingerprint.
DIFF_FINGERPRINT_LENGTH = 1000
# Fraction of the capacity released when a forced cleanup evicts by age.
EVICTION_RATIO = 0.5


@dataclass
class CacheEntry:
    groups: List[FileGroup]
    timestamp: float
    key: str


@dataclass
class CacheResult:
    hit: bool
    groups: List[FileGroup] = field(default_factory=list)


@dataclass(frozen=True)
class CacheStats:
    size: int
    max_size: int
    enabled: bool


class AnalysisCache:
    """TTL and capacity bounded store of grouping results.

    Parameters
    ----------
    enabled : bool
        When False, :meth:`get` always misses and :meth:`set` is a no-op.
    ttl_minutes : float
        Age after which an entry is treated as absent.
    max_size : int
        Maximum number of stored entries.
    clock : callable, optional
        Returns the current time in seconds. Defaults to :func:`time.time`.
    """

    def __init__(
        self,
        enabled: bool = True,
        ttl_minutes: float = 60,
        max_size: int = 100,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.enabled = enabled
        self.ttl_minutes = ttl_minutes
        self.max_size = max_size
        self._clock = clock or time.time
        self._entries: Dict[str, CacheEntry] = {}

    @classmethod
    def from_config(cls, config, clock: Optional[Callable[[], float]] = None) -> "AnalysisCache":
        return cls(
            enabled=config.cache.enabled,
            ttl_minutes=config.cache.ttl,
            max_size=config.cache.max_size,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Fingerprinting
    # ------------------------------------------------------------------
    @staticmethod
    def make_key(files: Iterable[str], diff: str, model: str, temperature: float) -> str:
        """Return the fingerprint of an analysis request.

        The file set is de-duplicated and sorted so that the key does not
        depend on input order. Paths are compared case sensitively.
        """
        context = {
            "files": sorted(unique_paths(files)),
            "diff": diff[:DIFF_FINGERPRINT_LENGTH],
            "model": model,
            "temperature": temperature,
        }
        payload = json.dumps(context, sort_keys=True, ensure_ascii=False)
        return hashlib.md5(payload.encode("utf-8")).hexdigest()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get(self, key: str) -> CacheResult:
        if not self.enabled:
            return CacheResult(hit=False)
        entry = self._entries.get(key)
        if entry is None:
            logger.debug("Analysis cache miss for %s", key)
            return CacheResult(hit=False)
        if self._is_expired(entry, self._clock()):
            logger.debug("Analysis cache entry %s expired", key)
            del self._entries[key]
            return CacheResult(hit=False)
        logger.debug("Analysis cache hit for %s", key)
        return CacheResult(hit=True, groups=copy_groups(entry.groups))

    def set(self, key: str, groups: List[FileGroup]) -> None:
        if not self.enabled:
            return
        if key not in self._entries and len(self._entries) >= self.max_size:
            self._cleanup()
            if len(self._entries) >= self.max_size:
                logger.debug("Analysis cache full; dropping entry %s", key)
                return
        # Re-inserting moves the key to the end of the insertion order.
        self._entries.pop(key, None)
        self._entries[key] = CacheEntry(groups=copy_groups(groups), timestamp=self._clock(), key=key)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> CacheStats:
        return CacheStats(size=len(self._entries), max_size=self.max_size, enabled=self.enabled)

    def keys(self) -> List[str]:
        return list(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now - entry.timestamp > self.ttl_minutes * 60

    def _cleanup(self) -> None:
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry, now)]
        for key in expired:
            del self._entries[key]
        if len(self._entries) < self.max_size:
            return
        # sorted() is stable, so entries sharing a timestamp keep insertion order
        by_age = sorted(self._entries.values(), key=lambda entry: entry.timestamp)
        to_remove = by_age[: math.ceil(self.max_size * EVICTION_RATIO)]
        for entry in to_remove:
            del self._entries[entry.key]
        logger.debug(
            "Analysis cache cleanup removed %d expired and %d old entries",
            len(expired),
            len(to_remove),
        )
