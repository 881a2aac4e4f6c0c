#!/usr/bin/env python3
"""
Memoized top-successor lookups.

Only contexts with many distinct successors are cached, since those are
the ones where ranking successors is expensive. Every entry carries the
counter fingerprint it was computed under; a single stale entry means the
counter changed, so the whole cache is dropped rather than just that key.
"""

import logging
from typing import Dict, List, NamedTuple, Sequence, Tuple

from backoffgram.counter import Counter

logger = logging.getLogger(__name__)

Fingerprint = Tuple[int, int]


class CacheEntry(NamedTuple):
    fingerprint: Fingerprint
    successors: Tuple[int, ...]


def fingerprint(counter: Counter) -> Fingerprint:
    """Cheap summary of the counter that changes whenever it is updated."""
    return (counter.successor_count(), counter.count())


class SuccessorCache:
    """
    Context -> top successors, invalidated wholesale on counter changes.

    Args:
        threshold: Only contexts with more distinct successors than this
                   are stored
    """

    DEFAULT_THRESHOLD = 1000

    def __init__(self, threshold: int = DEFAULT_THRESHOLD):
        self.threshold = threshold
        self._entries: Dict[Tuple[int, ...], CacheEntry] = {}
        self.hits = 0
        self.misses = 0

    def lookup(self, counter: Counter, context: Sequence[int], limit: int) -> List[int]:
        """
        Top ``limit`` successors of ``context``.

        Args:
            counter: Counter the successors come from
            context: Context tokens
            limit: Maximum number of successors

        Returns:
            Successor tokens, most frequent first
        """
        key = tuple(context)
        current = fingerprint(counter)
        entry = self._entries.get(key)

        if entry is not None and entry.fingerprint == current:
            self.hits += 1
            return list(entry.successors)

        self.misses += 1
        if entry is not None:
            logger.debug(
                "Counter changed (%s -> %s); dropping %d cached contexts",
                entry.fingerprint, current, len(self._entries),
            )
            self._entries.clear()

        successors = counter.top_successors(key, limit)
        if counter.successor_count(key) > self.threshold:
            self._entries[key] = CacheEntry(current, tuple(successors))
        return successors

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, context: Sequence[int]) -> bool:
        return tuple(context) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return (
            f"SuccessorCache(entries={len(self._entries)}, "
            f"threshold={self.threshold}, hits={self.hits}, misses={self.misses})"
        )
