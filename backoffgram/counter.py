#!/usr/bin/env python3
"""
Frequency counting over token sequences.

Counters store every training window together with all of its prefixes
("aggressive" insertion), so the count of any context of any length is
available directly when backing off.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple


class Counter(ABC):
    """
    Abstract multiset of token sequences.

    The backoff model only mutates a counter through ``add_aggressive`` and
    ``remove_aggressive``. Smoothing strategies read it through
    ``counts``, ``distinct_counts`` and ``count_of_counts``.
    """

    @abstractmethod
    def add_aggressive(self, sequence: Sequence[int]) -> None:
        """Count ``sequence`` and every non-empty prefix of it once."""
        pass

    @abstractmethod
    def remove_aggressive(self, sequence: Sequence[int]) -> None:
        """Undo one ``add_aggressive(sequence)``."""
        pass

    @abstractmethod
    def count(self) -> int:
        """Total number of counted tokens (unigram events)."""
        pass

    @abstractmethod
    def successor_count(self, context: Optional[Sequence[int]] = None) -> int:
        """
        Number of distinct successors.

        Args:
            context: Context to inspect (None = sum over all stored contexts)
        """
        pass

    @abstractmethod
    def top_successors(self, context: Sequence[int], limit: int) -> List[int]:
        """Most frequent successors of ``context``, most frequent first."""
        pass

    @abstractmethod
    def context_count(self, context: Sequence[int]) -> int:
        """How often ``context`` was followed by any token."""
        pass

    @abstractmethod
    def distinct_counts(self, context: Sequence[int], cutoff: int = 3) -> List[int]:
        """Successors of ``context`` bucketed by count: 1, 2, ..., ``cutoff``+."""
        pass

    @abstractmethod
    def count_of_counts(self, length: int, count: int) -> int:
        """Number of distinct ``length``-token sequences seen exactly ``count`` times."""
        pass

    def counts(self, sequence: Sequence[int]) -> Tuple[int, int]:
        """
        Count of a sequence and of its context.

        Returns:
            (times ``sequence`` was seen, times ``sequence[:-1]`` was followed
            by any token)
        """
        seq = tuple(sequence)
        context = seq[:-1]
        return self.sequence_count(seq), self.context_count(context)

    @abstractmethod
    def sequence_count(self, sequence: Sequence[int]) -> int:
        """How often ``sequence`` was seen (0 if never)."""
        pass

    def vocabulary_size(self) -> int:
        """Number of distinct tokens seen."""
        return self.successor_count(())


class HashCounter(Counter):
    """
    Hash-table counter keyed by context tuples.

    For every stored context (including the empty one) keeps a table of
    successor token -> count and the sum of that table, plus per-length
    count-of-counts so discount estimates stay O(1).

    Example:
        >>> counter = HashCounter()
        >>> counter.add_aggressive([1, 2])
        >>> counter.counts([1, 2])
        (1, 1)
        >>> counter.top_successors([1], limit=5)
        [2]
    """

    def __init__(self):
        self._successors: Dict[Tuple[int, ...], Dict[int, int]] = {}
        self._context_totals: Dict[Tuple[int, ...], int] = {}
        self._count_of_counts: Dict[Tuple[int, int], int] = defaultdict(int)
        self._distinct = 0

    def add_aggressive(self, sequence: Sequence[int]) -> None:
        seq = tuple(sequence)
        for length in range(1, len(seq) + 1):
            self._update(seq[:length - 1], seq[length - 1], 1)

    def remove_aggressive(self, sequence: Sequence[int]) -> None:
        seq = tuple(sequence)
        if not seq:
            return
        # Prefix counts are never below the full sequence count, so this
        # check covers the whole fan-out before anything is mutated.
        if self.sequence_count(seq) < 1:
            raise ValueError(f"Cannot remove {list(seq)}: sequence was not counted")
        for length in range(len(seq), 0, -1):
            self._update(seq[:length - 1], seq[length - 1], -1)

    def _update(self, context: Tuple[int, ...], token: int, delta: int) -> None:
        table = self._successors.get(context)
        if table is None:
            table = self._successors[context] = {}
            self._context_totals[context] = 0

        length = len(context) + 1
        old = table.get(token, 0)
        new = old + delta

        if old > 0:
            self._count_of_counts[(length, old)] -= 1
            if self._count_of_counts[(length, old)] == 0:
                del self._count_of_counts[(length, old)]
        if new > 0:
            self._count_of_counts[(length, new)] += 1
            table[token] = new
        else:
            del table[token]

        if old == 0:
            self._distinct += 1
        elif new == 0:
            self._distinct -= 1

        self._context_totals[context] += delta
        if not table:
            del self._successors[context]
            del self._context_totals[context]

    def count(self) -> int:
        return self._context_totals.get((), 0)

    def successor_count(self, context: Optional[Sequence[int]] = None) -> int:
        if context is None:
            return self._distinct
        return len(self._successors.get(tuple(context), ()))

    def sequence_count(self, sequence: Sequence[int]) -> int:
        seq = tuple(sequence)
        if not seq:
            return self.count()
        return self._successors.get(seq[:-1], {}).get(seq[-1], 0)

    def context_count(self, context: Sequence[int]) -> int:
        return self._context_totals.get(tuple(context), 0)

    def top_successors(self, context: Sequence[int], limit: int) -> List[int]:
        table = self._successors.get(tuple(context))
        if not table or limit <= 0:
            return []
        ranked = sorted(table.items(), key=lambda x: (-x[1], x[0]))
        return [token for token, _ in ranked[:limit]]

    def distinct_counts(self, context: Sequence[int], cutoff: int = 3) -> List[int]:
        buckets = [0] * cutoff
        for count in self._successors.get(tuple(context), {}).values():
            buckets[min(count, cutoff) - 1] += 1
        return buckets

    def count_of_counts(self, length: int, count: int) -> int:
        return self._count_of_counts.get((length, count), 0)

    def __len__(self) -> int:
        return self._distinct

    def __repr__(self) -> str:
        return f"HashCounter(count={self.count()}, distinct={self._distinct})"
