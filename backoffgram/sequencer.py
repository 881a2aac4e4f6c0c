#!/usr/bin/env python3
"""
Context window extraction for n-gram counting and querying.

A window is a contiguous run of at most ``order`` tokens. Training uses
forward windows (one starting at every position), queries use the single
window ending at the position being modeled.
"""

from typing import List, Optional, Sequence, Tuple

from backoffgram.config import get_run_config


def _resolve_order(order: Optional[int]) -> int:
    if order is None:
        return get_run_config().order
    if order < 1:
        raise ValueError(f"order must be at least 1, got {order}")
    return order


def sequence_forward(stream: Sequence[int], order: Optional[int] = None) -> List[Tuple[int, ...]]:
    """
    All forward windows of a stream.

    Args:
        stream: Token ids
        order: Maximum window length (None = global run configuration)

    Returns:
        One window per start position, ``order`` tokens long except near
        the end of the stream

    Example:
        >>> sequence_forward([1, 2, 3], order=2)
        [(1, 2), (2, 3), (3,)]
    """
    order = _resolve_order(order)
    n = len(stream)
    return [tuple(stream[start:min(n, start + order)]) for start in range(n)]


def sequence_at(stream: Sequence[int], index: int, order: Optional[int] = None) -> Tuple[int, ...]:
    """
    The window ending at (and including) ``stream[index]``.

    Args:
        stream: Token ids
        index: Position of the last token of the window
        order: Maximum window length (None = global run configuration)

    Returns:
        Up to ``order`` tokens; shorter only near the start of the stream

    Raises:
        IndexError: If index is outside the stream

    Example:
        >>> sequence_at([1, 2, 3, 4], 2, order=2)
        (2, 3)
        >>> sequence_at([1, 2, 3, 4], 0, order=3)
        (1,)
    """
    order = _resolve_order(order)
    if index < 0 or index >= len(stream):
        raise IndexError(
            f"index {index} out of range for stream of length {len(stream)}"
        )
    return tuple(stream[max(0, index - order + 1):index + 1])
