#!/usr/bin/env python3
"""
Backoff n-gram language model with online training.

Probabilities are blended across every suffix of the context window, from
the longest (most specific) down to the unigram. Each length contributes
its estimate weighted by its confidence, but only into the share of the
mass that longer contexts left uncertain.
"""

import logging
from typing import Dict, List, Optional, Sequence

from backoffgram.cache import SuccessorCache
from backoffgram.config import RunConfig, get_run_config
from backoffgram.counter import Counter, HashCounter
from backoffgram.sequencer import sequence_at, sequence_forward
from backoffgram.smoothing import (
    DEFAULT_STRATEGY,
    Estimate,
    NO_ESTIMATE,
    SmoothingStrategy,
    resolve_strategy,
)

logger = logging.getLogger(__name__)


class BackoffModel:
    """
    Backoff n-gram model over integer token streams.

    The model owns no counts itself: training fans each window out into
    the counter (window plus all prefixes), and estimation asks the
    smoothing strategy for one estimate per context length.

    Usage:
        >>> from backoffgram.config import RunConfig
        >>> model = create_model('jm', config=RunConfig(order=2))
        >>> model.learn([1, 2, 3, 1, 2, 4])
        >>> model.model_token([1, 2, 3], 2)
        Estimate(probability=0.388..., confidence=0.75)
        >>> sorted(model.predict_token([1, 2, 0], 2))
        [1, 2, 3, 4]

    Args:
        strategy: Smoothing strategy for single context lengths
        counter: Counter to wrap (None = new empty HashCounter)
        config: Run configuration (None = global configuration, read at
                every call)
        cache_threshold: Minimum distinct successors for a context's
                         top-successor list to be cached
    """

    def __init__(
        self,
        strategy: SmoothingStrategy,
        counter: Optional[Counter] = None,
        config: Optional[RunConfig] = None,
        cache_threshold: int = SuccessorCache.DEFAULT_THRESHOLD
    ):
        self.strategy = strategy
        self.counter = counter if counter is not None else HashCounter()
        self._config = config
        self.cache = SuccessorCache(threshold=cache_threshold)

    @property
    def config(self) -> RunConfig:
        """Run configuration in effect for this model."""
        return self._config if self._config is not None else get_run_config()

    @property
    def order(self) -> int:
        return self.config.order

    # === Training ===

    def learn(self, stream: Sequence[int]) -> None:
        """Count every window of ``stream``."""
        windows = sequence_forward(stream, self.order)
        for window in windows:
            self.counter.add_aggressive(window)
        logger.debug("Learned %d windows", len(windows))

    def learn_token(self, stream: Sequence[int], index: int) -> None:
        """
        Count the window ending at ``index``.

        Windows shorter than the order are only counted at the last
        position of the stream, so a stream fed in one token at a time is
        not counted while its first window is still growing.
        """
        window = sequence_at(stream, index, self.order)
        if self._is_complete(window, stream, index):
            self.counter.add_aggressive(window)

    def forget(self, stream: Sequence[int]) -> None:
        """
        Undo ``learn(stream)``.

        All or nothing: if the counter rejects a window, the windows already
        removed are added back before the error propagates.

        Raises:
            ValueError: If some window of ``stream`` was never learned
        """
        windows = sequence_forward(stream, self.order)
        removed = []
        try:
            for window in windows:
                self.counter.remove_aggressive(window)
                removed.append(window)
        except ValueError:
            for window in reversed(removed):
                self.counter.add_aggressive(window)
            raise
        logger.debug("Forgot %d windows", len(windows))

    def forget_token(self, stream: Sequence[int], index: int) -> None:
        """Undo ``learn_token(stream, index)``."""
        window = sequence_at(stream, index, self.order)
        if self._is_complete(window, stream, index):
            self.counter.remove_aggressive(window)

    def _is_complete(self, window, stream: Sequence[int], index: int) -> bool:
        return len(window) == self.order or index == len(stream) - 1

    # === Estimation ===

    def model_token(self, stream: Sequence[int], index: int) -> Estimate:
        """
        Probability of ``stream[index]`` given the tokens before it.

        Args:
            stream: Token ids
            index: Position of the token to estimate

        Returns:
            Estimate with the probability normalized over the candidate
            space and the accumulated confidence; ``(0, 0)`` if no context
            length has data

        Raises:
            IndexError: If index is outside the stream
        """
        window = sequence_at(stream, index, self.order)
        probability, confidence = 0.0, 0.0

        for length in range(len(window), 0, -1):
            local = self.strategy.estimate(self.counter, window[-length:])
            probability += local.probability * local.confidence * (1.0 - confidence)
            confidence = confidence + local.confidence - confidence * local.confidence

        if confidence <= 0.0:
            return NO_ESTIMATE
        return Estimate(min(probability / confidence, 1.0), confidence)

    def predict_token(self, stream: List[int], index: int) -> Dict[int, Estimate]:
        """
        Candidate tokens for position ``index`` with their estimates.

        Candidates are the top successors (up to the prediction cutoff) of
        every suffix of the context before ``index``, down to the empty
        context. Each one is scored by substituting it into ``stream`` at
        ``index``; the original token is always put back.
        Unlike ``model_token``, whose window ends at ``index``, candidates
        are drawn from the context strictly before ``index``.

        Args:
            stream: Mutable list of token ids; ``stream[index]`` is ignored
            index: Position to predict

        Returns:
            Dict mapping candidate token -> Estimate (unordered)

        Raises:
            IndexError: If index is outside the stream
        """
        context = sequence_at(stream, index, self.order)[:-1]
        limit = self.config.prediction_cutoff

        candidates = {}
        for length in range(len(context), -1, -1):
            suffix = context[len(context) - length:]
            for token in self.cache.lookup(self.counter, suffix, limit):
                candidates.setdefault(token, None)

        predictions = {token: self._substituted(stream, index, token) for token in candidates}
        logger.debug("Predicted %d candidates at index %d", len(predictions), index)
        return predictions

    def _substituted(self, stream: List[int], index: int, token: int) -> Estimate:
        original = stream[index]
        stream[index] = token
        try:
            return self.model_token(stream, index)
        finally:
            stream[index] = original

    # === Whole-stream helpers ===

    def model_stream(self, stream: Sequence[int]) -> List[Estimate]:
        """``model_token`` at every position."""
        return [self.model_token(stream, i) for i in range(len(stream))]

    def predict_stream(self, stream: Sequence[int]) -> List[Dict[int, Estimate]]:
        """``predict_token`` at every position (on a copy of ``stream``)."""
        tokens = list(stream)
        return [self.predict_token(tokens, i) for i in range(len(tokens))]

    def stats(self) -> Dict[str, object]:
        """Summary of the model state."""
        return {
            'strategy': repr(self.strategy),
            'order': self.order,
            'prediction_cutoff': self.config.prediction_cutoff,
            'count': self.counter.count(),
            'successor_count': self.counter.successor_count(),
            'vocabulary_size': self.counter.vocabulary_size(),
            'cached_contexts': len(self.cache),
        }

    def __repr__(self) -> str:
        return (
            f"BackoffModel(strategy={self.strategy!r}, order={self.order}, "
            f"count={self.counter.count()})"
        )


def create_model(
    strategy: str = DEFAULT_STRATEGY,
    counter: Optional[Counter] = None,
    config: Optional[RunConfig] = None,
    **params
) -> BackoffModel:
    """
    Convenience function to create a model with a named strategy.

    An unknown name or bad parameters fall back to the default
    Jelinek-Mercer strategy with a logged warning.

    Args:
        strategy: Registered strategy name ('jm', 'wb', 'ad')
        counter: Counter to wrap (None = new HashCounter)
        config: Run configuration (None = global)
        **params: Strategy constructor arguments

    Returns:
        BackoffModel
    """
    resolution = resolve_strategy(strategy, **params)
    return BackoffModel(resolution.strategy, counter=counter, config=config)
