#!/usr/bin/env python3
"""
Smoothing strategies for a single context length.

A strategy turns the counts of one sequence (context + target token) into
an ``Estimate``: the probability of the target given the context, and a
confidence saying how much of the probability mass this context length
should claim before shorter contexts are consulted.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, NamedTuple, Optional, Sequence, Type

from backoffgram.counter import Counter

logger = logging.getLogger(__name__)


class Estimate(NamedTuple):
    """Probability of a token with the confidence of that probability."""
    probability: float
    confidence: float


NO_ESTIMATE = Estimate(0.0, 0.0)


class SmoothingStrategy(ABC):
    """Context-length-specific probability/confidence function."""

    name = "abstract"

    @abstractmethod
    def estimate(self, counter: Counter, sequence: Sequence[int]) -> Estimate:
        """
        Estimate ``sequence[-1]`` given ``sequence[:-1]``.

        Args:
            counter: Counts to read
            sequence: Context followed by the target token

        Returns:
            Estimate; ``(0, 0)`` if the context was never followed by anything
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class JelinekMercer(SmoothingStrategy):
    """
    Linear interpolation with a fixed weight per context length.

    Every seen context claims the same share ``lambda_`` of the remaining
    mass, so this reduces to classic Jelinek-Mercer interpolation once the
    backoff model folds lengths together.

    Example:
        >>> from backoffgram.counter import HashCounter
        >>> counter = HashCounter()
        >>> counter.add_aggressive([1, 2])
        >>> JelinekMercer().estimate(counter, [1, 2])
        Estimate(probability=1.0, confidence=0.5)
    """

    name = "jm"

    def __init__(self, lambda_: float = 0.5):
        if not 0.0 < lambda_ <= 1.0:
            raise ValueError(f"lambda_ must be in (0, 1], got {lambda_}")
        self.lambda_ = lambda_

    def estimate(self, counter: Counter, sequence: Sequence[int]) -> Estimate:
        count, context_count = counter.counts(sequence)
        if context_count == 0:
            return NO_ESTIMATE
        return Estimate(count / context_count, self.lambda_)

    def __repr__(self) -> str:
        return f"JelinekMercer(lambda_={self.lambda_})"


class WittenBell(SmoothingStrategy):
    """
    Witten-Bell: confidence grows with how often the context was seen
    relative to how many different tokens followed it.
    """

    name = "wb"

    def estimate(self, counter: Counter, sequence: Sequence[int]) -> Estimate:
        count, context_count = counter.counts(sequence)
        if context_count == 0:
            return NO_ESTIMATE
        n1plus = sum(counter.distinct_counts(tuple(sequence)[:-1]))
        confidence = context_count / (context_count + n1plus)
        return Estimate(count / context_count, confidence)


class AbsoluteDiscounting(SmoothingStrategy):
    """
    Absolute discounting.

    Subtracts a fixed discount ``D`` from every observed count; the freed
    mass is what shorter contexts get to fill. Unless given, ``D`` is
    estimated per length from count-of-counts as ``n1 / (n1 + 2 * n2)``.
    """

    name = "ad"

    DEFAULT_DISCOUNT = 0.5

    def __init__(self, discount: Optional[float] = None):
        if discount is not None and not 0.0 <= discount < 1.0:
            raise ValueError(f"discount must be in [0, 1), got {discount}")
        self.discount = discount

    def _discount(self, counter: Counter, length: int) -> float:
        if self.discount is not None:
            return self.discount
        n1 = counter.count_of_counts(length, 1)
        n2 = counter.count_of_counts(length, 2)
        if n1 == 0:
            return self.DEFAULT_DISCOUNT
        # Capped below 1 so the context always keeps some confidence
        return min(n1 / (n1 + 2 * n2), 0.99)

    def estimate(self, counter: Counter, sequence: Sequence[int]) -> Estimate:
        count, context_count = counter.counts(sequence)
        if context_count == 0:
            return NO_ESTIMATE
        d = self._discount(counter, len(sequence))
        n1plus = sum(counter.distinct_counts(tuple(sequence)[:-1]))
        confidence = 1.0 - n1plus * d / context_count
        mle = max(count - d, 0.0) / context_count
        return Estimate(mle / confidence, confidence)

    def __repr__(self) -> str:
        return f"AbsoluteDiscounting(discount={self.discount})"


# Registered strategies
STRATEGIES: Dict[str, Type[SmoothingStrategy]] = {
    'jm': JelinekMercer,
    'wb': WittenBell,
    'ad': AbsoluteDiscounting,
}

DEFAULT_STRATEGY = 'jm'


def get_strategy_class(name: str) -> Type[SmoothingStrategy]:
    """
    Get a strategy class by name.

    Args:
        name: Strategy name ('jm', 'wb', 'ad')

    Returns:
        Strategy class

    Raises:
        ValueError: If name is not recognized

    Example:
        >>> get_strategy_class('wb')
        <class 'backoffgram.smoothing.WittenBell'>
    """
    if name not in STRATEGIES:
        raise ValueError(
            f"Unknown smoothing strategy '{name}'. "
            f"Available: {list(STRATEGIES.keys())}"
        )
    return STRATEGIES[name]


class StrategyResolution(NamedTuple):
    """Outcome of building a strategy by name."""
    strategy: SmoothingStrategy
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_strategy(name: str, **params) -> StrategyResolution:
    """
    Build a strategy by name, falling back to the default on failure.

    The fallback is ``JelinekMercer()`` with default parameters. Failures
    are logged and reported in ``StrategyResolution.error`` instead of
    raised.

    Args:
        name: Registered strategy name
        **params: Constructor arguments for the strategy

    Returns:
        StrategyResolution

    Example:
        >>> resolve_strategy('wb').ok
        True
        >>> result = resolve_strategy('nope')
        >>> result.ok, result.strategy
        (False, JelinekMercer(lambda_=0.5))
    """
    try:
        cls = get_strategy_class(name)
        return StrategyResolution(cls(**params))
    except (ValueError, TypeError) as e:
        logger.warning(
            "Could not build smoothing strategy %r (%s); using %s",
            name, e, DEFAULT_STRATEGY,
        )
        return StrategyResolution(STRATEGIES[DEFAULT_STRATEGY](), str(e))
