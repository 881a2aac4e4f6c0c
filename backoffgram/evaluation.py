#!/usr/bin/env python3
"""
Evaluation of backoff models on token streams.

Scores every position of a stream twice: by the probability the model
assigns to the true token (entropy/perplexity) and by the rank of the true
token among the model's predictions (mean reciprocal rank, top-k accuracy).
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from backoffgram.model import BackoffModel
from backoffgram.smoothing import Estimate

logger = logging.getLogger(__name__)

# Floor for probabilities before taking logs
MIN_PROBABILITY = 1e-12


def to_probability(estimate: Estimate, vocab_size: int) -> float:
    """
    Turn an estimate into a proper probability.

    The share of the mass the model was not confident about is spread
    uniformly over the vocabulary.

    Args:
        estimate: Model estimate
        vocab_size: Number of possible tokens (at least 1)

    Returns:
        Probability in (0, 1]

    Example:
        >>> to_probability(Estimate(0.5, 0.5), vocab_size=10)
        0.3
    """
    vocab_size = max(vocab_size, 1)
    p, c = estimate
    return p * c + (1.0 - c) / vocab_size


@dataclass
class TokenResult:
    """Evaluation of one stream position."""
    index: int
    token: int
    probability: float
    confidence: float
    rank: Optional[int]  # 1 = top prediction, None = not predicted
    time_ms: float

    @property
    def entropy(self) -> float:
        return -math.log2(max(self.probability, MIN_PROBABILITY))

    @property
    def reciprocal_rank(self) -> float:
        return 1.0 / self.rank if self.rank else 0.0


@dataclass
class EvaluationMetrics:
    """Aggregated evaluation metrics."""
    entropy: float  # Mean bits per token
    perplexity: float
    mrr: float  # Mean reciprocal rank of the true token
    top_k_accuracy: Dict[int, float]
    coverage: float  # % of positions where the true token was predicted
    mean_confidence: float
    mean_time_ms: float
    total_time_s: float
    num_tokens: int


class Evaluator:
    """
    Evaluate a BackoffModel on token streams.

    Args:
        model: Model to evaluate
        model_name: Name for logging/reporting
        vocab_size: Vocabulary size for ``to_probability``
                    (None = tokens seen so far plus one for unknowns)
    """

    TOP_K_LEVELS = (1, 3, 5, 10)

    def __init__(self, model: BackoffModel, model_name: str = "Unknown", vocab_size: Optional[int] = None):
        self.model = model
        self.model_name = model_name
        self.vocab_size = vocab_size

    def evaluate(
        self,
        stream: Sequence[int],
        top_k: int = 10,
        online: bool = False,
        self_testing: bool = False
    ) -> Tuple[EvaluationMetrics, List[TokenResult]]:
        """
        Evaluate the model on every position of a stream.

        Args:
            stream: Token ids
            top_k: Predictions ranked beyond this count as misses
            online: Learn each position right after scoring it
            self_testing: The stream is part of the training data; forget
                          it while evaluating and learn it back afterwards

        Returns:
            (metrics, per-position results)

        Raises:
            ValueError: If both ``online`` and ``self_testing`` are set
        """
        if online and self_testing:
            raise ValueError("online and self_testing cannot be combined")

        tokens = list(stream)
        if self_testing:
            self.model.forget(tokens)
        try:
            results, total_time = self._score(tokens, top_k, online)
        finally:
            if self_testing:
                self.model.learn(tokens)

        metrics = self._compute_metrics(results, top_k, total_time)
        logger.info(
            "%s: %d tokens, %.3f bits/token, MRR %.3f",
            self.model_name, metrics.num_tokens, metrics.entropy, metrics.mrr,
        )
        return metrics, results

    def _score(self, tokens: List[int], top_k: int, online: bool) -> Tuple[List[TokenResult], float]:
        results = []
        start_time = time.time()

        for index, token in enumerate(tokens):
            token_start = time.time()
            vocab_size = self.vocab_size or self.model.counter.vocabulary_size() + 1

            estimate = self.model.model_token(tokens, index)
            predictions = self.model.predict_token(tokens, index)
            ranked = sorted(
                predictions.items(),
                key=lambda x: (-to_probability(x[1], vocab_size), x[0])
            )[:top_k]
            rank = next((r for r, (t, _) in enumerate(ranked, 1) if t == token), None)

            results.append(TokenResult(
                index=index,
                token=token,
                probability=to_probability(estimate, vocab_size),
                confidence=estimate.confidence,
                rank=rank,
                time_ms=(time.time() - token_start) * 1000
            ))

            if online:
                self.model.learn_token(tokens, index)

        return results, time.time() - start_time

    def _compute_metrics(
        self,
        results: List[TokenResult],
        top_k: int,
        total_time: float
    ) -> EvaluationMetrics:
        """Compute aggregated metrics from results."""
        n = len(results)
        if n == 0:
            return EvaluationMetrics(
                entropy=0.0, perplexity=1.0, mrr=0.0,
                top_k_accuracy={k: 0.0 for k in self.TOP_K_LEVELS if k <= top_k},
                coverage=0.0, mean_confidence=0.0, mean_time_ms=0.0,
                total_time_s=total_time, num_tokens=0
            )

        entropies = np.array([r.entropy for r in results])
        ranks = np.array([r.rank or 0 for r in results])
        hit = ranks > 0

        top_k_acc = {}
        for k in self.TOP_K_LEVELS:
            if k <= top_k:
                top_k_acc[k] = float(np.mean(hit & (ranks <= k)))

        entropy = float(entropies.mean())
        return EvaluationMetrics(
            entropy=entropy,
            perplexity=float(2.0 ** entropy),
            mrr=float(np.mean([r.reciprocal_rank for r in results])),
            top_k_accuracy=top_k_acc,
            coverage=float(hit.mean()),
            mean_confidence=float(np.mean([r.confidence for r in results])),
            mean_time_ms=float(np.mean([r.time_ms for r in results])),
            total_time_s=total_time,
            num_tokens=n
        )


def print_metrics(name: str, metrics: EvaluationMetrics):
    """Print a one-model metrics table."""
    print("=" * 60)
    print(f"{name}: {metrics.num_tokens} tokens")
    print("-" * 60)
    print(f"{'Entropy (bits)':<20} {metrics.entropy:.4f}")
    print(f"{'Perplexity':<20} {metrics.perplexity:.2f}")
    print(f"{'MRR':<20} {metrics.mrr:.4f}")
    for k, acc in sorted(metrics.top_k_accuracy.items()):
        print(f"{'Top-' + str(k):<20} {acc:.4f}")
    print(f"{'Coverage':<20} {metrics.coverage:.4f}")
    print(f"{'Time (ms/token)':<20} {metrics.mean_time_ms:.3f}")
    print("=" * 60)
