"""
backoffgram: Backoff N-gram Language Models over Token Streams

Confidence-weighted backoff across context lengths, with online
learning and unlearning of token streams and top-k next-token prediction.
"""

from backoffgram.model import BackoffModel, create_model
from backoffgram.counter import Counter, HashCounter
from backoffgram.cache import SuccessorCache
from backoffgram.config import RunConfig, get_run_config, set_run_config, run_config
from backoffgram.smoothing import (
    Estimate,
    SmoothingStrategy,
    JelinekMercer,
    WittenBell,
    AbsoluteDiscounting,
    resolve_strategy,
)
from backoffgram import sequencer

__version__ = "0.1.0"

__all__ = [
    "BackoffModel",
    "create_model",
    "Counter",
    "HashCounter",
    "SuccessorCache",
    "RunConfig",
    "get_run_config",
    "set_run_config",
    "run_config",
    "Estimate",
    "SmoothingStrategy",
    "JelinekMercer",
    "WittenBell",
    "AbsoluteDiscounting",
    "resolve_strategy",
    "sequencer",
]
