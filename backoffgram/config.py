#!/usr/bin/env python3
"""
Process-wide run configuration.

Holds the n-gram order (maximum window length) and the prediction cutoff
(how many successors each context proposes during prediction). Models
read the global configuration unless given their own ``RunConfig``.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_ORDER = 6
DEFAULT_PREDICTION_CUTOFF = 10


class RunConfig(BaseModel):
    """Immutable run parameters."""

    model_config = ConfigDict(frozen=True)

    order: int = Field(default=DEFAULT_ORDER, ge=1)
    prediction_cutoff: int = Field(default=DEFAULT_PREDICTION_CUTOFF, ge=1)


_current = RunConfig()


def get_run_config() -> RunConfig:
    """Return the active global configuration."""
    return _current


def set_run_config(config: Optional[RunConfig] = None, **overrides) -> RunConfig:
    """
    Replace the global configuration.

    Args:
        config: New configuration (None = keep the current one as base)
        **overrides: Field values to change, e.g. ``order=3``

    Returns:
        The configuration now in effect

    Raises:
        pydantic.ValidationError: If an override is invalid

    Example:
        >>> set_run_config(order=3).order
        3
        >>> set_run_config(RunConfig()).order
        6
    """
    global _current
    base = config if config is not None else _current
    if overrides:
        base = RunConfig(**{**base.model_dump(), **overrides})
    _current = base
    return _current


@contextmanager
def run_config(**overrides) -> Iterator[RunConfig]:
    """Temporarily override the global configuration."""
    previous = _current
    try:
        yield set_run_config(**overrides)
    finally:
        set_run_config(previous)
