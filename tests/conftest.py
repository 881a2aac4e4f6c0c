"""
Shared fixtures for backoffgram tests.
"""

import pytest

from backoffgram.config import RunConfig, set_run_config


@pytest.fixture(autouse=True)
def reset_run_config():
    """Restore the default global run configuration after every test."""
    yield
    set_run_config(RunConfig())


@pytest.fixture
def sample_stream():
    """Small stream where (1, 2) is followed by 3 and by 4."""
    return [1, 2, 3, 1, 2, 4]


@pytest.fixture
def bigram_config():
    return RunConfig(order=2, prediction_cutoff=10)
