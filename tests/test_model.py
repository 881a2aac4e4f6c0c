#!/usr/bin/env python3
"""
Tests for the backoff model: training, estimation and prediction.
"""

import random

import pytest

from backoffgram import BackoffModel, HashCounter, RunConfig, create_model
from backoffgram.smoothing import (
    AbsoluteDiscounting,
    Estimate,
    JelinekMercer,
    SmoothingStrategy,
    WittenBell,
)


@pytest.fixture
def model(bigram_config, sample_stream):
    """Bigram Jelinek-Mercer model trained on the sample stream."""
    model = create_model('jm', config=bigram_config)
    model.learn(sample_stream)
    return model


class FailingStrategy(SmoothingStrategy):
    """Strategy that fails on every estimate."""

    def estimate(self, counter, sequence):
        raise RuntimeError("estimate failed")


class TestConstruction:
    """Test model construction."""

    def test_create_model_default(self):
        """Default model uses Jelinek-Mercer and an empty HashCounter."""
        model = create_model()
        assert isinstance(model.strategy, JelinekMercer)
        assert isinstance(model.counter, HashCounter)
        assert model.counter.count() == 0

    def test_create_model_named(self):
        """Strategies are selected by name with parameters."""
        model = create_model('ad', discount=0.3)
        assert isinstance(model.strategy, AbsoluteDiscounting)
        assert model.strategy.discount == 0.3

    def test_create_model_fallback(self):
        """A bad strategy name yields a working default model."""
        model = create_model('nonexistent')
        assert isinstance(model.strategy, JelinekMercer)

    def test_wraps_existing_counter(self, sample_stream):
        """A pre-populated counter is used as is."""
        counter = HashCounter()
        counter.add_aggressive([1, 2])
        model = BackoffModel(WittenBell(), counter=counter, config=RunConfig(order=2))
        assert model.counter is counter
        assert model.model_token([1, 2], 1).confidence > 0

    def test_stats(self, model):
        """stats() summarizes the model."""
        stats = model.stats()
        assert stats['order'] == 2
        assert stats['count'] == 6
        assert stats['vocabulary_size'] == 4
        assert stats['cached_contexts'] == 0


class TestTraining:
    """Test learn/forget and their per-token variants."""

    def test_learn_counts_every_position(self, model):
        """Every token is counted once."""
        assert model.counter.count() == 6
        assert model.counter.sequence_count([1, 2]) == 2

    def test_forget_restores_counter(self, model, sample_stream):
        """learn followed by forget restores the counter totals."""
        model.forget(sample_stream)
        assert model.counter.count() == 0
        assert model.counter.successor_count() == 0

    def test_forget_restores_previous_state(self, bigram_config):
        """forget is the inverse of learn on a non-empty counter."""
        model = create_model(config=bigram_config)
        model.learn([5, 6, 7, 5])
        before = (model.counter.count(), model.counter.successor_count())
        model.learn([1, 2, 3, 1, 2, 4])
        model.forget([1, 2, 3, 1, 2, 4])
        assert (model.counter.count(), model.counter.successor_count()) == before

    def test_learn_forget_roundtrip_random(self):
        """Round trip holds for random streams and orders."""
        rng = random.Random(7)
        for order in (1, 2, 3, 5):
            model = create_model(config=RunConfig(order=order))
            base = [rng.randrange(8) for _ in range(30)]
            model.learn(base)
            before = (model.counter.count(), model.counter.successor_count())
            stream = [rng.randrange(8) for _ in range(50)]
            model.learn(stream)
            model.forget(stream)
            assert (model.counter.count(), model.counter.successor_count()) == before

    def test_forget_successor_count(self, sample_stream):
        """forget returns the successors of (1, 2) to zero."""
        model = create_model(config=RunConfig(order=3))
        model.learn(sample_stream)
        assert model.counter.successor_count([1, 2]) == 2
        model.forget(sample_stream)
        assert model.counter.successor_count([1, 2]) == 0

    def test_forget_unlearned_stream_raises(self, model):
        """Forgetting more than was learned is rejected by the counter."""
        with pytest.raises(ValueError):
            model.forget([9, 9, 9])

    def test_forget_partly_learned_stream_is_atomic(self, bigram_config):
        """A rejected forget leaves the counter exactly as it was."""
        model = create_model(config=bigram_config)
        model.learn([1, 2, 3])
        before = (model.counter.count(), model.counter.successor_count())
        assert before == (3, 5)

        with pytest.raises(ValueError):
            model.forget([1, 2, 9])

        assert (model.counter.count(), model.counter.successor_count()) == before
        assert model.counter.sequence_count([1, 2]) == 1
        assert model.counter.sequence_count([2, 3]) == 1

    def test_learn_empty_stream(self, bigram_config):
        """Empty streams are a no-op."""
        model = create_model(config=bigram_config)
        model.learn([])
        assert model.counter.count() == 0

    def test_learn_token_skips_growing_windows(self, bigram_config):
        """Short windows before the last position are not counted."""
        model = create_model(config=bigram_config)
        stream = [1, 2, 3]
        model.learn_token(stream, 0)
        assert model.counter.count() == 0
        model.learn_token(stream, 1)
        assert model.counter.sequence_count([1, 2]) == 1
        model.learn_token(stream, 2)
        assert model.counter.sequence_count([2, 3]) == 1
        # The trailing (3,) window of learn() is never added per token
        assert model.counter.count() == 2

    def test_learn_token_last_position_short_window(self):
        """A short window at the last position is counted."""
        model = create_model(config=RunConfig(order=3))
        model.learn_token([7, 8], 1)
        assert model.counter.sequence_count([7, 8]) == 1

    def test_forget_token_undoes_learn_token(self, bigram_config):
        """forget_token mirrors learn_token."""
        model = create_model(config=bigram_config)
        stream = [1, 2, 3, 4]
        for i in range(len(stream)):
            model.learn_token(stream, i)
        for i in range(len(stream)):
            model.forget_token(stream, i)
        assert model.counter.count() == 0
        assert model.counter.successor_count() == 0

    def test_learn_token_index_out_of_range(self, model):
        """Bad indices fail fast."""
        with pytest.raises(IndexError):
            model.learn_token([1, 2], 2)


class TestModelToken:
    """Test confidence-weighted backoff estimation."""

    def test_known_value(self, model):
        """Blending the bigram and unigram estimates."""
        # (2, 3): (0.5, 0.5); (3,): (1/6, 0.5)
        # p = 0.25 + 1/6 * 0.5 * 0.5, c = 0.75, normalized p / c
        estimate = model.model_token([1, 2, 3], 2)
        assert estimate.probability == pytest.approx((0.25 + 1 / 24) / 0.75)
        assert estimate.confidence == pytest.approx(0.75)

    def test_observed_successors_beat_unseen(self, model):
        """After (1, 2), tokens 3 and 4 get more mass than unseen 5."""
        p3 = model.model_token([1, 2, 3], 2)
        p4 = model.model_token([1, 2, 4], 2)
        p5 = model.model_token([1, 2, 5], 2)
        assert p3.probability > p5.probability
        assert p4.probability > p5.probability
        assert p3.confidence > 0
        assert p5.probability == 0.0

    def test_untrained_model(self, bigram_config):
        """No data at any length gives (0, 0)."""
        model = create_model(config=bigram_config)
        assert model.model_token([1, 2, 3], 2) == Estimate(0.0, 0.0)

    def test_unseen_context_falls_back(self, model):
        """An unseen longer context contributes nothing."""
        unseen = model.model_token([9, 1], 1)
        unigram = model.model_token([1], 0)
        assert unseen.probability == pytest.approx(unigram.probability)
        assert unseen.confidence == pytest.approx(unigram.confidence)

    def test_first_position_uses_unigram(self, model):
        """At index 0 only the unigram level is used."""
        estimate = model.model_token([1, 9, 9], 0)
        assert estimate == pytest.approx((2 / 6, 0.5))

    def test_index_out_of_range(self, model):
        """Bad indices fail fast."""
        with pytest.raises(IndexError):
            model.model_token([1, 2], 5)

    @pytest.mark.parametrize("strategy", [JelinekMercer(), WittenBell(), AbsoluteDiscounting()])
    def test_estimates_bounded(self, strategy):
        """Probabilities and confidences stay in [0, 1]; zero confidence means zero probability."""
        rng = random.Random(11)
        model = BackoffModel(strategy, config=RunConfig(order=3))
        model.learn([rng.randrange(6) for _ in range(200)])
        stream = [rng.randrange(9) for _ in range(100)]
        for i in range(len(stream)):
            p, c = model.model_token(stream, i)
            assert 0.0 <= p <= 1.0
            assert 0.0 <= c <= 1.0
            if c == 0.0:
                assert p == 0.0

    def test_follows_global_order(self, sample_stream):
        """Without its own config the model reads the global order."""
        from backoffgram.config import run_config
        with run_config(order=2):
            model = create_model()
            model.learn(sample_stream)
            assert model.counter.sequence_count([1, 2, 3]) == 0
            assert model.model_token([1, 2, 3], 2).confidence == pytest.approx(0.75)


class TestPredictToken:
    """Test top-k candidate prediction."""

    def test_candidates_from_all_lengths(self, model):
        """Candidates come from the bigram and unigram contexts, deduplicated."""
        predictions = model.predict_token([1, 2, 0], 2)
        assert set(predictions) == {1, 2, 3, 4}

    def test_candidate_estimates_match_model_token(self, model):
        """Each candidate's estimate is model_token with it substituted."""
        predictions = model.predict_token([1, 2, 0], 2)
        for token, estimate in predictions.items():
            assert estimate == model.model_token([1, 2, token], 2)

    def test_observed_successors_ranked_first(self, model):
        """Successors of (2,) outrank unigram-only candidates."""
        predictions = model.predict_token([1, 2, 0], 2)
        ranked = sorted(predictions, key=lambda t: -predictions[t].probability)
        assert set(ranked[:2]) == {3, 4}

    def test_no_zero_confidence_candidates(self, model):
        """Every candidate has nonzero confidence."""
        predictions = model.predict_token([3, 1, 0], 2)
        assert predictions
        assert all(e.confidence > 0 for e in predictions.values())

    def test_cutoff_limits_each_context(self, sample_stream):
        """The prediction cutoff bounds candidates per context length."""
        model = create_model(config=RunConfig(order=2, prediction_cutoff=1))
        model.learn(sample_stream)
        predictions = model.predict_token([1, 2, 0], 2)
        # (2,) proposes 3 (tie with 4 broken by id), () proposes 1
        assert set(predictions) == {1, 3}

    def test_first_position(self, model):
        """At index 0 candidates come from the unigram level only."""
        assert set(model.predict_token([0], 0)) == {1, 2, 3, 4}

    def test_stream_restored(self, model):
        """The stream is unchanged after prediction."""
        stream = [1, 2, 99]
        model.predict_token(stream, 2)
        assert stream == [1, 2, 99]

    def test_stream_restored_on_failure(self, sample_stream, bigram_config):
        """The original token is put back even if estimation fails."""
        model = BackoffModel(FailingStrategy(), config=bigram_config)
        model.learn(sample_stream)
        stream = [1, 2, 99]
        with pytest.raises(RuntimeError):
            model.predict_token(stream, 2)
        assert stream == [1, 2, 99]

    def test_untrained_model(self, bigram_config):
        """An empty model predicts nothing."""
        model = create_model(config=bigram_config)
        assert model.predict_token([1, 2, 0], 2) == {}

    def test_index_out_of_range(self, model):
        """Bad indices fail fast."""
        with pytest.raises(IndexError):
            model.predict_token([1, 2], 2)

    def test_cache_does_not_change_predictions(self, sample_stream, bigram_config):
        """Caching every context gives the same predictions."""
        cached = BackoffModel(JelinekMercer(), config=bigram_config, cache_threshold=0)
        plain = BackoffModel(JelinekMercer(), config=bigram_config)
        for m in (cached, plain):
            m.learn(sample_stream)

        for _ in range(2):
            assert cached.predict_token([1, 2, 0], 2) == plain.predict_token([1, 2, 0], 2)
        assert len(cached.cache) > 0
        assert cached.cache.hits > 0

    def test_predictions_follow_training(self, sample_stream, bigram_config):
        """Cached successors are refreshed after learn and forget."""
        model = BackoffModel(JelinekMercer(), config=bigram_config, cache_threshold=0)
        model.learn(sample_stream)
        assert 7 not in model.predict_token([2, 0], 1)

        model.learn([2, 7, 2, 7, 2, 7])
        assert 7 in model.predict_token([2, 0], 1)

        model.forget([2, 7, 2, 7, 2, 7])
        assert 7 not in model.predict_token([2, 0], 1)


class TestStreamHelpers:
    """Test whole-stream helpers."""

    def test_model_stream(self, model, sample_stream):
        """One estimate per position."""
        estimates = model.model_stream(sample_stream)
        assert len(estimates) == len(sample_stream)
        assert estimates[2] == model.model_token(sample_stream, 2)

    def test_predict_stream(self, model, sample_stream):
        """One prediction dict per position, input untouched."""
        stream = list(sample_stream)
        predictions = model.predict_stream(stream)
        assert len(predictions) == len(sample_stream)
        assert stream == sample_stream
