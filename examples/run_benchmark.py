#!/usr/bin/env python3
"""
Example: Compare smoothing strategies on a synthetic token stream.

Trains one model per strategy on the first part of the stream, then
evaluates on the rest both statically and with online learning.
"""

import random

from backoffgram import RunConfig, create_model
from backoffgram.evaluation import Evaluator, print_metrics
from backoffgram.smoothing import STRATEGIES


def synthetic_stream(size: int = 20000, vocab: int = 50, seed: int = 42):
    """Token stream made of repeated short phrases with random noise."""
    rng = random.Random(seed)
    phrases = [[rng.randrange(vocab) for _ in range(rng.randint(3, 8))] for _ in range(40)]
    stream = []
    while len(stream) < size:
        if rng.random() < 0.1:
            stream.append(rng.randrange(vocab))
        else:
            stream.extend(rng.choice(phrases))
    return stream[:size]


def main():
    print("backoffgram strategy comparison")
    print("=" * 80)

    stream = synthetic_stream()
    split = int(len(stream) * 0.9)
    train, test = stream[:split], stream[split:]
    config = RunConfig(order=4, prediction_cutoff=10)

    for name in STRATEGIES:
        for online in (False, True):
            model = create_model(name, config=config)
            model.learn(train)
            label = f"{name} ({'online' if online else 'static'})"
            metrics, _ = Evaluator(model, label).evaluate(test, online=online)
            print_metrics(label, metrics)


if __name__ == "__main__":
    main()
