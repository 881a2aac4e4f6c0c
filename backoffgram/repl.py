#!/usr/bin/env python3
"""
Interactive REPL for backoffgram.

Provides an interactive shell for training, untraining and querying
backoff models over token streams typed as space-separated integers.
"""

import logging
import shlex
from typing import Dict, List, Optional

from prompt_toolkit import prompt
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.history import InMemoryHistory

from backoffgram.config import get_run_config, set_run_config
from backoffgram.evaluation import Evaluator, print_metrics, to_probability
from backoffgram.model import BackoffModel
from backoffgram.smoothing import STRATEGIES, resolve_strategy


class BackoffREPL:
    """Interactive REPL for backoff n-gram models."""

    def __init__(self):
        """Initialize REPL."""
        self.models: Dict[str, BackoffModel] = {}
        self.model: Optional[BackoffModel] = None
        self.model_name: Optional[str] = None

        # Number of predictions to show
        self.top_k = 10

        self.history = InMemoryHistory()

        self.commands = {
            # System
            'help': self.cmd_help,
            'quit': self.cmd_quit,
            'exit': self.cmd_quit,

            # Model management
            'new': self.cmd_new,
            'use': self.cmd_use,
            'models': self.cmd_models,
            'info': self.cmd_info,
            'strategies': self.cmd_strategies,

            # Training
            'learn': self.cmd_learn,
            'forget': self.cmd_forget,

            # Inference
            'prob': self.cmd_prob,
            'predict': self.cmd_predict,
            'eval': self.cmd_eval,

            # Configuration
            'config': self.cmd_config,
            'set': self.cmd_set,
        }
        self._running = True

    def run(self):
        """Run the REPL."""
        print("=" * 70)
        print("  BACKOFFGRAM - Backoff N-gram Language Model")
        print("=" * 70)
        print()
        print("Type 'help' for commands, 'new <name>' to create a model.")
        print()

        while self._running:
            try:
                if self.model_name:
                    prompt_str = f"backoffgram[{self.model_name}]> "
                else:
                    prompt_str = "backoffgram> "

                user_input = prompt(
                    prompt_str,
                    history=self.history,
                    auto_suggest=AutoSuggestFromHistory()
                ).strip()

                if not user_input:
                    continue

                self.execute(user_input)
                print()

            except KeyboardInterrupt:
                print("\n(Use 'quit' to exit)")
                continue
            except EOFError:
                print("\nGoodbye!")
                break

    def execute(self, command_line: str):
        """Execute a command."""
        try:
            parts = shlex.split(command_line)
        except ValueError as e:
            print(f"Parse error: {e}")
            return

        if not parts:
            return

        cmd = parts[0].lower()
        args = parts[1:]

        if cmd in self.commands:
            try:
                self.commands[cmd](args)
            except (ValueError, IndexError) as e:
                print(f"Error: {e}")
        else:
            print(f"Unknown command: {cmd}")
            print("Type 'help' for available commands.")

    # ========================================================================
    # HELP
    # ========================================================================

    def cmd_help(self, args: List[str]):
        """Show help."""
        print("BACKOFFGRAM COMMANDS")
        print("=" * 70)
        print()
        print("Model Management:")
        print("  new <name> [strategy]     Create an empty model (default: jm)")
        print("  use <name>                Switch to a model")
        print("  models                    List models")
        print("  info                      Show current model statistics")
        print("  strategies                List smoothing strategies")
        print()
        print("Training (tokens are space-separated integers):")
        print("  learn <tokens>            Train on a token stream")
        print("  forget <tokens>           Untrain a token stream")
        print()
        print("Inference:")
        print("  prob <tokens>             Probability of the last token")
        print("  predict <tokens>          Predict the token after <tokens>")
        print("  eval <tokens>             Entropy and MRR over a stream")
        print()
        print("Configuration:")
        print("  config                    Show current settings")
        print("  set order <n>             Set the n-gram order of new models")
        print("  set cutoff <n>            Set successors per context of new models")
        print("  set top_k <n>             Set predictions shown")
        print()
        print("System:")
        print("  help                      Show this help")
        print("  quit, exit                Exit REPL")
        print()

    def cmd_quit(self, args: List[str]):
        """Exit the REPL."""
        print("Goodbye!")
        self._running = False

    # ========================================================================
    # MODEL MANAGEMENT
    # ========================================================================

    def cmd_new(self, args: List[str]):
        """Create a model."""
        if not args:
            print("Usage: new <name> [strategy]")
            return
        name = args[0]
        strategy = args[1] if len(args) > 1 else 'jm'
        if name in self.models:
            print(f"Model '{name}' already exists")
            return

        resolution = resolve_strategy(strategy)
        if not resolution.ok:
            print(f"Warning: {resolution.error}; using {resolution.strategy!r}")

        # Order is fixed per model so forget sees the same windows as learn
        self.models[name] = BackoffModel(resolution.strategy, config=get_run_config())
        self.model = self.models[name]
        self.model_name = name
        print(f"Created {name}: {self.model!r}")

    def cmd_use(self, args: List[str]):
        """Switch to a model."""
        if not args:
            print("Usage: use <name>")
            return
        if args[0] not in self.models:
            print(f"Model '{args[0]}' not found")
            return
        self.model_name = args[0]
        self.model = self.models[args[0]]
        print(f"Using {self.model_name}")

    def cmd_models(self, args: List[str]):
        """List models."""
        if not self.models:
            print("No models. Use 'new <name>' to create one.")
            return
        for name, model in self.models.items():
            marker = "*" if name == self.model_name else " "
            print(f" {marker} {name:<20} {model!r}")

    def cmd_info(self, args: List[str]):
        """Show current model statistics."""
        if not self._require_model():
            return
        for key, value in self.model.stats().items():
            print(f"  {key:<20} {value}")

    def cmd_strategies(self, args: List[str]):
        """List smoothing strategies."""
        for name, cls in STRATEGIES.items():
            doc = (cls.__doc__ or "").strip().split("\n")[0]
            print(f"  {name:<6} {cls.__name__:<22} {doc}")

    # ========================================================================
    # TRAINING
    # ========================================================================

    def cmd_learn(self, args: List[str]):
        """Train on tokens."""
        tokens = self._parse_tokens(args)
        if tokens is None or not self._require_model():
            return
        self.model.learn(tokens)
        print(f"Learned {len(tokens)} tokens (total: {self.model.counter.count()})")

    def cmd_forget(self, args: List[str]):
        """Untrain tokens."""
        tokens = self._parse_tokens(args)
        if tokens is None or not self._require_model():
            return
        self.model.forget(tokens)
        print(f"Forgot {len(tokens)} tokens (total: {self.model.counter.count()})")

    # ========================================================================
    # INFERENCE
    # ========================================================================

    def cmd_prob(self, args: List[str]):
        """Probability of the last token given the ones before."""
        tokens = self._parse_tokens(args)
        if tokens is None or not self._require_model():
            return
        estimate = self.model.model_token(tokens, len(tokens) - 1)
        print(f"P({tokens[-1]} | {tokens[:-1]}) = {estimate.probability:.6f}")
        print(f"confidence = {estimate.confidence:.6f}")

    def cmd_predict(self, args: List[str]):
        """Predict the token after the given ones."""
        tokens = self._parse_tokens(args, allow_empty=True)
        if tokens is None or not self._require_model():
            return
        # Placeholder for the predicted position
        stream = tokens + [0]
        estimates = self.model.predict_token(stream, len(tokens))
        if not estimates:
            print("No predictions")
            return

        vocab_size = self.model.counter.vocabulary_size() + 1
        ranked = sorted(
            estimates.items(),
            key=lambda x: (-to_probability(x[1], vocab_size), x[0])
        )[:self.top_k]
        print(f"Predictions after {tokens}:")
        for rank, (token, estimate) in enumerate(ranked, 1):
            prob = to_probability(estimate, vocab_size)
            bar = "█" * int(prob * 40)
            print(f"  {rank:>2}. {token:>8}  {prob:.4f}  {bar}")

    def cmd_eval(self, args: List[str]):
        """Evaluate the model on a stream."""
        tokens = self._parse_tokens(args)
        if tokens is None or not self._require_model():
            return
        metrics, _ = Evaluator(self.model, self.model_name).evaluate(tokens, top_k=self.top_k)
        print_metrics(self.model_name, metrics)

    # ========================================================================
    # CONFIGURATION
    # ========================================================================

    def cmd_config(self, args: List[str]):
        """Show current settings."""
        config = get_run_config()
        print(f"  order                {config.order}")
        print(f"  cutoff               {config.prediction_cutoff}")
        print(f"  top_k                {self.top_k}")

    def cmd_set(self, args: List[str]):
        """Set a parameter."""
        if len(args) < 2:
            print("Usage: set <param> <value>")
            print("Parameters: order, cutoff, top_k")
            return

        param, value = args[0].lower(), args[1]

        if param == 'order':
            print(f"order = {set_run_config(order=int(value)).order}")
        elif param == 'cutoff':
            print(f"cutoff = {set_run_config(prediction_cutoff=int(value)).prediction_cutoff}")
        elif param == 'top_k':
            self.top_k = int(value)
            print(f"top_k = {self.top_k}")
        else:
            print(f"Unknown parameter: {param}")
            print("Parameters: order, cutoff, top_k")

    # ========================================================================
    # UTILITIES
    # ========================================================================

    def _require_model(self) -> bool:
        if self.model is None:
            print("No model selected. Use 'new <name>' or 'use <name>'.")
            return False
        return True

    def _parse_tokens(self, args: List[str], allow_empty: bool = False) -> Optional[List[int]]:
        try:
            tokens = [int(a) for a in args]
        except ValueError:
            print(f"Tokens must be integers: {' '.join(args)}")
            return None
        if not tokens and not allow_empty:
            print("No tokens given")
            return None
        return tokens


def main():
    """Entry point for REPL."""
    import argparse

    parser = argparse.ArgumentParser(description="backoffgram Interactive REPL")
    parser.add_argument('--order', type=int, help="N-gram order")
    parser.add_argument('--cutoff', type=int, help="Successors per context when predicting")
    parser.add_argument('--strategy', default='jm', help="Strategy for the initial model")
    parser.add_argument('--log-level', default='warning', help="Logging level")

    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper())
    overrides = {}
    if args.order:
        overrides['order'] = args.order
    if args.cutoff:
        overrides['prediction_cutoff'] = args.cutoff
    if overrides:
        set_run_config(**overrides)

    repl = BackoffREPL()
    repl.cmd_new(['default', args.strategy])
    repl.run()


if __name__ == "__main__":
    main()
