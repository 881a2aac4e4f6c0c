"""
Model management for the backoffgram server.

Keeps named, in-memory BackoffModels that clients train and query
incrementally.
"""

import logging
from typing import Dict, List, Optional

from backoffgram.config import RunConfig
from backoffgram.model import BackoffModel
from backoffgram.smoothing import resolve_strategy

logger = logging.getLogger(__name__)


class ModelManager:
    """Manages multiple BackoffModels for the server."""

    def __init__(self):
        """Initialize the model manager."""
        self.models: Dict[str, BackoffModel] = {}
        self.metadata: Dict[str, dict] = {}

    def add_model(
        self,
        model_id: str,
        strategy: str = "jm",
        order: Optional[int] = None,
        prediction_cutoff: Optional[int] = None,
        description: str = "",
        **params
    ) -> BackoffModel:
        """
        Create an empty model.

        Args:
            model_id: Unique identifier for the model
            strategy: Smoothing strategy name
            order: N-gram order (None = global configuration)
            prediction_cutoff: Successors per context when predicting
                               (None = global configuration)
            description: Human-readable description
            **params: Strategy constructor arguments

        Returns:
            Created BackoffModel

        Raises:
            ValueError: If the model exists or the strategy cannot be built
        """
        if model_id in self.models:
            raise ValueError(f"Model '{model_id}' already exists")

        # Reject misconfigured strategies instead of silently falling back
        resolution = resolve_strategy(strategy, **params)
        if not resolution.ok:
            raise ValueError(resolution.error)

        config = None
        if order is not None or prediction_cutoff is not None:
            overrides = {}
            if order is not None:
                overrides['order'] = order
            if prediction_cutoff is not None:
                overrides['prediction_cutoff'] = prediction_cutoff
            config = RunConfig(**overrides)

        model = BackoffModel(resolution.strategy, config=config)
        self.models[model_id] = model
        self.metadata[model_id] = {
            "id": model_id,
            "description": description,
            "strategy": strategy,
        }
        logger.info("Created model %s (%r)", model_id, model)
        return model

    def get_model(self, model_id: str) -> BackoffModel:
        """
        Get a model by ID.

        Raises:
            ValueError: If model not found
        """
        if model_id not in self.models:
            raise ValueError(f"Model '{model_id}' not found")
        return self.models[model_id]

    def remove_model(self, model_id: str) -> None:
        """Remove a model from memory."""
        if model_id in self.models:
            del self.models[model_id]
            del self.metadata[model_id]

    def describe(self, model_id: str) -> dict:
        """Metadata merged with the model's current statistics."""
        return {**self.get_model(model_id).stats(), **self.metadata[model_id]}

    def list_models(self) -> List[dict]:
        """List all loaded models with their statistics."""
        return [self.describe(model_id) for model_id in self.models]

    def has_model(self, model_id: str) -> bool:
        """Check if a model is loaded."""
        return model_id in self.models
