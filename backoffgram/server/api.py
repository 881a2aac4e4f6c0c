"""
FastAPI REST API for backoffgram.

Clients create named models, train and untrain them incrementally with
token streams, and query single-token probabilities and predictions.
"""

import logging
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from backoffgram import __version__
from backoffgram.evaluation import Evaluator
from backoffgram.model import BackoffModel
from backoffgram.server.models import ModelManager
from backoffgram.smoothing import STRATEGIES, Estimate

logger = logging.getLogger(__name__)


# Global model manager
model_manager = ModelManager()


# Pydantic models for request/response validation
class CreateModelRequest(BaseModel):
    """Request to create an empty model."""
    model_id: str
    strategy: str = "jm"
    order: Optional[int] = Field(default=None, ge=1)
    prediction_cutoff: Optional[int] = Field(default=None, ge=1)
    description: str = ""
    params: Dict[str, float] = Field(default_factory=dict)  # Strategy arguments


class StreamRequest(BaseModel):
    """Request for /v1/learn and /v1/forget; ``index`` selects one position."""
    model: str
    tokens: List[int]
    index: Optional[int] = None


class TokenRequest(BaseModel):
    """Request for /v1/model_token."""
    model: str
    tokens: List[int]
    index: int


class PredictRequest(BaseModel):
    """Request for /v1/predict; no index predicts the token after ``tokens``."""
    model: str
    tokens: List[int]
    index: Optional[int] = None
    top_k: Optional[int] = Field(default=None, ge=1)


class EvaluateRequest(BaseModel):
    """Request for /v1/evaluate."""
    model: str
    tokens: List[int]
    top_k: int = Field(default=10, ge=1)
    online: bool = False
    self_testing: bool = False


class EstimateResponse(BaseModel):
    """A probability with its confidence."""
    probability: float
    confidence: float


class Prediction(EstimateResponse):
    """One predicted token."""
    token: int


class PredictResponse(BaseModel):
    """Predictions, most probable first."""
    model: str
    index: int
    predictions: List[Prediction]


class ModelInfo(BaseModel):
    """Model metadata and statistics."""
    id: str
    description: str = ""
    strategy: str
    order: int
    prediction_cutoff: int
    count: int
    successor_count: int
    vocabulary_size: int
    cached_contexts: int


# Initialize FastAPI app
app = FastAPI(
    title="backoffgram API",
    description="REST API for incrementally trained backoff n-gram models",
    version=__version__
)


def _get_model(model_id: str) -> BackoffModel:
    if not model_manager.has_model(model_id):
        raise HTTPException(
            status_code=404,
            detail=f"Model '{model_id}' not found. Available: {list(model_manager.models)}"
        )
    return model_manager.get_model(model_id)


def _info(model_id: str) -> ModelInfo:
    return ModelInfo(**model_manager.describe(model_id))


def _estimate(estimate: Estimate) -> EstimateResponse:
    return EstimateResponse(probability=estimate.probability, confidence=estimate.confidence)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "backoffgram API",
        "version": __version__,
        "endpoints": {
            "models": "/v1/models",
            "strategies": "/v1/strategies",
            "learn": "/v1/learn",
            "forget": "/v1/forget",
            "model_token": "/v1/model_token",
            "predict": "/v1/predict",
            "evaluate": "/v1/evaluate",
            "health": "/health"
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "models_loaded": len(model_manager.models),
    }


@app.get("/v1/strategies")
async def list_strategies():
    """List registered smoothing strategies."""
    return {
        "strategies": [
            {"name": name, "class": cls.__name__, "description": (cls.__doc__ or "").strip().split("\n")[0]}
            for name, cls in STRATEGIES.items()
        ]
    }


@app.get("/v1/models", response_model=List[ModelInfo])
async def list_models():
    """List loaded models."""
    return [_info(model_id) for model_id in model_manager.models]


@app.post("/v1/models", response_model=ModelInfo)
async def create_model(request: CreateModelRequest):
    """
    Create an empty model.

    Example:
        ```bash
        curl -X POST http://localhost:8000/v1/models \\
          -H "Content-Type: application/json" \\
          -d '{"model_id": "java", "strategy": "jm", "order": 4}'
        ```
    """
    try:
        model_manager.add_model(
            request.model_id,
            strategy=request.strategy,
            order=request.order,
            prediction_cutoff=request.prediction_cutoff,
            description=request.description,
            **request.params
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _info(request.model_id)


@app.delete("/v1/models/{model_id}")
async def delete_model(model_id: str):
    """Remove a model."""
    _get_model(model_id)
    model_manager.remove_model(model_id)
    return {"id": model_id, "deleted": True}


@app.post("/v1/learn", response_model=ModelInfo)
async def learn(request: StreamRequest):
    """Train a model on a stream, or on one position of it."""
    model = _get_model(request.model)
    try:
        if request.index is None:
            model.learn(request.tokens)
        else:
            model.learn_token(request.tokens, request.index)
    except (ValueError, IndexError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _info(request.model)


@app.post("/v1/forget", response_model=ModelInfo)
async def forget(request: StreamRequest):
    """Untrain a model on a stream, or on one position of it."""
    model = _get_model(request.model)
    try:
        if request.index is None:
            model.forget(request.tokens)
        else:
            model.forget_token(request.tokens, request.index)
    except (ValueError, IndexError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _info(request.model)


@app.post("/v1/model_token", response_model=EstimateResponse)
async def model_token(request: TokenRequest):
    """Probability of ``tokens[index]`` given the tokens before it."""
    model = _get_model(request.model)
    try:
        return _estimate(model.model_token(request.tokens, request.index))
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.post("/v1/predict", response_model=PredictResponse)
async def predict(request: PredictRequest):
    """Predict the token at ``index`` (default: after the last token)."""
    model = _get_model(request.model)
    tokens = list(request.tokens)
    index = request.index
    if index is None:
        # Placeholder for the position being predicted
        tokens.append(0)
        index = len(tokens) - 1

    try:
        estimates = model.predict_token(tokens, index)
    except IndexError as e:
        raise HTTPException(status_code=400, detail=str(e))

    ranked = sorted(estimates.items(), key=lambda x: (-x[1].probability, x[0]))
    if request.top_k:
        ranked = ranked[:request.top_k]
    return PredictResponse(
        model=request.model,
        index=index,
        predictions=[
            Prediction(token=token, probability=e.probability, confidence=e.confidence)
            for token, e in ranked
        ]
    )


@app.post("/v1/evaluate")
async def evaluate(request: EvaluateRequest):
    """Entropy and ranking metrics of a model on a stream."""
    model = _get_model(request.model)
    try:
        metrics, _ = Evaluator(model, request.model).evaluate(
            request.tokens,
            top_k=request.top_k,
            online=request.online,
            self_testing=request.self_testing
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "model": request.model,
        "num_tokens": metrics.num_tokens,
        "entropy": metrics.entropy,
        "perplexity": metrics.perplexity,
        "mrr": metrics.mrr,
        "top_k_accuracy": {str(k): v for k, v in metrics.top_k_accuracy.items()},
        "coverage": metrics.coverage,
        "mean_confidence": metrics.mean_confidence,
    }


def start_server(host: str = "0.0.0.0", port: int = 8000, log_level: str = "info"):
    """
    Start the backoffgram API server.

    Args:
        host: Host to bind to
        port: Port to bind to
        log_level: Logging level for the package and uvicorn
    """
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    logger.info("Starting backoffgram API on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_level=log_level.lower())


def main():
    """Entry point for backoffgram-serve command."""
    import argparse

    parser = argparse.ArgumentParser(description="backoffgram API Server")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    parser.add_argument("--log-level", default="info", help="Logging level")

    args = parser.parse_args()

    start_server(host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
