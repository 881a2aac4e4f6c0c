#!/usr/bin/env python3
"""
Example: Start the backoffgram REST API server with a demo model.

This script trains a small demo model and starts the server on http://localhost:8000

You can then test with curl:
    curl -X POST http://localhost:8000/v1/predict \
      -H "Content-Type: application/json" \
      -d '{"model": "demo", "tokens": [2, 3], "top_k": 5}'
"""

import uvicorn

from backoffgram.server.api import app, model_manager


def load_demo_models():
    """Train demonstration models in the server."""
    print("Loading demo models...")

    demo_stream = [1, 2, 3, 4, 2, 3, 5, 6, 2, 3, 4, 7, 8, 9, 2, 3, 4]
    model = model_manager.add_model(
        "demo",
        strategy="jm",
        order=4,
        description="Simple demo model with numeric tokens"
    )
    model.learn(demo_stream)
    print(f"  Loaded 'demo' model ({len(demo_stream)} tokens)")

    large_stream = list(range(100)) * 5
    model = model_manager.add_model(
        "large-demo",
        strategy="wb",
        description="Witten-Bell model over 500 tokens"
    )
    model.learn(large_stream)
    print(f"  Loaded 'large-demo' model ({len(large_stream)} tokens)")

    print("\nAvailable endpoints:")
    print("  - GET  http://localhost:8000/")
    print("  - GET  http://localhost:8000/v1/models")
    print("  - POST http://localhost:8000/v1/learn")
    print("  - POST http://localhost:8000/v1/predict")
    print("  - POST http://localhost:8000/v1/evaluate")
    print()


if __name__ == "__main__":
    load_demo_models()

    print("Starting server on http://localhost:8000")
    print("Press Ctrl+C to stop\n")

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
