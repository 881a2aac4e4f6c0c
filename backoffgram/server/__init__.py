"""
backoffgram REST API Server

Serves named, incrementally trained backoff n-gram models.
"""

from backoffgram.server.api import app, start_server
from backoffgram.server.models import ModelManager

__all__ = ["app", "start_server", "ModelManager"]
