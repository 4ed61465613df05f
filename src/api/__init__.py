"""
FastAPI chat ingestion trigger.

Provides:
- GET|POST /chat - Run one ingestion invocation
- GET /health - Service health check
"""

from src.api.app import create_app

__all__ = ["create_app"]
