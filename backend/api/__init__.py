"""
Eval Express API package.

Provides the FastAPI application for authentication and subscription
management.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
