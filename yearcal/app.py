"""
ASGI entry point for Year Calendar.

Re-exports the FastAPI app from yearcal/api/main.py for deployment.
"""

from yearcal.api.main import app

__all__ = ["app"]
