"""HTTP adapter for wind-task stores."""

from .api import create_app

__all__ = ["create_app"]
