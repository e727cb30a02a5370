"""Utility modules for dbexport."""

from .env import setup_environment

__all__ = ["setup_environment"]
