"""Observability: structured logging setup."""

from src.observability.logging import configure_logging


__all__ = [
    "configure_logging",
]
