"""Observability layer: structured logging for chat components."""

from .logging import ChatLogger

__all__ = ["ChatLogger"]
