"""HTTP API layer for ragchat.

This module provides FastAPI integration for the chat orchestrator.

    from ragchat.http import create_router
"""

from .api import create_router

__all__ = ["create_router"]
