"""Configuration module for ragchat."""

from .providers import PROVIDER_CATALOGUE, ProviderEntry, get_provider_entry
from .settings import ChatSettings

# Import all constants
from .constants import *

__all__ = [
    "ChatSettings",
    "PROVIDER_CATALOGUE",
    "ProviderEntry",
    "get_provider_entry",
]
