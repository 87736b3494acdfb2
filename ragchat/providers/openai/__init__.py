from .adapter import OpenAICompatibleProvider

__all__ = ["OpenAICompatibleProvider"]
