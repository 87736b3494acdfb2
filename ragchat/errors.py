"""Package-level error definitions."""

from typing import Optional


class RagChatError(Exception):
    """Base exception for ragchat errors."""
    pass


class ConfigurationError(RagChatError):
    """Raised when a component is missing required configuration."""
    pass


class TemplateError(RagChatError):
    """Exception raised when a prompt template cannot be rendered."""

    def __init__(self, template_name: str, reason: str):
        self.template_name = template_name
        self.reason = reason
        super().__init__(f"Template '{template_name}' failed: {reason}")


class RetrievalError(RagChatError):
    """Exception raised when the embedding store or reranker fails."""

    def __init__(self, operation: str, original_error: Optional[Exception] = None):
        self.operation = operation
        self.original_error = original_error

        message = f"Retrieval step '{operation}' failed"
        if original_error is not None:
            message += f": {original_error}"
        super().__init__(message)
