"""VectorORM exception hierarchy.

This module defines the errors raised by adapters, filter translation,
pipelines and providers. Adapter and translation errors propagate to the
caller; pipeline code catches per-item failures and records them in stats.
"""

from typing import Any, Optional


class VectorORMError(Exception):
    """Base exception for all VectorORM errors.

    All library-specific exceptions inherit from this class.
    """
    pass


class ProviderNotFoundError(VectorORMError):
    """Raised when a provider (adapter, LLM, embedder) is not registered.

    Attributes:
        provider: Name of the provider that was not found
        available: List of available provider names
    """
    def __init__(self, provider: str, available: list[str] | None = None):
        self.provider = provider
        self.available = available or []
        message = f"Provider '{provider}' not found"
        if self.available:
            message += f". Available providers: {', '.join(self.available)}"
        super().__init__(message)


class ConfigurationError(VectorORMError):
    """Raised when configuration is invalid or missing required settings.

    Attributes:
        setting: Name of the setting that is invalid/missing
        message: Detailed error message
    """
    def __init__(self, setting: str, message: str | None = None):
        self.setting = setting
        self.message = message or f"Invalid or missing configuration for '{setting}'"
        super().__init__(self.message)


class APIKeyError(ConfigurationError):
    """Raised when a required API key is missing.

    Attributes:
        provider: Provider name requiring the API key
        env_var: Environment variable name for the API key
    """
    def __init__(self, provider: str, env_var: str):
        self.provider = provider
        self.env_var = env_var
        message = f"{env_var} is required for {provider}. Set {env_var}."
        super().__init__(env_var, message)


class NotConnectedError(VectorORMError):
    """Raised when an adapter operation is attempted before connect()."""
    def __init__(self, adapter: str):
        self.adapter = adapter
        super().__init__(f"{adapter}: Not connected. Call connect() first.")


class BackendError(VectorORMError):
    """Raised when a vector store call fails.

    Attributes:
        operation: Operation that failed (e.g. "upsert", "search")
        collection: Collection the operation targeted
        cause: Underlying exception, kept for diagnostics
    """
    def __init__(
        self,
        operation: str,
        collection: str | None = None,
        message: str | None = None,
        cause: Optional[BaseException] = None,
    ):
        self.operation = operation
        self.collection = collection
        self.cause = cause
        target = f" in collection '{collection}'" if collection else ""
        detail = message or (str(cause) if cause is not None else "unknown error")
        self.message = f"Failed to {operation}{target}: {detail}"
        super().__init__(self.message)


class CollectionError(BackendError):
    """Raised when creating, deleting or describing a collection fails."""
    pass


class NotFoundError(BackendError):
    """Raised when an operation requires records that do not exist.

    Attributes:
        ids: Record ids that were not found
    """
    def __init__(self, operation: str, collection: str, ids: list[str]):
        self.ids = list(ids)
        super().__init__(
            operation,
            collection,
            message=f"records not found: {', '.join(self.ids)}",
        )


class FilterError(VectorORMError):
    """Base class for filter validation and translation errors."""
    pass


class InvalidFilterError(FilterError):
    """Raised when a filter is structurally invalid."""
    pass


class UnsupportedOperatorError(FilterError):
    """Raised when a backend has no native equivalent for a filter operator.

    Attributes:
        operator: The universal operator that cannot be translated
        backend: Backend name
    """
    def __init__(self, operator: str, backend: str):
        self.operator = operator
        self.backend = backend
        super().__init__(f"Operator '{operator}' is not supported by {backend}")


class UnsupportedFilterError(FilterError):
    """Raised when a backend cannot represent a filter shape (e.g. nesting)."""
    def __init__(self, reason: str, backend: str):
        self.reason = reason
        self.backend = backend
        super().__init__(f"Filter not supported by {backend}: {reason}")


class NoLoaderFoundError(VectorORMError):
    """Raised when no registered loader can handle a source."""
    def __init__(self, source: str):
        self.source = source
        super().__init__(f"No loader found for source: {source}")


class DocumentLoadError(VectorORMError):
    """Raised when a loader cannot read or parse its input."""
    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Failed to load '{source}': {message}")


class ParseError(VectorORMError):
    """Raised when structured LLM output cannot be parsed.

    Attributes:
        raw: The raw model output
    """
    def __init__(self, message: str, raw: Any = None):
        self.raw = raw
        super().__init__(message)
