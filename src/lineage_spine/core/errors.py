"""
Structured error types for lineage publication.

Every failure raised by the publication core is a :class:`LineageError`
carrying a category, a retry flag, structured context and an optional
chained cause. The hierarchy separates *request-level* failures, which
abort a whole publish request and surface to the caller, from *unit-level*
failures, which are recorded for a single entity and absorbed by the
engine.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure the caller can act on
    - **Explicit Retry Semantics:** Each error knows if re-invoking may help
    - **Rich Context:** Errors carry entity and request metadata for audit
    - **Error Chaining:** The original store/channel exception is preserved

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        LineageError                          │
        │       (category, retryable, context, cause)                  │
        ├─────────────────────────────────────────────────────────────┤
        │  Request-level                 │  Unit-level                 │
        │  ─────────────                 │  ──────────                 │
        │  InvalidInputError (VALIDATION)│  ContextBuildError (CONTEXT)│
        │  UnauthorizedError (AUTH)      │  PublishError      (PUBLISH)│
        │  StoreUnavailableError (STORE) │  UnitFailure      (PIPELINE)│
        │  ServerNotFoundError (CONFIG)  │                             │
        │                                │  Diagnostic                 │
        │  Logged, not raised            │  ──────────                 │
        │  ──────────────────            │  UnsupportedTypeError       │
        │  PublishUnavailableError       │                             │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> err = StoreUnavailableError("repository offline")
    >>> err.retryable
    True
    >>> err.with_context(entity_type="Process").context.entity_type
    'Process'

Tags:
    error-handling, exception-hierarchy, lineage, publication

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Request validation
    VALIDATION = "VALIDATION"     # Malformed type name, missing filter
    AUTH = "AUTH"                 # Caller lacks rights on the store
    CONFIG = "CONFIG"             # Unknown server, bad settings

    # Collaborators
    STORE = "STORE"               # Metadata store query failures
    PUBLISH = "PUBLISH"           # Outbound channel failures

    # Pipeline
    CONTEXT = "CONTEXT"           # Context building failures
    PIPELINE = "PIPELINE"         # Per-entity unit failures

    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        server_name: Server instance the request was routed to
        caller_id: Identity of the caller
        request_id: Unique request identifier
        entity_type: Type name of the entity being processed
        entity_id: Identifier of the entity being processed
        operation: Engine operation name
        metadata: Additional key-value pairs
    """

    server_name: str | None = None
    caller_id: str | None = None
    request_id: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    operation: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["server_name", "caller_id", "request_id", "entity_type",
                    "entity_id", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class LineageError(Exception):
    """
    Base exception for all lineage publication errors.

    Subclasses set ``default_category``, ``default_retryable`` and
    ``http_status`` so the boundary layer can build an error descriptor
    without a lookup table.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False
    http_status: int = 500

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> LineageError:
        """
        Add context to this error (fluent API).

        Usage:
            raise ContextBuildError("walk failed").with_context(
                entity_type="Process",
                entity_id="guid-1",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# REQUEST-LEVEL ERRORS (abort the whole request)
# =============================================================================


class InvalidInputError(LineageError):
    """Malformed type name, unknown type, missing filter or identifier."""

    default_category = ErrorCategory.VALIDATION
    http_status = 400

    def __init__(
        self,
        message: str,
        *,
        parameter: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.parameter = parameter
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.parameter:
            result["parameter"] = self.parameter
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class UnauthorizedError(LineageError):
    """Caller lacks rights on the metadata store."""

    default_category = ErrorCategory.AUTH
    http_status = 403


class StoreUnavailableError(LineageError):
    """The metadata store could not answer the query."""

    default_category = ErrorCategory.STORE
    default_retryable = True
    http_status = 503


class ServerNotFoundError(LineageError):
    """No publication engine is registered for the requested server."""

    default_category = ErrorCategory.CONFIG
    http_status = 404

    def __init__(self, server_name: str, message: str | None = None):
        self.server_name = server_name
        super().__init__(message or f"Server {server_name!r} is not configured for lineage publication")


# =============================================================================
# PUBLISH CHANNEL ERRORS
# =============================================================================


class PublishUnavailableError(LineageError):
    """
    The publish channel could not be obtained at all.

    Distinct from :class:`PublishError`: the scan succeeded but there is
    nowhere to deliver to. The engine logs and audits this condition and
    returns an empty result instead of raising.
    """

    default_category = ErrorCategory.PUBLISH
    default_retryable = True
    http_status = 503


class PublishError(LineageError):
    """A single publish call failed or was rejected by the channel."""

    default_category = ErrorCategory.PUBLISH
    default_retryable = True
    http_status = 502


# =============================================================================
# CONTEXT / UNIT ERRORS
# =============================================================================


class ContextBuildError(LineageError):
    """Traversal of an entity's relationships failed."""

    default_category = ErrorCategory.CONTEXT


class UnsupportedTypeError(LineageError):
    """No context strategy is registered for the type name."""

    default_category = ErrorCategory.CONTEXT
    http_status = 400

    def __init__(self, type_name: str, message: str | None = None):
        self.type_name = type_name
        super().__init__(message or f"No context strategy registered for type {type_name!r}")


class UnitFailure(LineageError):
    """One entity's build-and-publish unit failed; never leaves the unit."""

    default_category = ErrorCategory.PIPELINE


# =============================================================================
# HELPERS
# =============================================================================


def is_retryable(error: BaseException) -> bool:
    """Check if an error is retryable; non-lineage errors are not."""
    if isinstance(error, LineageError):
        return error.retryable
    return False


def error_descriptor(error: BaseException) -> dict[str, Any]:
    """
    Describe an error for a caller-facing response.

    Returns the HTTP-like status code, the exception class name, the
    message and, for lineage errors, the category.
    """
    if isinstance(error, LineageError):
        return {
            "related_http_code": error.http_status,
            "exception_class_name": type(error).__name__,
            "exception_message": error.message,
            "error_category": error.category.value,
        }
    return {
        "related_http_code": 500,
        "exception_class_name": type(error).__name__,
        "exception_message": str(error),
        "error_category": ErrorCategory.INTERNAL.value,
    }


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "LineageError",
    "InvalidInputError",
    "UnauthorizedError",
    "StoreUnavailableError",
    "ServerNotFoundError",
    "PublishUnavailableError",
    "PublishError",
    "ContextBuildError",
    "UnsupportedTypeError",
    "UnitFailure",
    "is_retryable",
    "error_descriptor",
]
