"""
Structured error types for relayrun.

Every failure the continuation machinery can raise is a typed
``RelayError`` carrying a category, a retry flag, structured context and
an optional chained cause.  The graceful stop signal ``StopRun`` lives
here too but deliberately sits *outside* the ``RelayError`` tree: a
callback asking to stop early is not a failure.

Manifesto:
    A run that crosses invocation boundaries has very few ways to fail,
    and each one calls for a different reaction from the operator:

    - **Configuration:** fix the call site, never retry
    - **Quota:** free timers or lower ``split``, never silently degrade
    - **State:** a continuation record vanished or was tampered with
    - **Source drift:** the data moved under a paused run

    Callback errors are *not* wrapped.  They propagate unchanged so the
    host sees the caller's own exception and traceback.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        RelayError                            │
        │        (category, retryable, context, cause)                 │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigError      QuotaError       ContinuationError         │
        │  (CONFIG)         (QUOTA)          (STATE)                   │
        │                                        │                     │
        │                           MissingContinuationError           │
        │                           CorruptContinuationError           │
        │                                                              │
        │  SourceError ── BoundDriftError                              │
        │  (SOURCE)                                                    │
        └─────────────────────────────────────────────────────────────┘

        StopRun(Exception)   graceful stop signal, not a RelayError

Examples:
    >>> error = ConfigError("split cannot be greater than 4")
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>
    >>> error.retryable
    False

    >>> error = QuotaError.for_request(requested=16, available=10)
    >>> error.to_dict()["context"]
    {'requested': 16, 'available': 10}

Guardrails:
    ❌ DON'T: Raise a RelayError from a callback to stop a run
    ✅ DO: Raise ``StopRun`` (optionally wrapping the reason)

    ❌ DON'T: Clamp ``split`` when the timer quota is too small
    ✅ DO: Let ``QuotaError`` reach the caller

Tags:
    error-handling, exception-hierarchy, stop-signal, relayrun

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and alerting."""

    CONFIG = "CONFIG"  # Bad call site or settings
    QUOTA = "QUOTA"  # Host timer limits
    STATE = "STATE"  # Continuation records
    SOURCE = "SOURCE"  # Work item sources
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        entry_point: Name of the entry point being run
        continuation_id: Continuation (timer) id involved, if any
        metadata: Additional key-value pairs
    """

    entry_point: str | None = None
    continuation_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result: dict[str, Any] = {}
        for key in ("entry_point", "continuation_id"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class RelayError(Exception):
    """
    Base exception for all relayrun errors.

    Subclasses set ``default_category`` and ``default_retryable``.  Nothing
    in relayrun is retryable by default: the package is not a retry
    framework, and every error it raises needs a human or a code change.

    Examples:
        >>> error = RelayError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> try:
        ...     raise KeyError("abc")
        ... except KeyError as e:
        ...     error = RelayError("lookup failed", cause=e)
        >>> error.cause
        KeyError('abc')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> RelayError:
        """
        Add context to this error (fluent API).

        Usage:
            raise MissingContinuationError("gone").with_context(
                entry_point="sync_rows",
                continuation_id="01HX...",
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result: dict[str, Any] = {
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
# CONFIGURATION & QUOTA
# =============================================================================


class ConfigError(RelayError):
    """
    Invalid call-site configuration.

    Raised before any item is processed: bad entry point names, zero or
    multiple sources, out-of-range options, unbounded sources handed to
    a parallel run.
    """

    default_category = ErrorCategory.CONFIG


class QuotaError(RelayError):
    """Fan-out would exceed the host's outstanding timer limit."""

    default_category = ErrorCategory.QUOTA

    def __init__(self, message: str, *, requested: int, available: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.requested = requested
        self.available = available
        self.context.metadata.setdefault("requested", requested)
        self.context.metadata.setdefault("available", available)

    @classmethod
    def for_request(cls, requested: int, available: int) -> QuotaError:
        return cls(
            f"Timer limit will be exceeded: {requested} continuations requested, "
            f"{available} timer slots available",
            requested=requested,
            available=available,
        )


# =============================================================================
# CONTINUATION STATE
# =============================================================================


class ContinuationError(RelayError):
    """Problem with a persisted continuation record."""

    default_category = ErrorCategory.STATE


class MissingContinuationError(ContinuationError):
    """A resumption event names an id with no stored cursor.

    Either the store lost data or someone deleted the record while the
    timer was still pending.  Fatal by design.
    """


class CorruptContinuationError(ContinuationError):
    """A stored record cannot be decoded into a cursor."""


# =============================================================================
# SOURCES
# =============================================================================


class SourceError(RelayError):
    """Error raised by or about a work item source."""

    default_category = ErrorCategory.SOURCE


class BoundDriftError(SourceError):
    """A resumed bounded source no longer matches the saved cursor."""

    def __init__(
        self,
        message: str,
        *,
        expected: int | None = None,
        actual: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.expected = expected
        self.actual = actual


# =============================================================================
# STOP SIGNAL
# =============================================================================


class StopRun(Exception):
    """
    Graceful stop signal raised by a per-item callback.

    The runner catches it, ends the current run (or segment) without
    scheduling a continuation, and returns normally.  It is not an
    error and never reaches the host.

    Args:
        message: Optional human-readable reason
        cause: Optional exception that motivated the stop

    Example:
        >>> def handle(row):
        ...     if row["status"] == "done":
        ...         raise StopRun("reached already-processed rows")
    """

    def __init__(self, message: str | None = None, *, cause: BaseException | None = None):
        if message is None:
            super().__init__()
        else:
            super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "RelayError",
    "ConfigError",
    "QuotaError",
    "ContinuationError",
    "MissingContinuationError",
    "CorruptContinuationError",
    "SourceError",
    "BoundDriftError",
    "StopRun",
]
