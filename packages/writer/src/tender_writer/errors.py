"""
errors.py — Exception taxonomy for the tender writer.

Per-message failures (MalformedPayload, UnsupportedSource, PersistenceFailure)
never escape BatchProcessor; they become the message's failure record and
are forwarded to the dead-letter queue. DeadLetterSubmissionFailure and
DeleteFailure are raised by the transport and handled per batch.
ConfigurationError is fatal at startup.
"""

from __future__ import annotations


class TenderWriterError(Exception):
    """Base class for all tender writer errors."""

    @property
    def category(self) -> str:
        """Short error type written to the dead-letter envelope."""
        return type(self).__name__


class MalformedPayload(TenderWriterError):
    """The message body could not be parsed into the expected message shape."""

    def __init__(self, message: str, *, routing_key: str | None = None) -> None:
        super().__init__(message)
        self.routing_key = routing_key


class UnsupportedSource(TenderWriterError):
    """No decoder or mapper is registered for the routing key / source type."""

    def __init__(self, routing_key: str) -> None:
        super().__init__(f"Unsupported routing key: {routing_key!r}")
        self.routing_key = routing_key


class PersistenceFailure(TenderWriterError):
    """The relational store rejected the write or was unreachable."""


class DeadLetterSubmissionFailure(TenderWriterError):
    """Failed messages could not be relocated to the dead-letter queue."""

    def __init__(self, message: str, *, failed_entry_ids: list[str] | None = None) -> None:
        super().__init__(message)
        self.failed_entry_ids = failed_entry_ids or []


class DeleteFailure(TenderWriterError):
    """Acknowledged messages could not be deleted from the source queue."""


class ConfigurationError(TenderWriterError):
    """Required configuration is missing; the process cannot start."""
