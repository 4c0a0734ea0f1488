"""
transforms/mapper.py — Decoded message → canonical TenderRecord.

The mapper fills the base fields every source shares, derives the tender
status, applies the date defaults, and delegates the source-specific fields
to the adapter registered for the message's source type.

Status rules:
  * a non-blank status published by the source is kept verbatim
  * no closing date (or the NO_DEADLINE sentinel) → Open
  * closing date strictly after now                → Open
  * otherwise                                      → Closed

Usage:
    from tender_writer.transforms.mapper import TenderMapper

    mapper = TenderMapper(DEFAULT_ADAPTERS)
    record = mapper.map(message)
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime

import structlog

from tender_shared.constants import NO_DEADLINE, STATUS_CLOSED, STATUS_OPEN, SourceType
from tender_shared.models.messages import TenderMessage
from tender_shared.models.tender import SupportingDocRecord, TenderRecord
from tender_shared.time_utils import ensure_utc, is_no_deadline, utc_now
from tender_writer.errors import UnsupportedSource
from tender_writer.sources.base import SourceAdapter

log = structlog.get_logger(__name__)


def derive_status(
    closing_date: datetime | None,
    explicit_status: str | None,
    now: datetime,
) -> str:
    """Return the stored status for a tender closing at `closing_date`."""
    if explicit_status and explicit_status.strip():
        return explicit_status
    if is_no_deadline(closing_date):
        return STATUS_OPEN
    return STATUS_OPEN if ensure_utc(closing_date) > ensure_utc(now) else STATUS_CLOSED


class TenderMapper:
    """
    Maps any supported message variant to a TenderRecord.

    Args:
        adapters: Source adapters whose map_details() fill the per-source
                  sub-record. One per source type.
        clock:    Returns the current UTC time. Injected for tests.
    """

    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._adapters: dict[SourceType, SourceAdapter] = {
            adapter.source_type: adapter for adapter in adapters
        }
        self._clock = clock

    def map(self, message: TenderMessage) -> TenderRecord:
        """
        Build the canonical record for `message`.

        Raises:
            UnsupportedSource: if no adapter handles the message's source type.
        """
        source_type = message.get_source_type()
        adapter = self._adapters.get(source_type)
        if adapter is None:
            raise UnsupportedSource(source_type.value)

        now = self._clock()
        record = TenderRecord(
            source=source_type,
            title=message.title,
            description=message.description,
            ai_summary=message.ai_summary,
            published_date=message.published_date or now,
            closing_date=message.closing_date or NO_DEADLINE,
            status=derive_status(message.closing_date, message.explicit_status, now),
            date_appended=now,
            tag_names=list(message.tags),
            supporting_docs=[
                SupportingDocRecord(name=doc.name, url=doc.url)
                for doc in message.supporting_docs
            ],
            details=adapter.map_details(message),
        )
        log.debug(
            "tender_mapped",
            source=source_type.value,
            tender_id=str(record.id),
            status=record.status,
        )
        return record
