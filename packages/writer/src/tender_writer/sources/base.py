"""
sources/base.py — Adapter contract shared by every tender source.

A SourceAdapter bundles the three things the writer needs to know about one
scraper source:

  routing_keys   — FIFO MessageGroupId aliases the scrapers publish under
  message_model  — pydantic model the JSON body decodes into
  map_details()  — field mapper filling the source's specialized sub-record

Adding a source is one new module exporting an adapter plus one entry in
sources.DEFAULT_ADAPTERS; nothing in the batch processor changes.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import structlog
from pydantic import ValidationError

from tender_shared.constants import SourceType
from tender_shared.models.messages import TenderMessage
from tender_shared.models.tender import TenderDetails
from tender_writer.errors import MalformedPayload, UnsupportedSource

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SourceAdapter:
    """Decoder and field mapper for one source type."""

    source_type: SourceType
    routing_keys: tuple[str, ...]
    message_model: type[TenderMessage]
    map_details: Callable[[Any], TenderDetails]

    def decode(self, body: str, *, routing_key: str | None = None) -> TenderMessage:
        """
        Parse a JSON message body into this source's message model.

        Raises:
            MalformedPayload: if the body is empty, not JSON, or does not fit
                              the model.
        """
        if not body or not body.strip():
            raise MalformedPayload("Message body is null or empty.", routing_key=routing_key)
        try:
            message = self.message_model.from_json(body)
        except json.JSONDecodeError as exc:
            raise MalformedPayload(
                f"Failed to decode {self.source_type.value} message: {exc}",
                routing_key=routing_key,
            ) from exc
        except ValidationError as exc:
            log.debug(
                "decode_failed",
                source_type=self.source_type.value,
                routing_key=routing_key,
                error_count=exc.error_count(),
            )
            raise MalformedPayload(
                f"Failed to decode {self.source_type.value} message: {exc}",
                routing_key=routing_key,
            ) from exc
        return message


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of decoding one message: a message or an error, never both."""

    message: TenderMessage | None = None
    adapter: SourceAdapter | None = None
    error: MalformedPayload | UnsupportedSource | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

