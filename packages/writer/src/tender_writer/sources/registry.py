"""
sources/registry.py — Routing-key → source adapter lookup.

Scrapers publish every message under a FIFO MessageGroupId naming the source
they scraped ("SanralTenderScrape", "eskomlambda", ...). The registry maps
those keys, case-insensitively, onto the adapter that decodes the body.

Usage:
    from tender_writer.sources import build_registry

    registry = build_registry()
    result = registry.decode("SanralTenderScrape", body)
    if result.ok:
        record = mapper.map(result.message)
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from tender_writer.errors import MalformedPayload, UnsupportedSource
from tender_writer.sources.base import DecodeResult, SourceAdapter

log = structlog.get_logger(__name__)


def _normalize_key(routing_key: str | None) -> str:
    return (routing_key or "").strip().casefold()


class MessageVariantRegistry:
    """Case-insensitive routing-key registry of source adapters."""

    def __init__(self, adapters: Iterable[SourceAdapter] = ()) -> None:
        self._by_key: dict[str, SourceAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: SourceAdapter) -> None:
        """
        Add every routing key alias of `adapter`.

        Raises:
            ValueError: if an alias is already claimed by another adapter.
        """
        for key in adapter.routing_keys:
            normalized = _normalize_key(key)
            if not normalized:
                raise ValueError(f"{adapter.source_type.value}: blank routing key")
            existing = self._by_key.get(normalized)
            if existing is not None and existing is not adapter:
                raise ValueError(
                    f"Routing key {key!r} already registered for "
                    f"{existing.source_type.value}"
                )
            self._by_key[normalized] = adapter

    @property
    def routing_keys(self) -> list[str]:
        return sorted(self._by_key)

    def resolve(self, routing_key: str | None) -> SourceAdapter | None:
        return self._by_key.get(_normalize_key(routing_key))

    def decode(self, routing_key: str | None, body: str | None) -> DecodeResult:
        """
        Decode `body` with the adapter registered for `routing_key`.

        Never raises for bad input: an unknown key yields UnsupportedSource,
        an unparseable body yields MalformedPayload, both in result.error.
        """
        adapter = self.resolve(routing_key)
        if adapter is None:
            log.warning("unsupported_routing_key", routing_key=routing_key)
            return DecodeResult(error=UnsupportedSource(routing_key or ""))

        try:
            message = adapter.decode(body or "", routing_key=routing_key)
        except MalformedPayload as exc:
            return DecodeResult(adapter=adapter, error=exc)
        return DecodeResult(message=message, adapter=adapter)
