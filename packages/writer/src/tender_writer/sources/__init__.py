"""
tender_writer.sources — one adapter per tender scraper source.

  etenders  — National eTender portal (publishes its own status)
  eskom     — Eskom tender bulletin
  transnet  — Transnet eTender portal
  sars      — SARS procurement notices
  sanral    — SANRAL road tenders
"""

from tender_writer.sources import eskom, etenders, sanral, sars, transnet
from tender_writer.sources.base import DecodeResult, SourceAdapter
from tender_writer.sources.registry import MessageVariantRegistry

DEFAULT_ADAPTERS: tuple[SourceAdapter, ...] = (
    etenders.ADAPTER,
    eskom.ADAPTER,
    transnet.ADAPTER,
    sars.ADAPTER,
    sanral.ADAPTER,
)


def build_registry() -> MessageVariantRegistry:
    """Registry pre-loaded with every supported source."""
    return MessageVariantRegistry(DEFAULT_ADAPTERS)


__all__ = [
    "DEFAULT_ADAPTERS",
    "DecodeResult",
    "MessageVariantRegistry",
    "SourceAdapter",
    "build_registry",
]
