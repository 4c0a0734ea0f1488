"""
sources/sanral.py — South African National Roads Agency tenders.

Field renames:
    region         (message) → location         (sanral_tender)
    fullNoticeText (message) → full_text_notice (sanral_tender)
"""

from __future__ import annotations

from tender_shared.constants import SourceType
from tender_shared.models.messages import SanralTenderMessage
from tender_shared.models.tender import SanralTenderDetails
from tender_writer.sources.base import SourceAdapter


def map_sanral(message: SanralTenderMessage) -> SanralTenderDetails:
    return SanralTenderDetails(
        tender_number=message.tender_number,
        category=message.category,
        location=message.region,
        email=message.email,
        full_text_notice=message.full_notice_text,
    )


ADAPTER = SourceAdapter(
    source_type=SourceType.SANRAL,
    routing_keys=("sanraltenderscrape", "sanrallambda", "sanral"),
    message_model=SanralTenderMessage,
    map_details=map_sanral,
)
