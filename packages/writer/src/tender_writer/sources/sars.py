"""sources/sars.py — South African Revenue Service procurement notices."""

from __future__ import annotations

from tender_shared.constants import SourceType
from tender_shared.models.messages import SarsTenderMessage
from tender_shared.models.tender import SarsTenderDetails
from tender_writer.sources.base import SourceAdapter


def map_sars(message: SarsTenderMessage) -> SarsTenderDetails:
    return SarsTenderDetails(
        tender_number=message.tender_number,
        briefing_session=message.briefing_session,
    )


ADAPTER = SourceAdapter(
    source_type=SourceType.SARS,
    routing_keys=("sarstenderscrape", "sarslambda", "sars"),
    message_model=SarsTenderMessage,
    map_details=map_sars,
)
