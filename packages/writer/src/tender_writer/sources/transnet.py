"""
sources/transnet.py — Transnet eTender portal.

Field renames:
    location (message) → region (transnet_tender)
"""

from __future__ import annotations

from tender_shared.constants import SourceType
from tender_shared.models.messages import TransnetTenderMessage
from tender_shared.models.tender import TransnetTenderDetails
from tender_writer.sources.base import SourceAdapter


def map_transnet(message: TransnetTenderMessage) -> TransnetTenderDetails:
    return TransnetTenderDetails(
        tender_number=message.tender_number,
        category=message.category,
        institution=message.institution,
        tender_type=message.tender_type,
        region=message.location,
        email=message.email,
        contact_person=message.contact_person,
    )


ADAPTER = SourceAdapter(
    source_type=SourceType.TRANSNET,
    routing_keys=("transnettenderscrape", "transnetlambda", "transnet"),
    message_model=TransnetTenderMessage,
    map_details=map_transnet,
)
