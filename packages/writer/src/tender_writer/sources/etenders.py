"""
sources/etenders.py — National eTender portal (etenders.gov.za).

The portal publishes its own tender status and uses its own key names for
dates (datePublished / dateClosing) and documents (supportingDocs). The
contact fields map one-to-one onto the etender table.
"""

from __future__ import annotations

from tender_shared.constants import SourceType
from tender_shared.models.messages import ETenderMessage
from tender_shared.models.tender import ETenderDetails
from tender_writer.sources.base import SourceAdapter


def map_etender(message: ETenderMessage) -> ETenderDetails:
    return ETenderDetails(
        tender_number=message.tender_number,
        audience=message.audience,
        email=message.email,
        office_location=message.office_location,
        address=message.address,
        province=message.province,
    )


ADAPTER = SourceAdapter(
    source_type=SourceType.ETENDERS,
    routing_keys=("etenderscrape", "etenderlambda", "etender", "etenders"),
    message_model=ETenderMessage,
    map_details=map_etender,
)
