"""
sources/eskom.py — Eskom tender bulletin.

Eskom publishes no fields of its own beyond `source`, so its table carries
the shared contact fields (reference, audience, office location, email,
address, province) copied from the base message.
"""

from __future__ import annotations

from tender_shared.constants import SourceType
from tender_shared.models.messages import EskomTenderMessage
from tender_shared.models.tender import EskomTenderDetails
from tender_writer.sources.base import SourceAdapter


def map_eskom(message: EskomTenderMessage) -> EskomTenderDetails:
    return EskomTenderDetails(
        tender_number=message.tender_number,
        reference=message.reference,
        audience=message.audience,
        office_location=message.office_location,
        email=message.email,
        address=message.address,
        province=message.province,
    )


ADAPTER = SourceAdapter(
    source_type=SourceType.ESKOM,
    routing_keys=("eskomtenderscrape", "eskomlambda", "eskom"),
    message_model=EskomTenderMessage,
    map_details=map_eskom,
)
