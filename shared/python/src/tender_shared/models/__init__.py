"""
tender_shared.models — message, record, and ORM models.

  messages — pydantic models for the enriched queue messages (one per source)
  tender   — canonical TenderRecord produced by the mapper
  orm      — SQLAlchemy tables the record is written to
"""

from tender_shared.models.messages import (
    ETenderMessage,
    EskomTenderMessage,
    SanralTenderMessage,
    SarsTenderMessage,
    SupportingDocument,
    TenderMessage,
    TransnetTenderMessage,
)
from tender_shared.models.tender import (
    ETenderDetails,
    EskomTenderDetails,
    SanralTenderDetails,
    SarsTenderDetails,
    SupportingDocRecord,
    TenderDetails,
    TenderRecord,
    TransnetTenderDetails,
)

__all__ = [
    "TenderMessage",
    "SupportingDocument",
    "ETenderMessage",
    "EskomTenderMessage",
    "TransnetTenderMessage",
    "SarsTenderMessage",
    "SanralTenderMessage",
    "TenderRecord",
    "TenderDetails",
    "SupportingDocRecord",
    "ETenderDetails",
    "EskomTenderDetails",
    "TransnetTenderDetails",
    "SarsTenderDetails",
    "SanralTenderDetails",
]
