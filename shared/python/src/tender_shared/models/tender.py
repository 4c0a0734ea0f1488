"""
models/tender.py — Canonical tender record produced by the mapper.

A TenderRecord is the transient, storage-agnostic shape of one tender: the
base fields every source shares plus exactly one TenderDetails sub-record
for its source. The SQL loader turns it into ORM rows inside a unit of work.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, SerializeAsAny, model_validator

from tender_shared.constants import SourceType


class SupportingDocRecord(BaseModel):
    name: str = ""
    url: str = ""


class TenderDetails(BaseModel):
    """Fields stored in the source-specific table."""

    source_type: ClassVar[SourceType]

    tender_number: str = ""

    def to_insert_dict(self) -> dict[str, Any]:
        return self.model_dump()


class ETenderDetails(TenderDetails):
    source_type: ClassVar[SourceType] = SourceType.ETENDERS

    audience: str = ""
    email: str = ""
    office_location: str = ""
    address: str = ""
    province: str = ""


class EskomTenderDetails(TenderDetails):
    source_type: ClassVar[SourceType] = SourceType.ESKOM

    reference: str = ""
    audience: str = ""
    office_location: str = ""
    email: str = ""
    address: str = ""
    province: str = ""


class TransnetTenderDetails(TenderDetails):
    source_type: ClassVar[SourceType] = SourceType.TRANSNET

    category: str = ""
    institution: str = ""
    tender_type: str = ""
    region: str = ""
    email: str = ""
    contact_person: str = ""


class SarsTenderDetails(TenderDetails):
    source_type: ClassVar[SourceType] = SourceType.SARS

    briefing_session: str = ""


class SanralTenderDetails(TenderDetails):
    source_type: ClassVar[SourceType] = SourceType.SANRAL

    category: str = ""
    location: str = ""
    email: str = ""
    full_text_notice: str = ""


class TenderRecord(BaseModel):
    """Matches one base_tender row plus its source-specific row."""

    id: UUID = Field(default_factory=uuid4)
    source: SourceType
    title: str = ""
    description: str = ""
    ai_summary: str | None = None
    published_date: datetime
    closing_date: datetime
    status: str
    date_appended: datetime
    tag_names: list[str] = Field(default_factory=list)
    supporting_docs: list[SupportingDocRecord] = Field(default_factory=list)
    details: SerializeAsAny[TenderDetails]

    @model_validator(mode="after")
    def _details_match_source(self) -> "TenderRecord":
        if self.details.source_type != self.source:
            raise ValueError(
                f"details for {self.details.source_type.value} attached to "
                f"a {self.source.value} record"
            )
        return self
