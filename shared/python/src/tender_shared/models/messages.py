"""
models/messages.py — Pydantic models for the enriched tender queue messages.

One model per scraper source. All variants share the TenderMessage base
fields; each adds the fields only that source publishes and answers a fixed
source type via get_source_type().

JSON keys are matched case-insensitively and explicit nulls fall back to the
field default, matching what the upstream scrapers emit.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tender_shared.constants import SourceType
from tender_shared.time_utils import ensure_utc


class _QueueModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _fold_keys(cls, data: Any) -> Any:
        """Map incoming keys onto field aliases ignoring case; drop nulls."""
        if not isinstance(data, dict):
            return data
        aliases = {
            (field.alias or name).lower(): field.alias or name
            for name, field in cls.model_fields.items()
        }
        folded: dict[str, Any] = {}
        for key, value in data.items():
            if value is None:
                continue
            if isinstance(key, str):
                key = aliases.get(key.lower(), key)
            folded[key] = value
        return folded


class SupportingDocument(_QueueModel):
    name: str = ""
    url: str = ""


class TenderMessage(_QueueModel):
    """Fields common to every source."""

    source_type: ClassVar[SourceType]

    title: str = ""
    description: str = ""
    tender_number: str = Field(default="", alias="tenderNumber")
    reference: str = ""
    audience: str = ""
    office_location: str = Field(default="", alias="officeLocation")
    email: str = ""
    address: str = ""
    province: str = ""
    supporting_docs: list[SupportingDocument] = Field(
        default_factory=list, alias="supporting_docs"
    )
    tags: list[str] = Field(default_factory=list)
    ai_summary: str | None = Field(default=None, alias="ai_summary")
    published_date: datetime | None = Field(default=None, alias="publishedDate")
    closing_date: datetime | None = Field(default=None, alias="closingDate")

    @classmethod
    def from_json(cls, body: str | bytes) -> TenderMessage:
        """
        Parse a raw queue body.

        JSON numbers with a fraction or exponent are read as Decimal so a
        numeric tenderNumber keeps its digits.

        Raises:
            json.JSONDecodeError: if the body is not JSON.
            pydantic.ValidationError: if the JSON does not fit the model.
        """
        return cls.model_validate(json.loads(body, parse_float=Decimal))

    def get_source_type(self) -> SourceType:
        return self.source_type

    @property
    def explicit_status(self) -> str | None:
        """Status published by the source itself, if it publishes one."""
        return None

    @field_validator("tender_number", mode="before")
    @classmethod
    def _string_or_number(cls, v: Any) -> Any:
        # Scrapers send tender numbers as either JSON strings or numbers
        if isinstance(v, bool):
            raise ValueError("tenderNumber must be a string or a number")
        if isinstance(v, Decimal):
            return format(v, "f")
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @field_validator("published_date", "closing_date", mode="after")
    @classmethod
    def _to_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class ETenderMessage(TenderMessage):
    """National eTender portal. Publishes its own status and uses its own date keys."""

    source_type: ClassVar[SourceType] = SourceType.ETENDERS

    id: int = 0
    status: str = ""
    url: str = ""
    published_date: datetime | None = Field(default=None, alias="datePublished")
    closing_date: datetime | None = Field(default=None, alias="dateClosing")
    supporting_docs: list[SupportingDocument] = Field(
        default_factory=list, alias="supportingDocs"
    )

    @property
    def explicit_status(self) -> str | None:
        return self.status


class EskomTenderMessage(TenderMessage):
    source_type: ClassVar[SourceType] = SourceType.ESKOM

    source: str = ""


class TransnetTenderMessage(TenderMessage):
    source_type: ClassVar[SourceType] = SourceType.TRANSNET

    institution: str = ""
    category: str = ""
    tender_type: str = Field(default="", alias="tenderType")
    location: str = ""
    contact_person: str = Field(default="", alias="contactPerson")
    source: str = ""


class SarsTenderMessage(TenderMessage):
    source_type: ClassVar[SourceType] = SourceType.SARS

    source: str = ""
    briefing_session: str = Field(default="", alias="briefingSession")


class SanralTenderMessage(TenderMessage):
    source_type: ClassVar[SourceType] = SourceType.SANRAL

    source: str = ""
    category: str = ""
    region: str = ""
    full_notice_text: str = Field(default="", alias="fullNoticeText")
