"""
models/orm.py — SQLAlchemy ORM tables for persisted tenders.

Joined-table inheritance: every tender has one base_tender row and exactly
one row in the table for its source (etender, eskom_tender, ...), linked by
tender_id. Tags are shared reference rows joined through base_tender_tag;
supporting documents are owned by their tender.

Schema:
    base_tender ──< supporting_doc
    base_tender ──< base_tender_tag >── tag
    base_tender ──1 {etender | eskom_tender | transnet_tender | sars_tender | sanral_tender}
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, validates

from tender_shared.constants import SourceType


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


base_tender_tag = Table(
    "base_tender_tag",
    Base.metadata,
    Column("tender_id", ForeignKey("base_tender.tender_id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", ForeignKey("tag.tag_id"), primary_key=True),
)


def tag_key(name: str) -> str:
    """Case-insensitive identity of a tag name, folded in Python for every script."""
    return name.strip().casefold()


class Tag(Base):
    """
    Shared tag; names are unique ignoring case.

    tag_key is kept in step with tag_name and carries the unique index, so
    matching never depends on the database's lower().
    """
    __tablename__ = "tag"

    tag_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tag_name: Mapped[str] = mapped_column(String(255))
    tag_key: Mapped[str] = mapped_column(String(255), unique=True)

    @validates("tag_name")
    def _sync_key(self, _field: str, value: str) -> str:
        self.tag_key = tag_key(value)
        return value

    def __repr__(self) -> str:
        return f"<Tag {self.tag_name}>"


class BaseTender(Base):
    __tablename__ = "base_tender"

    tender_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(Text, default="")
    description: Mapped[str] = mapped_column(Text, default="")
    ai_summary: Mapped[Optional[str]] = mapped_column(Text)
    source: Mapped[str] = mapped_column(String(50), index=True)
    status: Mapped[str] = mapped_column(String(100))
    published_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    closing_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    date_appended: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    record_type: Mapped[str] = mapped_column(String(32))

    tags: Mapped[list[Tag]] = relationship(secondary=base_tender_tag, lazy="selectin")
    supporting_docs: Mapped[list["SupportingDoc"]] = relationship(
        back_populates="tender", cascade="all, delete-orphan", lazy="selectin"
    )

    __mapper_args__ = {
        "polymorphic_on": "record_type",
        "polymorphic_identity": "base",
    }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.tender_id}: {self.title[:40]!r}>"


class SupportingDoc(Base):
    __tablename__ = "supporting_doc"

    supporting_doc_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("base_tender.tender_id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(Text, default="")
    url: Mapped[str] = mapped_column(Text, default="")

    tender: Mapped[BaseTender] = relationship(back_populates="supporting_docs")


class ETender(BaseTender):
    __tablename__ = "etender"

    tender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("base_tender.tender_id", ondelete="CASCADE"), primary_key=True
    )
    tender_number: Mapped[str] = mapped_column(String(255))
    audience: Mapped[Optional[str]] = mapped_column(Text)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    office_location: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(Text)
    province: Mapped[Optional[str]] = mapped_column(String(100))

    __mapper_args__ = {"polymorphic_identity": SourceType.ETENDERS.value}


class EskomTender(BaseTender):
    __tablename__ = "eskom_tender"

    tender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("base_tender.tender_id", ondelete="CASCADE"), primary_key=True
    )
    tender_number: Mapped[str] = mapped_column(String(255))
    reference: Mapped[Optional[str]] = mapped_column(String(255))
    audience: Mapped[Optional[str]] = mapped_column(Text)
    office_location: Mapped[Optional[str]] = mapped_column(Text)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    address: Mapped[Optional[str]] = mapped_column(Text)
    province: Mapped[Optional[str]] = mapped_column(String(100))

    __mapper_args__ = {"polymorphic_identity": SourceType.ESKOM.value}


class TransnetTender(BaseTender):
    __tablename__ = "transnet_tender"

    tender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("base_tender.tender_id", ondelete="CASCADE"), primary_key=True
    )
    tender_number: Mapped[str] = mapped_column(String(255))
    category: Mapped[Optional[str]] = mapped_column(String(255))
    institution: Mapped[Optional[str]] = mapped_column(String(255))
    tender_type: Mapped[Optional[str]] = mapped_column(String(255))
    region: Mapped[Optional[str]] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    contact_person: Mapped[Optional[str]] = mapped_column(String(255))

    __mapper_args__ = {"polymorphic_identity": SourceType.TRANSNET.value}


class SarsTender(BaseTender):
    __tablename__ = "sars_tender"

    tender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("base_tender.tender_id", ondelete="CASCADE"), primary_key=True
    )
    tender_number: Mapped[str] = mapped_column(String(255))
    briefing_session: Mapped[Optional[str]] = mapped_column(Text)

    __mapper_args__ = {"polymorphic_identity": SourceType.SARS.value}


class SanralTender(BaseTender):
    __tablename__ = "sanral_tender"

    tender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("base_tender.tender_id", ondelete="CASCADE"), primary_key=True
    )
    tender_number: Mapped[str] = mapped_column(String(255))
    category: Mapped[Optional[str]] = mapped_column(String(255))
    location: Mapped[Optional[str]] = mapped_column(String(255))
    email: Mapped[Optional[str]] = mapped_column(String(255))
    full_text_notice: Mapped[Optional[str]] = mapped_column(Text)

    __mapper_args__ = {"polymorphic_identity": SourceType.SANRAL.value}


# Source type → ORM class for its specialized table
TENDER_TABLES: dict[SourceType, type[BaseTender]] = {
    SourceType.ETENDERS: ETender,
    SourceType.ESKOM: EskomTender,
    SourceType.TRANSNET: TransnetTender,
    SourceType.SARS: SarsTender,
    SourceType.SANRAL: SanralTender,
}
