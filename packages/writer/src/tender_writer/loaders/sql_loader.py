"""
loaders/sql_loader.py — Append-only tender writes through SQLAlchemy.

Every message is written in its own unit of work: one session, one
transaction, committed on success and rolled back on any error. A failure
in one message's unit never touches another message's rows.

Usage:
    from tender_writer.loaders.sql_loader import SqlTenderGateway

    gateway = SqlTenderGateway()          # uses tender_shared.db session factory

    with gateway.unit_of_work() as uow:
        tags = resolver.resolve(record.tag_names, uow)
        uow.add_tender(record, tags)
    # committed here; SQLAlchemy errors surface as PersistenceFailure
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from tender_shared.db import get_session_factory
from tender_shared.models.orm import TENDER_TABLES, BaseTender, SupportingDoc, Tag, tag_key
from tender_shared.models.tender import TenderRecord
from tender_writer.errors import PersistenceFailure

log = structlog.get_logger(__name__)


class UnitOfWork:
    """
    One isolated transaction plus the tag name map scoped to it.

    tag_cache maps case-folded tag names to the Tag instance already loaded
    or created in this unit.
    """

    def __init__(self, session: Session) -> None:
        self.session = session
        self.tag_cache: dict[str, Tag] = {}
        self.tenders: list[BaseTender] = []

    def find_tags(self, names: Iterable[str]) -> list[Tag]:
        """Existing tags whose names match any of `names`, ignoring case."""
        keys = sorted({tag_key(name) for name in names})
        if not keys:
            return []
        stmt = select(Tag).where(Tag.tag_key.in_(keys))
        return list(self.session.scalars(stmt))

    def add_tag(self, tag: Tag) -> None:
        self.session.add(tag)

    def add_tender(self, record: TenderRecord, tags: Iterable[Tag]) -> BaseTender:
        """Stage the base row, the source row, its docs, and the tag links."""
        table = TENDER_TABLES.get(record.source)
        if table is None:
            raise PersistenceFailure(f"No table for source {record.source.value}")

        row = table(
            tender_id=record.id,
            title=record.title,
            description=record.description,
            ai_summary=record.ai_summary,
            source=record.source.value,
            status=record.status,
            published_date=record.published_date,
            closing_date=record.closing_date,
            date_appended=record.date_appended,
            tags=list(tags),
            supporting_docs=[
                SupportingDoc(supporting_doc_id=uuid.uuid4(), name=doc.name, url=doc.url)
                for doc in record.supporting_docs
            ],
            **record.details.to_insert_dict(),
        )
        self.session.add(row)
        self.tenders.append(row)
        return row


class SqlTenderGateway:
    """
    Opens per-message units of work against the relational store.

    Args:
        session_factory: sessionmaker to draw sessions from. Defaults to the
                         process-wide factory from tender_shared.db.
    """

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    @contextmanager
    def unit_of_work(self) -> Iterator[UnitOfWork]:
        """
        Yield a UnitOfWork and commit it when the block exits cleanly.

        Raises:
            PersistenceFailure: if the store rejects a query or the commit.
                                Other exceptions from the block propagate
                                unchanged after rollback.
        """
        session = self.session_factory()
        uow = UnitOfWork(session)
        try:
            yield uow
            session.commit()
        except SQLAlchemyError as exc:
            _rollback(session)
            log.warning("unit_of_work_rolled_back", error=str(exc))
            raise PersistenceFailure(f"Failed to persist tender: {exc}") from exc
        except Exception:
            _rollback(session)
            raise
        finally:
            session.close()

        log.debug(
            "unit_of_work_committed",
            tenders=[str(row.tender_id) for row in uow.tenders],
        )


def _rollback(session: Session) -> None:
    # A failed rollback must not replace the error that caused it
    try:
        session.rollback()
    except SQLAlchemyError as exc:
        log.error("unit_of_work_rollback_failed", error=str(exc))
