"""
tests/conftest.py — Shared pytest fixtures for the tender writer test suite.

Provides:
  fixture_path / load_fixture — raw JSON message bodies from tests/fixtures/
  source_queue_url / failed_queue_url — FIFO queue URLs used throughout
  fixed_now / clock           — deterministic "now" for status derivation
  engine / session_factory    — in-memory SQLite with the full tender schema
  gateway                     — SqlTenderGateway bound to the SQLite engine
  mock_sqs_client             — MagicMock of the boto3 SQS client
  transport                   — SqsTransport over the mock client (no backoff sleep)
  processor                   — BatchProcessor wired to all of the above
  make_message                — factory for RawMessage instances
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from itertools import count
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tender_shared.db import init_schema
from tender_writer.loaders.sql_loader import SqlTenderGateway
from tender_writer.pipelines.batch import BatchProcessor
from tender_writer.sources import DEFAULT_ADAPTERS, build_registry
from tender_writer.transforms.mapper import TenderMapper
from tender_writer.transforms.tags import TagResolver
from tender_writer.transport.base import RawMessage
from tender_writer.transport.sqs import SqsTransport

FIXTURES_DIR = Path(__file__).parent / "fixtures"

SOURCE_QUEUE_URL = "https://sqs.af-south-1.amazonaws.com/123456789012/tenders.fifo"
FAILED_QUEUE_URL = "https://sqs.af-south-1.amazonaws.com/123456789012/tenders-failed.fifo"


# ---------------------------------------------------------------------------
# Fixture files
# ---------------------------------------------------------------------------

@pytest.fixture
def fixture_path() -> Path:
    return FIXTURES_DIR


@pytest.fixture
def load_fixture() -> Callable[[str], str]:
    """Return the raw text of tests/fixtures/<name>.json."""

    def _load(name: str) -> str:
        return (FIXTURES_DIR / f"{name}.json").read_text(encoding="utf-8")

    return _load


@pytest.fixture
def source_queue_url() -> str:
    return SOURCE_QUEUE_URL


@pytest.fixture
def failed_queue_url() -> str:
    return FAILED_QUEUE_URL


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------

@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now: datetime) -> Callable[[], datetime]:
    return lambda: fixed_now


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest.fixture
def engine():
    """
    In-memory SQLite engine with every tender table created.

    StaticPool keeps the single connection alive so all sessions see the
    same database.
    """
    eng = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_schema(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def gateway(session_factory) -> SqlTenderGateway:
    return SqlTenderGateway(session_factory)


# ---------------------------------------------------------------------------
# SQS client mock
# ---------------------------------------------------------------------------

def _all_successful(QueueUrl: str, Entries: list[dict]) -> dict:
    return {"Successful": [{"Id": e["Id"]} for e in Entries], "Failed": []}


@pytest.fixture
def mock_sqs_client() -> MagicMock:
    """
    A MagicMock that simulates the boto3 SQS client interface.

    receive_message returns no messages; send_message_batch and
    delete_message_batch report every entry as successful. Override in
    individual tests via .return_value / .side_effect.
    """
    client = MagicMock()
    client.receive_message.return_value = {"Messages": []}
    client.send_message_batch.side_effect = _all_successful
    client.delete_message_batch.side_effect = _all_successful
    return client


@pytest.fixture
def transport(mock_sqs_client: MagicMock) -> SqsTransport:
    return SqsTransport(mock_sqs_client, retry_attempts=3, sleep=lambda _: None)


# ---------------------------------------------------------------------------
# Pipeline wiring
# ---------------------------------------------------------------------------

@pytest.fixture
def mapper(clock) -> TenderMapper:
    return TenderMapper(DEFAULT_ADAPTERS, clock=clock)


@pytest.fixture
def processor(mapper, gateway, transport, clock) -> BatchProcessor:
    return BatchProcessor(
        build_registry(),
        mapper,
        TagResolver(),
        gateway,
        transport,
        source_queue_url=SOURCE_QUEUE_URL,
        failed_queue_url=FAILED_QUEUE_URL,
        clock=clock,
    )


@pytest.fixture
def make_message() -> Callable[..., RawMessage]:
    """Build RawMessages with unique ids and receipt handles."""
    ids = count(1)

    def _make(body: str, routing_key: str = "SanralTenderScrape", message_id: str | None = None) -> RawMessage:
        n = next(ids)
        return RawMessage(
            id=message_id or f"m{n}",
            body=body,
            routing_key=routing_key,
            receipt_token=f"receipt-{n}",
            attributes={"MessageGroupId": routing_key},
        )

    return _make
