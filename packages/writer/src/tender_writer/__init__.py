"""
tender_writer — Queue consumer that writes scraped tenders to the database.

Scrapers publish enriched tender messages to an SQS FIFO queue, grouped by
source. This package drains that queue, writes one append-only tender row
per message, and forwards anything it cannot write to the failed queue.

Architecture:
  sources/     — one adapter per scraper source plus the routing-key registry
  transforms/  — message → canonical record mapping, tag resolution
  loaders/     — per-message SQLAlchemy units of work
  transport/   — SQS receive / send / delete with batching and retries
  pipelines/   — batch processor (DLQ + ack protocol) and polling consumer
  utils/       — structlog configuration, exponential-backoff retry decorator

Entry points:
    tender_writer.handler.lambda_handler     # AWS Lambda
    tender-writer consume --budget-seconds 600
    tender-writer decode SanralTenderScrape message.json

Shared code from tender_shared:
    from tender_shared.config import settings
    from tender_shared.db import get_session_factory, init_schema
    from tender_shared.models import TenderRecord, SanralTenderMessage
"""

__version__ = "0.1.0"
