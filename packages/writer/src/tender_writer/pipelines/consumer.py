"""
pipelines/consumer.py — Time-bounded polling loop over the source queue.

The consumer first processes any messages handed to it by the trigger, then
keeps receiving and processing batches until either the queue returns an
empty poll or the remaining time budget drops to the safety margin. The
budget is only checked before a poll; a batch in progress always finishes.

Usage:
    from tender_writer.pipelines.consumer import QueueConsumer, time_budget

    consumer = QueueConsumer.from_settings(settings)
    result = consumer.run(time_budget(840))
    print(result.summary())
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from tender_shared.config import Settings
from tender_shared.constants import SQS_MAX_BATCH_SIZE
from tender_shared.time_utils import utc_now
from tender_writer.errors import ConfigurationError
from tender_writer.loaders.sql_loader import SqlTenderGateway
from tender_writer.pipelines.batch import BatchProcessor, BatchResult
from tender_writer.sources import DEFAULT_ADAPTERS, build_registry
from tender_writer.transforms.mapper import TenderMapper
from tender_writer.transforms.tags import TagResolver
from tender_writer.transport.base import QueueTransport, RawMessage
from tender_writer.transport.sqs import SqsTransport, get_sqs_client
from tender_writer.utils.logging import get_logger

log = get_logger(__name__)


def time_budget(seconds: float) -> Callable[[], float]:
    """Return a callable giving the seconds left out of `seconds` from now."""
    deadline = time.monotonic() + seconds
    return lambda: deadline - time.monotonic()


@dataclass
class ConsumerResult:
    """Totals across every batch of one consumer run."""

    batches: int = 0
    processed: int = 0
    failed: int = 0
    dead_lettered: int = 0
    deleted: int = 0
    duration_ms: int = 0
    stop_reason: str = ""
    batch_results: list[BatchResult] = field(default_factory=list)

    def add(self, batch: BatchResult) -> None:
        self.batches += 1
        self.processed += batch.processed
        self.failed += batch.failed
        self.dead_lettered += batch.dead_lettered
        self.deleted += batch.deleted
        self.batch_results.append(batch)

    def summary(self) -> str:
        return (
            f"Success. Batches: {self.batches}, Processed: {self.processed}, "
            f"Failed: {self.failed}, Deleted: {self.deleted}, "
            f"Duration: {self.duration_ms}ms"
        )


class QueueConsumer:
    """
    Polls `queue_url` and hands every non-empty batch to the processor.

    Receive errors are not caught: a queue that cannot be polled ends the run.
    """

    def __init__(
        self,
        transport: QueueTransport,
        processor: BatchProcessor,
        *,
        queue_url: str,
        max_batch_size: int = SQS_MAX_BATCH_SIZE,
        wait_seconds: int = 2,
        visibility_timeout: int = 300,
        safety_margin_seconds: float = 30.0,
        poll_delay_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._transport = transport
        self._processor = processor
        self._queue_url = queue_url
        self._max_batch_size = max_batch_size
        self._wait_seconds = wait_seconds
        self._visibility_timeout = visibility_timeout
        self._safety_margin = safety_margin_seconds
        self._poll_delay = poll_delay_seconds
        self._sleep = sleep

    @classmethod
    def from_settings(cls, config: Settings, **overrides: Any) -> QueueConsumer:
        """
        Wire the production consumer: SQS transport, SQL gateway, all sources.

        Keyword overrides replace individual collaborators (transport,
        gateway, clock, sleep) without touching the rest.

        Raises:
            ConfigurationError: if a required queue URL or DATABASE_URL is unset.
        """
        missing = config.missing_required()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}"
            )

        clock = overrides.get("clock", utc_now)
        transport = overrides.get("transport") or SqsTransport(
            get_sqs_client(), retry_attempts=config.transport_retry_attempts
        )
        gateway = overrides.get("gateway") or SqlTenderGateway()

        processor = BatchProcessor(
            build_registry(),
            TenderMapper(DEFAULT_ADAPTERS, clock=clock),
            TagResolver(),
            gateway,
            transport,
            source_queue_url=config.source_queue_url,
            failed_queue_url=config.failed_queue_url,
            processed_by=config.processed_by,
            clock=clock,
        )
        return cls(
            transport,
            processor,
            queue_url=config.source_queue_url,
            max_batch_size=config.max_batch_size,
            wait_seconds=config.receive_wait_seconds,
            visibility_timeout=config.visibility_timeout_seconds,
            safety_margin_seconds=config.time_safety_margin_seconds,
            poll_delay_seconds=config.poll_delay_seconds,
            sleep=overrides.get("sleep", time.sleep),
        )

    def run(
        self,
        remaining_time: Callable[[], float],
        initial_messages: Sequence[RawMessage] | None = None,
    ) -> ConsumerResult:
        """
        Drain the queue until it is empty or time runs short.

        Args:
            remaining_time:   Returns seconds left in the invocation.
            initial_messages: Messages delivered with the trigger, processed
                              before the first poll.
        """
        result = ConsumerResult()
        t0 = time.monotonic()
        log.info("consumer_start", queue_url=self._queue_url)

        if initial_messages:
            result.add(self._processor.process(initial_messages, batch_number=1))

        while True:
            remaining = remaining_time()
            if remaining <= self._safety_margin:
                result.stop_reason = "time_budget"
                log.info("consumer_time_budget_reached", remaining_seconds=round(remaining, 3))
                break

            messages = self._transport.receive(
                self._queue_url,
                max_messages=self._max_batch_size,
                wait_seconds=self._wait_seconds,
                visibility_timeout=self._visibility_timeout,
            )
            if not messages:
                result.stop_reason = "queue_empty"
                log.info("consumer_queue_empty")
                break

            result.add(self._processor.process(messages, batch_number=result.batches + 1))
            self._sleep(self._poll_delay)

        result.duration_ms = int((time.monotonic() - t0) * 1000)
        log.info(
            "consumer_complete",
            batches=result.batches,
            processed=result.processed,
            failed=result.failed,
            deleted=result.deleted,
            stop_reason=result.stop_reason,
            duration_ms=result.duration_ms,
        )
        return result
