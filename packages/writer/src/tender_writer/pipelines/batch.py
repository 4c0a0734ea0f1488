"""
pipelines/batch.py — Process one batch of received tender messages.

Per message: decode → map → resolve tags → persist, each message in its own
unit of work. Then, for the batch as a whole:

  1. failed messages are wrapped in a dead-letter envelope and sent to the
     failed queue in one batch send
  2. succeeded messages, plus failed ones the failed queue accepted, are
     deleted from the source queue in one batch delete

Failed messages the failed queue did not accept are left on the source
queue and come back after the visibility timeout. A message's failure never
stops its siblings from being written or acknowledged.

Usage:
    from tender_writer.pipelines.batch import BatchProcessor

    processor = BatchProcessor(registry, mapper, TagResolver(), gateway, transport,
                               source_queue_url=..., failed_queue_url=...)
    result = processor.process(messages, batch_number=1)
    print(result.processed, result.failed, result.deleted)
"""

from __future__ import annotations

import time
import traceback
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from tender_shared.time_utils import isoformat_z, utc_now
from tender_writer.errors import DeadLetterSubmissionFailure, DeleteFailure
from tender_writer.loaders.sql_loader import SqlTenderGateway
from tender_writer.sources.registry import MessageVariantRegistry
from tender_writer.transforms.mapper import TenderMapper
from tender_writer.transforms.tags import TagResolver
from tender_writer.transport.base import OutboundMessage, QueueTransport, RawMessage
from tender_writer.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_PROCESSED_BY = "Sqs_Database_Writer"


class Outcome(str, Enum):
    ACKNOWLEDGED = "acknowledged"
    DEAD_LETTERED = "dead_lettered"
    RETAINED = "retained"


@dataclass
class MessageOutcome:
    """
    Terminal state of one message within a batch.

    `deleted` is False when the source-queue delete was refused; such a
    message will be redelivered whatever its outcome.
    """

    message_id: str
    routing_key: str
    outcome: Outcome
    error_type: str | None = None
    error: str | None = None
    deleted: bool = False


@dataclass
class BatchResult:
    """Summary of one processed batch."""

    batch_number: int
    received: int = 0
    processed: int = 0
    failed: int = 0
    dead_lettered: int = 0
    deleted: int = 0
    outcomes: list[MessageOutcome] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def retained(self) -> int:
        return sum(1 for o in self.outcomes if o.outcome is Outcome.RETAINED)

    @property
    def delete_failed(self) -> int:
        return sum(1 for o in self.outcomes if o.outcome is not Outcome.RETAINED and not o.deleted)


class DeadLetterEnvelope(BaseModel):
    """JSON body written to the failed queue for every failed message."""

    model_config = ConfigDict(populate_by_name=True)

    original_message_body: str = Field(alias="originalMessageBody")
    routing_key: str = Field(alias="routingKey")
    error_message: str = Field(alias="errorMessage")
    error_type: str = Field(alias="errorType")
    stack_trace: str | None = Field(default=None, alias="stackTrace")
    processed_by: str = Field(alias="processedBy")
    timestamp: str

    @classmethod
    def for_failure(
        cls,
        message: RawMessage,
        exc: BaseException,
        *,
        processed_by: str,
        now: datetime,
    ) -> DeadLetterEnvelope:
        stack = None
        if exc.__traceback__ is not None:
            stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(
            original_message_body=message.body,
            routing_key=message.routing_key,
            error_message=str(exc),
            error_type=type(exc).__name__,
            stack_trace=stack,
            processed_by=processed_by,
            timestamp=isoformat_z(now),
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class BatchProcessor:
    """
    Runs the per-message write path and the batch-level DLQ/ack protocol.

    All collaborators are passed in; nothing here reads settings.
    """

    def __init__(
        self,
        registry: MessageVariantRegistry,
        mapper: TenderMapper,
        tag_resolver: TagResolver,
        gateway: SqlTenderGateway,
        transport: QueueTransport,
        *,
        source_queue_url: str,
        failed_queue_url: str,
        processed_by: str = DEFAULT_PROCESSED_BY,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._registry = registry
        self._mapper = mapper
        self._tag_resolver = tag_resolver
        self._gateway = gateway
        self._transport = transport
        self._source_queue_url = source_queue_url
        self._failed_queue_url = failed_queue_url
        self._processed_by = processed_by
        self._clock = clock

    # ------------------------------------------------------------------
    # Per message
    # ------------------------------------------------------------------

    def write_message(self, message: RawMessage) -> None:
        """
        Decode, map and persist one message in its own unit of work.

        Raises:
            MalformedPayload, UnsupportedSource, PersistenceFailure, or any
            unexpected error from the stages above.
        """
        decoded = self._registry.decode(message.routing_key, message.body)
        if not decoded.ok:
            raise decoded.error

        record = self._mapper.map(decoded.message)
        with self._gateway.unit_of_work() as uow:
            tags = self._tag_resolver.resolve(record.tag_names, uow)
            uow.add_tender(record, tags)

        log.debug(
            "message_persisted",
            message_id=message.id,
            tender_id=str(record.id),
            source=record.source.value,
            tags=len(tags),
        )

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def process(self, messages: Sequence[RawMessage], batch_number: int = 1) -> BatchResult:
        result = BatchResult(batch_number=batch_number, received=len(messages))
        t0 = time.monotonic()
        batch_log = log.bind(pipeline="batch", batch_number=batch_number)
        batch_log.info("batch_processing_start", message_count=len(messages))

        if not messages:
            return result

        succeeded: list[RawMessage] = []
        failures: list[tuple[RawMessage, Exception]] = []

        for message in messages:
            try:
                self.write_message(message)
            except Exception as exc:
                failures.append((message, exc))
                batch_log.warning(
                    "message_failed",
                    message_id=message.id,
                    routing_key=message.routing_key,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
            else:
                succeeded.append(message)

        outcomes: dict[str, MessageOutcome] = {}
        for message in succeeded:
            outcomes[message.id] = MessageOutcome(
                message_id=message.id,
                routing_key=message.routing_key,
                outcome=Outcome.ACKNOWLEDGED,
            )

        to_acknowledge = list(succeeded)
        if failures:
            dead_lettered = self._dead_letter(failures, batch_log)
            for message, exc in failures:
                outcomes[message.id] = MessageOutcome(
                    message_id=message.id,
                    routing_key=message.routing_key,
                    outcome=Outcome.DEAD_LETTERED if dead_lettered else Outcome.RETAINED,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
            if dead_lettered:
                to_acknowledge.extend(message for message, _ in failures)

        for message_id in self._acknowledge(to_acknowledge, batch_log):
            outcomes[message_id].deleted = True

        result.outcomes = [outcomes[m.id] for m in messages if m.id in outcomes]
        result.processed = len(succeeded)
        result.failed = len(failures)
        result.dead_lettered = sum(
            1 for o in result.outcomes if o.outcome is Outcome.DEAD_LETTERED
        )
        result.deleted = sum(1 for o in result.outcomes if o.deleted)
        result.duration_ms = int((time.monotonic() - t0) * 1000)

        batch_log.info(
            "batch_processing_complete",
            processed=result.processed,
            failed=result.failed,
            dead_lettered=result.dead_lettered,
            deleted=result.deleted,
            retained=result.retained,
            duration_ms=result.duration_ms,
        )
        return result

    def _dead_letter(self, failures: list[tuple[RawMessage, Exception]], batch_log) -> bool:
        """Send failed messages to the failed queue. True if the queue took them all."""
        now = self._clock()
        outbound = [
            OutboundMessage(
                body=DeadLetterEnvelope.for_failure(
                    message, exc, processed_by=self._processed_by, now=now
                ).to_json(),
                group_id=message.routing_key,
            )
            for message, exc in failures
        ]
        try:
            self._transport.send_batch(self._failed_queue_url, outbound)
        except DeadLetterSubmissionFailure as exc:
            batch_log.critical(
                "dead_letter_submission_failed",
                failed_queue_url=self._failed_queue_url,
                message_ids=[message.id for message, _ in failures],
                error=str(exc),
            )
            return False

        batch_log.info("dead_letter_sent", count=len(outbound))
        return True

    def _acknowledge(self, messages: list[RawMessage], batch_log) -> list[str]:
        """Delete messages from the source queue. Returns the deleted ids."""
        if not messages:
            return []
        try:
            deleted = self._transport.delete_batch(self._source_queue_url, messages)
        except DeleteFailure as exc:
            batch_log.error(
                "delete_batch_failed",
                message_ids=[m.id for m in messages],
                error=str(exc),
            )
            return []

        if deleted.failed:
            batch_log.error("delete_batch_partial_failure", failed_ids=deleted.failed)
        batch_log.info("messages_deleted", count=len(deleted.deleted))
        return deleted.deleted
