"""
transport/sqs.py — Amazon SQS transport built on boto3.

Receive, send and delete are chunked to the SQS batch limit of 10 entries.
Send and delete retry transient botocore connection errors with exponential
backoff; ClientError responses from SQS are never retried.

FIFO queues (URL ending in ".fifo") need a MessageGroupId and a
MessageDeduplicationId on every sent entry. The group id is the sanitized
routing key; the dedup id is generated once per entry and reused across
retries of the same call.

Usage:
    from tender_writer.transport.sqs import SqsTransport, get_sqs_client

    transport = SqsTransport(get_sqs_client())
    messages = transport.receive(queue_url, max_messages=10, wait_seconds=2,
                                 visibility_timeout=300)
"""

from __future__ import annotations

import re
import threading
import time
import uuid
from collections.abc import Callable, Iterator, Sequence
from typing import Any, Optional, TypeVar

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from tender_shared.config import settings
from tender_shared.constants import (
    DEFAULT_GROUP_ID,
    SQS_MAX_BATCH_SIZE,
    SQS_MAX_GROUP_ID_LENGTH,
)
from tender_writer.errors import DeadLetterSubmissionFailure, DeleteFailure
from tender_writer.transport.base import DeleteResult, OutboundMessage, RawMessage
from tender_writer.utils.retry import with_retry

log = structlog.get_logger(__name__)

T = TypeVar("T")

_INVALID_GROUP_CHARS = re.compile(r"[^a-zA-Z0-9\-_]")


def sanitize_group_id(routing_key: str | None) -> str:
    """Reduce a routing key to a valid FIFO MessageGroupId."""
    cleaned = _INVALID_GROUP_CHARS.sub("", routing_key or "")
    cleaned = cleaned[:SQS_MAX_GROUP_ID_LENGTH]
    return cleaned or DEFAULT_GROUP_ID


def is_fifo(queue_url: str) -> bool:
    return queue_url.endswith(".fifo")


def _chunks(items: Sequence[T], size: int = SQS_MAX_BATCH_SIZE) -> Iterator[Sequence[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


# ---------------------------------------------------------------------------
# Client singleton
# ---------------------------------------------------------------------------
_client_lock = threading.Lock()
_sqs_client: Optional[Any] = None


def get_sqs_client() -> Any:
    """Return a process-wide boto3 SQS client for settings.aws_region."""
    global _sqs_client

    with _client_lock:
        if _sqs_client is None:
            _sqs_client = boto3.client("sqs", region_name=settings.aws_region)
            log.info("sqs_client_created", region=settings.aws_region)
        return _sqs_client


def reset_sqs_client() -> None:
    """Drop the cached client (useful in tests)."""
    global _sqs_client
    with _client_lock:
        _sqs_client = None


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


class SqsTransport:
    """
    QueueTransport over a boto3 SQS client.

    Args:
        client:         boto3 SQS client (or a MagicMock in tests).
        retry_attempts: Total attempts for send/delete on BotoCoreError.
        sleep:          Backoff sleep function.
    """

    def __init__(
        self,
        client: Any,
        *,
        retry_attempts: int = 3,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._retry = with_retry(
            max_attempts=retry_attempts,
            retry_on=BotoCoreError,
            sleep=sleep,
        )

    def receive(
        self,
        queue_url: str,
        *,
        max_messages: int = SQS_MAX_BATCH_SIZE,
        wait_seconds: int = 2,
        visibility_timeout: int = 300,
    ) -> list[RawMessage]:
        """
        Long-poll up to `max_messages` messages.

        Errors propagate: a queue that cannot be polled stops the consumer.
        """
        response = self._client.receive_message(
            QueueUrl=queue_url,
            MaxNumberOfMessages=max(1, min(max_messages, SQS_MAX_BATCH_SIZE)),
            WaitTimeSeconds=wait_seconds,
            VisibilityTimeout=visibility_timeout,
            MessageSystemAttributeNames=["All"],
            MessageAttributeNames=["All"],
        )
        messages = [RawMessage.from_sqs_message(m) for m in response.get("Messages", [])]
        log.debug("sqs_received", queue_url=queue_url, count=len(messages))
        return messages

    def send_batch(self, queue_url: str, messages: Sequence[OutboundMessage]) -> int:
        """
        Send every message; all or nothing from the caller's point of view.

        Returns:
            Number of messages sent.

        Raises:
            DeadLetterSubmissionFailure: if SQS rejects the call or any entry.
        """
        if not messages:
            return 0

        fifo = is_fifo(queue_url)
        sent = 0
        for chunk in _chunks(messages):
            entries: list[dict[str, Any]] = []
            for i, message in enumerate(chunk):
                entry: dict[str, Any] = {"Id": f"msg_{i}", "MessageBody": message.body}
                if fifo:
                    entry["MessageGroupId"] = sanitize_group_id(message.group_id)
                    entry["MessageDeduplicationId"] = str(uuid.uuid4())
                entries.append(entry)

            try:
                response = self._retry(self._client.send_message_batch)(
                    QueueUrl=queue_url, Entries=entries
                )
            except (ClientError, BotoCoreError) as exc:
                raise DeadLetterSubmissionFailure(
                    f"send_message_batch to {queue_url} failed: {exc}"
                ) from exc

            failed = response.get("Failed") or []
            if failed:
                failed_ids = [f.get("Id", "") for f in failed]
                log.error(
                    "sqs_send_partial_failure",
                    queue_url=queue_url,
                    failed=[
                        {"id": f.get("Id"), "code": f.get("Code"), "message": f.get("Message")}
                        for f in failed
                    ],
                )
                raise DeadLetterSubmissionFailure(
                    f"{len(failed)} of {len(entries)} messages rejected by {queue_url}",
                    failed_entry_ids=failed_ids,
                )
            sent += len(response.get("Successful") or entries)

        log.debug("sqs_sent", queue_url=queue_url, count=sent)
        return sent

    def delete_batch(self, queue_url: str, messages: Sequence[RawMessage]) -> DeleteResult:
        """
        Delete (acknowledge) messages by receipt handle.

        Entries the queue refuses are reported in DeleteResult.failed and
        logged; they become visible again after the visibility timeout.

        Raises:
            DeleteFailure: if the delete call itself fails.
        """
        result = DeleteResult()
        for chunk in _chunks(messages):
            by_entry_id = {f"msg_{i}": message for i, message in enumerate(chunk)}
            entries = [
                {"Id": entry_id, "ReceiptHandle": message.receipt_token}
                for entry_id, message in by_entry_id.items()
            ]
            try:
                response = self._retry(self._client.delete_message_batch)(
                    QueueUrl=queue_url, Entries=entries
                )
            except (ClientError, BotoCoreError) as exc:
                raise DeleteFailure(
                    f"delete_message_batch on {queue_url} failed: {exc}"
                ) from exc

            failed_ids = {f.get("Id") for f in response.get("Failed") or []}
            for entry_id, message in by_entry_id.items():
                if entry_id in failed_ids:
                    result.failed.append(message.id)
                else:
                    result.deleted.append(message.id)

            if failed_ids:
                log.error(
                    "sqs_delete_partial_failure",
                    queue_url=queue_url,
                    failed=[
                        {"id": by_entry_id[f["Id"]].id, "code": f.get("Code"), "message": f.get("Message")}
                        for f in response.get("Failed") or []
                        if f.get("Id") in by_entry_id
                    ],
                )
        return result
