"""
transport/base.py — Queue-agnostic message shapes and the transport contract.

RawMessage is what the consumer and batch processor see; nothing past the
transport touches boto3 dictionaries. The routing key is the FIFO
MessageGroupId the scraper published under.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from tender_shared.constants import UNKNOWN_ROUTING_KEY


@dataclass(frozen=True)
class RawMessage:
    """One received queue message, valid for a single processing attempt."""

    id: str
    body: str
    routing_key: str
    receipt_token: str
    attributes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_sqs_message(cls, message: dict[str, Any]) -> RawMessage:
        """Build from an entry of boto3 receive_message()["Messages"]."""
        attributes = message.get("Attributes") or {}
        return cls(
            id=message["MessageId"],
            body=message.get("Body") or "",
            routing_key=attributes.get("MessageGroupId") or UNKNOWN_ROUTING_KEY,
            receipt_token=message["ReceiptHandle"],
            attributes=dict(attributes),
        )

    @classmethod
    def from_event_record(cls, record: dict[str, Any]) -> RawMessage:
        """Build from a Lambda SQS trigger record (camelCase keys)."""
        attributes = record.get("attributes") or {}
        return cls(
            id=record["messageId"],
            body=record.get("body") or "",
            routing_key=attributes.get("MessageGroupId") or UNKNOWN_ROUTING_KEY,
            receipt_token=record["receiptHandle"],
            attributes=dict(attributes),
        )


@dataclass(frozen=True)
class OutboundMessage:
    body: str
    group_id: str


@dataclass
class DeleteResult:
    """Message ids deleted from the queue and those the queue refused."""

    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed


class QueueTransport(Protocol):
    def receive(
        self,
        queue_url: str,
        *,
        max_messages: int,
        wait_seconds: int,
        visibility_timeout: int,
    ) -> list[RawMessage]: ...

    def send_batch(self, queue_url: str, messages: Sequence[OutboundMessage]) -> int: ...

    def delete_batch(self, queue_url: str, messages: Sequence[RawMessage]) -> DeleteResult: ...
