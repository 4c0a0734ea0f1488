"""
handler.py — AWS Lambda entry point.

Configured with an SQS trigger on the source queue. The records delivered
with the invocation are processed first; the function then keeps polling the
queue itself until it is empty or fewer than the safety margin of seconds
remain.

Returns the one-line run summary, e.g.
    "Success. Batches: 3, Processed: 27, Failed: 1, Deleted: 28, Duration: 5123ms"
"""

from __future__ import annotations

from typing import Any

import structlog

from tender_shared.config import settings
from tender_writer.pipelines.consumer import QueueConsumer, time_budget
from tender_writer.transport.base import RawMessage
from tender_writer.utils.logging import bind_invocation, configure_logging

log = structlog.get_logger(__name__)

# Lambda's maximum timeout; used when no context is supplied (local runs).
DEFAULT_BUDGET_SECONDS = 900.0


def lambda_handler(event: dict[str, Any] | None, context: Any) -> str:
    configure_logging()
    bind_invocation(
        request_id=getattr(context, "aws_request_id", None),
        function_name=getattr(context, "function_name", None),
    )

    if context is not None and hasattr(context, "get_remaining_time_in_millis"):

        def remaining_time() -> float:
            return context.get_remaining_time_in_millis() / 1000.0

    else:
        remaining_time = time_budget(DEFAULT_BUDGET_SECONDS)

    records = (event or {}).get("Records") or []
    initial = [RawMessage.from_event_record(record) for record in records]
    log.info("lambda_invoked", trigger_records=len(initial))

    try:
        consumer = QueueConsumer.from_settings(settings)
        result = consumer.run(remaining_time, initial_messages=initial)
    except Exception:
        log.exception("lambda_failed")
        raise

    return result.summary()
