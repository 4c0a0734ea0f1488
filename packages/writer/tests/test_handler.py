"""
tests/test_handler.py — Lambda entry point.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest

from tender_shared.config import Settings
from tender_writer import handler
from tender_writer.errors import ConfigurationError
from tender_writer.pipelines.consumer import QueueConsumer


def _event_record(message_id: str, body: str, group: str = "SanralTenderScrape") -> dict:
    return {
        "messageId": message_id,
        "receiptHandle": f"rh-{message_id}",
        "body": body,
        "attributes": {"MessageGroupId": group, "ApproximateReceiveCount": "1"},
        "messageAttributes": {},
        "eventSource": "aws:sqs",
    }


@pytest.fixture
def lambda_context() -> MagicMock:
    context = MagicMock()
    context.aws_request_id = "req-123"
    context.get_remaining_time_in_millis.return_value = 600_000
    return context


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch.object(handler, "configure_logging"):
        yield


def test_processes_trigger_records_then_polls(processor, transport, mock_sqs_client, lambda_context, source_queue_url):
    consumer = QueueConsumer(transport, processor, queue_url=source_queue_url, sleep=lambda _: None)
    event = {"Records": [_event_record("e1", json.dumps({"title": "From trigger"}))]}

    with patch.object(QueueConsumer, "from_settings", return_value=consumer):
        summary = handler.lambda_handler(event, lambda_context)

    assert summary.startswith("Success. Batches: 1, Processed: 1, Failed: 0, Deleted: 1,")
    mock_sqs_client.receive_message.assert_called_once()
    deleted = mock_sqs_client.delete_message_batch.call_args.kwargs["Entries"]
    assert deleted == [{"Id": "msg_0", "ReceiptHandle": "rh-e1"}]


def test_remaining_time_read_from_context(lambda_context):
    consumer = MagicMock()
    consumer.run.return_value.summary.return_value = "Success."

    with patch.object(QueueConsumer, "from_settings", return_value=consumer):
        handler.lambda_handler({"Records": []}, lambda_context)

    remaining_time = consumer.run.call_args.args[0]
    assert remaining_time() == 600.0
    assert consumer.run.call_args.kwargs["initial_messages"] == []


def test_record_without_group_id_uses_unknown_group():
    record = _event_record("e9", "{}")
    del record["attributes"]["MessageGroupId"]
    consumer = MagicMock()

    with patch.object(QueueConsumer, "from_settings", return_value=consumer):
        handler.lambda_handler({"Records": [record]}, None)

    initial = consumer.run.call_args.kwargs["initial_messages"]
    assert initial[0].routing_key == "UnknownGroup"


def test_missing_configuration_fails_startup(lambda_context):
    blank = Settings(_env_file=None, source_queue_url="", failed_queue_url="", database_url="")
    with patch.object(handler, "settings", blank):
        with pytest.raises(ConfigurationError):
            handler.lambda_handler({"Records": []}, lambda_context)
