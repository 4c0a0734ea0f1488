"""
tests/test_transport/test_sqs.py — SqsTransport over a mocked boto3 client.

Tests cover:
  - receive_message parameters and RawMessage construction
  - FIFO group / dedup ids and group id sanitizing
  - Chunking to 10 entries per call
  - Send failures → DeadLetterSubmissionFailure
  - Partial delete failures reported, call failures → DeleteFailure
  - BotoCoreError retried, ClientError not
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from tender_writer.errors import DeadLetterSubmissionFailure, DeleteFailure
from tender_writer.transport.base import OutboundMessage, RawMessage
from tender_writer.transport.sqs import SqsTransport, sanitize_group_id

STANDARD_QUEUE_URL = "https://sqs.af-south-1.amazonaws.com/123456789012/tenders-failed"


def _client_error(operation: str = "SendMessageBatch") -> ClientError:
    return ClientError(
        {"Error": {"Code": "AWS.SimpleQueueService.NonExistentQueue", "Message": "no queue"}},
        operation,
    )


def _raw(n: int) -> RawMessage:
    return RawMessage(id=f"m{n}", body="{}", routing_key="sanral", receipt_token=f"r{n}")


# ---------------------------------------------------------------------------
# Group ids
# ---------------------------------------------------------------------------

class TestSanitizeGroupId:
    def test_keeps_valid_characters(self):
        assert sanitize_group_id("Sanral_Tender-Scrape1") == "Sanral_Tender-Scrape1"

    def test_strips_invalid_characters(self):
        assert sanitize_group_id("eskom lambda/v2.1!") == "eskomlambdav21"

    def test_truncates_to_128(self):
        assert len(sanitize_group_id("a" * 300)) == 128

    @pytest.mark.parametrize("key", ["", None, "!!!", "   "])
    def test_falls_back_to_default(self, key):
        assert sanitize_group_id(key) == "DefaultGroup"


# ---------------------------------------------------------------------------
# receive
# ---------------------------------------------------------------------------

class TestReceive:
    def test_receive_parameters(self, transport, mock_sqs_client, source_queue_url):
        transport.receive(source_queue_url, max_messages=10, wait_seconds=2, visibility_timeout=300)
        mock_sqs_client.receive_message.assert_called_once_with(
            QueueUrl=source_queue_url,
            MaxNumberOfMessages=10,
            WaitTimeSeconds=2,
            VisibilityTimeout=300,
            MessageSystemAttributeNames=["All"],
            MessageAttributeNames=["All"],
        )

    def test_max_messages_capped_at_ten(self, transport, mock_sqs_client, source_queue_url):
        transport.receive(source_queue_url, max_messages=50)
        assert mock_sqs_client.receive_message.call_args.kwargs["MaxNumberOfMessages"] == 10

    def test_builds_raw_messages(self, transport, mock_sqs_client, source_queue_url):
        mock_sqs_client.receive_message.return_value = {
            "Messages": [
                {
                    "MessageId": "abc",
                    "ReceiptHandle": "rh-1",
                    "Body": '{"title": "x"}',
                    "Attributes": {"MessageGroupId": "SanralTenderScrape"},
                },
                {"MessageId": "def", "ReceiptHandle": "rh-2", "Body": "{}"},
            ]
        }
        messages = transport.receive(source_queue_url)

        assert [m.id for m in messages] == ["abc", "def"]
        assert messages[0].routing_key == "SanralTenderScrape"
        assert messages[0].receipt_token == "rh-1"
        assert messages[1].routing_key == "UnknownGroup"

    def test_empty_response(self, transport, mock_sqs_client, source_queue_url):
        mock_sqs_client.receive_message.return_value = {}
        assert transport.receive(source_queue_url) == []

    def test_receive_errors_propagate(self, transport, mock_sqs_client, source_queue_url):
        mock_sqs_client.receive_message.side_effect = _client_error("ReceiveMessage")
        with pytest.raises(ClientError):
            transport.receive(source_queue_url)


# ---------------------------------------------------------------------------
# send_batch
# ---------------------------------------------------------------------------

class TestSendBatch:
    def test_fifo_entries_carry_group_and_dedup_ids(self, transport, mock_sqs_client, failed_queue_url):
        transport.send_batch(
            failed_queue_url,
            [OutboundMessage(body="a", group_id="Sanral Tender"), OutboundMessage(body="b", group_id="")],
        )
        entries = mock_sqs_client.send_message_batch.call_args.kwargs["Entries"]

        assert [e["Id"] for e in entries] == ["msg_0", "msg_1"]
        assert [e["MessageGroupId"] for e in entries] == ["SanralTender", "DefaultGroup"]
        assert entries[0]["MessageDeduplicationId"] != entries[1]["MessageDeduplicationId"]

    def test_standard_queue_entries_have_no_fifo_fields(self, transport, mock_sqs_client):
        transport.send_batch(STANDARD_QUEUE_URL, [OutboundMessage(body="a", group_id="sanral")])
        entry = mock_sqs_client.send_message_batch.call_args.kwargs["Entries"][0]
        assert set(entry) == {"Id", "MessageBody"}

    def test_chunks_to_ten(self, transport, mock_sqs_client, failed_queue_url):
        sent = transport.send_batch(
            failed_queue_url, [OutboundMessage(body=str(i), group_id="g") for i in range(23)]
        )
        sizes = [len(c.kwargs["Entries"]) for c in mock_sqs_client.send_message_batch.call_args_list]
        assert sizes == [10, 10, 3]
        assert sent == 23

    def test_empty_send_makes_no_call(self, transport, mock_sqs_client, failed_queue_url):
        assert transport.send_batch(failed_queue_url, []) == 0
        mock_sqs_client.send_message_batch.assert_not_called()

    def test_failed_entry_raises(self, transport, mock_sqs_client, failed_queue_url):
        mock_sqs_client.send_message_batch.side_effect = None
        mock_sqs_client.send_message_batch.return_value = {
            "Successful": [{"Id": "msg_0"}],
            "Failed": [{"Id": "msg_1", "Code": "InternalError", "Message": "oops", "SenderFault": False}],
        }
        with pytest.raises(DeadLetterSubmissionFailure) as exc_info:
            transport.send_batch(
                failed_queue_url,
                [OutboundMessage(body="a", group_id="g"), OutboundMessage(body="b", group_id="g")],
            )
        assert exc_info.value.failed_entry_ids == ["msg_1"]

    def test_client_error_not_retried(self, transport, mock_sqs_client, failed_queue_url):
        mock_sqs_client.send_message_batch.side_effect = _client_error()
        with pytest.raises(DeadLetterSubmissionFailure):
            transport.send_batch(failed_queue_url, [OutboundMessage(body="a", group_id="g")])
        assert mock_sqs_client.send_message_batch.call_count == 1

    def test_connection_error_retried_with_same_entries(self, mock_sqs_client, failed_queue_url):
        sleeps: list[float] = []
        transport = SqsTransport(mock_sqs_client, retry_attempts=3, sleep=sleeps.append)
        mock_sqs_client.send_message_batch.side_effect = [
            EndpointConnectionError(endpoint_url=failed_queue_url),
            {"Successful": [{"Id": "msg_0"}], "Failed": []},
        ]

        assert transport.send_batch(failed_queue_url, [OutboundMessage(body="a", group_id="g")]) == 1

        calls = mock_sqs_client.send_message_batch.call_args_list
        assert len(calls) == 2
        assert calls[0].kwargs["Entries"] == calls[1].kwargs["Entries"]
        assert len(sleeps) == 1

    def test_connection_error_exhausted(self, mock_sqs_client, failed_queue_url):
        transport = SqsTransport(mock_sqs_client, retry_attempts=2, sleep=lambda _: None)
        mock_sqs_client.send_message_batch.side_effect = EndpointConnectionError(endpoint_url=failed_queue_url)

        with pytest.raises(DeadLetterSubmissionFailure):
            transport.send_batch(failed_queue_url, [OutboundMessage(body="a", group_id="g")])
        assert mock_sqs_client.send_message_batch.call_count == 2


# ---------------------------------------------------------------------------
# delete_batch
# ---------------------------------------------------------------------------

class TestDeleteBatch:
    def test_deletes_by_receipt_handle(self, transport, mock_sqs_client, source_queue_url):
        result = transport.delete_batch(source_queue_url, [_raw(1), _raw(2)])

        mock_sqs_client.delete_message_batch.assert_called_once_with(
            QueueUrl=source_queue_url,
            Entries=[
                {"Id": "msg_0", "ReceiptHandle": "r1"},
                {"Id": "msg_1", "ReceiptHandle": "r2"},
            ],
        )
        assert result.deleted == ["m1", "m2"]
        assert result.success

    def test_chunks_to_ten(self, transport, mock_sqs_client, source_queue_url):
        result = transport.delete_batch(source_queue_url, [_raw(i) for i in range(12)])
        assert mock_sqs_client.delete_message_batch.call_count == 2
        assert len(result.deleted) == 12

    def test_partial_failure_reported_not_raised(self, transport, mock_sqs_client, source_queue_url):
        mock_sqs_client.delete_message_batch.side_effect = None
        mock_sqs_client.delete_message_batch.return_value = {
            "Successful": [{"Id": "msg_0"}],
            "Failed": [{"Id": "msg_1", "Code": "ReceiptHandleIsInvalid", "SenderFault": True}],
        }
        result = transport.delete_batch(source_queue_url, [_raw(1), _raw(2)])

        assert result.deleted == ["m1"]
        assert result.failed == ["m2"]
        assert not result.success

    def test_client_error_raises_delete_failure(self, transport, mock_sqs_client, source_queue_url):
        mock_sqs_client.delete_message_batch.side_effect = _client_error("DeleteMessageBatch")
        with pytest.raises(DeleteFailure):
            transport.delete_batch(source_queue_url, [_raw(1)])

    def test_empty_delete_makes_no_call(self, transport, mock_sqs_client, source_queue_url):
        assert transport.delete_batch(source_queue_url, []).deleted == []
        mock_sqs_client.delete_message_batch.assert_not_called()


class TestGetSqsClient:
    def test_singleton_uses_configured_region(self, monkeypatch):
        from tender_writer.transport import sqs

        fake_client = MagicMock()
        fake_boto3 = MagicMock()
        fake_boto3.client.return_value = fake_client
        monkeypatch.setattr(sqs, "boto3", fake_boto3)
        monkeypatch.setattr(sqs.settings, "aws_region", "af-south-1")
        sqs.reset_sqs_client()
        try:
            assert sqs.get_sqs_client() is fake_client
            assert sqs.get_sqs_client() is fake_client
            fake_boto3.client.assert_called_once_with("sqs", region_name="af-south-1")
        finally:
            sqs.reset_sqs_client()
