"""Tests for the scheduled producer Lambda."""

import logging

import boto3
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError
from botocore.stub import Stubber

from stream_functions.config import STREAM_NAME_PARAMETER, Settings
from stream_functions.errors import ConfigurationError, PublishError
from stream_functions.messages import Message, decode
from stream_functions.producer import MessageProducer, build_producer, lambda_handler

from conftest import REGION, STREAM_NAME, read_all_records

FIXED_TIME = 1700000000000


class FakeKinesisClient:
    """Records put_record calls and answers like the service."""

    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def put_record(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return {
            "ShardId": "shardId-000000000000",
            "SequenceNumber": str(len(self.calls)),
        }


class TestMessageProducer:
    def test_publishes_hello_with_current_time(self):
        client = FakeKinesisClient()
        producer = MessageProducer(client, STREAM_NAME, clock=lambda: FIXED_TIME)

        result = producer.on_schedule()

        assert result.message == Message(message="Hello", timestamp=FIXED_TIME)
        assert client.calls == [
            {
                "StreamName": STREAM_NAME,
                "PartitionKey": "key-1",
                "Data": b'{"message":"Hello","timestamp":1700000000000}',
            }
        ]
        assert result.shard_id == "shardId-000000000000"
        assert result.sequence_number == "1"

    def test_one_record_per_invocation(self):
        client = FakeKinesisClient()
        ticks = iter([100, 200])
        producer = MessageProducer(client, STREAM_NAME, clock=lambda: next(ticks))

        producer.on_schedule()
        producer.on_schedule()

        assert len(client.calls) == 2
        assert [decode(call["Data"]).timestamp for call in client.calls] == [100, 200]

    def test_custom_partition_key_and_text(self):
        client = FakeKinesisClient()
        producer = MessageProducer(
            client, STREAM_NAME, partition_key="key-9", message_text="Hi", clock=lambda: 1
        )

        producer.on_schedule()

        assert client.calls[0]["PartitionKey"] == "key-9"
        assert decode(client.calls[0]["Data"]) == Message(message="Hi", timestamp=1)

    def test_logs_sent_message(self, caplog):
        caplog.set_level(logging.INFO)
        producer = MessageProducer(FakeKinesisClient(), STREAM_NAME, clock=lambda: FIXED_TIME)

        producer.on_schedule()

        sent = [r.getMessage() for r in caplog.records if "Producer sent" in r.getMessage()]
        assert len(sent) == 1
        assert "'Hello'" in sent[0]
        assert str(FIXED_TIME) in sent[0]

    def test_service_error_raises_publish_error_without_retry(self):
        client = boto3.client("kinesis", region_name=REGION)
        stubber = Stubber(client)
        stubber.add_client_error(
            "put_record",
            service_error_code="ProvisionedThroughputExceededException",
            service_message="Rate exceeded for shard",
        )
        producer = MessageProducer(client, STREAM_NAME, clock=lambda: FIXED_TIME)

        with stubber:
            with pytest.raises(PublishError) as exc_info:
                producer.on_schedule()
            stubber.assert_no_pending_responses()

        assert exc_info.value.stream_name == STREAM_NAME
        assert isinstance(exc_info.value.__cause__, ClientError)

    def test_connection_error_raises_publish_error(self):
        error = EndpointConnectionError(endpoint_url="https://kinesis.us-east-1.amazonaws.com")
        client = FakeKinesisClient(error=error)
        producer = MessageProducer(client, STREAM_NAME)

        with pytest.raises(PublishError):
            producer.on_schedule()

        assert len(client.calls) == 1

    def test_appends_to_stream(self, kinesis_client):
        producer = MessageProducer(kinesis_client, STREAM_NAME, clock=lambda: FIXED_TIME)

        result = producer.on_schedule()

        records = read_all_records(kinesis_client)
        assert len(records) == 1
        assert records[0]["SequenceNumber"] == result.sequence_number
        assert records[0]["PartitionKey"] == "key-1"
        assert decode(records[0]["Data"]) == Message(message="Hello", timestamp=FIXED_TIME)


class TestBuildProducer:
    def test_uses_configured_stream_name(self):
        client = FakeKinesisClient()

        producer = build_producer(Settings(stream_name="Other"), kinesis_client=client)

        assert producer.stream_name == "Other"
        assert producer.kinesis_client is client

    def test_discovers_stream_name(self, ssm_client):
        ssm_client.put_parameter(Name=STREAM_NAME_PARAMETER, Value=STREAM_NAME, Type="String")

        producer = build_producer(
            Settings(), kinesis_client=FakeKinesisClient(), ssm_client=ssm_client
        )

        assert producer.stream_name == STREAM_NAME

    def test_undiscoverable_stream(self, ssm_client):
        with pytest.raises(ConfigurationError):
            build_producer(Settings(), kinesis_client=FakeKinesisClient(), ssm_client=ssm_client)


class TestLambdaHandler:
    def test_publishes_with_environment_stream(self, kinesis_client, monkeypatch):
        monkeypatch.setenv("STREAM_NAME", STREAM_NAME)

        response = lambda_handler({"source": "aws.events"}, None)

        assert response["message"] == "Hello"
        assert isinstance(response["timestamp"], int)
        assert response["shardId"].startswith("shardId-")
        records = read_all_records(kinesis_client)
        assert decode(records[0]["Data"]).timestamp == response["timestamp"]

    def test_publishes_with_parameter_store_stream(self, kinesis_client, ssm_client):
        ssm_client.put_parameter(Name=STREAM_NAME_PARAMETER, Value=STREAM_NAME, Type="String")

        response = lambda_handler({}, None)

        assert response["sequenceNumber"] == read_all_records(kinesis_client)[0]["SequenceNumber"]

    def test_unknown_log_level_does_not_fail_invocation(self, kinesis_client, monkeypatch):
        monkeypatch.setenv("STREAM_NAME", STREAM_NAME)
        monkeypatch.setenv("LOG_LEVEL", "verbose")

        assert lambda_handler({}, None)["message"] == "Hello"

    def test_failure_propagates(self, kinesis_client, monkeypatch, caplog):
        monkeypatch.setenv("STREAM_NAME", "MissingStream")

        with pytest.raises(PublishError):
            lambda_handler({}, None)

        assert any("Producer invocation failed" in r.getMessage() for r in caplog.records)
