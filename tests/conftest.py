import base64

import boto3
import pytest
from moto import mock_aws

from stream_functions.messages import Message, encode

REGION = "us-east-1"
STREAM_NAME = "MyStream"

PIPELINE_ENV_VARS = (
    "STREAM_NAME",
    "STREAM_NAME_PARAMETER",
    "PARTITION_KEY",
    "MESSAGE_TEXT",
    "REPORT_BATCH_ITEM_FAILURES",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def aws_environment(monkeypatch):
    """Fake credentials and a clean pipeline environment for every test."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    for name in PIPELINE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mocked_aws():
    with mock_aws():
        yield


@pytest.fixture
def kinesis_client(mocked_aws):
    client = boto3.client("kinesis", region_name=REGION)
    client.create_stream(StreamName=STREAM_NAME, ShardCount=1)
    return client


@pytest.fixture
def ssm_client(mocked_aws):
    return boto3.client("ssm", region_name=REGION)


def kinesis_record(payload: bytes, sequence_number: str) -> dict:
    """Build one record the way the Kinesis event source delivers it."""
    return {
        "eventSource": "aws:kinesis",
        "eventID": f"shardId-000000000000:{sequence_number}",
        "kinesis": {
            "kinesisSchemaVersion": "1.0",
            "partitionKey": "key-1",
            "sequenceNumber": sequence_number,
            "data": base64.b64encode(payload).decode("ascii"),
            "approximateArrivalTimestamp": 1700000000.0,
        },
    }


def message_record(message: Message, sequence_number: str) -> dict:
    return kinesis_record(encode(message), sequence_number)


def read_all_records(client, stream_name: str = STREAM_NAME) -> list:
    """Read back every record of the first shard from the beginning."""
    shard_id = client.list_shards(StreamName=stream_name)["Shards"][0]["ShardId"]
    iterator = client.get_shard_iterator(
        StreamName=stream_name,
        ShardId=shard_id,
        ShardIteratorType="TRIM_HORIZON",
    )["ShardIterator"]
    return client.get_records(ShardIterator=iterator)["Records"]
