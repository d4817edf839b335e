"""
Scheduled producer Lambda.

Every invocation puts exactly one message on the Kinesis stream. Retrying a
failed put is left to the EventBridge rule that invokes the function.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import (
    DEFAULT_MESSAGE_TEXT,
    DEFAULT_PARTITION_KEY,
    Settings,
    configure_logging,
    resolve_stream_name,
)
from .errors import PublishError
from .messages import Message, encode, now_millis

logger = logging.getLogger()
logger.setLevel(logging.INFO)


@dataclass(frozen=True)
class PublishResult:
    """Outcome of a successful put_record call."""

    message: Message
    shard_id: str
    sequence_number: str


class MessageProducer:
    """Builds a message and appends it to a Kinesis stream."""

    def __init__(
        self,
        kinesis_client: Any,
        stream_name: str,
        partition_key: str = DEFAULT_PARTITION_KEY,
        message_text: str = DEFAULT_MESSAGE_TEXT,
        clock: Callable[[], int] = now_millis,
    ):
        """
        Initialize the producer.

        Args:
            kinesis_client: boto3 Kinesis client
            stream_name: Stream to append to
            partition_key: Key routing every record to a shard
            message_text: Payload of each message
            clock: Source of millisecond timestamps
        """
        self.kinesis_client = kinesis_client
        self.stream_name = stream_name
        self.partition_key = partition_key
        self.message_text = message_text
        self.clock = clock

    def build_message(self) -> Message:
        return Message(message=self.message_text, timestamp=self.clock())

    def on_schedule(self) -> PublishResult:
        """
        Publish one message to the stream.

        Returns:
            The published message with its assigned shard and sequence number

        Raises:
            PublishError: If the put_record call fails
        """
        message = self.build_message()

        try:
            response = self.kinesis_client.put_record(
                StreamName=self.stream_name,
                PartitionKey=self.partition_key,
                Data=encode(message),
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"put_record to '{self.stream_name}' failed: {e}")
            raise PublishError(self.stream_name, str(e)) from e

        result = PublishResult(
            message=message,
            shard_id=response["ShardId"],
            sequence_number=response["SequenceNumber"],
        )
        logger.info(
            f"Producer sent: message={message.message!r} "
            f"timestamp={message.timestamp} "
            f"shard={result.shard_id} sequence={result.sequence_number}"
        )
        return result


def build_producer(
    settings: Optional[Settings] = None,
    kinesis_client: Any = None,
    ssm_client: Any = None,
) -> MessageProducer:
    """
    Construct a producer from settings, creating AWS clients only when not given.

    Args:
        settings: Function settings, read from the environment when omitted
        kinesis_client: Kinesis client to publish with
        ssm_client: SSM client used to discover the stream name

    Returns:
        Configured producer
    """
    settings = settings or Settings.from_env()
    if not settings.stream_name and ssm_client is None:
        ssm_client = boto3.client("ssm")
    stream_name = resolve_stream_name(settings, ssm_client)

    return MessageProducer(
        kinesis_client=kinesis_client or boto3.client("kinesis"),
        stream_name=stream_name,
        partition_key=settings.partition_key,
        message_text=settings.message_text,
    )


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    AWS Lambda handler invoked by the EventBridge schedule.

    Errors are logged and re-raised so the invocation is reported as failed.

    Args:
        event: Scheduled event
        context: Lambda context object

    Returns:
        Summary of the published record
    """
    settings = Settings.from_env()
    configure_logging(settings)
    logger.debug(f"Producer invoked. Event: {json.dumps(event, default=str)}")

    try:
        producer = build_producer(settings)
        result = producer.on_schedule()
    except Exception as e:
        logger.error(f"Producer invocation failed: {e}", exc_info=True)
        raise

    return {
        "shardId": result.shard_id,
        "sequenceNumber": result.sequence_number,
        "message": result.message.message,
        "timestamp": result.message.timestamp,
    }
