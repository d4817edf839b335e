#!/usr/bin/env python3

import argparse
import logging
import sys
import time
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from stream_functions.config import Settings, resolve_stream_name
from stream_functions.errors import ConfigurationError, MessageDecodeError
from stream_functions.messages import Message, decode

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

# Configuration constants
POLL_RECORDS = 200  # Number of max records to fetch per get_records call
POLL_INTERVAL = 1.0  # seconds, Kinesis allows 5 reads per second per shard
MAX_MESSAGES = 1000


class StreamTailer:
    """Reads a Kinesis stream from a workstation and logs every message."""

    def __init__(
        self,
        kinesis_client: Any,
        stream_name: str,
        iterator_type: str = 'TRIM_HORIZON',
        max_messages: int = MAX_MESSAGES,
        poll_interval: float = POLL_INTERVAL,
        follow: Optional[bool] = None,
    ):
        """
        Initialize the tailer for the specified stream.

        Args:
            kinesis_client: boto3 Kinesis client
            stream_name: Stream to read
            iterator_type: Where to start reading ('TRIM_HORIZON' or 'LATEST')
            max_messages: Stop after this many messages
            poll_interval: Pause between polling rounds
            follow: Keep polling after catching up, until max_messages or Ctrl-C.
                Defaults to True when starting from LATEST
        """
        self.kinesis_client = kinesis_client
        self.stream_name = stream_name
        self.iterator_type = iterator_type
        self.max_messages = max_messages
        self.poll_interval = poll_interval
        self.follow = iterator_type == 'LATEST' if follow is None else follow
        self.messages: List[Message] = []
        self.undecodable = 0

    def _shard_iterators(self) -> Dict[str, Optional[str]]:
        """
        Open an iterator on every shard of the stream.

        Returns:
            Shard id to shard iterator
        """
        shards = self.kinesis_client.list_shards(StreamName=self.stream_name)['Shards']
        if not shards:
            raise RuntimeError(f"No shards found in stream: {self.stream_name}")

        iterators = {}
        for shard in shards:
            response = self.kinesis_client.get_shard_iterator(
                StreamName=self.stream_name,
                ShardId=shard['ShardId'],
                ShardIteratorType=self.iterator_type,
            )
            iterators[shard['ShardId']] = response['ShardIterator']
        logger.info(f"Reading {len(iterators)} shard(s) of '{self.stream_name}' from {self.iterator_type}")
        return iterators

    def _process_record(self, shard_id: str, record: Dict[str, Any]) -> None:
        """
        Decode and log a single record.

        Args:
            shard_id: Shard the record was read from
            record: Record returned by get_records
        """
        try:
            message = decode(record['Data'])
        except MessageDecodeError as e:
            self.undecodable += 1
            logger.error(f"Undecodable record (shard={shard_id}, sequence={record['SequenceNumber']}): {e}")
            return

        self.messages.append(message)
        logger.info(
            f"Received message (shard={shard_id}, sequence={record['SequenceNumber']}): "
            f"message={message.message!r} timestamp={message.timestamp}"
        )

    def consume(self) -> List[Message]:
        """
        Poll every shard until the limit is reached or, unless following, until
        a round returns nothing and no shard reports MillisBehindLatest > 0.
        """
        iterators = self._shard_iterators()

        while iterators and len(self.messages) < self.max_messages:
            received = 0
            behind = False
            for shard_id, iterator in list(iterators.items()):
                remaining = self.max_messages - len(self.messages)
                if remaining <= 0:
                    break
                response = self.kinesis_client.get_records(
                    ShardIterator=iterator,
                    Limit=min(POLL_RECORDS, remaining),
                )
                for record in response['Records']:
                    self._process_record(shard_id, record)
                received += len(response['Records'])
                # An empty page does not mean the shard is drained
                if response.get('MillisBehindLatest', 0) > 0:
                    behind = True

                next_iterator = response.get('NextShardIterator')
                if next_iterator:
                    iterators[shard_id] = next_iterator
                else:
                    # Shard closed after a reshard
                    del iterators[shard_id]

            if not received and not behind and not self.follow:
                logger.info("No more records available")
                break

            if received:
                logger.info(f"Processed {received} record(s)")
            time.sleep(self.poll_interval)

        return self.messages


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Consume records from the Kinesis stream")
    parser.add_argument("--stream-name", help="Stream name, read from SSM Parameter Store when omitted")
    parser.add_argument(
        "--iterator",
        default="TRIM_HORIZON",
        choices=["TRIM_HORIZON", "LATEST"],
        help="Where to start reading each shard",
    )
    parser.add_argument(
        "--follow",
        action="store_true",
        help="Keep polling for new records until --max-messages or Ctrl-C (implied by LATEST)",
    )
    parser.add_argument("--max-messages", type=int, default=MAX_MESSAGES, help="Stop after this many messages")
    return parser.parse_args(argv)


def main(argv=None) -> None:
    """Main entry point for the consumer application."""
    args = parse_args(argv)
    settings = Settings(stream_name=args.stream_name)

    try:
        stream_name = resolve_stream_name(settings, None if args.stream_name else boto3.client('ssm'))
        tailer = StreamTailer(
            boto3.client('kinesis'),
            stream_name,
            iterator_type=args.iterator,
            max_messages=args.max_messages,
            follow=True if args.follow else None,
        )
        messages = tailer.consume()
    except KeyboardInterrupt:
        logger.info("Consumer interrupted by user")
        return
    except (ClientError, BotoCoreError, ConfigurationError, RuntimeError) as e:
        logger.error(f"Consumer failed: {e}")
        sys.exit(1)

    logger.info(f"Read {len(messages)} message(s), {tailer.undecodable} undecodable")


if __name__ == '__main__':
    main()
