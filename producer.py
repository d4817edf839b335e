#!/usr/bin/env python3

import argparse
import time
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from faker import Faker
import logging

from stream_functions.config import Settings, resolve_stream_name
from stream_functions.messages import Message, encode, now_millis

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
logger = logging.getLogger(__name__)

NUMBER_OF_EVENTS = 1000
BATCH_SIZE = 100  # Records per put_records call
DELAY_BETWEEN_BATCHES = 0.2  # seconds


class SampleMessageProducer:
    def __init__(self, kinesis_client, stream_name, num_events=NUMBER_OF_EVENTS, batch_size=BATCH_SIZE):
        """Initialize a producer that fills the stream with sample messages."""
        self.kinesis_client = kinesis_client
        self.stream_name = stream_name
        self.num_events = num_events
        self.batch_size = batch_size
        self.faker = Faker()
        self.failed_records = 0

    def generate_record(self):
        """Generate one put_records entry with a random sentence and partition key."""
        message = Message(message=self.faker.sentence(), timestamp=now_millis())
        # Random keys spread the records over every shard
        return {
            'Data': encode(message),
            'PartitionKey': self.faker.uuid4(),
        }

    def send_batch(self, records):
        """Put one batch of records and log any the stream rejected."""
        response = self.kinesis_client.put_records(StreamName=self.stream_name, Records=records)
        failed = response.get('FailedRecordCount', 0)
        if failed:
            self.failed_records += failed
            for entry in response['Records']:
                if 'ErrorCode' in entry:
                    logger.error(f"Record rejected: {entry['ErrorCode']} - {entry.get('ErrorMessage')}")
        return failed

    def produce_events(self):
        """Produce the specified number of sample messages to Kinesis."""
        logger.info(f"Starting to produce {self.num_events} messages to stream '{self.stream_name}'")
        start_time = time.time()

        sent = 0
        while sent < self.num_events:
            count = min(self.batch_size, self.num_events - sent)
            records = [self.generate_record() for _ in range(count)]
            try:
                self.send_batch(records)
            except (ClientError, BotoCoreError) as e:
                logger.error(f"Error producing batch starting at message {sent + 1}: {e}")
                self.failed_records += count
            sent += count
            logger.info(f"Produced {sent} messages")

            # Small delay to stay under the shard write limits
            if sent < self.num_events:
                time.sleep(DELAY_BETWEEN_BATCHES)

        elapsed_time = time.time() - start_time
        logger.info(
            f"Finished producing {self.num_events} messages in {elapsed_time:.2f} seconds "
            f"({self.failed_records} failed)"
        )
        return self.num_events - self.failed_records


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Publish sample messages to the Kinesis stream")
    parser.add_argument("--stream-name", help="Stream name, read from SSM Parameter Store when omitted")
    parser.add_argument("--count", type=int, default=NUMBER_OF_EVENTS, help="Number of messages to publish")
    parser.add_argument("--batch-size", type=int, default=BATCH_SIZE, help="Records per put_records call (max 500)")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    settings = Settings(stream_name=args.stream_name)
    stream_name = resolve_stream_name(settings, None if args.stream_name else boto3.client('ssm'))

    producer = SampleMessageProducer(boto3.client('kinesis'), stream_name, args.count, args.batch_size)
    producer.produce_events()


if __name__ == '__main__':
    main()
