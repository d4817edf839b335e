"""
Kinesis-triggered consumer Lambda.

Records of a batch are decoded and handed to the processing action one at
a time, in delivery order. The first record that fails stops the batch:
everything before it has been processed, nothing after it is touched.
"""

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from .config import Settings, configure_logging
from .errors import ProcessingError
from .messages import Message, decode_record

logger = logging.getLogger()
logger.setLevel(logging.INFO)


def log_message(message: Message) -> None:
    """Default processing action: emit one log record per message."""
    logger.info(
        f"Consumer received: message={message.message!r} "
        f"timestamp={message.timestamp}"
    )


def _sequence_number(record: Any) -> Optional[str]:
    try:
        return record["kinesis"]["sequenceNumber"]
    except (KeyError, TypeError):
        return None


class BatchProcessor:
    """Processes the records of one Kinesis batch sequentially."""

    def __init__(self, action: Optional[Callable[[Message], None]] = None):
        """
        Initialize the batch processor.

        Args:
            action: Called once per decoded message, must be safe to repeat
                since the stream may redeliver a record
        """
        self.action = action or log_message

    def process_batch(self, records: Iterable[Dict[str, Any]]) -> List[Message]:
        """
        Decode and process every record in order.

        Args:
            records: Kinesis event records

        Returns:
            Messages processed, in delivery order

        Raises:
            ProcessingError: For the first record that fails to decode or process
        """
        processed = []

        for position, record in enumerate(records):
            sequence_number = _sequence_number(record)
            try:
                message = decode_record(record)
                self.action(message)
            except Exception as e:
                logger.error(
                    f"Failed to process record {position} "
                    f"(sequence={sequence_number}): {e}"
                )
                raise ProcessingError(position, str(e), sequence_number) from e

            processed.append(message)

        logger.info(f"Processed {len(processed)} record(s)")
        return processed


def lambda_handler(event: Dict[str, Any], context: Any) -> Optional[Dict[str, Any]]:
    """
    AWS Lambda handler invoked by the Kinesis event source mapping.

    With REPORT_BATCH_ITEM_FAILURES enabled the failing record is reported
    back so Kinesis retries from it; otherwise the error propagates and the
    whole batch is retried.

    Args:
        event: Kinesis event with a 'Records' list
        context: Lambda context object

    Returns:
        Batch item failure response when reporting is enabled, else None
    """
    settings = Settings.from_env()
    configure_logging(settings)

    records = event.get("Records", [])
    logger.info(f"Consumer invoked with {len(records)} record(s)")
    logger.debug(f"Event: {json.dumps(event, default=str)}")

    processor = BatchProcessor()
    try:
        processor.process_batch(records)
    except ProcessingError as e:
        if settings.report_batch_item_failures and e.sequence_number:
            logger.warning(
                f"Reporting record {e.position} (sequence={e.sequence_number}) "
                f"as failed: {e}"
            )
            return {"batchItemFailures": [{"itemIdentifier": e.sequence_number}]}
        logger.error(f"Consumer invocation failed: {e}", exc_info=True)
        raise

    if settings.report_batch_item_failures:
        return {"batchItemFailures": []}
    return None
