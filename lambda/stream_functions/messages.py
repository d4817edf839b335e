"""
Message value type and its wire codec.

A Message travels through the stream as a compact JSON document encoded
as UTF-8. Kinesis hands records to Lambda base64 encoded, so the consumer
side strips that transport layer before decoding.
"""

import base64
import binascii
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Union

from .errors import MalformedPayloadError, MissingFieldError

REQUIRED_FIELDS = ("message", "timestamp")


def now_millis() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Message:
    """A single message flowing through the stream."""

    message: str
    timestamp: int

    def __post_init__(self) -> None:
        if not isinstance(self.message, str) or not self.message:
            raise ValueError("message must be non-empty text")
        # bool is an int subclass, reject it explicitly
        if isinstance(self.timestamp, bool) or not isinstance(self.timestamp, int):
            raise ValueError("timestamp must be an integer in milliseconds")

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "timestamp": self.timestamp}


def encode(message: Message) -> bytes:
    """
    Serialize a message into the bytes stored in a stream record.

    Args:
        message: Message to serialize

    Returns:
        Compact UTF-8 encoded JSON document
    """
    return json.dumps(message.to_dict(), separators=(",", ":")).encode("utf-8")


def decode(data: Union[bytes, str]) -> Message:
    """
    Parse the bytes of a stream record back into a message.

    Unknown extra fields are ignored.

    Args:
        data: Raw record payload

    Returns:
        Decoded message

    Raises:
        MalformedPayloadError: If the payload is not a JSON object describing a message
        MissingFieldError: If a required field is absent
    """
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        document = json.loads(text)
    except UnicodeDecodeError as e:
        raise MalformedPayloadError(f"Payload is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise MalformedPayloadError(f"Failed to parse JSON: {e}") from e

    if not isinstance(document, dict):
        raise MalformedPayloadError(
            f"Expected a JSON object, got {type(document).__name__}"
        )

    for field in REQUIRED_FIELDS:
        if field not in document:
            raise MissingFieldError(field)

    try:
        return Message(message=document["message"], timestamp=document["timestamp"])
    except ValueError as e:
        raise MalformedPayloadError(str(e)) from e


def decode_record(record: Dict[str, Any]) -> Message:
    """
    Decode one record of a Kinesis Lambda event.

    Args:
        record: Event record carrying base64 data under record['kinesis']['data']

    Returns:
        Decoded message
    """
    try:
        data = record["kinesis"]["data"]
    except (KeyError, TypeError) as e:
        raise MalformedPayloadError(f"Record has no kinesis data: {e}") from e

    try:
        payload = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise MalformedPayloadError(f"Record data is not valid base64: {e}") from e

    return decode(payload)
