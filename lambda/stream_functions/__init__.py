"""Lambda functions producing to and consuming from the Kinesis stream."""

from .errors import (
    ConfigurationError,
    MalformedPayloadError,
    MessageDecodeError,
    MissingFieldError,
    ProcessingError,
    PublishError,
    StreamPipelineError,
)
from .messages import Message, decode, decode_record, encode

__all__ = [
    'ConfigurationError',
    'MalformedPayloadError',
    'Message',
    'MessageDecodeError',
    'MissingFieldError',
    'ProcessingError',
    'PublishError',
    'StreamPipelineError',
    'decode',
    'decode_record',
    'encode',
]
