"""Exception types raised by the stream functions."""

from typing import Optional


class StreamPipelineError(Exception):
    """Base class for every error raised by this package."""
    pass


class MessageDecodeError(StreamPipelineError):
    """A payload could not be turned back into a Message."""
    pass


class MalformedPayloadError(MessageDecodeError):
    """Payload is not a valid JSON document for a Message."""
    pass


class MissingFieldError(MessageDecodeError):
    """Payload is valid JSON but lacks a required attribute."""

    def __init__(self, field: str):
        super().__init__(f"Missing required field '{field}'")
        self.field = field


class PublishError(StreamPipelineError):
    """The put-record call to the stream failed."""

    def __init__(self, stream_name: str, message: str):
        super().__init__(f"Failed to publish to stream '{stream_name}': {message}")
        self.stream_name = stream_name


class ProcessingError(StreamPipelineError):
    """A record in a delivered batch could not be processed."""

    def __init__(
        self,
        position: int,
        message: str,
        sequence_number: Optional[str] = None,
    ):
        super().__init__(f"Record {position} failed: {message}")
        self.position = position
        self.sequence_number = sequence_number


class ConfigurationError(StreamPipelineError):
    """Stream configuration could not be resolved."""
    pass
