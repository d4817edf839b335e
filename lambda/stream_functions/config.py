"""Runtime settings for the stream functions."""

import logging
import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .errors import ConfigurationError

logger = logging.getLogger()

# Parameter store keys written by the stream stack
PARAMETER_PREFIX = "/streams/my-stream"
STREAM_NAME_PARAMETER = f"{PARAMETER_PREFIX}/name"
STREAM_ARN_PARAMETER = f"{PARAMETER_PREFIX}/arn"

DEFAULT_PARTITION_KEY = "key-1"
DEFAULT_MESSAGE_TEXT = "Hello"

_TRUTHY = {"1", "true", "yes", "on"}


def _log_level(value: str) -> str:
    """Normalize a level name, falling back to INFO for names logging does not know."""
    level = value.strip().upper()
    if isinstance(logging.getLevelName(level), int):
        return level
    logger.warning(f"Unknown LOG_LEVEL '{value}', using INFO")
    return "INFO"


@dataclass(frozen=True)
class Settings:
    """Settings read from the function environment."""

    stream_name: Optional[str] = None
    stream_name_parameter: str = STREAM_NAME_PARAMETER
    partition_key: str = DEFAULT_PARTITION_KEY
    message_text: str = DEFAULT_MESSAGE_TEXT
    report_batch_item_failures: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from, defaults to os.environ

        Returns:
            Settings instance
        """
        env = os.environ if environ is None else environ
        return cls(
            stream_name=env.get("STREAM_NAME") or None,
            stream_name_parameter=env.get("STREAM_NAME_PARAMETER", STREAM_NAME_PARAMETER),
            partition_key=env.get("PARTITION_KEY", DEFAULT_PARTITION_KEY),
            message_text=env.get("MESSAGE_TEXT", DEFAULT_MESSAGE_TEXT),
            report_batch_item_failures=(
                env.get("REPORT_BATCH_ITEM_FAILURES", "false").strip().lower() in _TRUTHY
            ),
            log_level=_log_level(env.get("LOG_LEVEL", "INFO")),
        )


def resolve_stream_name(settings: Settings, ssm_client: Any) -> str:
    """
    Return the stream name, looking it up in the parameter store if needed.

    Args:
        settings: Function settings
        ssm_client: boto3 SSM client, only used when no name is configured

    Returns:
        Stream name

    Raises:
        ConfigurationError: If the parameter lookup fails
    """
    if settings.stream_name:
        return settings.stream_name

    parameter = settings.stream_name_parameter
    try:
        response = ssm_client.get_parameter(Name=parameter)
    except (ClientError, BotoCoreError) as e:
        raise ConfigurationError(
            f"Unable to read stream name from parameter '{parameter}': {e}"
        ) from e

    stream_name = response["Parameter"]["Value"]
    logger.info(f"Resolved stream name '{stream_name}' from parameter '{parameter}'")
    return stream_name


def configure_logging(settings: Settings) -> None:
    """Apply the configured level to the root logger Lambda writes through."""
    logging.getLogger().setLevel(settings.log_level)
