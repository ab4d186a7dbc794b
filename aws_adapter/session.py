from __future__ import annotations

from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ggprov_core.config import Config
from ggprov_core.errors import NotFoundError, UpstreamError

_NOT_FOUND_CODES = {"ResourceNotFoundException", "NotFoundException", "404"}


def build_client(service_name: str, config: Config) -> Any:
    """Single-attempt boto3 client with explicit timeouts."""
    boto_config = BotoConfig(
        connect_timeout=config.aws_connect_timeout_seconds,
        read_timeout=config.aws_read_timeout_seconds,
        retries={"total_max_attempts": 1},
    )
    return boto3.client(
        service_name,
        region_name=config.aws_region,
        config=boto_config,
    )


def is_not_found(exc: ClientError) -> bool:
    error = exc.response.get("Error", {})
    if str(error.get("Code", "")) in _NOT_FOUND_CODES:
        return True
    status = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return status == 404


def translate_error(exc: Exception, action: str) -> Exception:
    if isinstance(exc, ClientError):
        message = exc.response.get("Error", {}).get("Message") or str(exc)
        if is_not_found(exc):
            return NotFoundError(f"{action}: {message}")
        return UpstreamError(f"{action}: {message}")
    if isinstance(exc, BotoCoreError):
        return UpstreamError(f"{action}: {exc}")
    return exc
