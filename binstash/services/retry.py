# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Retry Helper

Single responsibility: Re-run transient network operations with exponential backoff
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Tuple, Type

import httpx

from binstash.core.config import Config

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Retry configuration settings"""
    max_retries: int = 3
    retry_delay: float = 1.0
    max_retry_delay: float = 30.0
    backoff_multiplier: float = 2.0

    @classmethod
    def from_config(cls, config: Config) -> "RetryConfig":
        return cls(
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            max_retry_delay=config.max_retry_delay,
            backoff_multiplier=config.backoff_multiplier,
        )


def is_transient(error: BaseException) -> bool:
    """Transport failures and 5xx/429 responses are worth retrying"""
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status >= 500 or status == 429
    return isinstance(error, httpx.TransportError)


async def execute_with_retry(
    operation: Callable[..., Awaitable[Any]],
    operation_name: str,
    config: RetryConfig,
    *args: Any,
    retry_on: Tuple[Type[BaseException], ...] = (httpx.HTTPError,),
    **kwargs: Any
) -> Any:
    """
    Execute operation with retry logic.

    Args:
        operation: Async function to execute
        operation_name: Operation name for logging
        config: Retry settings
        *args: Positional arguments to pass to operation
        retry_on: Exception types that may be retried
        **kwargs: Keyword arguments to pass to operation

    Returns:
        Operation result

    Raises:
        Exception: The last error once retries are exhausted, or any
            non-transient error immediately
    """
    delay = config.retry_delay

    for attempt in range(config.max_retries + 1):
        try:
            if attempt > 0:
                logger.info(
                    f"Retry attempt {attempt}/{config.max_retries} "
                    f"for {operation_name} after {delay}s"
                )
                await asyncio.sleep(delay)
                delay = min(delay * config.backoff_multiplier, config.max_retry_delay)

            return await operation(*args, **kwargs)

        except retry_on as e:
            if not is_transient(e) or attempt == config.max_retries:
                if attempt > 0:
                    logger.error(f"Final retry failed for {operation_name}: {e}")
                raise
            logger.warning(
                f"Attempt {attempt + 1}/{config.max_retries + 1} failed "
                f"for {operation_name}: {e}"
            )

    raise RuntimeError("unreachable")
