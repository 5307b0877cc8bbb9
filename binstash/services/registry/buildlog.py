# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Build Log Inspection

Single responsibility: Fetch the build log of a package
"""

import asyncio
import logging

import httpx

from binstash.core.errors import NetworkError, NotFoundError, UserAbortedError
from binstash.services.prompt import AskFunction, confirm
from binstash.utils import format_bytes

from .storage import PackageRegistry

logger = logging.getLogger(__name__)

LARGE_LOG_BYTES = 1024 * 1024


async def inspect_build_log(
    registry: PackageRegistry,
    client: httpx.AsyncClient,
    package_name: str,
    ask: AskFunction,
    assume_yes: bool = False
) -> str:
    """
    Download a package's build log.

    Logs larger than 1 MiB need confirmation unless ``assume_yes`` is set.

    Args:
        registry: Loaded package registry
        client: Shared HTTP client
        package_name: Package query
        ask: Prompt for the size confirmation
        assume_yes: Skip the confirmation

    Returns:
        Log text with carriage returns turned into newlines

    Raises:
        NotFoundError: If the package or its build log does not exist
        UserAbortedError: If the user declines a large download
        NetworkError: On transport failure
    """
    package = await asyncio.to_thread(registry.resolve, package_name, assume_yes)
    url = package.package.build_log
    if not url:
        raise NotFoundError("Build log", package.display_name())

    try:
        async with client.stream("GET", url, follow_redirects=True) as response:
            if response.status_code == 404:
                raise NotFoundError("Build log", url)
            if response.status_code >= 400:
                raise NetworkError(f"Failed to fetch build log [{response.status_code}]", url=url)

            length = response.headers.get("content-length")
            size = int(length) if length and length.isdigit() else None
            if size is not None and size > LARGE_LOG_BYTES and not assume_yes:
                prompt = f"The log file is large ({format_bytes(size)}). Do you want to download and view it?"
                if not await asyncio.to_thread(confirm, ask, prompt):
                    raise UserAbortedError("Build log download declined")

            logger.info(f"Fetching log from {url} [{format_bytes(size)}]")
            content = await response.aread()
    except httpx.HTTPError as e:
        raise NetworkError(f"Failed to fetch build log: {e}", url=url)

    return content.decode("utf-8", errors="replace").replace("\r", "\n")
