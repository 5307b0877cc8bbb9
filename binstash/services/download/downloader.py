# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Downloader

Single responsibility: Stream bytes from a URL to a file with progress updates

Shared by the registry install path, the run path, release platform
adapters and OCI blob downloads.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

import aiofiles
import aiofiles.os
import httpx

from binstash.core.errors import NetworkError, StorageError
from binstash.models.release_models import (
    DownloadOptions,
    DownloadState,
    DownloadStatus,
    ProgressCallback,
)
from binstash.utils import filename_from_url

from .oci import OciClient

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def resolve_output_path(output_path: Optional[str], default_name: str) -> Path:
    """
    Work out the destination file.

    No output path means ``default_name`` in the working directory; an
    existing directory or a path ending in ``/`` receives ``default_name``.
    """
    if not output_path:
        return Path(default_name)
    path = Path(output_path).expanduser()
    if output_path.endswith(("/", os.sep)) or path.is_dir():
        return path / default_name
    return path


class Downloader:
    """Streams HTTP responses to disk"""

    def __init__(self, client: httpx.AsyncClient):
        """
        Initialize downloader.

        Args:
            client: Shared HTTP client (timeouts are configured on it)
        """
        self.client = client

    async def download(self, options: DownloadOptions) -> Path:
        """
        Download a direct URL.

        Args:
            options: URL, output path and progress callback

        Returns:
            Path of the written file
        """
        return await self.stream_to_file(
            options.url,
            output_path=options.output_path,
            progress_callback=options.progress_callback,
        )

    async def download_oci(self, options: DownloadOptions) -> List[Path]:
        """
        Download every layer of an OCI artifact.

        Returns:
            Paths of the written files
        """
        return await OciClient(self).download(options)

    async def stream_to_file(
        self,
        url: str,
        output_path: Optional[str] = None,
        default_name: Optional[str] = None,
        progress_callback: Optional[ProgressCallback] = None,
        headers: Optional[Dict[str, str]] = None,
        label: str = ""
    ) -> Path:
        """
        Stream one URL into a file.

        Bytes go to ``<dest>.part`` first and are renamed on completion, so
        a failed transfer never leaves a truncated file at the destination.

        Args:
            url: Source URL
            output_path: Destination file or directory
            default_name: File name when output_path is a directory or unset
                (defaults to the last URL path segment)
            progress_callback: Receives DownloadState updates
            headers: Extra request headers
            label: Display name passed through to the progress callback

        Returns:
            Path of the written file

        Raises:
            NetworkError: On transport failure or a non-2xx response
            StorageError: If the file cannot be written
        """
        dest = resolve_output_path(output_path, default_name or filename_from_url(url))
        part = dest.with_name(dest.name + ".part")
        label = label or dest.name

        def report(status: DownloadStatus, transferred: int, total: Optional[int]):
            if progress_callback is not None:
                progress_callback(DownloadState(
                    status=status,
                    url=url,
                    bytes_transferred=transferred,
                    total_bytes=total,
                    label=label,
                ))

        try:
            async with self.client.stream("GET", url, headers=headers, follow_redirects=True) as response:
                if response.status_code >= 400:
                    raise NetworkError(
                        f"Failed to download {url} [{response.status_code}]",
                        url=url,
                    )

                length = response.headers.get("content-length")
                total = int(length) if length and length.isdigit() else None
                transferred = 0
                report(DownloadStatus.STARTING, 0, total)

                try:
                    if dest.parent != Path(""):
                        dest.parent.mkdir(parents=True, exist_ok=True)
                    async with aiofiles.open(part, "wb") as f:
                        async for chunk in response.aiter_bytes(CHUNK_SIZE):
                            await f.write(chunk)
                            transferred += len(chunk)
                            report(DownloadStatus.PROGRESS, transferred, total)
                    await aiofiles.os.replace(part, dest)
                except OSError as e:
                    raise StorageError(f"Failed to write {dest}: {e}", path=str(dest))
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to download {url}: {e}", url=url)
        finally:
            if part.exists():
                part.unlink()

        report(DownloadStatus.COMPLETE, transferred, total)
        logger.debug(f"Downloaded {url} -> {dest} ({transferred} bytes)")
        return dest
