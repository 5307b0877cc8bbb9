# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Shared helper functions
"""

from typing import Optional
from urllib.parse import unquote, urlparse


def format_bytes(size: Optional[int]) -> str:
    """
    Format a byte count for humans (binary units).

    Args:
        size: Number of bytes

    Returns:
        String such as ``1.50 MiB``; ``unknown`` for None
    """
    if size is None:
        return "unknown"
    value = float(size)
    for unit in ["B", "KiB", "MiB", "GiB", "TiB"]:
        if value < 1024 or unit == "TiB":
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.2f} {unit}"
        value /= 1024
    return f"{value:.2f} TiB"


def filename_from_url(url: str, fallback: str = "download") -> str:
    """Last non-empty path segment of a URL"""
    path = urlparse(url).path
    name = unquote(path.rstrip("/").rsplit("/", 1)[-1]) if path else ""
    return name or fallback
