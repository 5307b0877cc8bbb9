# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Query Parser

Single responsibility: Turn ``[variant/]name[#collection][@repository]`` into a PackageQuery
"""

from typing import Optional, Tuple

from binstash.core.errors import ParseError
from binstash.models.registry_models import PackageQuery


def _split_last(text: str, sep: str) -> Tuple[str, Optional[str]]:
    head, found, tail = text.rpartition(sep)
    if not found:
        return text, None
    tail = tail.strip()
    return head, (tail.lower() if tail else None)


def parse_package_query(query: str) -> PackageQuery:
    """
    Parse a package query string.

    Examples:
        ``curl``                      -> name=curl
        ``musl/curl``                 -> variant=musl, name=curl
        ``curl#bin``                  -> collection=bin
        ``musl/curl#bin@main``        -> all qualifiers

    Args:
        query: Raw query text

    Returns:
        Parsed query; empty qualifiers are treated as unspecified

    Raises:
        ParseError: If the package name is empty
    """
    base, repository = _split_last(query.strip(), "@")
    base, collection = _split_last(base, "#")

    variant = None
    name = base
    if "/" in base:
        variant, name = base.split("/", 1)
        variant = variant.strip() or None

    name = name.strip()
    if not name:
        raise ParseError(f"Invalid package query: '{query}'", value=query)

    return PackageQuery(
        name=name,
        variant=variant,
        collection=collection,
        repository=repository,
    )
