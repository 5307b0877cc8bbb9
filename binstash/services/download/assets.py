# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Asset Filter & Selector

Single responsibility: Narrow release assets down to the one to download

Filtering is a pure function of the asset list and the options, so the
same input always gives the same candidates in the same order.
"""

import re
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from binstash.core.errors import AmbiguousPackageError, NotFoundError, ParseError
from binstash.models.release_models import PlatformDownloadOptions, Release, ReleaseAsset
from binstash.services.prompt import AskFunction, choose_index
from binstash.utils import format_bytes

A = TypeVar("A", bound=ReleaseAsset)


def parse_project_tag(project: str) -> Tuple[str, Optional[str]]:
    """
    Split ``owner/repo@tag`` on the last ``@``.

    An empty tag (after trimming) means no tag was requested.
    """
    project = project.strip()
    head, found, tag = project.rpartition("@")
    if not found:
        return project, None
    tag = tag.strip()
    return head.strip(), (tag or None)


def compile_patterns(patterns: Optional[Sequence[str]], exact_case: bool = False) -> List[re.Pattern]:
    """
    Compile user-supplied asset regexes.

    Raises:
        ParseError: If a pattern is not a valid regex
    """
    flags = 0 if exact_case else re.IGNORECASE
    compiled = []
    for pattern in patterns or []:
        try:
            compiled.append(re.compile(pattern, flags))
        except re.error as e:
            raise ParseError(f"Invalid regex '{pattern}': {e}", value=pattern)
    return compiled


def create_platform_options(
    tag: Optional[str] = None,
    regex_patterns: Optional[Sequence[str]] = None,
    match_keywords: Optional[Sequence[str]] = None,
    exclude_keywords: Optional[Sequence[str]] = None,
    output_path: Optional[str] = None,
    progress_callback=None,
    exact_case: bool = False
) -> PlatformDownloadOptions:
    return PlatformDownloadOptions(
        output_path=output_path,
        progress_callback=progress_callback,
        tag=tag,
        regex_patterns=compile_patterns(regex_patterns, exact_case),
        match_keywords=[k for k in (match_keywords or []) if k],
        exclude_keywords=[k for k in (exclude_keywords or []) if k],
        exact_case=exact_case,
    )


def select_release(releases: Sequence[Release], tag: Optional[str]) -> Release:
    """
    Pick the requested tag, or the first (latest) release.

    Raises:
        NotFoundError: If there are no releases or the tag is missing
    """
    if tag:
        for release in releases:
            if release.tag == tag:
                return release
        raise NotFoundError("Release", tag)
    if not releases:
        raise NotFoundError("Release", "latest")
    return releases[0]


def asset_matches(asset: ReleaseAsset, options: PlatformDownloadOptions) -> bool:
    """Regex, match-keyword and exclude-keyword checks, in that order"""
    name = asset.name
    if options.regex_patterns and not any(p.search(name) for p in options.regex_patterns):
        return False

    def fold(text: str) -> str:
        return text if options.exact_case else text.lower()

    folded = fold(name)
    if options.match_keywords and not any(fold(k) in folded for k in options.match_keywords):
        return False
    if any(fold(k) in folded for k in options.exclude_keywords):
        return False
    return True


def filter_assets(assets: Sequence[A], options: PlatformDownloadOptions) -> List[A]:
    return [asset for asset in assets if asset_matches(asset, options)]


def filter_releases(releases: Sequence[Release], options: PlatformDownloadOptions) -> List[ReleaseAsset]:
    """
    Choose the release, then filter its assets.

    Raises:
        NotFoundError: If no release or no asset survives
    """
    release = select_release(releases, options.tag)
    assets = filter_assets(release.assets, options)
    if not assets:
        raise NotFoundError("Matching asset", f"release {release.tag}")
    return assets


def select_asset(
    assets: Sequence[A],
    ask: AskFunction,
    emit: Callable[[str], None] = print
) -> A:
    """Ask the user which asset to download (1-based, retried until valid)"""
    emit("Available assets:")
    labels = []
    for asset in assets:
        size = f" ({format_bytes(asset.size)})" if asset.size is not None else ""
        labels.append(f"{asset.name}{size}")
    return assets[choose_index(labels, ask, "Select an asset", emit)]


def choose_asset(
    assets: Sequence[A],
    ask: Optional[AskFunction],
    assume_yes: bool = False,
    target: str = ""
) -> A:
    """
    Take the only candidate, or the first one with assume_yes, otherwise ask.

    Args:
        assets: Candidates left after filtering
        ask: Prompt function; None means non-interactive
        assume_yes: Take the first candidate instead of asking
        target: Project the assets belong to, for error messages

    Raises:
        NotFoundError: If there are no candidates
        AmbiguousPackageError: If several remain and there is no prompt
    """
    if not assets:
        raise NotFoundError("Matching asset", target)
    if len(assets) == 1 or assume_yes:
        return assets[0]
    if ask is None:
        raise AmbiguousPackageError(
            target,
            [asset.name for asset in assets],
            kind="assets",
            hint="narrow it with --match, --exclude or --regex, or pass --yes",
        )
    return select_asset(assets, ask)
