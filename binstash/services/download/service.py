# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Download Service

Single responsibility: Process a batch of download targets, best-effort

Every link, project or OCI reference is handled on its own: a failure is
logged with the offending target and the batch moves on. Only a user
abort at a prompt (Ctrl-C or end of input) stops the batch.
"""

import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from binstash.core.errors import BinstashError, UserAbortedError
from binstash.core.logging import log_event
from binstash.models.release_models import (
    DownloadOptions,
    PlatformDownloadOptions,
    ProgressCallback,
)
from binstash.services.prompt import AskFunction, interactive_ask
from binstash.services.retry import RetryConfig

from .assets import choose_asset, create_platform_options, parse_project_tag
from .downloader import Downloader
from .github import GithubPlatform
from .gitlab import GitlabPlatform
from .platform import PlatformKind, PlatformUrl, ReleaseHandler, ReleasePlatform

logger = logging.getLogger(__name__)


@dataclass
class DownloadRequest:
    """One ``download`` invocation"""
    links: List[str] = field(default_factory=list)
    github: List[str] = field(default_factory=list)
    gitlab: List[str] = field(default_factory=list)
    ghcr: List[str] = field(default_factory=list)
    regex_patterns: List[str] = field(default_factory=list)
    match_keywords: List[str] = field(default_factory=list)
    exclude_keywords: List[str] = field(default_factory=list)
    output_path: Optional[str] = None
    exact_case: bool = False
    assume_yes: bool = False


@dataclass
class DownloadResult:
    downloaded: List[Path] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class DownloadService:
    """Routes download targets to the direct, OCI or release platform path"""

    def __init__(
        self,
        downloader: Downloader,
        retry_config: Optional[RetryConfig] = None,
        ask: Optional[AskFunction] = interactive_ask,
        github: Optional[ReleasePlatform] = None,
        gitlab: Optional[ReleasePlatform] = None
    ):
        """
        Initialize download service.

        Args:
            downloader: Shared downloader
            retry_config: Retry policy for release API calls
            ask: Prompt used when several assets match; None makes that
                target fail as ambiguous
            github: GitHub adapter (default: public API, token from env)
            gitlab: GitLab adapter (default: gitlab.com, token from env)
        """
        self.downloader = downloader
        self.ask = ask
        retry_config = retry_config or RetryConfig()
        self.handlers = {
            PlatformKind.GITHUB: ReleaseHandler(github or GithubPlatform(), downloader, retry_config),
            PlatformKind.GITLAB: ReleaseHandler(gitlab or GitlabPlatform(), downloader, retry_config),
        }

    async def run(
        self,
        request: DownloadRequest,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DownloadResult:
        """
        Download every target in the request.

        Args:
            request: Targets, asset filters and output path
            progress_callback: Shared progress sink

        Returns:
            Written files and the targets that failed

        Raises:
            ParseError: If a regex pattern is invalid (before any download)
            UserAbortedError: If the user aborts an asset prompt
        """
        options = create_platform_options(
            regex_patterns=request.regex_patterns,
            match_keywords=request.match_keywords,
            exclude_keywords=request.exclude_keywords,
            output_path=request.output_path,
            progress_callback=progress_callback,
            exact_case=request.exact_case,
        )
        result = DownloadResult()

        for link in request.links:
            await self._guarded(link, result, self._download_link(link, options, request.assume_yes))
        for project in request.github:
            await self._guarded(
                project, result,
                self._download_release(PlatformKind.GITHUB, project, options, request.assume_yes),
            )
        for project in request.gitlab:
            await self._guarded(
                project, result,
                self._download_release(PlatformKind.GITLAB, project, options, request.assume_yes),
            )
        for reference in request.ghcr:
            await self._guarded(reference, result, self._download_oci(ghcr_reference(reference), options))

        logger.info(f"Downloaded {len(result.downloaded)} file(s), {len(result.failed)} target(s) failed")
        return result

    async def _guarded(self, target: str, result: DownloadResult, work) -> None:
        try:
            paths = await work
        except UserAbortedError:
            raise
        except BinstashError as e:
            logger.error(f"Download failed for {target}: {e.message}")
            result.failed.append(target)
            return
        except Exception as e:
            logger.exception(f"Unexpected error downloading {target}: {e}")
            result.failed.append(target)
            return
        result.downloaded.extend(paths)
        for path in paths:
            log_event(logger, "download_complete", target=target, path=str(path))

    async def _download_link(
        self,
        link: str,
        options: PlatformDownloadOptions,
        assume_yes: bool
    ) -> List[Path]:
        url = PlatformUrl.parse(link)
        if url.kind in self.handlers:
            return await self._download_release(url.kind, url.value, options, assume_yes)
        if url.kind == PlatformKind.OCI:
            return await self._download_oci(url.value, options)
        path = await self.downloader.download(DownloadOptions(
            url=url.value,
            output_path=options.output_path,
            progress_callback=options.progress_callback,
        ))
        return [path]

    async def _download_oci(self, reference: str, options: PlatformDownloadOptions) -> List[Path]:
        return await self.downloader.download_oci(DownloadOptions(
            url=reference,
            output_path=options.output_path,
            progress_callback=options.progress_callback,
        ))

    async def _download_release(
        self,
        kind: PlatformKind,
        project: str,
        options: PlatformDownloadOptions,
        assume_yes: bool
    ) -> List[Path]:
        handler = self.handlers[kind]
        project, tag = parse_project_tag(project)
        options = dataclasses.replace(options, tag=tag)

        releases = await handler.fetch_releases(project, tag)
        assets = handler.filter_releases(releases, options)
        # Prompting reads stdin, keep it off the event loop
        asset = await asyncio.to_thread(choose_asset, assets, self.ask, assume_yes, project)
        return [await handler.download(asset, options)]


def ghcr_reference(reference: str) -> str:
    """Prefix bare ``owner/name[:tag]`` references with ghcr.io"""
    reference = reference.strip()
    if reference.startswith("oci://") or reference.lower().startswith("ghcr.io/"):
        return reference
    return f"ghcr.io/{reference}"
