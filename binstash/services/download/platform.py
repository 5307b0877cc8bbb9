# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Release Platforms

Single responsibility: Route download links by shape and drive release platform adapters

Links are classified into a tagged PlatformUrl (GitHub project, GitLab
project, OCI reference or direct URL). GitHub and GitLab share the
ReleasePlatform interface; ReleaseHandler runs fetch -> filter -> download
for any platform.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import httpx

from binstash.core.errors import NetworkError, NotFoundError, ParseError
from binstash.models.release_models import (
    PlatformDownloadOptions,
    Release,
    ReleaseAsset,
)
from binstash.services.retry import RetryConfig, execute_with_retry

from .assets import filter_releases
from .downloader import Downloader

logger = logging.getLogger(__name__)


# =============================================================================
# URL CLASSIFICATION
# =============================================================================

class PlatformKind(str, Enum):
    """Where a download link points"""
    GITHUB = "github"
    GITLAB = "gitlab"
    OCI = "oci"
    DIRECT = "direct"


_GITHUB_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com/"
    r"(?P<project>[^/@\s]+/[^/@\s]+?)(?:\.git)?/?(?:@(?P<tag>[^/\s]*))?$",
    re.IGNORECASE,
)
_GITLAB_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?gitlab\.com/"
    r"(?P<project>\d+|[^/@\s-][^/@\s]*(?:/[^/@\s-][^/@\s]*)+?)(?:\.git)?/?(?:@(?P<tag>[^/\s]*))?$",
    re.IGNORECASE,
)
_OCI_HOSTS = ("ghcr.io/",)


@dataclass(frozen=True)
class PlatformUrl:
    """
    Classified download link.

    For GitHub and GitLab ``value`` is the ``owner/repo[@tag]`` project;
    for OCI and direct links it is the link itself.
    """
    kind: PlatformKind
    value: str

    @classmethod
    def parse(cls, link: str) -> "PlatformUrl":
        """
        Classify a link.

        Raises:
            ParseError: If the link is none of the known shapes
        """
        text = link.strip()

        if text.lower().startswith("oci://") or text.lower().startswith(_OCI_HOSTS):
            return cls(PlatformKind.OCI, text)

        for kind, pattern in ((PlatformKind.GITHUB, _GITHUB_RE), (PlatformKind.GITLAB, _GITLAB_RE)):
            match = pattern.match(text)
            if match:
                project = match.group("project")
                if match.group("tag"):
                    project = f"{project}@{match.group('tag')}"
                return cls(kind, project)

        parsed = urlparse(text)
        if parsed.scheme in ("http", "https") and parsed.netloc:
            return cls(PlatformKind.DIRECT, text)

        raise ParseError(f"Unsupported or invalid URL: '{link}'", value=link)


# =============================================================================
# PLATFORM INTERFACE
# =============================================================================

class ReleasePlatform(ABC):
    """Abstract interface for a release hosting platform.

    Implementations translate a project identifier into API requests and
    parse the responses into objects with the Release capability set.
    """

    name: str = ""

    @abstractmethod
    def releases_url(self, project: str, tag: Optional[str] = None) -> str:
        """API URL listing the project's releases (or the single tagged one)"""
        ...

    @abstractmethod
    def parse_releases(self, data: Any) -> List[Release]:
        """Parse an API response body into releases, newest first"""
        ...

    def auth_headers(self) -> Dict[str, str]:
        """Authorization headers, empty when no token is configured"""
        return {}


class ReleaseHandler:
    """Runs the fetch -> filter -> download pipeline for one platform"""

    def __init__(
        self,
        platform: ReleasePlatform,
        downloader: Downloader,
        retry_config: Optional[RetryConfig] = None
    ):
        self.platform = platform
        self.downloader = downloader
        self.client = downloader.client
        self.retry_config = retry_config or RetryConfig()

    async def _get_json(self, url: str) -> Any:
        response = await self.client.get(url, headers=self.platform.auth_headers())
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"{self.platform.name} API returned a non-JSON body for {url}: {e}", value=url)

    async def fetch_releases(self, project: str, tag: Optional[str] = None) -> List[Release]:
        """
        Fetch releases for ``owner/repo``.

        Args:
            project: Project identifier without tag
            tag: Fetch only this release when given

        Returns:
            Releases, newest first

        Raises:
            NotFoundError: If the project or tag does not exist
            NetworkError: On transport or API failure
        """
        url = self.platform.releases_url(project, tag)
        try:
            data = await execute_with_retry(
                self._get_json,
                f"fetch_releases_{self.platform.name}_{project}",
                self.retry_config,
                url,
            )
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                raise NotFoundError(f"{self.platform.name} project", f"{project}@{tag}" if tag else project)
            raise NetworkError(
                f"{self.platform.name} API error for {project} [{e.response.status_code}]",
                url=url,
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to fetch releases for {project}: {e}", url=url)

        releases = self.platform.parse_releases(data)
        logger.debug(f"Fetched {len(releases)} releases for {project} from {self.platform.name}")
        return releases

    def filter_releases(
        self,
        releases: List[Release],
        options: PlatformDownloadOptions
    ) -> List[ReleaseAsset]:
        return filter_releases(releases, options)

    async def download(self, asset: ReleaseAsset, options: PlatformDownloadOptions) -> Path:
        """Stream the asset to ``options.output_path`` (default: the asset name)"""
        logger.info(f"Downloading {asset.name}")
        return await self.downloader.stream_to_file(
            asset.download_url,
            output_path=options.output_path,
            default_name=asset.name,
            progress_callback=options.progress_callback,
            label=asset.name,
        )
