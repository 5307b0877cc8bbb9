# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Release and Download Data Models

Platform release payloads (GitHub, GitLab) are parsed into pydantic models
that all expose the same small capability set: a release has a ``tag`` and
``assets``; an asset has a ``name``, an optional ``size`` and a
``download_url``. The rest of the download pipeline only uses that set.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# CAPABILITY INTERFACE
# =============================================================================

class ReleaseAsset(Protocol):
    """Downloadable file attached to a release"""

    @property
    def name(self) -> str: ...

    @property
    def size(self) -> Optional[int]: ...

    @property
    def download_url(self) -> str: ...


class Release(Protocol):
    """Release with a tag and a list of assets"""

    @property
    def tag(self) -> str: ...

    @property
    def assets(self) -> Sequence[ReleaseAsset]: ...


# =============================================================================
# GITHUB
# =============================================================================

class GithubAsset(BaseModel):
    """Asset entry of a GitHub release"""
    model_config = ConfigDict(extra="ignore")

    name: str
    size: Optional[int] = None
    browser_download_url: str

    @property
    def download_url(self) -> str:
        return self.browser_download_url


class GithubRelease(BaseModel):
    """GitHub release (``/repos/{owner}/{repo}/releases``)"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tag_name: str
    name: Optional[str] = None
    prerelease: bool = False
    published_at: Optional[str] = None
    asset_list: List[GithubAsset] = Field(default_factory=list, alias="assets")

    @property
    def tag(self) -> str:
        return self.tag_name

    @property
    def assets(self) -> List[GithubAsset]:
        return self.asset_list


# =============================================================================
# GITLAB
# =============================================================================

class GitlabAsset(BaseModel):
    """Asset link of a GitLab release"""
    model_config = ConfigDict(extra="ignore")

    name: str
    url: str
    direct_asset_url: Optional[str] = None

    @property
    def size(self) -> Optional[int]:
        # GitLab does not report link sizes
        return None

    @property
    def download_url(self) -> str:
        return self.direct_asset_url or self.url


class GitlabReleaseAssets(BaseModel):
    model_config = ConfigDict(extra="ignore")

    links: List[GitlabAsset] = Field(default_factory=list)


class GitlabRelease(BaseModel):
    """GitLab release (``/projects/{id}/releases``)"""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    tag_name: str
    name: Optional[str] = None
    upcoming_release: bool = False
    released_at: Optional[str] = None
    asset_links: GitlabReleaseAssets = Field(default_factory=GitlabReleaseAssets, alias="assets")

    @property
    def tag(self) -> str:
        return self.tag_name

    @property
    def assets(self) -> List[GitlabAsset]:
        return self.asset_links.links


# =============================================================================
# DOWNLOAD STATE AND OPTIONS
# =============================================================================

class DownloadStatus(str, Enum):
    """Download lifecycle"""
    STARTING = "starting"
    PROGRESS = "progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class DownloadState:
    """Progress update passed to the progress callback"""
    status: DownloadStatus
    url: str
    bytes_transferred: int = 0
    total_bytes: Optional[int] = None
    label: str = ""


ProgressCallback = Callable[[DownloadState], None]


@dataclass
class DownloadOptions:
    """Options for a single direct or OCI download"""
    url: str
    output_path: Optional[str] = None
    progress_callback: Optional[ProgressCallback] = None


@dataclass
class PlatformDownloadOptions:
    """Asset filtering and output options for release platform downloads"""
    output_path: Optional[str] = None
    progress_callback: Optional[ProgressCallback] = None
    tag: Optional[str] = None
    regex_patterns: List[re.Pattern] = field(default_factory=list)
    match_keywords: List[str] = field(default_factory=list)
    exclude_keywords: List[str] = field(default_factory=list)
    exact_case: bool = False
