# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
GitHub Releases Adapter

Single responsibility: Map GitHub's releases API onto ReleasePlatform
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from binstash.core.config import get_github_token
from binstash.core.errors import ParseError
from binstash.models.release_models import GithubRelease

from .platform import ReleasePlatform

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"


class GithubPlatform(ReleasePlatform):
    """GitHub releases (``owner/repo``)"""

    name = "github"

    def __init__(self, token: Optional[str] = None, api_url: str = GITHUB_API_URL):
        self.token = token if token is not None else get_github_token()
        self.api_url = api_url.rstrip("/")

    def releases_url(self, project: str, tag: Optional[str] = None) -> str:
        if tag:
            return f"{self.api_url}/repos/{project}/releases/tags/{tag}"
        return f"{self.api_url}/repos/{project}/releases"

    def auth_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def parse_releases(self, data: Any) -> List[GithubRelease]:
        # A tagged lookup returns a single object instead of a list
        items = data if isinstance(data, list) else [data]
        try:
            return [GithubRelease.model_validate(item) for item in items]
        except ValidationError as e:
            logger.debug(f"GitHub release payload rejected: {e}")
            raise ParseError(f"Unexpected GitHub release payload: {e.error_count()} errors")
