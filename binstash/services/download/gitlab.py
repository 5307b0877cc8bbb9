# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
GitLab Releases Adapter

Single responsibility: Map GitLab's releases API onto ReleasePlatform

Projects are addressed by their full path (``group/subgroup/project``),
which the API expects URL-encoded, or by numeric ID.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from pydantic import ValidationError

from binstash.core.config import get_gitlab_token
from binstash.core.errors import ParseError
from binstash.models.release_models import GitlabRelease

from .platform import ReleasePlatform

logger = logging.getLogger(__name__)

GITLAB_API_URL = "https://gitlab.com/api/v4"


class GitlabPlatform(ReleasePlatform):
    """GitLab releases (``group/project`` or numeric project ID)"""

    name = "gitlab"

    def __init__(self, token: Optional[str] = None, api_url: str = GITLAB_API_URL):
        self.token = token if token is not None else get_gitlab_token()
        self.api_url = api_url.rstrip("/")

    def releases_url(self, project: str, tag: Optional[str] = None) -> str:
        project_id = quote(project, safe="")
        if tag:
            return f"{self.api_url}/projects/{project_id}/releases/{quote(tag, safe='')}"
        return f"{self.api_url}/projects/{project_id}/releases"

    def auth_headers(self) -> Dict[str, str]:
        return {"PRIVATE-TOKEN": self.token} if self.token else {}

    def parse_releases(self, data: Any) -> List[GitlabRelease]:
        items = data if isinstance(data, list) else [data]
        try:
            return [GitlabRelease.model_validate(item) for item in items]
        except ValidationError as e:
            logger.debug(f"GitLab release payload rejected: {e}")
            raise ParseError(f"Unexpected GitLab release payload: {e.error_count()} errors")
