# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
OCI Artifact Client

Single responsibility: Resolve an OCI reference to its layer blobs and download them

References look like ``oci://ghcr.io/owner/name:tag``, ``ghcr.io/owner/name:tag``
or ``ghcr.io/owner/name@sha256:<digest>``. Registries are accessed with an
anonymous pull token.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import httpx

from binstash.core.errors import NetworkError, NotFoundError, ParseError
from binstash.models.release_models import DownloadOptions

if TYPE_CHECKING:
    from .downloader import Downloader

logger = logging.getLogger(__name__)

MANIFEST_ACCEPT = ", ".join([
    "application/vnd.oci.image.manifest.v1+json",
    "application/vnd.docker.distribution.manifest.v2+json",
])
TITLE_ANNOTATION = "org.opencontainers.image.title"

_REFERENCE_RE = re.compile(
    r"^(?P<registry>[a-z0-9.-]+(?::\d+)?)/(?P<name>[a-z0-9._/-]+?)"
    r"(?:(?::(?P<tag>[\w][\w.-]*))|(?:@(?P<digest>sha256:[a-f0-9]{64})))?$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class OciReference:
    """Parsed OCI artifact reference"""
    registry: str
    name: str
    tag: str = "latest"
    digest: Optional[str] = None

    @property
    def reference(self) -> str:
        return self.digest or self.tag

    @classmethod
    def parse(cls, reference: str) -> "OciReference":
        """
        Parse an OCI reference.

        Raises:
            ParseError: If the reference has no registry host or repository name
        """
        text = reference.strip()
        if text.startswith("oci://"):
            text = text[len("oci://"):]
        match = _REFERENCE_RE.match(text)
        if not match or "." not in match.group("registry").split(":")[0]:
            raise ParseError(f"Invalid OCI reference: '{reference}'", value=reference)
        return cls(
            registry=match.group("registry").lower(),
            name=match.group("name").lower(),
            tag=match.group("tag") or "latest",
            digest=match.group("digest"),
        )


def _json_object(response: httpx.Response, url: str) -> Dict[str, Any]:
    """Decode a registry response that must be a JSON object"""
    try:
        data = response.json()
    except ValueError as e:
        raise ParseError(f"Registry returned a non-JSON body for {url}: {e}", value=url)
    if not isinstance(data, dict):
        raise ParseError(f"Registry returned unexpected JSON for {url}", value=url)
    return data


class OciClient:
    """Downloads OCI artifact layers through a Downloader"""

    def __init__(self, downloader: "Downloader"):
        self.downloader = downloader
        self.client: httpx.AsyncClient = downloader.client

    async def _token(self, ref: OciReference) -> Optional[str]:
        """Anonymous pull token; None if the registry does not issue one"""
        url = f"https://{ref.registry}/token"
        params = {"scope": f"repository:{ref.name}:pull", "service": ref.registry}
        try:
            response = await self.client.get(url, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to get token from {ref.registry}: {e}", url=url)
        if response.status_code != 200:
            logger.debug(f"No anonymous token from {ref.registry} [{response.status_code}]")
            return None
        data = _json_object(response, url)
        return data.get("token") or data.get("access_token")

    async def fetch_manifest(self, ref: OciReference, headers: Dict[str, str]) -> Dict[str, Any]:
        url = f"https://{ref.registry}/v2/{ref.name}/manifests/{ref.reference}"
        try:
            response = await self.client.get(url, headers={**headers, "Accept": MANIFEST_ACCEPT})
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to fetch manifest {url}: {e}", url=url)
        if response.status_code == 404:
            raise NotFoundError("OCI artifact", f"{ref.registry}/{ref.name}:{ref.reference}")
        if response.status_code != 200:
            raise NetworkError(f"Failed to fetch manifest {url} [{response.status_code}]", url=url)
        return _json_object(response, url)

    async def download(self, options: DownloadOptions) -> List[Path]:
        """
        Download all layers of the referenced artifact.

        With more than one layer ``output_path`` is treated as a directory.

        Returns:
            Paths of the written files
        """
        ref = OciReference.parse(options.url)
        token = await self._token(ref)
        headers = {"Authorization": f"Bearer {token}"} if token else {}

        manifest = await self.fetch_manifest(ref, headers)
        layers = manifest.get("layers") or []
        if not layers:
            raise NotFoundError("OCI layers", options.url)

        output_path = options.output_path
        if output_path and len(layers) > 1 and not output_path.endswith("/"):
            output_path = output_path + "/"

        paths = []
        for layer in layers:
            digest = layer.get("digest") if isinstance(layer, dict) else None
            if not digest:
                raise ParseError(f"OCI manifest layer without a digest: {options.url}", value=options.url)
            annotations = layer.get("annotations") or {}
            filename = annotations.get(TITLE_ANNOTATION) or digest.split(":", 1)[-1]
            blob_url = f"https://{ref.registry}/v2/{ref.name}/blobs/{digest}"
            logger.info(f"Downloading OCI layer {filename}")
            path = await self.downloader.stream_to_file(
                blob_url,
                output_path=output_path,
                default_name=filename,
                progress_callback=options.progress_callback,
                headers=headers,
                label=filename,
            )
            paths.append(path)
        return paths
