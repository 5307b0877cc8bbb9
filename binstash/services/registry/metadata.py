# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Repository Metadata Fetcher

Single responsibility: Fetch, cache and parse repository metadata documents

A metadata document is a JSON object mapping collection name to a list of
package objects. Supports HTTP(S) and local file:// repositories.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from binstash.core.errors import NetworkError, ParseError, StorageError
from binstash.models.registry_models import CollectionMap, Package, RepositoryConfig
from binstash.services.retry import RetryConfig, execute_with_retry

from .storage import PackageRegistry

logger = logging.getLogger(__name__)


def build_collection_map(document: Dict[str, Any]) -> CollectionMap:
    """
    Group a metadata document by collection and package name.

    Document order is preserved within each name.

    Raises:
        ParseError: If the document shape is wrong
    """
    if not isinstance(document, dict):
        raise ParseError("Metadata document must be an object of collections")

    collections: CollectionMap = {}
    for collection_name, entries in document.items():
        if not isinstance(entries, list):
            raise ParseError(f"Collection '{collection_name}' must be a list of packages")
        by_name: Dict[str, List[Package]] = {}
        for entry in entries:
            try:
                pkg = Package(**entry)
            except (TypeError, ValidationError) as e:
                logger.warning(f"Skipping invalid package entry in {collection_name}: {e}")
                continue
            by_name.setdefault(pkg.name, []).append(pkg)
        collections[collection_name] = by_name
    return collections


class MetadataFetcher:
    """Loads repository metadata into a PackageRegistry"""

    def __init__(
        self,
        client: httpx.AsyncClient,
        metadata_dir: Path,
        retry_config: Optional[RetryConfig] = None
    ):
        """
        Initialize metadata fetcher.

        Args:
            client: Shared HTTP client
            metadata_dir: Directory for cached metadata documents
            retry_config: Retry settings for remote fetches
        """
        self.client = client
        self.metadata_dir = metadata_dir
        self.retry_config = retry_config or RetryConfig()

    def _cache_file(self, repo_name: str) -> Path:
        return self.metadata_dir / f"{repo_name}.json"

    async def _fetch_remote(self, url: str) -> Dict[str, Any]:
        response = await self.client.get(url)
        response.raise_for_status()
        return response.json()

    def _read_local(self, url: str) -> Dict[str, Any]:
        path = Path(url[len("file://"):]).expanduser()
        try:
            return json.loads(path.read_text())
        except OSError as e:
            raise StorageError(f"Cannot read metadata file {path}: {e}", path=str(path))
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid metadata JSON in {path}: {e}", value=str(path))

    def _read_cache(self, repo_name: str) -> Optional[Dict[str, Any]]:
        cache_file = self._cache_file(repo_name)
        if not cache_file.exists():
            return None
        try:
            return json.loads(cache_file.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load cached metadata for {repo_name}: {e}")
            return None

    def _write_cache(self, repo_name: str, document: Dict[str, Any]):
        try:
            self.metadata_dir.mkdir(parents=True, exist_ok=True)
            self._cache_file(repo_name).write_text(json.dumps(document))
        except OSError as e:
            logger.warning(f"Could not cache metadata for {repo_name}: {e}")

    async def fetch(self, repository: RepositoryConfig, use_cache: bool = False) -> CollectionMap:
        """
        Fetch one repository's metadata.

        Args:
            repository: Repository configuration
            use_cache: Prefer a cached copy over the network

        Returns:
            Parsed collection map

        Raises:
            NetworkError: If the fetch fails and no cached copy exists
        """
        if repository.url.startswith("file://"):
            return build_collection_map(self._read_local(repository.url))

        if use_cache:
            cached = self._read_cache(repository.name)
            if cached is not None:
                logger.debug(f"Using cached metadata for {repository.name}")
                return build_collection_map(cached)

        try:
            logger.info(f"Fetching metadata for {repository.name} from {repository.url}")
            document = await execute_with_retry(
                self._fetch_remote,
                f"fetch_metadata_{repository.name}",
                self.retry_config,
                repository.url,
            )
        except (httpx.HTTPError, json.JSONDecodeError) as e:
            cached = self._read_cache(repository.name)
            if cached is None:
                raise NetworkError(
                    f"Failed to fetch metadata for {repository.name}: {e}",
                    url=repository.url,
                )
            logger.warning(f"Failed to refresh {repository.name} ({e}); using cached metadata")
            return build_collection_map(cached)

        collections = build_collection_map(document)
        self._write_cache(repository.name, document)
        return collections

    async def load_into(
        self,
        registry: PackageRegistry,
        repositories: List[RepositoryConfig],
        use_cache: bool = False
    ) -> int:
        """
        Load every repository into the registry.

        A repository that fails is skipped; the others still load.

        Returns:
            Number of repositories loaded
        """
        loaded = 0
        for repository in repositories:
            try:
                collections = await self.fetch(repository, use_cache=use_cache)
            except (NetworkError, ParseError, StorageError) as e:
                logger.error(f"Failed to load repository {repository.name}: {e.message}")
                continue
            registry.add_repository(repository.name, collections)
            count = sum(len(pkgs) for names in collections.values() for pkgs in names.values())
            logger.debug(f"Loaded {count} packages from {repository.name}")
            loaded += 1
        return loaded
