# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Runner

Single responsibility: Run a package binary without installing it

Binaries are cached in ``cache_path``. A name the registry cannot resolve
is turned into an ad-hoc package whose URL is guessed from a repository's
collection base URL.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from binstash.core.config import Config
from binstash.core.errors import ExecutionError, NotFoundError, ParseError, StorageError
from binstash.models.registry_models import Package, ResolvedPackage
from binstash.models.release_models import ProgressCallback
from binstash.services.download.downloader import Downloader

from .query import parse_package_query
from .storage import PackageRegistry

logger = logging.getLogger(__name__)


def synthesize_package(config: Config, package_name: str) -> ResolvedPackage:
    """
    Build an ad-hoc package for a name that is not in the registry.

    The download URL is ``<base>/<variant>/<name>`` where ``base`` is the
    first configured source for the requested collection (or the first
    source of any repository when no collection is given).

    Raises:
        NotFoundError: If no repository has a usable source
    """
    query = parse_package_query(package_name)

    if query.repository is not None:
        repositories = [r for r in [config.get_repository(query.repository)] if r is not None]
    else:
        repositories = config.repositories

    for repository in repositories:
        if query.collection is not None:
            base_url = repository.sources.get(query.collection)
            collection = query.collection
        else:
            collection, base_url = next(iter(repository.sources.items()), (None, None))
        if base_url:
            break
    else:
        raise NotFoundError("Repository source", package_name)

    package = Package(name=query.name, variant=query.variant)
    package.download_url = f"{base_url.rstrip('/')}/{package.full_name('/')}"
    return ResolvedPackage(repo_name=repository.name, collection=collection, package=package)


class Runner:
    """Fetches (if needed) and executes a package binary"""

    def __init__(
        self,
        config: Config,
        registry: PackageRegistry,
        downloader: Downloader,
        progress_callback: Optional[ProgressCallback] = None
    ):
        self.config = config
        self.registry = registry
        self.downloader = downloader
        self.progress_callback = progress_callback

    def resolve(self, package_name: str, assume_yes: bool = False) -> Tuple[ResolvedPackage, Path]:
        """
        Resolve a name to a package and its cached binary path.

        Falls back to an ad-hoc package when the registry has no match.
        """
        try:
            package = self.registry.resolve(package_name, assume_yes)
            return package, self.cache_file(package)
        except NotFoundError:
            logger.debug(f"{package_name} not in registry, guessing download URL")

        package = synthesize_package(self.config, package_name)
        logger.info(f"Using ad-hoc package {package.display_name()} from {package.package.download_url}")
        return package, self.cache_file(package)

    def cache_file(self, package: ResolvedPackage) -> Path:
        """Cached binary path, one directory per repository, collection and variant"""
        return self.config.cache_path / package.storage_path() / package.package.binary_name

    async def ensure_binary(self, package: ResolvedPackage, path: Path) -> Path:
        """Download the binary into the cache unless it is already there"""
        if not path.exists():
            await self.downloader.stream_to_file(
                package.package.download_url,
                output_path=str(path),
                progress_callback=self.progress_callback,
                label=package.display_name(),
            )
        try:
            path.chmod(0o755)
        except OSError as e:
            raise StorageError(f"Failed to make {path} executable: {e}", path=str(path))
        return path

    async def prepare(self, command: Sequence[str], assume_yes: bool = False) -> Tuple[Path, List[str]]:
        """
        Resolve ``command[0]`` and make sure its binary is cached.

        Returns:
            Binary path and the remaining arguments

        Raises:
            ParseError: If no package name is given
        """
        if not command:
            raise ParseError("No package given to run")
        package_name, args = command[0], list(command[1:])

        package, path = await asyncio.to_thread(self.resolve, package_name, assume_yes)
        await self.ensure_binary(package, path)
        return path, args

    async def execute(self, path: Path, args: Sequence[str]) -> int:
        """
        Run a binary and wait for it.

        Returns:
            Exit code of the process

        Raises:
            ExecutionError: If the binary cannot be started
        """
        logger.debug(f"Executing {path} {' '.join(args)}".rstrip())
        try:
            process = await asyncio.create_subprocess_exec(str(path), *args)
        except OSError as e:
            raise ExecutionError(f"Failed to execute {path}: {e}", binary=str(path))
        return await process.wait()

    async def run(self, command: Sequence[str], assume_yes: bool = False) -> int:
        """Run ``command[0]`` with the remaining items as arguments"""
        path, args = await self.prepare(command, assume_yes)
        return await self.execute(path, args)
