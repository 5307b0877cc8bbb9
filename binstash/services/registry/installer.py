# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Install Orchestrator

Single responsibility: Drive install/remove/update across many packages

Installs resolve the whole batch first and fail before touching anything
if a name does not resolve. Execution is then sequential, or parallel
with at most ``parallel_limit`` installs in flight; one package failing
never stops the others.
"""

import asyncio
import logging
from typing import List, Optional, Sequence

from binstash.core.config import Config
from binstash.core.errors import AmbiguousPackageError, BinstashError
from binstash.models.registry_models import InstallSummary, ResolvedPackage
from binstash.models.release_models import ProgressCallback

from .installed import InstalledPackages
from .operations import PackageOperations
from .query import parse_package_query
from .selection import select_package_variant
from .storage import PackageRegistry

logger = logging.getLogger(__name__)

DEFAULT_PARALLEL_LIMIT = 2


class InstallOrchestrator:
    """Batch install, remove and update"""

    def __init__(
        self,
        config: Config,
        registry: PackageRegistry,
        operations: PackageOperations,
        installed: InstalledPackages,
        progress_callback: Optional[ProgressCallback] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config: Parallel mode and limit defaults
            registry: Loaded package registry
            operations: Single-package install/remove
            installed: Installed packages record
            progress_callback: Progress sink shared by every download
        """
        self.config = config
        self.registry = registry
        self.operations = operations
        self.installed = installed
        self.progress_callback = progress_callback

    async def resolve_all(self, queries: Sequence[str], assume_yes: bool = False) -> List[ResolvedPackage]:
        """
        Resolve every query before anything is installed.

        Resolution may prompt, so it runs in a worker thread.

        Raises:
            NotFoundError: On the first query that matches nothing
            AmbiguousPackageError: If a query is ambiguous and cannot be asked
        """
        resolved = []
        for query in queries:
            resolved.append(await asyncio.to_thread(self.registry.resolve, query, assume_yes))
        return resolved

    async def install_many(
        self,
        queries: Sequence[str],
        force: bool = False,
        is_update: bool = False,
        assume_yes: bool = False,
        parallel: Optional[bool] = None,
        parallel_limit: Optional[int] = None
    ) -> InstallSummary:
        """
        Install packages.

        Args:
            queries: Package queries
            force: Reinstall already installed packages
            is_update: Replace installed copies
            assume_yes: Take the first match for ambiguous queries
            parallel: Override the configured execution mode
            parallel_limit: Override the configured concurrency cap

        Returns:
            Installed/attempted counts

        Raises:
            BinstashError: If any query fails to resolve (nothing is installed)
        """
        packages = await self.resolve_all(queries, assume_yes)
        return await self.install_resolved(packages, force, is_update, parallel, parallel_limit)

    async def install_resolved(
        self,
        packages: Sequence[ResolvedPackage],
        force: bool = False,
        is_update: bool = False,
        parallel: Optional[bool] = None,
        parallel_limit: Optional[int] = None
    ) -> InstallSummary:
        parallel = self.config.parallel if parallel is None else parallel
        limit = parallel_limit or self.config.parallel_limit or DEFAULT_PARALLEL_LIMIT

        if parallel:
            semaphore = asyncio.Semaphore(limit)

            async def bounded(package: ResolvedPackage) -> bool:
                async with semaphore:
                    return await self._install_one(package, force, is_update)

            results = await asyncio.gather(*(bounded(p) for p in packages))
        else:
            results = []
            for package in packages:
                results.append(await self._install_one(package, force, is_update))

        summary = InstallSummary(
            installed=sum(1 for ok in results if ok),
            attempted=len(packages),
            failed=[p.display_name() for p, ok in zip(packages, results) if not ok],
        )
        logger.info(str(summary))
        return summary

    async def _install_one(self, package: ResolvedPackage, force: bool, is_update: bool) -> bool:
        try:
            await self.operations.install(
                package,
                force=force,
                is_update=is_update,
                progress_callback=self.progress_callback,
            )
            return True
        except BinstashError as e:
            logger.error(f"Failed to install {package.display_name()}: {e.message}")
        except Exception as e:
            logger.exception(f"Unexpected error installing {package.display_name()}: {e}")
        return False

    def resolve_installed(self, name: str, assume_yes: bool = False) -> Optional[ResolvedPackage]:
        """
        Match a query against installed packages.

        Returns:
            The installed package, or None if nothing matches

        Raises:
            AmbiguousPackageError: If several match and no prompt is available
        """
        matches = self.installed.find(parse_package_query(name))
        if not matches:
            return None
        if len(matches) == 1 or assume_yes:
            return matches[0]
        if self.registry.ask is None:
            raise AmbiguousPackageError(name, [m.display_name() for m in matches])
        return select_package_variant(matches, self.registry.ask)

    async def remove_many(self, names: Sequence[str], assume_yes: bool = False) -> int:
        """
        Remove installed packages in order.

        Names that match nothing installed, or several installed packages
        with no way to choose, are skipped with a warning.

        Returns:
            Number of packages removed

        Raises:
            BinstashError: If removing a matched package fails
        """
        removed = 0
        for name in names:
            try:
                package = await asyncio.to_thread(self.resolve_installed, name, assume_yes)
            except AmbiguousPackageError as e:
                logger.warning(f"{name} matches {', '.join(e.candidates)}; skipping")
                continue
            if package is None:
                logger.warning(f"{name} is not installed, skipping")
                continue
            await self.operations.remove(package)
            removed += 1
        return removed

    async def update_packages(
        self,
        names: Optional[Sequence[str]] = None,
        assume_yes: bool = False
    ) -> InstallSummary:
        """
        Reinstall installed packages whose registry entry changed.

        A package is outdated when the registry's checksum or version
        differs from the installed one.

        Args:
            names: Only consider these queries (default: everything installed)
            assume_yes: Take the first match for ambiguous names

        Returns:
            Summary of the updates performed
        """
        if names:
            candidates = []
            for name in names:
                package = await asyncio.to_thread(self.resolve_installed, name, assume_yes)
                if package is None:
                    logger.warning(f"{name} is not installed, skipping")
                else:
                    candidates.append(self.installed.get(package))
        else:
            candidates = self.installed.list()

        outdated = []
        for record in candidates:
            query = record.query_string()
            packages = self.registry.get_packages(parse_package_query(query))
            if packages is None:
                logger.warning(f"{query} is no longer available in any repository")
                continue
            latest = packages[0]
            if latest.package.bsum != record.bsum or latest.package.version != record.version:
                outdated.append(latest)

        if not outdated:
            logger.info("All packages are up to date")
            return InstallSummary()
        return await self.install_resolved(outdated, is_update=True)
