# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Registry

Single responsibility: Hold repository package data and answer resolve/search/list queries
"""

import logging
from typing import Dict, List, Optional

from binstash.core.errors import AmbiguousPackageError, NotFoundError
from binstash.models.registry_models import (
    CollectionMap,
    Package,
    PackageQuery,
    ResolvedPackage,
)

from binstash.services.prompt import AskFunction

from .query import parse_package_query
from .selection import select_package_variant

logger = logging.getLogger(__name__)


class PackageRegistry:
    """
    In-memory index: repository -> collection -> package name -> packages.

    Only add_repository mutates the registry. Every query returns fresh
    copies of the package records.
    """

    def __init__(self, ask: Optional[AskFunction] = None):
        """
        Initialize package registry.

        Args:
            ask: Prompt function used to pick between variants; None means
                non-interactive
        """
        self.repositories: Dict[str, CollectionMap] = {}
        self.ask = ask

    def add_repository(self, repo_name: str, collections: CollectionMap):
        """Insert or overwrite the package data of one repository"""
        if repo_name in self.repositories:
            logger.debug(f"Replacing repository data for {repo_name}")
        self.repositories[repo_name] = collections

    def repository_names(self) -> List[str]:
        return list(self.repositories)

    @staticmethod
    def _resolved(repo_name: str, collection: str, package: Package) -> ResolvedPackage:
        return ResolvedPackage(
            repo_name=repo_name,
            collection=collection,
            package=package.model_copy(deep=True),
        )

    def resolve(self, package_name: str, assume_yes: bool = False) -> ResolvedPackage:
        """
        Resolve a query string to exactly one package.

        Args:
            package_name: Query text (``[variant/]name[#collection][@repository]``)
            assume_yes: Take the first match instead of asking

        Returns:
            Resolved package

        Raises:
            NotFoundError: If nothing matches
            AmbiguousPackageError: If several match and no prompt is available
        """
        query = parse_package_query(package_name)
        packages = self.get_packages(query)
        if packages is None:
            raise NotFoundError("Package", package_name)

        if len(packages) == 1 or assume_yes:
            return packages[0]

        if self.ask is None:
            raise AmbiguousPackageError(
                package_name,
                [pkg.display_name() for pkg in packages],
            )
        return select_package_variant(packages, self.ask)

    def get_packages(self, query: PackageQuery) -> Optional[List[ResolvedPackage]]:
        """
        Find all packages matching a parsed query.

        Name must match exactly (after trimming); collection, variant and
        repository must match exactly when the query specifies them.

        Returns:
            Matching packages, or None if there are none
        """
        pkg_name = query.name.strip()
        resolved = []

        for repo_name, collections in self.repositories.items():
            if query.repository is not None and repo_name != query.repository:
                continue
            for collection_name, packages_by_name in collections.items():
                if query.collection is not None and collection_name != query.collection:
                    continue
                for pkg in packages_by_name.get(pkg_name, []):
                    if pkg.name != pkg_name:
                        continue
                    if query.variant is not None and pkg.variant != query.variant:
                        continue
                    resolved.append(self._resolved(repo_name, collection_name, pkg))

        return resolved or None

    def list_packages(self, collection: Optional[str] = None) -> List[ResolvedPackage]:
        """
        Flatten every repository into one list.

        Args:
            collection: Only include this collection

        Returns:
            All packages, in registry order, without de-duplication
        """
        return [
            self._resolved(repo_name, collection_name, pkg)
            for repo_name, collections in self.repositories.items()
            for collection_name, packages_by_name in collections.items()
            if collection is None or collection_name == collection
            for packages in packages_by_name.values()
            for pkg in packages
        ]

    def search(self, query: str, case_sensitive: bool = False) -> List[ResolvedPackage]:
        """
        Score every package against a query.

        An exact name match scores 2, a substring match 1; anything else is
        dropped. A variant in the query is a hard filter. Results are
        ordered by score, ties keep registry order.

        Args:
            query: Query text
            case_sensitive: Compare names case-sensitively

        Returns:
            Matching packages, best first
        """
        parsed = parse_package_query(query)
        needle = parsed.name.strip()
        if not case_sensitive:
            needle = needle.lower()

        scored = []
        for repo_name, collections in self.repositories.items():
            for collection_name, packages_by_name in collections.items():
                for packages in packages_by_name.values():
                    for pkg in packages:
                        found_name = pkg.name if case_sensitive else pkg.name.lower()
                        if found_name == needle:
                            score = 2
                        elif needle in found_name:
                            score = 1
                        else:
                            continue
                        if parsed.variant is not None and pkg.variant != parsed.variant:
                            continue
                        scored.append((score, repo_name, collection_name, pkg))

        # list.sort is stable; equal scores keep encounter order
        scored.sort(key=lambda item: item[0], reverse=True)
        return [
            self._resolved(repo_name, collection_name, pkg)
            for score, repo_name, collection_name, pkg in scored
            if score > 0
        ]
