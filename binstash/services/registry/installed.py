# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Installed Packages Record

Single responsibility: Track installed packages in installed.json

Concurrent install tasks share one instance. Every write happens under an
asyncio.Lock with no await inside the critical section.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from binstash.core.errors import StorageError
from binstash.models.registry_models import (
    InstalledRecord,
    Package,
    PackageQuery,
    ResolvedPackage,
)

logger = logging.getLogger(__name__)


class InstalledPackages:
    """Lock-guarded record of installed packages"""

    def __init__(self, db_file: Path):
        """
        Initialize installed packages record.

        Args:
            db_file: Path to installed.json
        """
        self.db_file = db_file
        self._lock = asyncio.Lock()
        self.packages: Dict[str, InstalledRecord] = self._load()

    def _load(self) -> Dict[str, InstalledRecord]:
        """
        Load installed packages from disk.

        An unreadable file is moved to ``installed.json.corrupt`` so the
        next save cannot destroy it.

        Returns:
            Dictionary of installation records keyed by record key

        Raises:
            StorageError: If the file cannot be read or moved aside
        """
        if not self.db_file.exists():
            return {}

        try:
            data = json.loads(self.db_file.read_text())
            records = {}
            for key, record in data.get("packages", {}).items():
                records[key] = InstalledRecord(**record)
            return records
        except OSError as e:
            raise StorageError(f"Failed to read installed packages: {e}", path=str(self.db_file))
        except (ValueError, TypeError, AttributeError) as e:
            corrupt_file = self.db_file.with_name(self.db_file.name + ".corrupt")
            try:
                self.db_file.replace(corrupt_file)
            except OSError as move_error:
                raise StorageError(
                    f"Installed packages file is unreadable and could not be moved aside: {move_error}",
                    path=str(self.db_file),
                )
            logger.error(f"Installed packages file is unreadable ({e}); moved to {corrupt_file}")
            return {}

    def _save(self):
        data = {
            "version": "1.0",
            "packages": {
                key: record.model_dump(mode="json")
                for key, record in self.packages.items()
            }
        }
        try:
            self.db_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_file = self.db_file.with_suffix(".tmp")
            tmp_file.write_text(json.dumps(data, indent=2))
            tmp_file.replace(self.db_file)
        except OSError as e:
            raise StorageError(f"Failed to save installed packages: {e}", path=str(self.db_file))

    async def mark_installed(self, record: InstalledRecord):
        async with self._lock:
            self.packages[record.key] = record
            self._save()

    async def mark_removed(self, package: ResolvedPackage) -> Optional[InstalledRecord]:
        async with self._lock:
            record = self.packages.pop(package.key, None)
            if record is not None:
                self._save()
            return record

    def is_installed(self, package: ResolvedPackage) -> bool:
        return package.key in self.packages

    def get(self, package: ResolvedPackage) -> Optional[InstalledRecord]:
        return self.packages.get(package.key)

    def list(self) -> List[InstalledRecord]:
        return sorted(self.packages.values(), key=lambda r: r.key)

    def find(self, query: PackageQuery) -> List[ResolvedPackage]:
        """
        Installed packages matching a parsed query.

        Name must match exactly; variant, collection and repository must
        match when the query specifies them.
        """
        name = query.name.strip()
        return [
            record_to_resolved(record)
            for record in self.list()
            if record.name == name
            and (query.variant is None or record.variant == query.variant)
            and (query.collection is None or record.collection == query.collection)
            and (query.repository is None or record.repo_name == query.repository)
        ]


def record_to_resolved(record: InstalledRecord) -> ResolvedPackage:
    """Rebuild the ResolvedPackage an installed record was created from"""
    return ResolvedPackage(
        repo_name=record.repo_name,
        collection=record.collection,
        package=Package(
            name=record.name,
            variant=record.variant,
            bin_name=record.bin_name,
            version=record.version,
            bsum=record.bsum,
            size=record.size,
        ),
    )
