# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Package Operations

Single responsibility: Install and remove one resolved package

Binaries live under ``packages_path/<repo>/<collection>/<full-name>/`` and
are exposed through a symlink in ``bin_path``.
"""

import logging
import shutil
from datetime import datetime, UTC
from pathlib import Path
from typing import Optional

from binstash.core.config import Config
from binstash.core.errors import BinstashError, NotFoundError, StorageError
from binstash.core.logging import log_event
from binstash.models.registry_models import (
    InstalledRecord,
    ResolvedPackage,
    TransactionOperation,
    TransactionRecord,
    TransactionStatus,
)
from binstash.models.release_models import ProgressCallback
from binstash.services.download.downloader import Downloader

from .installed import InstalledPackages
from .transactions import TransactionLogger

logger = logging.getLogger(__name__)


class PackageOperations:
    """Handles package installation and removal"""

    def __init__(
        self,
        config: Config,
        downloader: Downloader,
        installed: InstalledPackages,
        transaction_logger: TransactionLogger
    ):
        """
        Initialize package operations.

        Args:
            config: Paths for packages and binary links
            downloader: Shared downloader
            installed: Installed packages record
            transaction_logger: Transaction logger
        """
        self.config = config
        self.downloader = downloader
        self.installed = installed
        self.transaction_logger = transaction_logger

    def install_dir(self, package: ResolvedPackage) -> Path:
        return self.config.packages_path / package.storage_path()

    async def install(
        self,
        package: ResolvedPackage,
        force: bool = False,
        is_update: bool = False,
        progress_callback: Optional[ProgressCallback] = None
    ) -> TransactionRecord:
        """
        Download a package, link its binary and record it as installed.

        Args:
            package: Resolved package
            force: Reinstall even if already installed
            is_update: Replace an installed copy (implies force)
            progress_callback: Download progress sink

        Returns:
            Transaction record (SKIPPED when already installed)

        Raises:
            BinstashError: If any step fails; the transaction is logged as FAILED
        """
        pkg = package.package
        name = package.display_name()
        operation = TransactionOperation.UPDATE if is_update else TransactionOperation.INSTALL
        transaction = self.transaction_logger.create_transaction(operation, name, pkg.version)

        if self.installed.is_installed(package) and not (force or is_update):
            logger.warning(f"{name} is already installed, use --force to reinstall")
            self.transaction_logger.finish(transaction, TransactionStatus.SKIPPED)
            return transaction

        try:
            if not pkg.download_url:
                raise NotFoundError("Download URL", name)

            target = self.install_dir(package) / pkg.binary_name
            logger.info(f"Installing {name} {pkg.version}".rstrip())
            await self.downloader.stream_to_file(
                pkg.download_url,
                output_path=str(target),
                progress_callback=progress_callback,
                label=name,
            )

            try:
                target.chmod(0o755)
            except OSError as e:
                raise StorageError(f"Failed to make {target} executable: {e}", path=str(target))
            bin_link = self._link_binary(target, pkg.binary_name)

            await self.installed.mark_installed(InstalledRecord(
                repo_name=package.repo_name,
                collection=package.collection,
                name=pkg.name,
                variant=pkg.variant,
                bin_name=pkg.binary_name,
                version=pkg.version,
                bsum=pkg.bsum,
                size=pkg.size,
                install_path=str(target),
                bin_link=str(bin_link) if bin_link else None,
                installed_at=datetime.now(UTC),
                transaction_id=transaction.id,
            ))
        except BinstashError as e:
            self.transaction_logger.finish(transaction, TransactionStatus.FAILED, e.message)
            raise

        self.transaction_logger.finish(transaction, TransactionStatus.COMPLETED)
        log_event(logger, "package_installed", package=name, version=pkg.version)
        return transaction

    def _link_binary(self, target: Path, bin_name: str) -> Optional[Path]:
        """
        Point ``bin_path/<bin_name>`` at the installed binary.

        An existing symlink is replaced; a regular file is left alone.
        """
        link = self.config.bin_dir / bin_name
        try:
            link.parent.mkdir(parents=True, exist_ok=True)
            if link.is_symlink():
                link.unlink()
            elif link.exists():
                logger.warning(f"{link} exists and is not a symlink, not linking {bin_name}")
                return None
            link.symlink_to(target)
        except OSError as e:
            raise StorageError(f"Failed to link {link}: {e}", path=str(link))
        return link

    async def remove(self, package: ResolvedPackage) -> TransactionRecord:
        """
        Remove an installed package, its binary link and its record.

        Raises:
            NotFoundError: If the package is not installed
            StorageError: If files cannot be removed
        """
        name = package.display_name()
        record = self.installed.get(package)
        if record is None:
            raise NotFoundError("Installed package", name)

        transaction = self.transaction_logger.create_transaction(
            TransactionOperation.REMOVE, name, record.version
        )
        install_path = Path(record.install_path)

        try:
            if record.bin_link:
                link = Path(record.bin_link)
                # Only remove links that still point at this install
                if link.is_symlink() and link.resolve() == install_path.resolve():
                    link.unlink()
            if install_path.parent.exists():
                shutil.rmtree(install_path.parent)
        except OSError as e:
            error = StorageError(f"Failed to remove {name}: {e}", path=str(install_path))
            self.transaction_logger.finish(transaction, TransactionStatus.FAILED, error.message)
            raise error

        await self.installed.mark_removed(package)
        self.transaction_logger.finish(transaction, TransactionStatus.COMPLETED)
        logger.info(f"Removed {name}")
        return transaction
