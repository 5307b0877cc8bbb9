# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

from binstash.models.registry_models import (
    CollectionMap,
    InstalledRecord,
    InstallSummary,
    Package,
    PackageQuery,
    RepositoryConfig,
    ResolvedPackage,
    TransactionOperation,
    TransactionRecord,
    TransactionStatus,
)
from binstash.models.release_models import (
    DownloadOptions,
    DownloadState,
    DownloadStatus,
    PlatformDownloadOptions,
    Release,
    ReleaseAsset,
)

__all__ = [
    "CollectionMap",
    "InstalledRecord",
    "InstallSummary",
    "Package",
    "PackageQuery",
    "RepositoryConfig",
    "ResolvedPackage",
    "TransactionOperation",
    "TransactionRecord",
    "TransactionStatus",
    "DownloadOptions",
    "DownloadState",
    "DownloadStatus",
    "PlatformDownloadOptions",
    "Release",
    "ReleaseAsset",
]
