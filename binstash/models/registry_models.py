# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Registry Data Models

Defines data structures for the package registry including packages,
parsed queries, resolved packages, installation records and transactions.
"""

from pathlib import PurePath
from typing import List, Dict, Optional, Any
from datetime import datetime
from urllib.parse import quote
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class TransactionStatus(str, Enum):
    """Transaction status"""
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class TransactionOperation(str, Enum):
    """Type of transaction operation"""
    INSTALL = "install"
    UPDATE = "update"
    REMOVE = "remove"


class Package(BaseModel):
    """
    A single installable artifact from a repository collection.

    Identity within a collection is (name, variant).
    """
    model_config = ConfigDict(extra="ignore")

    name: str
    variant: Optional[str] = None
    bin_name: str = ""
    version: str = ""
    description: str = ""
    note: str = ""
    download_url: str = ""
    size: str = ""
    bsum: str = ""  # checksum as published, not verified
    build_date: str = ""
    build_log: str = ""
    build_script: str = ""
    src_url: str = ""
    web_url: str = ""
    category: str = ""
    icon: str = ""
    extra_bins: str = ""

    def full_name(self, join_char: str = "/") -> str:
        """Variant-qualified name, e.g. ``musl/curl``"""
        if self.variant:
            return f"{self.variant}{join_char}{self.name}"
        return self.name

    @property
    def binary_name(self) -> str:
        return self.bin_name or self.name


class PackageQuery(BaseModel):
    """Parsed user input: ``[variant/]name[#collection][@repository]``"""
    name: str
    variant: Optional[str] = None
    collection: Optional[str] = None
    repository: Optional[str] = None


class ResolvedPackage(BaseModel):
    """
    A concrete (repository, collection, package) triple.

    Every instance is an independent copy; the registry never hands out
    references to its own package records.
    """
    repo_name: str = ""
    collection: str = ""
    package: Package

    @property
    def key(self) -> str:
        """Installed-record key: repository, collection and qualified name"""
        return f"{self.repo_name}/{self.collection}/{self.package.full_name('/')}"

    def display_name(self) -> str:
        return f"{self.package.full_name('/')}#{self.collection}@{self.repo_name}"

    def storage_path(self) -> PurePath:
        """
        Relative directory for this package's files.

        The qualified name is percent-encoded, so ``musl/curl`` and a
        package literally named ``musl-curl`` never share a directory.
        """
        return PurePath(self.repo_name, self.collection, quote(self.package.full_name("/"), safe=""))


# collection name -> package name -> packages
CollectionMap = Dict[str, Dict[str, List[Package]]]


class RepositoryConfig(BaseModel):
    """Repository configuration from config.yaml"""
    name: str
    url: str  # metadata document location
    sources: Dict[str, str] = Field(default_factory=dict)  # collection -> base download URL


class InstalledRecord(BaseModel):
    """Record of an installed package"""
    repo_name: str
    collection: str
    name: str
    variant: Optional[str] = None
    bin_name: str
    version: str = ""
    bsum: str = ""
    size: str = ""
    install_path: str
    bin_link: Optional[str] = None
    installed_at: datetime
    transaction_id: Optional[str] = None

    @property
    def key(self) -> str:
        full_name = f"{self.variant}/{self.name}" if self.variant else self.name
        return f"{self.repo_name}/{self.collection}/{full_name}"

    def query_string(self) -> str:
        """Query that resolves back to this exact package"""
        full_name = f"{self.variant}/{self.name}" if self.variant else self.name
        return f"{full_name}#{self.collection}@{self.repo_name}"


class TransactionRecord(BaseModel):
    """Transaction record for install/remove operations"""
    id: str
    operation: TransactionOperation
    package: str
    version: Optional[str] = None
    status: TransactionStatus
    started_at: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization"""
        return {
            "id": self.id,
            "operation": self.operation.value,
            "package": self.package,
            "version": self.version,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "error": self.error,
        }


class InstallSummary(BaseModel):
    """Aggregate outcome of a batch install"""
    installed: int = 0
    attempted: int = 0
    failed: List[str] = Field(default_factory=list)

    def __str__(self) -> str:
        return f"Installed {self.installed}/{self.attempted} packages"
