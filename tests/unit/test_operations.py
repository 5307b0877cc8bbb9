# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for PackageOperations

Downloads are served by httpx.MockTransport; files go to a temp directory.
"""

import json
import os
import httpx
import pytest

from binstash.core.errors import NetworkError, NotFoundError
from binstash.models.registry_models import ResolvedPackage, TransactionStatus
from binstash.services.download.downloader import Downloader
from binstash.services.registry.installed import InstalledPackages
from binstash.services.registry.operations import PackageOperations
from binstash.services.registry.transactions import TransactionLogger

BINARY = b"#!/bin/sh\necho hello\n"


def handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/missing"):
        return httpx.Response(404)
    return httpx.Response(200, content=BINARY)


@pytest.fixture
def client():
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def operations(config, client):
    return PackageOperations(
        config,
        Downloader(client),
        InstalledPackages(config.db_path / "installed.json"),
        TransactionLogger(config.db_path / "transactions.jsonl"),
    )


@pytest.fixture
def jq(package_factory):
    return ResolvedPackage(
        repo_name="main",
        collection="stable",
        package=package_factory("jq", variant="musl", bin_name="jq", version="1.7"),
    )


class TestInstall:
    """Test install method"""

    @pytest.mark.asyncio
    async def test_install_writes_binary_and_link(self, operations, config, jq):
        txn = await operations.install(jq)

        target = config.packages_path / "main" / "stable" / "musl%2Fjq" / "jq"
        assert target.read_bytes() == BINARY
        assert os.access(target, os.X_OK)

        link = config.bin_dir / "jq"
        assert link.is_symlink()
        assert link.resolve() == target.resolve()

        record = operations.installed.get(jq)
        assert record.version == "1.7"
        assert record.transaction_id == txn.id
        assert txn.status == TransactionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_already_installed_is_skipped(self, operations, jq):
        await operations.install(jq)

        txn = await operations.install(jq)

        assert txn.status == TransactionStatus.SKIPPED

    @pytest.mark.asyncio
    async def test_history_only_holds_final_states(self, operations, jq):
        await operations.install(jq)
        await operations.install(jq)
        await operations.remove(jq)

        history = operations.transaction_logger.list_transactions()

        assert [t["status"] for t in history] == ["completed", "skipped", "completed"]
        assert {s.value for s in TransactionStatus} == {"pending", "completed", "skipped", "failed"}

    @pytest.mark.asyncio
    async def test_force_reinstalls(self, operations, jq):
        await operations.install(jq)

        txn = await operations.install(jq, force=True)

        assert txn.status == TransactionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_download_failure_logged_as_failed(self, operations, config, package_factory):
        package = ResolvedPackage(
            repo_name="main",
            collection="stable",
            package=package_factory("missing", download_url="https://dl.example.com/missing"),
        )

        with pytest.raises(NetworkError):
            await operations.install(package)

        assert not operations.installed.is_installed(package)
        lines = (config.db_path / "transactions.jsonl").read_text().splitlines()
        assert json.loads(lines[-1])["status"] == "failed"

    @pytest.mark.asyncio
    async def test_missing_download_url(self, operations, package_factory):
        package = ResolvedPackage(
            repo_name="main",
            collection="stable",
            package=package_factory("jq", download_url=""),
        )

        with pytest.raises(NotFoundError):
            await operations.install(package)

    @pytest.mark.asyncio
    async def test_existing_regular_file_not_replaced(self, operations, config, jq):
        config.bin_dir.mkdir(parents=True)
        (config.bin_dir / "jq").write_text("system jq")

        await operations.install(jq)

        assert (config.bin_dir / "jq").read_text() == "system jq"
        assert operations.installed.get(jq).bin_link is None


class TestRemove:
    """Test remove method"""

    @pytest.mark.asyncio
    async def test_remove_deletes_files_and_record(self, operations, config, jq):
        await operations.install(jq)

        txn = await operations.remove(jq)

        assert txn.status == TransactionStatus.COMPLETED
        assert not (config.bin_dir / "jq").exists()
        assert not (config.packages_path / "main" / "stable" / "musl%2Fjq").exists()
        assert not operations.installed.is_installed(jq)

    @pytest.mark.asyncio
    async def test_remove_keeps_foreign_link(self, operations, config, jq, temp_dir):
        await operations.install(jq)
        other = temp_dir / "other-jq"
        other.write_text("other")
        link = config.bin_dir / "jq"
        link.unlink()
        link.symlink_to(other)

        await operations.remove(jq)

        assert link.is_symlink()

    @pytest.mark.asyncio
    async def test_remove_keeps_package_with_similar_name(self, operations, config, package_factory):
        variant = ResolvedPackage(
            repo_name="main", collection="stable",
            package=package_factory("curl", variant="musl", bin_name="curl"),
        )
        plain = ResolvedPackage(
            repo_name="main", collection="stable",
            package=package_factory("musl-curl", bin_name="musl-curl"),
        )
        await operations.install(variant)
        await operations.install(plain)

        await operations.remove(variant)

        kept = operations.installed.get(plain)
        assert os.path.exists(kept.install_path)
        assert (config.bin_dir / "musl-curl").is_symlink()

    @pytest.mark.asyncio
    async def test_remove_not_installed(self, operations, jq):
        with pytest.raises(NotFoundError):
            await operations.remove(jq)
