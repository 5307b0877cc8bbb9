# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Application Context

Single responsibility: Build every component once and own the shared HTTP client

Usage:
    async with AppContext(config, ask=interactive_ask) as ctx:
        await ctx.load_repositories()
        await ctx.orchestrator.install_many(["jq"])
"""

import logging
from typing import Optional

import httpx

from binstash.core.config import Config
from binstash.models.release_models import ProgressCallback
from binstash.services.download.downloader import Downloader
from binstash.services.download.service import DownloadService
from binstash.services.prompt import AskFunction, interactive_ask
from binstash.services.registry.installed import InstalledPackages
from binstash.services.registry.installer import InstallOrchestrator
from binstash.services.registry.metadata import MetadataFetcher
from binstash.services.registry.operations import PackageOperations
from binstash.services.registry.runner import Runner
from binstash.services.registry.storage import PackageRegistry
from binstash.services.registry.transactions import TransactionLogger
from binstash.services.retry import RetryConfig

logger = logging.getLogger(__name__)


class AppContext:
    """Owns the components of one CLI invocation"""

    def __init__(
        self,
        config: Config,
        ask: Optional[AskFunction] = interactive_ask,
        progress_callback: Optional[ProgressCallback] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize context.

        Args:
            config: Loaded configuration
            ask: Prompt function; None makes ambiguous queries an error
            progress_callback: Progress sink shared by every download
            client: HTTP client to use instead of creating one
        """
        self.config = config
        self.ask = ask
        self.progress_callback = progress_callback
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.http_timeout, connect=config.http_connect_timeout),
            headers={"User-Agent": "binstash"},
        )
        self.retry_config = RetryConfig.from_config(config)

        self.registry = PackageRegistry(ask=ask)
        self.metadata = MetadataFetcher(self.client, config.metadata_path, self.retry_config)
        self.installed = InstalledPackages(config.db_path / "installed.json")
        self.transactions = TransactionLogger(config.db_path / "transactions.jsonl")
        self.downloader = Downloader(self.client)
        self.operations = PackageOperations(config, self.downloader, self.installed, self.transactions)
        self.orchestrator = InstallOrchestrator(
            config, self.registry, self.operations, self.installed, progress_callback
        )
        self.runner = Runner(config, self.registry, self.downloader, progress_callback)
        self.downloads = DownloadService(
            self.downloader, self.retry_config, ask=ask
        )

    async def load_repositories(self, use_cache: bool = False) -> int:
        """Fetch metadata for every configured repository into the registry"""
        if not self.config.repositories:
            logger.warning("No repositories configured")
            return 0
        return await self.metadata.load_into(self.registry, self.config.repositories, use_cache)

    async def close(self):
        await self.client.aclose()

    async def __aenter__(self) -> "AppContext":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()
