# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
binstash Configuration - Single source of truth.
YAML is king. Env vars ONLY for secrets, the config path and log level.

The Config object is built once at startup and handed to every component
that needs it. There is no module-level instance.
"""

import os
import yaml
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from binstash.models.registry_models import RepositoryConfig
from binstash.core.errors import ConfigurationError


DEFAULT_CONFIG_PATH = "~/.config/binstash/config.yaml"
DEFAULT_ROOT_PATH = "~/.local/share/binstash"


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================

@dataclass(frozen=True)
class Config:
    """
    Immutable application configuration.
    All values from YAML. No hidden state.
    """

    # -- Repositories --
    repositories: List[RepositoryConfig] = field(default_factory=list)

    # -- Installation --
    parallel: bool = False
    parallel_limit: int = 2

    # -- Paths --
    root_path: str = DEFAULT_ROOT_PATH
    bin_path: str = DEFAULT_ROOT_PATH + "/bin"

    # -- HTTP --
    http_timeout: float = 30.0
    http_connect_timeout: float = 10.0

    # -- Retry --
    max_retries: int = 3
    retry_delay: float = 1.0
    backoff_multiplier: float = 2.0
    max_retry_delay: float = 30.0

    # -- Logging --
    log_level: str = "INFO"
    log_format: str = "text"

    # -- Derived paths --
    @property
    def root_dir(self) -> Path:
        return Path(self.root_path).expanduser()

    @property
    def packages_path(self) -> Path:
        return self.root_dir / "packages"

    @property
    def cache_path(self) -> Path:
        return self.root_dir / "cache"

    @property
    def db_path(self) -> Path:
        return self.root_dir / "db"

    @property
    def metadata_path(self) -> Path:
        return self.root_dir / "metadata"

    @property
    def bin_dir(self) -> Path:
        return Path(self.bin_path).expanduser()

    def get_repository(self, name: str) -> Optional[RepositoryConfig]:
        for repo in self.repositories:
            if repo.name == name:
                return repo
        return None


# =============================================================================
# SECRETS - The ONLY thing from environment variables
# =============================================================================

def get_github_token() -> Optional[str]:
    """API tokens cannot be in version control."""
    return os.getenv("GITHUB_TOKEN") or os.getenv("GH_TOKEN")


def get_gitlab_token() -> Optional[str]:
    """API tokens cannot be in version control."""
    return os.getenv("GITLAB_TOKEN")


# =============================================================================
# LOADER
# =============================================================================

def _parse_repositories(raw: List[Dict]) -> List[RepositoryConfig]:
    repositories = []
    seen = set()
    for entry in raw:
        if not isinstance(entry, dict) or "name" not in entry or "url" not in entry:
            raise ConfigurationError(f"Invalid repository entry: {entry!r}")
        if entry["name"] in seen:
            raise ConfigurationError(f"Duplicate repository name: {entry['name']}")
        seen.add(entry["name"])
        repositories.append(RepositoryConfig(
            name=entry["name"],
            url=entry["url"],
            sources=entry.get("sources") or {},
        ))
    return repositories


def load_config(path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML.
    Returns defaults if file doesn't exist.

    Args:
        path: Config file path (default: $BINSTASH_CONFIG or ~/.config/binstash/config.yaml)

    Returns:
        Loaded configuration

    Raises:
        ConfigurationError: If the file exists but is not valid
    """
    path = path or os.getenv("BINSTASH_CONFIG", DEFAULT_CONFIG_PATH)
    config_file = Path(path).expanduser()

    if not config_file.exists():
        return Config(log_level=os.getenv("LOG_LEVEL", "INFO"))

    try:
        with open(config_file) as f:
            y = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML: {e}", config_file=str(config_file))

    if not isinstance(y, dict):
        raise ConfigurationError("Config root must be a mapping", config_file=str(config_file))

    # Helper to safely navigate nested dicts
    def get(d: dict, *keys, default=None):
        for k in keys:
            if not isinstance(d, dict):
                return default
            d = d.get(k, {})
        return d if d != {} else default

    root_path = get(y, "paths", "root") or DEFAULT_ROOT_PATH

    return Config(
        # Repositories
        repositories=_parse_repositories(y.get("repositories") or []),

        # Installation
        parallel=bool(get(y, "install", "parallel", default=False)),
        parallel_limit=int(get(y, "install", "parallel_limit") or 2),

        # Paths
        root_path=root_path,
        bin_path=get(y, "paths", "bin") or f"{root_path}/bin",

        # HTTP
        http_timeout=float(get(y, "http", "timeouts", "default") or 30.0),
        http_connect_timeout=float(get(y, "http", "timeouts", "connect") or 10.0),

        # Retry
        max_retries=int(get(y, "http", "retry", "max_retries", default=3)),
        retry_delay=float(get(y, "http", "retry", "delay") or 1.0),
        backoff_multiplier=float(get(y, "http", "retry", "backoff_multiplier") or 2.0),
        max_retry_delay=float(get(y, "http", "retry", "max_delay") or 30.0),

        # Logging
        log_level=os.getenv("LOG_LEVEL") or get(y, "logging", "level") or "INFO",
        log_format=get(y, "logging", "format") or "text",
    )
