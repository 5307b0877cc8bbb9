# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Shared fixtures for binstash unit tests
"""

import pytest
from pathlib import Path
from tempfile import TemporaryDirectory

from binstash.core.config import Config
from binstash.models.registry_models import Package, RepositoryConfig
from binstash.services.registry.storage import PackageRegistry


def make_package(name: str, variant: str = None, **fields) -> Package:
    """Package with a download URL derived from its name"""
    full = f"{variant}/{name}" if variant else name
    fields.setdefault("download_url", f"https://dl.example.com/{full}")
    fields.setdefault("version", "1.0.0")
    return Package(name=name, variant=variant, **fields)


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_dir):
    """Config rooted in the temporary directory"""
    return Config(
        repositories=[
            RepositoryConfig(
                name="main",
                url="https://meta.example.com/main.json",
                sources={"stable": "https://dl.example.com/stable", "edge": "https://dl.example.com/edge"},
            ),
        ],
        root_path=str(temp_dir / "root"),
        bin_path=str(temp_dir / "bin"),
        max_retries=0,
        retry_delay=0.0,
    )


@pytest.fixture
def sample_collections():
    """Two repositories; jq exists in several places"""
    return {
        "main": {
            "stable": {
                "jq": [make_package("jq", bin_name="jq", version="1.7")],
                "jqp": [make_package("jqp")],
                "ripgrep": [make_package("ripgrep", bin_name="rg")],
            },
            "edge": {
                "jq": [make_package("jq", bin_name="jq", version="1.8-dev")],
            },
        },
        "extra": {
            "stable": {
                "jq": [make_package("jq", variant="musl", bin_name="jq")],
                "yq": [make_package("yq")],
            },
        },
    }


@pytest.fixture
def registry(sample_collections):
    """Non-interactive registry loaded with the sample collections"""
    reg = PackageRegistry()
    for repo_name, collections in sample_collections.items():
        reg.add_repository(repo_name, collections)
    return reg


@pytest.fixture
def package_factory():
    """Factory for Package records"""
    return make_package
