# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Setup configuration for binstash - multi-repository binary package client
"""

from setuptools import setup, find_packages

setup(
    name="binstash",
    version="0.5.0",
    description="Package client for prebuilt binaries from indexed repositories and release platforms",
    author="Jason Cafarelli",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "httpx>=0.27.0",
        "pydantic>=2.5.0",
        "pyyaml>=6.0",
        "aiofiles>=23.2.0",
        "rich>=13.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.23.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "binstash=binstash.cli.main:main",
        ],
    },
)
