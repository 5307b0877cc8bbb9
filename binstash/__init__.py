# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
binstash - package client for prebuilt binaries.

Resolves package names against indexed repositories and installs, removes
and runs them. Also downloads release assets straight from GitHub, GitLab,
OCI registries or plain URLs.
"""

__version__ = "0.5.0"
