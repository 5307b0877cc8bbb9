# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Core utilities and shared modules for binstash.

This package contains:
- config: Configuration management
- context: Component wiring
- errors: Custom exceptions
- logging: Structured logging
"""

from binstash.core.config import Config, load_config
from binstash.core.errors import BinstashError, NotFoundError, ParseError
from binstash.core.logging import configure_logging

__all__ = [
    "Config",
    "load_config",
    "BinstashError",
    "NotFoundError",
    "ParseError",
    "configure_logging",
]
