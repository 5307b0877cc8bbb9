# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for package query parsing
"""

import pytest

from binstash.core.errors import ParseError
from binstash.services.registry.query import parse_package_query


class TestParsePackageQuery:
    """Test parse_package_query"""

    def test_plain_name(self):
        query = parse_package_query("curl")
        assert query.name == "curl"
        assert query.variant is None
        assert query.collection is None
        assert query.repository is None

    def test_all_qualifiers(self):
        query = parse_package_query("musl/curl#Bin@Main")
        assert query.variant == "musl"
        assert query.name == "curl"
        assert query.collection == "bin"
        assert query.repository == "main"

    def test_empty_qualifiers_are_unspecified(self):
        query = parse_package_query("curl#@")
        assert query.name == "curl"
        assert query.collection is None
        assert query.repository is None

    def test_whitespace_trimmed(self):
        query = parse_package_query("  curl  ")
        assert query.name == "curl"

    def test_repository_without_collection(self):
        query = parse_package_query("curl@extra")
        assert query.repository == "extra"
        assert query.collection is None

    @pytest.mark.parametrize("text", ["", "   ", "#bin", "musl/"])
    def test_empty_name_raises(self, text):
        with pytest.raises(ParseError):
            parse_package_query(text)
