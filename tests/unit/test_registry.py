# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Unit tests for PackageRegistry

Covers exact lookup, resolution and disambiguation, listing and scored search.
"""

import pytest
from unittest.mock import Mock

from binstash.core.errors import AmbiguousPackageError, NotFoundError
from binstash.models.registry_models import PackageQuery
from binstash.services.registry.storage import PackageRegistry


class TestGetPackages:
    """Test get_packages method"""

    def test_matches_name_across_repositories(self, registry):
        packages = registry.get_packages(PackageQuery(name="jq"))
        assert [(p.repo_name, p.collection, p.package.variant) for p in packages] == [
            ("main", "stable", None),
            ("main", "edge", None),
            ("extra", "stable", "musl"),
        ]

    def test_name_is_trimmed(self, registry):
        packages = registry.get_packages(PackageQuery(name="  ripgrep "))
        assert len(packages) == 1

    def test_name_must_match_exactly(self, registry):
        assert registry.get_packages(PackageQuery(name="rip")) is None

    def test_collection_filter(self, registry):
        packages = registry.get_packages(PackageQuery(name="jq", collection="edge"))
        assert len(packages) == 1
        assert packages[0].package.version == "1.8-dev"

    def test_variant_filter(self, registry):
        packages = registry.get_packages(PackageQuery(name="jq", variant="musl"))
        assert len(packages) == 1
        assert packages[0].repo_name == "extra"

    def test_repository_filter(self, registry):
        packages = registry.get_packages(PackageQuery(name="jq", repository="main"))
        assert {p.repo_name for p in packages} == {"main"}

    def test_no_match_returns_none(self, registry):
        assert registry.get_packages(PackageQuery(name="jq", collection="nightly")) is None

    def test_results_are_copies(self, registry):
        packages = registry.get_packages(PackageQuery(name="ripgrep"))
        packages[0].package.version = "changed"

        again = registry.get_packages(PackageQuery(name="ripgrep"))
        assert again[0].package.version == "1.0.0"


class TestResolve:
    """Test resolve method"""

    def test_single_match(self, registry):
        resolved = registry.resolve("ripgrep")
        assert resolved.package.bin_name == "rg"
        assert resolved.display_name() == "ripgrep#stable@main"

    def test_qualified_query(self, registry):
        resolved = registry.resolve("jq#edge@main")
        assert resolved.package.version == "1.8-dev"

    def test_not_found(self, registry):
        with pytest.raises(NotFoundError):
            registry.resolve("nonexistent")

    def test_ambiguous_without_prompt_raises(self, registry):
        with pytest.raises(AmbiguousPackageError) as exc_info:
            registry.resolve("jq")
        assert len(exc_info.value.candidates) == 3

    def test_assume_yes_takes_first(self, registry):
        resolved = registry.resolve("jq", assume_yes=True)
        assert (resolved.repo_name, resolved.collection) == ("main", "stable")

    def test_ambiguous_asks_user(self, sample_collections):
        ask = Mock(return_value="2")
        reg = PackageRegistry(ask=ask)
        for repo_name, collections in sample_collections.items():
            reg.add_repository(repo_name, collections)

        resolved = reg.resolve("jq")

        ask.assert_called_once()
        assert resolved.collection == "edge"

    def test_invalid_choice_asks_again(self, sample_collections):
        ask = Mock(side_effect=["0", "abc", "9", "3"])
        reg = PackageRegistry(ask=ask)
        for repo_name, collections in sample_collections.items():
            reg.add_repository(repo_name, collections)

        resolved = reg.resolve("jq")

        assert ask.call_count == 4
        assert resolved.package.variant == "musl"

    def test_single_match_never_asks(self, sample_collections):
        ask = Mock()
        reg = PackageRegistry(ask=ask)
        for repo_name, collections in sample_collections.items():
            reg.add_repository(repo_name, collections)

        reg.resolve("yq")

        ask.assert_not_called()


class TestListPackages:
    """Test list_packages method"""

    def test_round_trip_lists_every_package_once(self, sample_collections):
        reg = PackageRegistry()
        reg.add_repository("main", sample_collections["main"])

        listed = reg.list_packages()

        expected = [
            ("stable", pkg.name)
            for pkgs in sample_collections["main"]["stable"].values()
            for pkg in pkgs
        ] + [
            ("edge", pkg.name)
            for pkgs in sample_collections["main"]["edge"].values()
            for pkg in pkgs
        ]
        assert [(p.collection, p.package.name) for p in listed] == expected

    def test_collection_filter(self, registry):
        listed = registry.list_packages("edge")
        assert [p.package.name for p in listed] == ["jq"]

    def test_no_dedup_of_duplicate_entries(self, package_factory):
        reg = PackageRegistry()
        reg.add_repository("main", {"stable": {"jq": [package_factory("jq"), package_factory("jq")]}})
        assert len(reg.list_packages()) == 2

    def test_add_repository_overwrites(self, registry, package_factory):
        registry.add_repository("extra", {"stable": {"fd": [package_factory("fd")]}})
        assert [p.package.name for p in registry.list_packages() if p.repo_name == "extra"] == ["fd"]


class TestSearch:
    """Test search method"""

    def test_exact_match_ranks_before_substring(self, package_factory):
        reg = PackageRegistry()
        reg.add_repository("main", {"stable": {
            "foobar": [package_factory("foobar")],
            "foo": [package_factory("foo")],
            "bar": [package_factory("bar")],
        }})

        results = reg.search("foo")

        assert [p.package.name for p in results] == ["foo", "foobar"]

    def test_ties_keep_registry_order(self, registry):
        results = registry.search("jq")
        names = [(p.package.name, p.collection, p.repo_name) for p in results]
        assert names == [
            ("jq", "stable", "main"),
            ("jq", "edge", "main"),
            ("jq", "stable", "extra"),
            ("jqp", "stable", "main"),
        ]

    def test_zero_score_excluded(self, registry):
        assert all("rip" in p.package.name for p in registry.search("rip"))
        assert registry.search("zzz") == []

    def test_case_insensitive_by_default(self, package_factory):
        reg = PackageRegistry()
        reg.add_repository("main", {"stable": {"FooTool": [package_factory("FooTool")]}})

        assert len(reg.search("footool")) == 1
        assert reg.search("footool", case_sensitive=True) == []

    def test_variant_is_hard_filter(self, registry):
        results = registry.search("musl/jq")
        assert [(p.package.variant, p.repo_name) for p in results] == [("musl", "extra")]

    def test_search_does_not_mutate_registry(self, registry):
        before = [p.model_dump() for p in registry.list_packages()]
        registry.search("jq")
        registry.resolve("ripgrep")
        assert [p.model_dump() for p in registry.list_packages()] == before
