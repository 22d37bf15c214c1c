"""PackageResolver 单元测试"""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import OFFICIAL, FakeTransport, package_config, repo_index

from orb.core.exceptions import PackageNotFoundError, ValidationError
from orb.core.pkg.fetcher import ContentFetcher
from orb.core.pkg.models import Origin, PackageLocation
from orb.core.pkg.registry import RepositoryRegistry
from orb.core.pkg.resolver import PackageResolver, select_location

UNOFFICIAL = "https://github.com/bob/extras"
COLORS = "https://github.com/stringmanolo/colors"
COLORS_FORK = "https://github.com/bob/colors"


@pytest.fixture()
def resolver(tmp_path: Path, fetcher: ContentFetcher) -> PackageResolver:
    registry = RepositoryRegistry(tmp_path / "repos", fetcher)
    return PackageResolver(fetcher, registry, OFFICIAL)


def _register(resolver: PackageResolver, url: str) -> None:
    resolver.registry.repos_dir.mkdir(parents=True, exist_ok=True)
    name = url.rsplit("/", 1)[-1]
    (resolver.registry.repos_dir / name).write_text(url + "\n", encoding="utf-8")


class TestResolve:
    def test_official_match(self, resolver: PackageResolver, transport: FakeTransport) -> None:
        transport.set_repo_file(OFFICIAL, "orb.config", repo_index(COLORS))
        transport.set_repo_file(COLORS, "orb.config", package_config("colors"))
        locations = resolver.resolve("colors")
        assert locations == [PackageLocation(Origin.OFFICIAL, OFFICIAL, COLORS)]

    def test_not_found_suggests_insecure_flag(self, resolver: PackageResolver,
                                              transport: FakeTransport) -> None:
        transport.set_repo_file(OFFICIAL, "orb.config", repo_index(COLORS))
        transport.set_repo_file(COLORS, "orb.config", package_config("colors"))
        with pytest.raises(PackageNotFoundError, match="--allow-insecure-repos"):
            resolver.resolve("missing")

    def test_unofficial_never_searched_without_flag(self, resolver: PackageResolver,
                                                     transport: FakeTransport) -> None:
        transport.set_repo_file(OFFICIAL, "orb.config", repo_index())
        transport.set_repo_file(UNOFFICIAL, "orb.config", repo_index(COLORS_FORK))
        transport.set_repo_file(COLORS_FORK, "orb.config", package_config("colors"))
        _register(resolver, UNOFFICIAL)

        with pytest.raises(PackageNotFoundError):
            resolver.resolve("colors")
        assert not any(UNOFFICIAL in url for url in transport.calls)

    def test_official_first_then_registry(self, resolver: PackageResolver,
                                          transport: FakeTransport) -> None:
        transport.set_repo_file(OFFICIAL, "orb.config", repo_index(COLORS))
        transport.set_repo_file(COLORS, "orb.config", package_config("colors"))
        transport.set_repo_file(UNOFFICIAL, "orb.config", repo_index(COLORS_FORK))
        transport.set_repo_file(COLORS_FORK, "orb.config", package_config("colors"))
        _register(resolver, UNOFFICIAL)

        locations = resolver.resolve("colors", allow_insecure=True)
        assert [loc.origin for loc in locations] == [Origin.OFFICIAL, Origin.UNOFFICIAL]
        assert [str(loc) for loc in locations] == [
            f"official::{COLORS}", f"unofficial::{COLORS_FORK}",
        ]

    def test_not_found_anywhere(self, resolver: PackageResolver, transport: FakeTransport) -> None:
        transport.set_repo_file(OFFICIAL, "orb.config", repo_index())
        with pytest.raises(PackageNotFoundError, match="not found in any repository"):
            resolver.resolve("colors", allow_insecure=True)

    def test_name_must_match_exactly(self, resolver: PackageResolver,
                                     transport: FakeTransport) -> None:
        transport.set_repo_file(OFFICIAL, "orb.config", repo_index(COLORS))
        transport.set_repo_file(COLORS, "orb.config", package_config("colors-extra"))
        with pytest.raises(PackageNotFoundError):
            resolver.resolve("colors")

    def test_unreachable_package_skipped(self, resolver: PackageResolver,
                                         transport: FakeTransport) -> None:
        broken = "https://github.com/u/broken"
        transport.set_repo_file(OFFICIAL, "orb.config", repo_index(broken, COLORS))
        transport.set_repo_file(COLORS, "orb.config", package_config("colors"))
        assert resolver.resolve("colors")[0].url == COLORS

    def test_non_http_entry_skipped(self, resolver: PackageResolver,
                                    transport: FakeTransport) -> None:
        transport.set_repo_file(OFFICIAL, "orb.config",
                                repo_index("git@github.com:u/broken.git", COLORS))
        transport.set_repo_file(COLORS, "orb.config", package_config("colors"))
        locations = resolver.resolve("colors")
        assert [loc.url for loc in locations] == [COLORS]

    def test_unreachable_official_index(self, resolver: PackageResolver) -> None:
        with pytest.raises(PackageNotFoundError):
            resolver.resolve("colors")

    def test_empty_name(self, resolver: PackageResolver) -> None:
        with pytest.raises(ValidationError):
            resolver.resolve("")


class TestCatalog:
    def test_lists_packages(self, resolver: PackageResolver, transport: FakeTransport) -> None:
        transport.set_repo_file(OFFICIAL, "orb.config", repo_index(COLORS))
        transport.set_repo_file(COLORS, "orb.config", package_config("colors", "1.2.0"))
        entries = resolver.catalog()
        assert len(entries) == 1
        assert entries[0].name == "colors"
        assert entries[0].version == "1.2.0"
        assert entries[0].description == "colors library"

    def test_non_http_entry_reported(self, resolver: PackageResolver,
                                     transport: FakeTransport) -> None:
        transport.set_repo_file(OFFICIAL, "orb.config",
                                repo_index("git@github.com:u/broken.git", COLORS))
        transport.set_repo_file(COLORS, "orb.config", package_config("colors"))
        entries = resolver.catalog()
        assert entries[0].error
        assert entries[1].name == "colors"

    def test_unreachable_index_reported(self, resolver: PackageResolver) -> None:
        entries = resolver.catalog()
        assert len(entries) == 1
        assert entries[0].error.startswith("Unable to fetch packages")


class TestSelectLocation:
    LOCS = [
        PackageLocation(Origin.OFFICIAL, OFFICIAL, COLORS),
        PackageLocation(Origin.UNOFFICIAL, UNOFFICIAL, COLORS_FORK),
    ]

    def test_valid_choice(self) -> None:
        assert select_location(self.LOCS, 2).url == COLORS_FORK

    @pytest.mark.parametrize("choice", [0, 3, -1])
    def test_out_of_range(self, choice: int) -> None:
        with pytest.raises(ValidationError, match="Invalid selection"):
            select_location(self.LOCS, choice)
