"""orb.config 解析单元测试"""

from __future__ import annotations

import pytest

from orb.core.exceptions import ManifestError
from orb.core.pkg.manifest import parse_manifest
from orb.core.pkg.models import FileEntry

SAMPLE = """\
type='package'
packageName='colors'
shortDescription="ANSI colors for bash"
version='1.2.0'
author='stringmanolo'
bundleFiles='true'
bundleFileName='colors_all'
files:
  "lib/colors.sh" 'https://example.com/colors.sh'
  "lib/extra.sh" "https://example.com/extra.sh"
"""


class TestHeader:
    def test_basic_fields(self) -> None:
        m = parse_manifest(SAMPLE)
        assert m.type == "package"
        assert m.is_package
        assert m.package_name == "colors"
        assert m.short_description == "ANSI colors for bash"
        assert m.version == "1.2.0"
        assert m.author == "stringmanolo"

    def test_quotes_optional(self) -> None:
        m = parse_manifest("type=package\npackageName=bare\nversion=2.0\n")
        assert m.package_name == "bare"
        assert m.version == "2.0"

    def test_booleans_only_literal_true(self) -> None:
        m = parse_manifest("type='package'\nbundleFiles='yes'\nisPackageBundlable='TRUE'\n")
        assert m.bundle_files is False
        assert m.is_package_bundlable is True

    def test_bundle_name_defaults_to_package_name(self) -> None:
        m = parse_manifest("type='package'\npackageName='x'\n")
        assert m.bundle_name == "x"
        assert parse_manifest(SAMPLE).bundle_name == "colors_all"

    def test_unknown_keys_kept_in_entries(self) -> None:
        m = parse_manifest("type='package'\nhomepage='https://h.example'\n")
        assert m.entries["homepage"] == "https://h.example"

    def test_unrecognised_lines_ignored(self) -> None:
        m = parse_manifest("# comment\n\ntype='package'\njust some words\n")
        assert m.type == "package"

    def test_missing_type_is_malformed(self) -> None:
        with pytest.raises(ManifestError, match="malformed"):
            parse_manifest("packageName='x'\nversion='1.0'\n")


class TestFiles:
    def test_file_entries_in_order(self) -> None:
        m = parse_manifest(SAMPLE)
        assert m.files == [
            FileEntry("lib/colors.sh", "https://example.com/colors.sh"),
            FileEntry("lib/extra.sh", "https://example.com/extra.sh"),
        ]

    def test_key_after_files_switches_back_to_header(self) -> None:
        text = (
            "type='package'\n"
            "files:\n"
            '  "a.sh" https://example.com/a.sh\n'
            "bundleFiles='true'\n"
            '  "b.sh" https://example.com/b.sh\n'
        )
        m = parse_manifest(text)
        assert m.bundle_files is True
        # 切回 HEADER 后的文件行不再被当作文件
        assert [f.path for f in m.files] == ["a.sh"]

    def test_blank_lines_inside_files_skipped(self) -> None:
        m = parse_manifest('type=package\nfiles:\n\n  "a.sh" https://e.com/a\n\n')
        assert len(m.files) == 1

    def test_non_http_url_skipped(self) -> None:
        m = parse_manifest('type=package\nfiles:\n  "a.sh" file:///etc/passwd\n')
        assert m.files == []


class TestRepositoryIndex:
    def test_package_urls_in_text_order(self) -> None:
        text = (
            "type='repository'\n"
            "package2='https://github.com/u/b'\n"
            "package1='https://github.com/u/a'\n"
            "packageName='not-an-index-entry'\n"
            "package10='https://github.com/u/c'\n"
        )
        m = parse_manifest(text)
        assert not m.is_package
        assert m.package_urls() == [
            "https://github.com/u/b",
            "https://github.com/u/a",
            "https://github.com/u/c",
        ]
