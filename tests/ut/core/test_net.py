"""URL 清洗与 scheme 校验测试"""

import pytest

from orb.core.exceptions import ValidationError
from orb.utils.net import is_http_url, strip_quotes, validate_url_scheme


class TestValidateUrlScheme:
    def test_https_ok(self) -> None:
        validate_url_scheme("https://github.com/u/repo")

    def test_file_rejected(self) -> None:
        with pytest.raises(ValidationError, match="不允许的 URL 协议"):
            validate_url_scheme("file:///etc/passwd")

    def test_empty_scheme_rejected(self) -> None:
        with pytest.raises(ValidationError, match="不允许的 URL 协议"):
            validate_url_scheme("github.com/u/repo")

    def test_context_in_error(self) -> None:
        with pytest.raises(ValidationError, match="add repository"):
            validate_url_scheme("ftp://x", context="add repository")


class TestStripQuotes:
    @pytest.mark.parametrize("raw, expected", [
        ("'https://a.b/c'", "https://a.b/c"),
        ('"https://a.b/c"', "https://a.b/c"),
        ("  https://a.b/c  ", "https://a.b/c"),
        ("'half", "half"),
        ("", ""),
    ])
    def test_strip(self, raw: str, expected: str) -> None:
        assert strip_quotes(raw) == expected


def test_is_http_url() -> None:
    assert is_http_url("http://a.b")
    assert not is_http_url("git@github.com:u/r.git")
