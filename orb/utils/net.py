"""网络工具 — URL 清洗与安全校验"""

from __future__ import annotations

from urllib.parse import urlparse

from orb.core.exceptions import ValidationError

_ALLOWED_SCHEMES = frozenset(("http", "https"))


def strip_quotes(value: str) -> str:
    """去掉首尾各一个单/双引号（清单中的 URL 常带引号）"""
    value = value.strip()
    if value[:1] in ("'", '"'):
        value = value[1:]
    if value[-1:] in ("'", '"'):
        value = value[:-1]
    return value


def is_http_url(url: str) -> bool:
    return urlparse(url).scheme in _ALLOWED_SCHEMES


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )
