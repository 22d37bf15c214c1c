"""版本号排序

按 "." 拆分后逐段比较: 两段都是数字时按整数比较，否则按字符串比较。
因此 2.10.0 > 2.9.0（纯字符串排序会得到相反结果）。
"""

from __future__ import annotations

import re

VERSION_DIR_RE = re.compile(r"^[0-9]+(\.[0-9]+)*$")
_DIGITS_RE = re.compile(r"^[0-9]+$")


def version_key(version: str) -> tuple[tuple[int, int, str], ...]:
    """排序键: 数字段排在非数字段之前，较短的前缀排在前面"""
    key = []
    for part in version.split("."):
        if _DIGITS_RE.match(part):
            key.append((0, int(part), ""))
        else:
            key.append((1, 0, part))
    return tuple(key)


def compare_versions(a: str, b: str) -> int:
    """a < b 返回负数，相等返回 0，a > b 返回正数"""
    ka, kb = version_key(a), version_key(b)
    if ka == kb:
        return 0
    return -1 if ka < kb else 1


def is_version_name(name: str) -> bool:
    return bool(VERSION_DIR_RE.match(name))


def latest_version(names: list[str]) -> str | None:
    """从目录名中挑出最高的版本号形状名称，没有则返回 None"""
    candidates = [n for n in names if is_version_name(n)]
    if not candidates:
        return None
    return max(candidates, key=version_key)
