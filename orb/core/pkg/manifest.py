"""orb.config 清单解析

格式:
    type='package'
    packageName='colors'
    version='1.2.0'
    files:
      "lib/colors.sh" 'https://example.com/colors.sh'
    bundleFiles='true'

两阶段逐行扫描（显式状态机）:
  HEADER  匹配 key=value（值两端引号可选），遇到 files: 行切换到 FILES
  FILES   每个非空行 "<相对路径>" <url> 记为一个文件；
          若某行形如 key=value，则切回 HEADER 并照常记录该键
          （允许把键写在文件列表之后，真实清单依赖这一行为）
无法识别的行直接忽略。整份文本中没有 type 键时视为格式错误。
"""

from __future__ import annotations

import logging
import re
from enum import Enum

from orb.core.exceptions import ManifestError
from orb.core.pkg.models import FileEntry, Manifest
from orb.utils.net import is_http_url, strip_quotes

logger = logging.getLogger(__name__)

_FILES_RE = re.compile(r"^\s*files:")
_HEADER_KV_RE = re.compile(r"^\s*([^=]+)=(.*)$")
_REENTRY_KV_RE = re.compile(r"^\s*[A-Za-z_][A-Za-z0-9_]*=")
_FILE_LINE_RE = re.compile(r'^"([^"]+)"\s*(.*)$')


class _Phase(Enum):
    HEADER = "header"
    FILES = "files"


def _as_bool(value: str) -> bool:
    return value.strip().lower() == "true"


def _parse_header_line(line: str, entries: dict[str, str]) -> None:
    m = _HEADER_KV_RE.match(line)
    if not m:
        return
    key = m.group(1).strip()
    if not key:
        return
    entries[key] = strip_quotes(m.group(2))


def _parse_file_line(line: str) -> FileEntry | None:
    m = _FILE_LINE_RE.match(line.strip())
    if not m:
        return None
    path, url = m.group(1), strip_quotes(m.group(2))
    if not url or not is_http_url(url):
        logger.warning("清单文件条目 URL 无效，已跳过: %r", line.strip())
        return None
    return FileEntry(path=path, url=url)


def parse_manifest(text: str) -> Manifest:
    """解析 orb.config 文本

    Raises:
        ManifestError: 文本中没有 type 键
    """
    entries: dict[str, str] = {}
    files: list[FileEntry] = []
    phase = _Phase.HEADER

    for line in text.splitlines():
        if _FILES_RE.match(line):
            phase = _Phase.FILES
            continue

        if phase is _Phase.FILES:
            if not line.strip():
                continue
            if _REENTRY_KV_RE.match(line):
                phase = _Phase.HEADER
                _parse_header_line(line, entries)
                continue
            entry = _parse_file_line(line)
            if entry is not None:
                files.append(entry)
            continue

        _parse_header_line(line, entries)

    if "type" not in entries:
        raise ManifestError("malformed orb.config: 缺少 type 键")

    manifest = Manifest(
        type=entries["type"],
        package_name=entries.get("packageName", ""),
        short_description=entries.get("shortDescription", ""),
        version=entries.get("version", ""),
        author=entries.get("author", ""),
        bundle_files=_as_bool(entries.get("bundleFiles", "false")),
        bundle_file_name=entries.get("bundleFileName", ""),
        is_package_bundlable=_as_bool(entries.get("isPackageBundlable", "false")),
        dependencies=entries.get("dependencies", ""),
        compatible_shells=entries.get("compatibleShells", ""),
        license=entries.get("license", ""),
        repository=entries.get("repository", ""),
        files=files,
        entries=entries,
    )
    logger.debug(
        "清单已解析: type=%s packageName=%s 键 %d 个, 文件 %d 个",
        manifest.type, manifest.package_name, len(entries), len(files),
    )
    return manifest
