"""包管理数据模型

数据类:
- FileEntry: 清单 files 段中的单个文件
- Manifest: 包/仓库的 orb.config 描述
- PackageLocation: 解析得到的包来源
- InstalledPackage / UninstallResult: 安装与卸载结果
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

MANIFEST_FILE = "orb.config"
SOURCE_FILE = ".source"

_PACKAGE_KEY_RE = re.compile(r"^package[0-9]+$")


class Scope(str, Enum):
    """安装范围"""

    LOCAL = "local"
    GLOBAL = "global"


class Origin(str, Enum):
    """包来源仓库类型"""

    OFFICIAL = "official"
    UNOFFICIAL = "unofficial"


@dataclass
class FileEntry:
    """清单中声明的单个文件: 相对路径 + 下载地址"""

    path: str
    url: str


@dataclass
class Manifest:
    """orb.config 解析结果

    entries 保存全部原始 key=value（按出现顺序），
    常用字段另外展开为属性，缺省值与 orb.config 约定一致。
    """

    type: str
    package_name: str = ""
    short_description: str = ""
    version: str = ""
    author: str = ""
    bundle_files: bool = False
    bundle_file_name: str = ""
    is_package_bundlable: bool = False
    dependencies: str = ""
    compatible_shells: str = ""
    license: str = ""
    repository: str = ""
    files: list[FileEntry] = field(default_factory=list)
    entries: dict[str, str] = field(default_factory=dict)

    @property
    def is_package(self) -> bool:
        return self.type == "package"

    @property
    def bundle_name(self) -> str:
        """生成的 bundle 文件名（不含 .sh 后缀）"""
        return self.bundle_file_name or self.package_name

    def package_urls(self) -> list[str]:
        """仓库索引中的 packageN= 条目，按文本顺序"""
        return [v for k, v in self.entries.items() if _PACKAGE_KEY_RE.match(k) and v]


@dataclass
class PackageLocation:
    """包的一个候选来源"""

    origin: Origin
    repository: str
    url: str

    def __str__(self) -> str:
        return f"{self.origin.value}::{self.url}"


@dataclass
class CatalogEntry:
    """list 命令展示的一条包信息；读取失败时 error 非空"""

    origin: Origin
    repository: str
    url: str
    name: str = ""
    version: str = ""
    author: str = ""
    description: str = ""
    error: str = ""


@dataclass
class InstalledPackage:
    """一次安装的结果"""

    name: str
    version: str
    scope: Scope
    path: Path
    source: str
    files: list[str] = field(default_factory=list)
    failed_files: list[str] = field(default_factory=list)
    bundle_path: Path | None = None

    @property
    def complete(self) -> bool:
        return not self.failed_files


@dataclass
class UninstallResult:
    """一次卸载的结果；cancelled 为 True 时未做任何改动"""

    name: str
    scope: Scope
    versions: list[str] = field(default_factory=list)
    cancelled: bool = False
