"""包管理引擎

拆分说明:
- models.py: 数据模型
- manifest.py: orb.config 解析
- version.py: 版本号排序
- fetcher.py: 远程拉取（重试 + 分支回退）
- registry.py: 用户仓库注册表
- resolver.py: 多仓库包解析
- installer.py: 安装/卸载
- bundler.py: import 展开打包
"""

from orb.core.pkg.bundler import ScriptBundler
from orb.core.pkg.fetcher import ContentFetcher, RetryPolicy, UrllibTransport
from orb.core.pkg.installer import PackageInstaller
from orb.core.pkg.manifest import parse_manifest
from orb.core.pkg.models import (
    FileEntry,
    InstalledPackage,
    Manifest,
    Origin,
    PackageLocation,
    Scope,
    UninstallResult,
)
from orb.core.pkg.registry import RepositoryRegistry
from orb.core.pkg.resolver import PackageResolver, select_location

__all__ = [
    "ContentFetcher",
    "FileEntry",
    "InstalledPackage",
    "Manifest",
    "Origin",
    "PackageInstaller",
    "PackageLocation",
    "PackageResolver",
    "RepositoryRegistry",
    "RetryPolicy",
    "Scope",
    "ScriptBundler",
    "UninstallResult",
    "UrllibTransport",
    "parse_manifest",
    "select_location",
]
