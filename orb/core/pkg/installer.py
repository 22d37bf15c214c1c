"""包安装器

安装流程:
  1. 解析来源（多个来源时由调用方按序号选择）
  2. 下载包的 orb.config，校验 packageName 与请求一致
  3. 确定版本: 调用方指定 > 清单声明
  4. 目标目录 <scope_root>/<name>/<version>，重复安装直接覆盖
  5. 写入 .source 与 orb.config 副本
  6. 逐个下载 files 段声明的文件；单个文件失败只记录日志，不中止安装
  7. bundleFiles=true 时生成 <bundleFileName>.sh
  8. 追加一行到 <scope_root>/<name>.meta
  9. 本地安装时更新项目清单 orb.json

安装范围:
  local  -> <project_dir>/.orb/installed
  global -> <orb_home>/installed
"""

from __future__ import annotations

import logging
import re
import shutil
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from orb.core.config import Config
from orb.core.exceptions import (
    ConfigError,
    FetchError,
    ManifestMismatch,
    NotInstalled,
    ValidationError,
)
from orb.core.pkg.fetcher import ContentFetcher
from orb.core.pkg.manifest import parse_manifest
from orb.core.pkg.models import (
    MANIFEST_FILE,
    SOURCE_FILE,
    InstalledPackage,
    Manifest,
    PackageLocation,
    Scope,
    UninstallResult,
)
from orb.core.pkg.resolver import PackageResolver
from orb.core.pkg.version import version_key
from orb.core.project import ProjectManifest

logger = logging.getLogger(__name__)

_SAFE_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_.@+\-]+$")

Chooser = Callable[[list[PackageLocation]], PackageLocation]
Confirm = Callable[[list[str]], bool]


def is_safe_segment(value: str) -> bool:
    """包名/版本号会作为目录名使用，只允许单层安全路径"""
    return bool(value) and value not in (".", "..") and bool(_SAFE_SEGMENT_RE.match(value))


def _check_segment(value: str, label: str) -> None:
    if not is_safe_segment(value):
        raise ValidationError(f"{label} 包含非法字符: {value!r}")


def package_payload_files(directory: Path, bundle_name: str) -> list[Path]:
    """目录下参与打包的普通文件（递归、排序），排除清单、.source 与 bundle 自身"""
    skip = {MANIFEST_FILE, SOURCE_FILE, f"{bundle_name}.sh"}
    return sorted(
        p for p in directory.rglob("*")
        if p.is_file() and p.name not in skip
    )


def make_executable(path: Path) -> None:
    path.chmod(path.stat().st_mode | 0o111)


def build_package_bundle(install_dir: Path, manifest: Manifest) -> Path:
    """把包内其余文件拼接为 <bundle_name>.sh，每个文件带来源起止标记"""
    bundle_name = manifest.bundle_name
    bundle_file = install_dir / f"{bundle_name}.sh"
    generated = datetime.now().astimezone().isoformat(timespec="seconds")

    parts = [
        "#!/usr/bin/env bash\n",
        f"# Bundled package: {manifest.package_name}\n",
        f"# Generated by orb on {generated}\n",
    ]
    count = 0
    for f in package_payload_files(install_dir, bundle_name):
        rel = f.relative_to(install_dir).as_posix()
        content = f.read_text(encoding="utf-8", errors="surrogateescape")
        if content and not content.endswith("\n"):
            content += "\n"
        parts.append(f"\n# Source: {rel}\n# --- Start of {rel} ---\n{content}# --- End of {rel} ---\n")
        count += 1

    bundle_file.write_text("".join(parts), encoding="utf-8", errors="surrogateescape")
    make_executable(bundle_file)
    logger.debug("包 bundle 已生成: %s (%d 个文件)", bundle_file, count)
    return bundle_file


class PackageInstaller:
    """包安装/卸载"""

    def __init__(
        self,
        config: Config,
        fetcher: ContentFetcher,
        resolver: PackageResolver,
        project: ProjectManifest,
    ) -> None:
        self.config = config
        self.fetcher = fetcher
        self.resolver = resolver
        self.project = project

    def scope_root(self, scope: Scope) -> Path:
        if scope is Scope.GLOBAL:
            return self.config.installed_dir
        return self.config.local_root

    # ------------------------------------------------------------------
    # 安装
    # ------------------------------------------------------------------

    def install(
        self,
        name: str,
        version: str | None = None,
        *,
        scope: Scope = Scope.LOCAL,
        allow_insecure: bool = False,
        chooser: Chooser | None = None,
    ) -> InstalledPackage:
        """解析来源并安装

        Raises:
            PackageNotFoundError: 允许的仓库中没有该包
            ValidationError: 多个来源但未提供 chooser，或名称非法
        """
        _check_segment(name, "包名")
        locations = self.resolver.resolve(name, allow_insecure=allow_insecure)
        if len(locations) == 1:
            location = locations[0]
        elif chooser is None:
            raise ValidationError(
                f"Multiple locations found for '{name}', an explicit selection is required",
                details=[str(loc) for loc in locations],
            )
        else:
            location = chooser(locations)
        return self.install_from(name, location, version=version, scope=scope)

    def install_from(
        self,
        name: str,
        location: PackageLocation,
        *,
        version: str | None = None,
        scope: Scope = Scope.LOCAL,
    ) -> InstalledPackage:
        """从指定来源安装包

        Raises:
            FetchError: 包清单无法下载
            ManifestError: 包清单格式错误
            ManifestMismatch: 清单 packageName 与请求不一致
            ConfigError: 未指定版本且清单中也没有 version
        """
        _check_segment(name, "包名")
        text = self.fetcher.fetch_text_with_fallback(location.url, MANIFEST_FILE)
        manifest = parse_manifest(text)
        if manifest.package_name != name:
            raise ManifestMismatch(
                f"Package mismatch in config. Expected '{name}', "
                f"found '{manifest.package_name}'"
            )

        install_version = version or manifest.version
        if not install_version:
            raise ConfigError(f"包 {name} 未指定版本，且 {MANIFEST_FILE} 中没有 version")
        _check_segment(install_version, "版本号")

        root = self.scope_root(scope)
        target = root / name / install_version
        target.mkdir(parents=True, exist_ok=True)
        logger.info("安装 %s@%s (%s) -> %s", name, install_version, scope.value, target)

        (target / SOURCE_FILE).write_text(location.url + "\n", encoding="utf-8")
        (target / MANIFEST_FILE).write_text(text, encoding="utf-8")

        result = InstalledPackage(
            name=name, version=install_version, scope=scope,
            path=target, source=location.url,
        )
        self._download_files(manifest, target, result)

        if manifest.bundle_files:
            result.bundle_path = build_package_bundle(target, manifest)

        self._append_meta(root, name, install_version, location.url)

        if scope is Scope.LOCAL:
            self.project.set_dependency(name, install_version)

        if result.failed_files:
            logger.warning(
                "%s@%s 安装不完整: %d 个文件失败 (%s)",
                name, install_version, len(result.failed_files),
                ", ".join(result.failed_files),
            )
        logger.info("Installed %s %s (%s)", name, install_version, scope.value)
        return result

    def _download_files(
        self, manifest: Manifest, target: Path, result: InstalledPackage,
    ) -> None:
        base = target.resolve()
        for entry in manifest.files:
            dest = (target / entry.path).resolve()
            if dest == base or not dest.is_relative_to(base):
                logger.error("文件路径越界，已跳过: %s", entry.path)
                result.failed_files.append(entry.path)
                continue
            try:
                self.fetcher.fetch_to_file(entry.url, dest)
            except (FetchError, ValidationError, OSError) as e:
                logger.error("Failed to download %s from %s: %s", entry.path, entry.url, e)
                result.failed_files.append(entry.path)
                continue
            result.files.append(entry.path)
            logger.debug("已下载: %s", entry.path)

    @staticmethod
    def _append_meta(root: Path, name: str, version: str, source: str) -> None:
        """元数据日志只追加: <版本> <来源> <ISO-8601 时间>"""
        stamp = datetime.now().astimezone().isoformat(timespec="seconds")
        root.mkdir(parents=True, exist_ok=True)
        with open(root / f"{name}.meta", "a", encoding="utf-8") as f:
            f.write(f"{version} {source} {stamp}\n")

    # ------------------------------------------------------------------
    # 查询 / 卸载
    # ------------------------------------------------------------------

    def list_versions(self, name: str, scope: Scope = Scope.LOCAL) -> list[str]:
        """列出某个包在指定范围内已安装的所有版本"""
        package_dir = self.scope_root(scope) / name
        if not package_dir.is_dir():
            return []
        return sorted(
            (d.name for d in package_dir.iterdir() if d.is_dir()),
            key=version_key,
        )

    def uninstall(
        self,
        name: str,
        *,
        scope: Scope = Scope.LOCAL,
        force: bool = False,
        confirm: Confirm | None = None,
    ) -> UninstallResult:
        """删除包的全部版本、元数据日志、项目依赖条目与缓存

        Raises:
            NotInstalled: 该范围内没有这个包
            ValidationError: 未 force 且没有提供确认回调
        """
        _check_segment(name, "包名")
        root = self.scope_root(scope)
        package_dir = root / name

        if not package_dir.is_dir():
            message = f"Package '{name}' is not installed"
            if scope is Scope.LOCAL and (self.config.installed_dir / name).is_dir():
                message += (
                    f". Package '{name}' found in global installation, "
                    f"try: orb uninstall {name} --global"
                )
            raise NotInstalled(message)

        versions = self.list_versions(name, scope)
        result = UninstallResult(name=name, scope=scope, versions=versions)

        if versions and not force:
            if confirm is None:
                raise ValidationError(f"卸载 {name} 需要确认，或使用 --force")
            if not confirm(versions):
                logger.info("已取消卸载: %s", name)
                result.cancelled = True
                return result

        shutil.rmtree(package_dir)
        (root / f"{name}.meta").unlink(missing_ok=True)

        if scope is Scope.LOCAL:
            self.project.remove_dependency(name)

        cache_dir = self.config.cache_dir / name
        if cache_dir.is_dir():
            logger.debug("清理缓存: %s", cache_dir)
            shutil.rmtree(cache_dir)

        logger.info("Uninstalled %s (%s)", name, scope.value)
        return result
