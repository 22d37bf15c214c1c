"""包解析器 - 包名 → 候选来源

搜索顺序:
  1. 官方仓库（始终搜索）
  2. 用户注册的仓库（仅当 allow_insecure=True）

每个仓库的 orb.config 索引列出 packageN=<包仓库 URL>，需要逐个下载包自身的
orb.config 并按 packageName 精确匹配。不做任何跨调用缓存，每次解析都重新拉取。
"""

from __future__ import annotations

import logging

from orb.core.exceptions import (
    FetchError,
    ManifestError,
    PackageNotFoundError,
    ValidationError,
)
from orb.core.pkg.fetcher import ContentFetcher
from orb.core.pkg.manifest import parse_manifest
from orb.core.pkg.models import (
    MANIFEST_FILE,
    CatalogEntry,
    Manifest,
    Origin,
    PackageLocation,
)
from orb.core.pkg.registry import RepositoryRegistry

logger = logging.getLogger(__name__)


class PackageResolver:
    """多仓库包解析器"""

    def __init__(
        self,
        fetcher: ContentFetcher,
        registry: RepositoryRegistry,
        official_repo: str,
    ) -> None:
        self.fetcher = fetcher
        self.registry = registry
        self.official_repo = official_repo

    def load_manifest(self, repo_url: str) -> Manifest:
        """下载并解析 <repo_url> 根目录的 orb.config

        Raises:
            FetchError: main/master 均无法下载
            ManifestError: 内容格式错误
        """
        text = self.fetcher.fetch_text_with_fallback(repo_url, MANIFEST_FILE)
        return parse_manifest(text)

    def repositories(self, allow_insecure: bool) -> list[tuple[Origin, str]]:
        """参与搜索的仓库，官方仓库始终排在第一位"""
        repos = [(Origin.OFFICIAL, self.official_repo)]
        if allow_insecure:
            repos.extend((Origin.UNOFFICIAL, url) for url in self.registry.list())
        return repos

    def _package_urls(self, repo_url: str) -> list[str]:
        try:
            index = self.load_manifest(repo_url)
        except (FetchError, ManifestError, ValidationError) as e:
            logger.warning("无法读取仓库索引 %s: %s", repo_url, e)
            return []
        return index.package_urls()

    def find_in_repository(self, repo_url: str, name: str) -> str | None:
        """在单个仓库中查找包，返回第一个匹配的包 URL"""
        for package_url in self._package_urls(repo_url):
            try:
                manifest = self.load_manifest(package_url)
            except (FetchError, ManifestError, ValidationError) as e:
                logger.debug("跳过无法读取的包清单 %s: %s", package_url, e)
                continue
            if manifest.is_package and manifest.package_name == name:
                logger.debug("找到包 %s: %s", name, package_url)
                return package_url
            logger.debug(
                "包名不匹配: %s 声明为 %r (type=%s)",
                package_url, manifest.package_name, manifest.type,
            )
        return None

    def resolve(self, name: str, allow_insecure: bool = False) -> list[PackageLocation]:
        """解析包的全部候选来源（官方在前，其后按注册表顺序）

        Raises:
            PackageNotFoundError: 允许的仓库中都没有该包
        """
        if not name:
            raise ValidationError("包名不能为空")

        found: list[PackageLocation] = []
        for origin, repo_url in self.repositories(allow_insecure):
            logger.info("在仓库中搜索 %s: %s", name, repo_url)
            package_url = self.find_in_repository(repo_url, name)
            if package_url:
                found.append(PackageLocation(origin=origin, repository=repo_url, url=package_url))

        if not found:
            if allow_insecure:
                raise PackageNotFoundError(f"Package '{name}' not found in any repository")
            raise PackageNotFoundError(
                f"Package '{name}' not found in official repository. "
                "Use --allow-insecure-repos to search in all repositories"
            )

        logger.debug("包 %s 共找到 %d 个来源", name, len(found))
        return found

    def catalog(self, allow_insecure: bool = False) -> list[CatalogEntry]:
        """列出各仓库中全部包的基本信息（供 list 命令展示）"""
        entries: list[CatalogEntry] = []
        for origin, repo_url in self.repositories(allow_insecure):
            try:
                index = self.load_manifest(repo_url)
            except (FetchError, ManifestError, ValidationError) as e:
                logger.warning("无法读取仓库索引 %s: %s", repo_url, e)
                entries.append(CatalogEntry(
                    origin=origin, repository=repo_url, url=repo_url,
                    error=f"Unable to fetch packages: {e}",
                ))
                continue

            for package_url in index.package_urls():
                entry = CatalogEntry(origin=origin, repository=repo_url, url=package_url)
                try:
                    m = self.load_manifest(package_url)
                except (FetchError, ManifestError, ValidationError) as e:
                    entry.error = str(e)
                else:
                    if m.package_name:
                        entry.name = m.package_name
                        entry.version = m.version
                        entry.author = m.author
                        entry.description = m.short_description
                    else:
                        entry.error = "Invalid package config"
                entries.append(entry)
        return entries


def select_location(locations: list[PackageLocation], choice: int) -> PackageLocation:
    """按用户输入的序号（从 1 开始）选择来源

    Raises:
        ValidationError: 序号越界
    """
    if not 1 <= choice <= len(locations):
        raise ValidationError(f"Invalid selection: {choice} (1-{len(locations)})")
    return locations[choice - 1]
