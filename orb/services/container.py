"""服务容器 — 统一组装各组件，配置与传输层显式注入

依赖关系图（→ 表示依赖）:
  registry  → fetcher
  resolver  → fetcher, registry
  installer → fetcher, resolver, project
  updater   → fetcher
  bundler   独立（只读本地/全局安装根目录）

用法:
    container = ServiceContainer(load_config())
    container.installer.install("colors", "1.2.0")

    # 测试时注入假传输层，不走网络
    container = ServiceContainer(cfg, transport=FakeTransport({...}))
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from orb.core.config import Config
    from orb.core.pkg.bundler import ScriptBundler
    from orb.core.pkg.fetcher import ContentFetcher, Transport
    from orb.core.pkg.installer import PackageInstaller
    from orb.core.pkg.registry import RepositoryRegistry
    from orb.core.pkg.resolver import PackageResolver
    from orb.core.project import ProjectManifest
    from orb.core.updater import SelfUpdater

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器，同一容器内的组件共享同一个 fetcher"""

    def __init__(
        self,
        config: Config,
        transport: Transport | None = None,
        executable: Path | None = None,
    ) -> None:
        self._instances: dict[str, object] = {}
        self._config = config
        self._transport = transport
        self._executable = executable

    @property
    def config(self) -> Config:
        return self._config

    @property
    def fetcher(self) -> ContentFetcher:
        if "fetcher" not in self._instances:
            from orb.core.pkg.fetcher import ContentFetcher, RetryPolicy
            self._instances["fetcher"] = ContentFetcher(
                transport=self._transport,
                policy=RetryPolicy(
                    attempts=int(self._config.retries),
                    delay=float(self._config.retry_delay),
                ),
                timeout=self._config.timeout,
            )
        return self._instances["fetcher"]  # type: ignore[return-value]

    @property
    def registry(self) -> RepositoryRegistry:
        if "registry" not in self._instances:
            from orb.core.pkg.registry import RepositoryRegistry
            self._instances["registry"] = RepositoryRegistry(
                repos_dir=self._config.repos_dir,
                fetcher=self.fetcher,
            )
        return self._instances["registry"]  # type: ignore[return-value]

    @property
    def resolver(self) -> PackageResolver:
        if "resolver" not in self._instances:
            from orb.core.pkg.resolver import PackageResolver
            self._instances["resolver"] = PackageResolver(
                fetcher=self.fetcher,
                registry=self.registry,
                official_repo=self._config.official_repo,
            )
        return self._instances["resolver"]  # type: ignore[return-value]

    @property
    def project(self) -> ProjectManifest:
        if "project" not in self._instances:
            from orb.core.project import ProjectManifest
            self._instances["project"] = ProjectManifest(self._config.project_manifest_path)
        return self._instances["project"]  # type: ignore[return-value]

    @property
    def installer(self) -> PackageInstaller:
        if "installer" not in self._instances:
            from orb.core.pkg.installer import PackageInstaller
            self._instances["installer"] = PackageInstaller(
                config=self._config,
                fetcher=self.fetcher,
                resolver=self.resolver,
                project=self.project,
            )
        return self._instances["installer"]  # type: ignore[return-value]

    @property
    def bundler(self) -> ScriptBundler:
        if "bundler" not in self._instances:
            from orb.core.pkg.bundler import ScriptBundler
            self._instances["bundler"] = ScriptBundler(
                local_root=self._config.local_root,
                global_root=self._config.installed_dir,
            )
        return self._instances["bundler"]  # type: ignore[return-value]

    @property
    def updater(self) -> SelfUpdater:
        if "updater" not in self._instances:
            from orb.core.updater import SelfUpdater
            executable = self._executable or Path(sys.argv[0]).resolve()
            self._instances["updater"] = SelfUpdater(
                fetcher=self.fetcher,
                executable=executable,
                update_urls=self._config.update_urls,
            )
        return self._instances["updater"]  # type: ignore[return-value]
