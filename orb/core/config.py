"""集中配置管理

所有路径与网络参数集中在 Config 中，由 CLI 入口显式构造后注入各组件，
不依赖进程级全局状态。支持从 YAML 文件加载 + 编程式覆盖。

目录布局 (orb_home 默认为 ~/.orb，可由 ORB_HOME 覆盖):
    <orb_home>/installed/           全局安装根目录
    <orb_home>/repos/               用户仓库注册表（每个仓库一个文件）
    <orb_home>/cache/               缓存目录（卸载时清理）
    <orb_home>/.last_update_check   更新检查时间戳
    <orb_home>/config.yml           可选配置文件
    <project_dir>/.orb/installed/   本地安装根目录
    <project_dir>/orb.json          项目清单
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path

import yaml

from orb.core.exceptions import ConfigError
from orb.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

OFFICIAL_REPO = "https://github.com/stringmanolo/orbpackages"
UPDATE_URLS = [
    "https://raw.githubusercontent.com/stringmanolo/orb/main/orb.sh",
    "https://raw.githubusercontent.com/stringmanolo/orb/master/orb.sh",
]


def _default_home() -> str:
    return os.getenv("ORB_HOME") or str(Path.home() / ".orb")


@dataclass
class Config:
    """orb 全局配置"""

    # 目录
    orb_home: str = field(default_factory=_default_home)
    project_dir: str = field(default_factory=os.getcwd)
    project_manifest: str = "orb.json"

    # 仓库
    official_repo: str = OFFICIAL_REPO

    # 网络
    retries: int = 3
    retry_delay: float = 1.0
    timeout: int = 30

    # 自更新
    update_urls: list[str] = field(default_factory=lambda: list(UPDATE_URLS))
    update_check_interval: int = 7 * 24 * 3600

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @property
    def home(self) -> Path:
        return Path(self.orb_home).expanduser()

    @property
    def installed_dir(self) -> Path:
        return self.home / "installed"

    @property
    def repos_dir(self) -> Path:
        return self.home / "repos"

    @property
    def cache_dir(self) -> Path:
        return self.home / "cache"

    @property
    def last_check_file(self) -> Path:
        return self.home / ".last_update_check"

    @property
    def local_root(self) -> Path:
        return Path(self.project_dir) / ".orb" / "installed"

    @property
    def project_manifest_path(self) -> Path:
        return Path(self.project_dir) / self.project_manifest

    def ensure_dirs(self) -> None:
        """创建全局目录（首次运行时）"""
        for d in (self.home, self.installed_dir, self.repos_dir, self.cache_dir):
            d.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_file(cls, path: str | Path, **overrides: object) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认；关键字参数优先于文件内容"""
        try:
            data = load_yaml(path)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"无法读取配置文件 {path}: {e}") from e

        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known and k != "extra"}
        extra = {k: v for k, v in data.items() if k not in known}
        matched.update({k: v for k, v in overrides.items() if v is not None})
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置项无效 {path}: {e}") from e
        cfg.extra = extra
        cfg._validate()
        return cfg

    def _validate(self) -> None:
        if int(self.retries) < 1:
            raise ConfigError(f"retries 必须 >= 1，实际: {self.retries}")
        if float(self.retry_delay) < 0:
            raise ConfigError(f"retry_delay 不能为负数，实际: {self.retry_delay}")
        if not self.update_urls:
            raise ConfigError("update_urls 不能为空")

    def to_dict(self) -> dict:
        return asdict(self)


def load_config(orb_home: str | None = None, project_dir: str | None = None) -> Config:
    """加载 <orb_home>/config.yml（可选）并应用目录覆盖"""
    home = orb_home or _default_home()
    path = Path(home).expanduser() / "config.yml"
    cfg = Config.from_file(path, orb_home=home, project_dir=project_dir)
    logger.debug("配置已加载: %s (home=%s, project=%s)", path, cfg.home, cfg.project_dir)
    return cfg
