"""共享测试夹具: 假传输层 + 临时目录配置，全部测试不访问网络"""

from __future__ import annotations

import urllib.error
from pathlib import Path

import pytest

from orb.core.config import Config
from orb.core.pkg.fetcher import ContentFetcher, RetryPolicy
from orb.services.container import ServiceContainer
from orb.utils.logger import reset_logging

OFFICIAL = "https://github.com/stringmanolo/orbpackages"


class FakeTransport:
    """URL → 响应内容的内存映射；未登记的 URL 按 404 处理"""

    def __init__(self, responses: dict[str, bytes | str | Exception] | None = None) -> None:
        self.responses: dict[str, bytes | str | Exception] = dict(responses or {})
        self.calls: list[str] = []

    def set(self, url: str, body: bytes | str | Exception) -> None:
        self.responses[url] = body

    def set_repo_file(self, repo: str, rel: str, body: bytes | str, branch: str = "main") -> None:
        self.responses[f"{repo}/raw/{branch}/{rel}"] = body

    def get(self, url: str, *, timeout: float) -> bytes:
        self.calls.append(url)
        if url not in self.responses:
            raise urllib.error.URLError(f"404 Not Found: {url}")
        body = self.responses[url]
        if isinstance(body, Exception):
            raise body
        return body.encode("utf-8") if isinstance(body, str) else body


def package_config(name: str, version: str = "1.0.0", files: str = "", **keys: str) -> str:
    """生成包的 orb.config 文本"""
    lines = [
        "type='package'",
        f"packageName='{name}'",
        f"version='{version}'",
        "author='tester'",
        f"shortDescription='{name} library'",
    ]
    lines += [f"{k}='{v}'" for k, v in keys.items()]
    text = "\n".join(lines) + "\n"
    if files:
        text += "files:\n" + files
    return text


def repo_index(*package_urls: str) -> str:
    lines = ["type='repository'"]
    lines += [f"package{i}='{url}'" for i, url in enumerate(package_urls, start=1)]
    return "\n".join(lines) + "\n"


@pytest.fixture(autouse=True)
def _clean_logging():
    yield
    reset_logging()


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def sleeps() -> list[float]:
    return []


@pytest.fixture()
def fetcher(transport: FakeTransport, sleeps: list[float]) -> ContentFetcher:
    return ContentFetcher(
        transport=transport,
        policy=RetryPolicy(attempts=3, delay=1.0, sleep=sleeps.append),
    )


@pytest.fixture()
def cfg(tmp_path: Path) -> Config:
    """独立的 orb_home 与项目目录；关闭后台更新检查"""
    project = tmp_path / "proj"
    project.mkdir()
    config = Config(
        orb_home=str(tmp_path / "home"),
        project_dir=str(project),
        retry_delay=0,
        update_check_interval=0,
    )
    config.ensure_dirs()
    return config


@pytest.fixture()
def container(cfg: Config, transport: FakeTransport, tmp_path: Path) -> ServiceContainer:
    exe = tmp_path / "bin" / "orb"
    exe.parent.mkdir()
    exe.write_text('#!/usr/bin/env bash\nORB_VERSION="0.1.0"\n', encoding="utf-8")
    return ServiceContainer(cfg, transport=transport, executable=exe)
