"""远程内容拉取器

职责:
- 按固定间隔有限次重试拉取 URL 内容（空响应视为失败）
- main / master 分支回退拉取仓库内文件
- 下载到文件（仅成功时写入）

底层传输通过 Transport 协议抽象，测试时可注入假实现，无需真实网络。
"""

from __future__ import annotations

import logging
import time
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from orb import __version__
from orb.core.exceptions import FetchError
from orb.utils.net import strip_quotes, validate_url_scheme

logger = logging.getLogger(__name__)

BRANCHES = ("main", "master")
USER_AGENT = f"orb/{__version__}"


# =========================================================================
# 传输协议
# =========================================================================

class Transport(Protocol):
    """传输协议: 单次 GET，失败抛 OSError（urllib.error.URLError 是其子类）"""

    def get(self, url: str, *, timeout: float) -> bytes:
        ...


class UrllibTransport:
    """基于 urllib.request 的默认传输实现（自动跟随重定向）"""

    def __init__(self, user_agent: str = USER_AGENT) -> None:
        self.user_agent = user_agent

    def get(self, url: str, *, timeout: float) -> bytes:
        req = urllib.request.Request(url, headers={
            "User-Agent": self.user_agent,
            "Accept": "text/plain",
        })
        with urllib.request.urlopen(req, timeout=timeout) as resp:  # nosec B310
            return resp.read()


# =========================================================================
# 重试策略
# =========================================================================

@dataclass
class RetryPolicy:
    """有限次重试 + 固定间隔"""

    attempts: int = 3
    delay: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)


# =========================================================================
# 拉取器
# =========================================================================

class ContentFetcher:
    """远程内容拉取器"""

    def __init__(
        self,
        transport: Transport | None = None,
        policy: RetryPolicy | None = None,
        timeout: float = 30,
    ) -> None:
        self.transport = transport or UrllibTransport()
        self.policy = policy or RetryPolicy()
        self.timeout = timeout

    def _get_once(self, url: str) -> bytes:
        return self.transport.get(url, timeout=self.timeout)

    def _fetch(self, url: str, *, allow_empty: bool) -> bytes:
        url = strip_quotes(url)
        validate_url_scheme(url, context="fetch")
        attempts = max(1, self.policy.attempts)
        for attempt in range(1, attempts + 1):
            logger.debug("下载尝试 %d/%d: %s", attempt, attempts, url)
            try:
                body = self._get_once(url)
            except OSError as e:
                logger.debug("下载失败 (第 %d 次): %s - %s", attempt, url, e)
            else:
                if body or allow_empty:
                    logger.debug("下载成功: %s (%d 字节)", url, len(body))
                    return body
                logger.debug("响应为空 (第 %d 次): %s", attempt, url)
            if attempt < attempts:
                self.policy.sleep(self.policy.delay)

        raise FetchError(
            f"下载失败 (已尝试 {attempts} 次): {url}",
            urls=[url], attempts=attempts,
        )

    def fetch(self, url: str) -> bytes:
        """拉取 URL 内容，空响应视为失败

        Raises:
            FetchError: 重试耗尽
        """
        return self._fetch(url, allow_empty=False)

    def fetch_text(self, url: str) -> str:
        """拉取并解码为文本；空内容不算失败，由调用方校验内容"""
        return _decode(self._fetch(url, allow_empty=True))

    def fetch_to_file(self, url: str, path: Path) -> Path:
        """下载到文件，只有成功时才写入"""
        data = self.fetch(url)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def fetch_first(self, urls: list[str]) -> bytes:
        """依次尝试多个 URL（每个只试一次），返回第一个非空响应

        Raises:
            FetchError: 全部失败，错误信息列出所有尝试过的 URL
        """
        tried: list[str] = []
        for raw in urls:
            url = strip_quotes(raw)
            validate_url_scheme(url, context="fetch")
            tried.append(url)
            try:
                body = self._get_once(url)
            except OSError as e:
                logger.debug("拉取失败: %s - %s", url, e)
                continue
            if body:
                logger.debug("拉取成功: %s (%d 字节)", url, len(body))
                return body
            logger.debug("响应为空: %s", url)

        raise FetchError(
            "文件不存在或无法下载，已尝试: " + ", ".join(tried),
            urls=tried, attempts=len(tried),
        )

    def fetch_with_fallback(self, repo_url: str, relative_path: str) -> bytes:
        """依次尝试 <repo>/raw/main/<path> 和 <repo>/raw/master/<path>"""
        return self.fetch_first(branch_urls(repo_url, relative_path))

    def fetch_text_with_fallback(self, repo_url: str, relative_path: str) -> str:
        return _decode(self.fetch_with_fallback(repo_url, relative_path))


def branch_urls(repo_url: str, relative_path: str) -> list[str]:
    repo = strip_quotes(repo_url).rstrip("/")
    path = relative_path.lstrip("/")
    return [f"{repo}/raw/{branch}/{path}" for branch in BRANCHES]


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")
