"""用户仓库注册表

职责:
- 添加仓库前校验其根目录 orb.config（main/master 回退）
- 每个仓库持久化为 repos 目录下的一个文件，内容为仓库 URL
- 列出已注册仓库 URL

官方仓库不在注册表中，由解析器固定优先搜索。
"""

from __future__ import annotations

import logging
from pathlib import Path

from orb.core.exceptions import FetchError, InvalidRepository, ValidationError
from orb.core.pkg.fetcher import ContentFetcher
from orb.core.pkg.models import MANIFEST_FILE
from orb.utils.net import strip_quotes, validate_url_scheme

logger = logging.getLogger(__name__)


def repository_name(url: str) -> str:
    """从 URL 最后一段路径推导仓库名（去掉 .git 后缀）"""
    last = strip_quotes(url).rstrip("/").rsplit("/", 1)[-1]
    if last.endswith(".git"):
        last = last[: -len(".git")]
    return last


class RepositoryRegistry:
    """用户仓库注册表 - 一个仓库对应一个文件"""

    def __init__(self, repos_dir: Path, fetcher: ContentFetcher) -> None:
        self.repos_dir = Path(repos_dir)
        self.fetcher = fetcher

    def add(self, url: str) -> str:
        """校验并注册仓库，返回仓库名

        Raises:
            InvalidRepository: orb.config 无法下载或缺少 type 键
        """
        url = strip_quotes(url).rstrip("/")
        validate_url_scheme(url, context="add repository")
        name = repository_name(url)
        if not name or name in (".", ".."):
            raise ValidationError(f"无法从 URL 推导仓库名: {url}")

        try:
            text = self.fetcher.fetch_text_with_fallback(url, MANIFEST_FILE)
        except FetchError as e:
            raise InvalidRepository(
                f"Invalid repository: no {MANIFEST_FILE} found at {url}"
            ) from e

        if "type=" not in text:
            logger.debug("仓库 %s 的 %s 内容:\n%s", url, MANIFEST_FILE, text)
            raise InvalidRepository(
                f"Invalid repository: malformed {MANIFEST_FILE} at {url}"
            )

        self.repos_dir.mkdir(parents=True, exist_ok=True)
        (self.repos_dir / name).write_text(url + "\n", encoding="utf-8")
        logger.info("仓库已注册: %s -> %s", name, url)
        return name

    def list(self) -> list[str]:
        """列出全部已注册仓库 URL（按文件名顺序，跳过隐藏文件）"""
        if not self.repos_dir.is_dir():
            return []
        urls: list[str] = []
        for entry in sorted(self.repos_dir.iterdir()):
            if not entry.is_file() or entry.name.startswith("."):
                continue
            try:
                url = entry.read_text(encoding="utf-8").strip()
            except UnicodeDecodeError:
                logger.warning("仓库文件不是 UTF-8 文本，已跳过: %s", entry)
                continue
            if url:
                urls.append(url)
        logger.debug("已注册用户仓库 %d 个", len(urls))
        return urls
