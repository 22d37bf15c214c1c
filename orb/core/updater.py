"""自更新

- check_for_update(): 拉取远程脚本，读取版本标记，与当前版本做字符串比较
- update(): 备份当前可执行文件 → 覆盖写入 → 失败时从备份恢复
- BackgroundUpdateCheck: 每次启动时按时间间隔（默认 7 天）在后台线程里检查，
  只做提示，任何失败都静默忽略，不阻塞前台命令
"""

from __future__ import annotations

import logging
import re
import shutil
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from orb import __version__
from orb.core.exceptions import (
    CriticalRestoreFailure,
    FetchError,
    UpdateError,
    ValidationError,
)
from orb.core.pkg.fetcher import ContentFetcher

logger = logging.getLogger(__name__)

_VERSION_MARKER_RE = re.compile(
    r"""^\s*(?:ORB_VERSION|__version__)\s*=\s*["']([^"']+)["']""", re.MULTILINE,
)


def parse_version_marker(text: str) -> str | None:
    """读取第一处 ORB_VERSION="x" 或 __version__ = "x" 标记"""
    m = _VERSION_MARKER_RE.search(text)
    return m.group(1) if m else None


@dataclass
class UpdateCheck:
    """版本检查结果（字符串相等即视为最新，不做语义比较）"""

    current: str
    latest: str

    @property
    def update_available(self) -> bool:
        return self.current != self.latest


@dataclass
class UpdateResult:
    """status: up_to_date / cancelled / updated"""

    status: str
    current: str
    latest: str
    backup_path: Path | None = None


class SelfUpdater:
    """可执行文件自更新"""

    def __init__(
        self,
        fetcher: ContentFetcher,
        executable: Path,
        update_urls: list[str],
        current_version: str = __version__,
    ) -> None:
        self.fetcher = fetcher
        self.executable = Path(executable)
        self.update_urls = list(update_urls)
        self.current_version = current_version

    def fetch_latest(self) -> tuple[bytes, str]:
        """下载远程脚本（按 update_urls 顺序回退），返回 (内容, 版本号)

        Raises:
            UpdateError: 无法下载或找不到版本标记
        """
        try:
            content = self.fetcher.fetch_first(self.update_urls)
        except FetchError as e:
            raise UpdateError(f"Failed to download update: {e}") from e
        latest = parse_version_marker(content.decode("utf-8", errors="replace"))
        if not latest:
            raise UpdateError("Could not determine new version")
        return content, latest

    def check_for_update(self) -> UpdateCheck:
        _, latest = self.fetch_latest()
        check = UpdateCheck(current=self.current_version, latest=latest)
        logger.debug("当前版本 %s, 远程版本 %s", check.current, check.latest)
        return check

    def update(
        self,
        force: bool = False,
        confirm: Callable[[str], bool] | None = None,
    ) -> UpdateResult:
        """更新到远程版本

        Raises:
            UpdateError: 下载失败、备份失败，或写入失败但已从备份恢复
            CriticalRestoreFailure: 写入失败且备份恢复也失败
        """
        content, latest = self.fetch_latest()
        current = self.current_version
        if current == latest:
            logger.info("Already up to date (v%s)", current)
            return UpdateResult(status="up_to_date", current=current, latest=latest)

        if not force:
            if confirm is None:
                raise ValidationError(f"更新到 v{latest} 需要确认，或使用 --force")
            if not confirm(latest):
                logger.info("Update cancelled")
                return UpdateResult(status="cancelled", current=current, latest=latest)

        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup = self.executable.with_name(f"{self.executable.name}.backup.{stamp}")
        try:
            shutil.copy2(self.executable, backup)
        except OSError as e:
            raise UpdateError(f"Failed to create backup {backup}: {e}") from e
        logger.debug("已备份: %s", backup)

        try:
            self._write_executable(content)
        except OSError as e:
            logger.error("Failed to update, restoring backup: %s", e)
            try:
                self._restore(backup)
            except OSError as restore_err:
                raise CriticalRestoreFailure(
                    f"CRITICAL: Failed to restore from backup ({restore_err}). "
                    f"Please manually restore from: {backup}",
                    backup_path=str(backup),
                ) from restore_err
            raise UpdateError(f"Failed to update ({e}), restored from backup") from e

        logger.info("Update successful: v%s -> v%s (backup: %s)", current, latest, backup)
        return UpdateResult(status="updated", current=current, latest=latest, backup_path=backup)

    def _write_executable(self, content: bytes) -> None:
        self.executable.write_bytes(content)
        self.executable.chmod(self.executable.stat().st_mode | 0o111)

    def _restore(self, backup: Path) -> None:
        shutil.copy2(backup, self.executable)
        self.executable.chmod(self.executable.stat().st_mode | 0o111)


class BackgroundUpdateCheck:
    """按时间间隔触发的后台更新检查

    与前台命令只共享一个时间戳文件；线程为 daemon，进程退出时不等待。
    """

    def __init__(
        self,
        updater: SelfUpdater,
        stamp_file: Path,
        interval: int,
        notify: Callable[[UpdateCheck], None],
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.updater = updater
        self.stamp_file = Path(stamp_file)
        self.interval = interval
        self.notify = notify
        self.clock = clock
        self._cancelled = threading.Event()
        self._thread: threading.Thread | None = None

    def _last_check(self) -> float:
        try:
            return float(self.stamp_file.read_text(encoding="utf-8").strip() or 0)
        except (OSError, ValueError):
            return 0.0

    def due(self) -> bool:
        return self.clock() - self._last_check() > self.interval

    def start(self) -> bool:
        """到期则写入时间戳并启动后台线程，返回是否启动"""
        try:
            if not self.due():
                return False
            self.stamp_file.parent.mkdir(parents=True, exist_ok=True)
            self.stamp_file.write_text(f"{int(self.clock())}\n", encoding="utf-8")
        except OSError as e:
            logger.debug("更新检查时间戳不可写，跳过: %s", e)
            return False

        self._thread = threading.Thread(target=self._run, name="orb-update-check", daemon=True)
        self._thread.start()
        return True

    def cancel(self) -> None:
        self._cancelled.set()

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _run(self) -> None:
        try:
            check = self.updater.check_for_update()
            if check.update_available and not self._cancelled.is_set():
                self.notify(check)
        except Exception as e:  # noqa: BLE001
            logger.debug("后台更新检查失败: %s", e)
