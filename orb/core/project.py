"""项目清单 orb.json 管理

- 本地安装时写入/覆盖 dependencies 条目（文件不存在时按骨架创建）
- 本地卸载时删除对应条目
- init 生成完整脚手架，已存在时拒绝覆盖
全局安装/卸载不会触碰项目清单。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from orb.core.exceptions import ConfigError, ValidationError
from orb.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)


class ProjectManifest:
    """项目清单读写"""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    @property
    def exists(self) -> bool:
        return self.path.is_file()

    def _skeleton(self) -> dict[str, Any]:
        return {
            "name": self.path.resolve().parent.name,
            "version": "1.0.0",
            "dependencies": {},
            "devDependencies": {},
        }

    def load(self) -> dict[str, Any]:
        """读取清单，不存在时返回骨架（不写盘）"""
        if not self.exists:
            return self._skeleton()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"项目清单不是合法 JSON: {self.path} ({e})") from e
        if not isinstance(data, dict):
            raise ConfigError(f"项目清单顶层必须是对象: {self.path}")
        return data

    def _save(self, data: dict[str, Any]) -> None:
        atomic_write(self.path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")

    def dependencies(self) -> dict[str, str]:
        deps = self.load().get("dependencies")
        return dict(deps) if isinstance(deps, dict) else {}

    def set_dependency(self, name: str, version: str) -> None:
        """新增或覆盖依赖条目"""
        created = not self.exists
        data = self.load()
        deps = data.get("dependencies")
        if not isinstance(deps, dict):
            deps = {}
            data["dependencies"] = deps
        deps[name] = version
        self._save(data)
        if created:
            logger.info("已创建 %s", self.path)
        logger.info("Added %s@%s to %s", name, version, self.path.name)

    def remove_dependency(self, name: str) -> bool:
        """删除依赖条目；清单不存在或条目不存在时返回 False 且不写盘"""
        if not self.exists:
            return False
        data = self.load()
        deps = data.get("dependencies")
        if not isinstance(deps, dict) or name not in deps:
            return False
        del deps[name]
        self._save(data)
        logger.info("Removed %s from %s", name, self.path.name)
        return True

    def init(self, name: str, version: str = "1.0.0") -> dict[str, Any]:
        """初始化新项目

        Raises:
            ValidationError: orb.json 已存在
        """
        if self.exists:
            raise ValidationError(f"{self.path.name} already exists in this directory")
        data: dict[str, Any] = {
            "name": name,
            "version": version,
            "description": "",
            "main": "main.sh",
            "scripts": {
                "test": 'echo "Error: no test specified" && exit 1',
            },
            "dependencies": {},
            "devDependencies": {},
            "keywords": [],
            "author": "",
            "license": "ISC",
        }
        self._save(data)
        logger.info("已初始化项目 %s: %s", name, self.path)
        return data
