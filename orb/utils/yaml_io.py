"""文件读写工具

- load_yaml: 读取 config.yml（大小上限、空文件与非字典内容返回 {}）
- atomic_write: 先写同目录临时文件再替换，orb.json 不会出现半截内容
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# 配置文件不应超过 1MB
MAX_YAML_SIZE = 1024 * 1024


def atomic_write(path: Path, content: str) -> None:
    """原子写入文本文件

    Raises:
        OSError: 写入或替换失败（临时文件会被清理）
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", dir=path.parent,
        prefix=f".{path.name}.", suffix=".tmp", delete=False,
    )
    try:
        with tmp:
            tmp.write(content)
        os.replace(tmp.name, path)
    except OSError:
        Path(tmp.name).unlink(missing_ok=True)
        raise


def load_yaml(path: str | Path) -> dict[str, Any]:
    """读取 YAML 映射；文件不存在时返回 {}

    Raises:
        ValueError: 文件超过 MAX_YAML_SIZE
        yaml.YAMLError: 格式错误
    """
    p = Path(path)
    if not p.is_file():
        return {}

    size = p.stat().st_size
    if size > MAX_YAML_SIZE:
        raise ValueError(f"YAML 文件过大: {p} ({size} 字节, 上限 {MAX_YAML_SIZE})")

    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        logger.error("解析 YAML 失败: %s (%s)", p, e)
        raise

    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("%s 顶层不是映射 (%s)，按空配置处理", p, type(data).__name__)
        return {}
    return data
