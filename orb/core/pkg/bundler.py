"""脚本打包器 - 展开 import 指令

输入脚本中形如

    # orb import <package> [<version>]

的行会被替换为已安装包的内容，其余行原样保留。
查找顺序: 本地安装根目录优先，其次全局。未指定版本时取版本号最高的目录。
只展开一层: 被引入包自身的 import 指令不会再展开。
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from orb.core.exceptions import (
    ImportNotFound,
    ManifestError,
    NoValidVersion,
    ValidationError,
)
from orb.core.pkg.installer import is_safe_segment, make_executable, package_payload_files
from orb.core.pkg.manifest import parse_manifest
from orb.core.pkg.models import MANIFEST_FILE
from orb.core.pkg.version import latest_version

logger = logging.getLogger(__name__)

IMPORT_RE = re.compile(r"^\s*#\s*orb\s+import\s+(\S+)(?:\s+(\S+))?")

# 包内文件与输入脚本按原始字节往返，不做替换
_ERRORS = "surrogateescape"


def default_output_path(input_path: Path) -> Path:
    """<去掉扩展名的输入>_bundled<扩展名>"""
    return input_path.with_name(f"{input_path.stem}_bundled{input_path.suffix}")


def _ensure_newline(text: str) -> str:
    return text if not text or text.endswith("\n") else text + "\n"


class ScriptBundler:
    """单遍 import 展开"""

    def __init__(self, local_root: Path, global_root: Path) -> None:
        self.local_root = Path(local_root)
        self.global_root = Path(global_root)

    def find_install_dir(self, package: str, version: str | None) -> tuple[Path, str]:
        """定位包的版本目录，返回 (目录, 版本号)

        Raises:
            ImportNotFound: 本地与全局都未安装，或指定版本不存在
            NoValidVersion: 未指定版本且没有版本号形状的目录
        """
        if not is_safe_segment(package):
            raise ImportNotFound(f"Invalid package name in import: {package!r}")
        if version and not is_safe_segment(version):
            raise ImportNotFound(f"Invalid version in import: {version!r} ({package})")

        for root in (self.local_root, self.global_root):
            base = root / package
            if base.is_dir():
                logger.debug("包 %s 位于 %s", package, base)
                break
        else:
            raise ImportNotFound(
                f"Package '{package}' not installed. Run 'orb install {package}' first"
            )

        if version:
            install_dir = base / version
            if not install_dir.is_dir():
                raise ImportNotFound(f"Version '{version}' not found for package '{package}'")
            return install_dir, version

        chosen = latest_version([d.name for d in base.iterdir() if d.is_dir()])
        if chosen is None:
            raise NoValidVersion(f"No valid version found for package '{package}'")
        logger.debug("未指定版本，使用最高版本 %s@%s", package, chosen)
        return base / chosen, chosen

    def expand(self, package: str, version: str | None) -> str:
        """返回一个 import 指令展开后的文本"""
        install_dir, resolved = self.find_install_dir(package, version)

        config_file = install_dir / MANIFEST_FILE
        if not config_file.is_file():
            raise ManifestError(f"Config file not found: {config_file}")
        manifest = parse_manifest(config_file.read_text(encoding="utf-8", errors="replace"))

        if not manifest.is_package_bundlable:
            logger.debug("包 %s 未标记为可打包，继续处理", package)

        bundle_name = manifest.bundle_name or package
        prebuilt = install_dir / f"{bundle_name}.sh"
        if manifest.bundle_files and prebuilt.is_file():
            logger.debug("使用预生成 bundle: %s", prebuilt)
            return _ensure_newline(prebuilt.read_text(encoding="utf-8", errors=_ERRORS))

        chunks: list[str] = []
        for f in package_payload_files(install_dir, bundle_name):
            rel = f.relative_to(install_dir).as_posix()
            chunks.append(f"# Source: {rel} from {package} {resolved}\n")
            chunks.append(_ensure_newline(f.read_text(encoding="utf-8", errors=_ERRORS)))
        logger.debug("包 %s@%s 共内联 %d 个文件", package, resolved, len(chunks) // 2)
        return "".join(chunks)

    def bundle(self, input_path: str | Path, output_path: str | Path | None = None) -> Path:
        """展开输入脚本中的 import 指令并写出可执行文件

        Raises:
            ValidationError: 输入文件不存在
            ImportNotFound / NoValidVersion / ManifestError: 某个 import 无法展开
        """
        src = Path(input_path)
        if not src.is_file():
            raise ValidationError(f"File not found: {src}")
        dest = Path(output_path) if output_path else default_output_path(src)

        out: list[str] = []
        imports = 0
        # newline="" 保留原始换行符，surrogateescape 保留非 UTF-8 字节；
        # 无 import 时输出与输入逐字节一致
        with open(src, encoding="utf-8", errors=_ERRORS, newline="") as f:
            text = f.read()
        for lineno, line in enumerate(text.splitlines(keepends=True), start=1):
            m = IMPORT_RE.match(line)
            if not m:
                out.append(line)
                continue
            imports += 1
            logger.debug("第 %d 行 import: %s %s", lineno, m.group(1), m.group(2) or "latest")
            out.append(self.expand(m.group(1), m.group(2)))

        dest.parent.mkdir(parents=True, exist_ok=True)
        with open(dest, "w", encoding="utf-8", errors=_ERRORS, newline="") as f:
            f.write("".join(out))
        make_executable(dest)
        logger.info("Successfully bundled file: %s (%d imports)", dest, imports)
        return dest
