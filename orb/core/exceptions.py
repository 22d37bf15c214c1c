"""统一异常体系

所有业务异常继承 OrbError，CLI 层据此输出一行诊断信息并以非零码退出。
除安装过程中单个文件的拉取失败（记录日志后跳过）外，其余异常均中止当前操作。
"""

from __future__ import annotations


class OrbError(Exception):
    """orb 基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(OrbError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(OrbError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class FetchError(OrbError):
    """远程内容拉取失败（已用尽重试次数）"""

    code = "FETCH_ERROR"

    def __init__(self, message: str, urls: list[str] | None = None, attempts: int = 0) -> None:
        super().__init__(message)
        self.urls = urls or []
        self.attempts = attempts


class ManifestError(OrbError):
    """orb.config 内容格式错误"""

    code = "MANIFEST_ERROR"


class ManifestMismatch(OrbError):
    """拉取到的清单包名与请求不一致"""

    code = "MANIFEST_MISMATCH"


class PackageNotFoundError(OrbError):
    """所有允许的仓库中都找不到该包"""

    code = "NOT_FOUND"


class InvalidRepository(OrbError):
    """候选仓库缺少有效的 orb.config"""

    code = "INVALID_REPOSITORY"


class ImportNotFound(OrbError):
    """打包时 import 指令引用的包未安装"""

    code = "IMPORT_NOT_FOUND"


class NoValidVersion(OrbError):
    """已安装目录中没有符合版本号格式的子目录"""

    code = "NO_VALID_VERSION"


class NotInstalled(OrbError):
    """卸载目标不存在"""

    code = "NOT_INSTALLED"


class UpdateError(OrbError):
    """自更新失败（已恢复或未改动可执行文件）"""

    code = "UPDATE_ERROR"


class CriticalRestoreFailure(UpdateError):
    """自更新写入失败且备份恢复也失败，可执行文件可能已损坏"""

    code = "CRITICAL_RESTORE_FAILURE"

    def __init__(self, message: str, backup_path: str = "") -> None:
        super().__init__(message)
        self.backup_path = backup_path
