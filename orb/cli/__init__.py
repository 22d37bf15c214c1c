"""orb 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
每个命令只调用一个核心操作；OrbError 统一转为一行 stderr 诊断 + 退出码 1。
"""

from __future__ import annotations

import logging
import os

import click

from orb import __version__
from orb.core.config import load_config
from orb.core.exceptions import OrbError
from orb.services.container import ServiceContainer
from orb.utils.logger import setup_logging

logger = logging.getLogger(__name__)

# 这些命令自身就在检查更新，不再触发后台检查
_NO_BACKGROUND_CHECK = frozenset(("self-update", "check-update", "force-update"))


class OrbGroup(click.Group):
    """把业务异常转换为 ClickException（stderr 输出 + 退出码 1）"""

    def invoke(self, ctx: click.Context) -> object:
        try:
            return super().invoke(ctx)
        except OrbError as e:
            logger.debug("命令失败 [%s]", e.code, exc_info=True)
            raise click.ClickException(str(e)) from e


def _svc() -> ServiceContainer:
    """获取当前命令上下文中的服务容器"""
    return click.get_current_context().find_object(ServiceContainer)  # type: ignore[return-value]


def _start_update_check(svc: ServiceContainer) -> None:
    """按间隔在后台检查更新，仅提示，不阻塞当前命令"""
    interval = int(svc.config.update_check_interval)
    if interval <= 0:
        return
    from orb.core.updater import BackgroundUpdateCheck

    def _notify(check: object) -> None:
        click.echo(
            "\n   Update available for orb!\n"
            "   Run 'orb self-update' to get the latest version.\n",
            err=True,
        )

    BackgroundUpdateCheck(
        updater=svc.updater,
        stamp_file=svc.config.last_check_file,
        interval=interval,
        notify=_notify,
    ).start()


@click.group(cls=OrbGroup)
@click.version_option(version=__version__, prog_name="orb")
@click.option("--home", envvar="ORB_HOME", default=None, help="orb 数据目录（默认 ~/.orb）")
@click.pass_context
def main(ctx: click.Context, home: str | None) -> None:
    """orb - shell 脚本库包管理器

    设置 ORB_DEBUG=1 输出调试日志。
    """
    setup_logging(
        level=os.getenv("ORB_LOG_LEVEL", "WARNING"),
        json_output=os.getenv("ORB_LOG_JSON", "") == "1",
    )
    if not isinstance(ctx.obj, ServiceContainer):
        cfg = load_config(orb_home=home)
        cfg.ensure_dirs()
        ctx.obj = ServiceContainer(cfg)
    logger.debug("orb %s 启动, 子命令: %s", __version__, ctx.invoked_subcommand)

    if ctx.invoked_subcommand not in _NO_BACKGROUND_CHECK:
        _start_update_check(ctx.obj)


# 注册各领域子命令
from orb.cli.cmd_pkg import register as _reg_pkg  # noqa: E402
from orb.cli.cmd_repo import register as _reg_repo  # noqa: E402
from orb.cli.cmd_update import register as _reg_update  # noqa: E402

_reg_pkg(main)
_reg_repo(main)
_reg_update(main)
