"""CLI — 自更新命令"""

from __future__ import annotations

import click

from orb.cli import _svc
from orb.core.updater import UpdateResult


def register(group: click.Group) -> None:
    group.add_command(self_update)
    group.add_command(check_update)
    group.add_command(force_update)


def _confirm_update(latest: str) -> bool:
    return click.confirm(f"Update to v{latest}?", default=False)


def _report(result: UpdateResult) -> None:
    if result.status == "up_to_date":
        click.echo(f"Already up to date (v{result.current})")
    elif result.status == "cancelled":
        click.echo("Update cancelled")
    else:
        click.echo("Update successful!")
        click.echo(f"  Backup saved as: {result.backup_path}")
        click.echo(f"  New version: v{result.latest}")


@click.command(name="self-update")
@click.option("--force", is_flag=True, help="不再确认")
def self_update(force: bool) -> None:
    """更新 orb 到最新版本"""
    _report(_svc().updater.update(force=force, confirm=_confirm_update))


@click.command(name="force-update")
def force_update() -> None:
    """不经确认直接更新"""
    _report(_svc().updater.update(force=True))


@click.command(name="check-update")
def check_update() -> None:
    """只检查是否有新版本"""
    check = _svc().updater.check_for_update()
    if not check.update_available:
        click.echo(f"You have the latest version (v{check.current})")
        return
    click.echo("Update available!")
    click.echo(f"  Current: v{check.current}")
    click.echo(f"  Latest:  v{check.latest}")
    click.echo("Run 'orb self-update' to update")
