"""CLI — 仓库管理命令"""

from __future__ import annotations

import click

from orb.cli import _svc


def register(group: click.Group) -> None:
    group.add_command(add_repo)


@click.command(name="add-repo")
@click.argument("url")
def add_repo(url: str) -> None:
    """添加非官方仓库（需校验其 orb.config）"""
    name = _svc().registry.add(url)
    click.echo(f"Added repository: {name}")
