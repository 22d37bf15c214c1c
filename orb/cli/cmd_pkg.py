"""CLI — 包管理命令（install / uninstall / list / bundle / init）"""

from __future__ import annotations

import click

from orb.cli import _svc
from orb.core.pkg.models import Origin, PackageLocation, Scope
from orb.core.pkg.resolver import select_location


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(uninstall)
    group.add_command(list_packages)
    group.add_command(bundle)
    group.add_command(init)


def _scope(global_: bool) -> Scope:
    return Scope.GLOBAL if global_ else Scope.LOCAL


def _choose_location(locations: list[PackageLocation]) -> PackageLocation:
    """多个来源时要求用户输入序号，没有默认值"""
    click.echo("找到多个来源:")
    for i, loc in enumerate(locations, start=1):
        click.echo(f"  {i}) {loc}")
    choice = click.prompt(f"Select number (1-{len(locations)})", type=int)
    return select_location(locations, choice)


def _confirm_uninstall(name: str):
    def _confirm(versions: list[str]) -> bool:
        click.echo(f"The following versions of '{name}' will be removed:")
        for v in versions:
            click.echo(f"  - {v}")
        return click.confirm("Are you sure?", default=False)
    return _confirm


@click.command()
@click.argument("package")
@click.argument("version", required=False)
@click.option("--global", "global_", is_flag=True, help="安装到全局目录")
@click.option("--allow-insecure-repos", is_flag=True, help="同时搜索用户添加的非官方仓库")
def install(package: str, version: str | None, global_: bool, allow_insecure_repos: bool) -> None:
    """安装包（默认安装到当前项目）"""
    result = _svc().installer.install(
        package, version,
        scope=_scope(global_),
        allow_insecure=allow_insecure_repos,
        chooser=_choose_location,
    )
    for path in result.failed_files:
        click.echo(f"下载失败: {path}", err=True)
    click.echo(f"Installed {result.name} {result.version} ({result.scope.value})")


@click.command()
@click.argument("package")
@click.option("--global", "global_", is_flag=True, help="从全局目录卸载")
@click.option("--force", is_flag=True, help="不再确认")
def uninstall(package: str, global_: bool, force: bool) -> None:
    """卸载包的全部已安装版本"""
    result = _svc().installer.uninstall(
        package, scope=_scope(global_), force=force,
        confirm=_confirm_uninstall(package),
    )
    if result.cancelled:
        click.echo("Uninstallation cancelled")
        return
    if not result.versions:
        click.echo(f"No installed versions found for {package}")
    click.echo(f"Uninstalled {package} ({result.scope.value})")


@click.command(name="list")
@click.option("--allow-insecure-repos", is_flag=True, help="同时列出非官方仓库中的包")
def list_packages(allow_insecure_repos: bool) -> None:
    """列出仓库中可安装的包"""
    svc = _svc()
    entries = svc.resolver.catalog(allow_insecure=allow_insecure_repos)

    click.echo("Official packages:")
    current_repo = None
    for e in entries:
        if e.origin is Origin.UNOFFICIAL and e.repository != current_repo:
            if current_repo is None:
                click.echo("\nUnofficial packages:")
            current_repo = e.repository
            click.echo(f"  Repository: {e.repository}")
        if e.error:
            click.echo(f"- ({e.error})")
            continue
        click.echo(f"- {e.name} {e.version or 'unknown version'} by {e.author or 'unknown author'}")
        click.echo(f"  {e.description or 'No description'}")

    if allow_insecure_repos and not svc.registry.list():
        click.echo("\nUnofficial packages:")
        click.echo("  (No unofficial repositories added)")
        click.echo("  Use 'orb add-repo <url>' to add repositories")


@click.command()
@click.argument("input_file", type=click.Path(dir_okay=False))
@click.argument("output_file", required=False, type=click.Path(dir_okay=False))
def bundle(input_file: str, output_file: str | None) -> None:
    """展开脚本中的 # orb import 指令，生成单文件脚本"""
    dest = _svc().bundler.bundle(input_file, output_file)
    click.echo(f"Successfully bundled file: {dest}")


@click.command()
@click.argument("name")
@click.argument("version", default="1.0.0")
def init(name: str, version: str) -> None:
    """在当前目录初始化 orb 项目（生成 orb.json）"""
    project = _svc().project
    project.init(name, version)
    click.echo(f"Initialized empty orb project in {project.path.parent}")
