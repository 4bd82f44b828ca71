"""CLI — 安装命令"""

from __future__ import annotations

import dataclasses

import click

from infpm.core.config import Config
from infpm.core.exceptions import InfpmError
from infpm.core.manager import PackageManager
from infpm.core.models import InstalledPackage


def register(group: click.Group) -> None:
    group.add_command(install)
    group.add_command(install, name="i")


def _report(pkg: InstalledPackage) -> None:
    click.echo(f"已安装: {pkg.identity.name}@{pkg.identity.version} -> {pkg.store_path}")
    click.echo(f"已链接 {len(pkg.links)} 个文件到 {pkg.link_root}")
    for w in pkg.link_warnings:
        click.echo(f"警告: 链接失败 {w.target} ({w.reason})", err=True)


@click.command()
@click.argument("locator")
@click.option("--file", "-f", "from_file", is_flag=True, help="从本地归档文件安装")
@click.option("--name", "-n", default="", help="包名（非仓库 URL 时必填）")
@click.option("--version", "-v", default="", help="包版本（非仓库 URL 时必填）")
@click.option("--disk", is_flag=True, help="先下载到临时文件再解压（内存受限时使用）")
@click.option("--delete-archive", is_flag=True, help="安装后删除本地归档文件")
@click.option("--non-interactive", is_flag=True, help="不询问，候选资产不唯一时直接报错")
@click.pass_obj
def install(
    cfg: Config, locator: str, from_file: bool, name: str, version: str,
    disk: bool, delete_archive: bool, non_interactive: bool,
) -> None:
    """安装一个包

    LOCATOR 可以是 GitHub 仓库链接（如 https://github.com/alecks/infpm，
    自动下载适合当前系统的最新 release），也可以是 tar 包的 URL；
    配合 -f 时为本地 tar 包路径。
    """
    if disk:
        cfg = dataclasses.replace(cfg, use_disk=True)
    if non_interactive:
        cfg = dataclasses.replace(cfg, interactive=False)

    try:
        pm = PackageManager.from_config(cfg)
        if from_file:
            pkg = pm.install_from_file(
                locator, name, version,
                retain=cfg.retain_local_archive and not delete_archive,
            )
        else:
            pkg = pm.install_from_url(locator, name, version)
    except InfpmError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e

    _report(pkg)
