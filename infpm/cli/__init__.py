"""infpm 命令行接口

每个命令模块通过 register(group) 把自己的命令注册到 main group。
"""

import click

from infpm import __version__
from infpm.core.config import Config
from infpm.core.exceptions import InfpmError
from infpm.utils.logger import setup_logging_from_env


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="配置文件路径（默认 ~/.infpm/config.yml）")
@click.pass_context
def main(ctx: click.Context, config_path: str | None) -> None:
    """infpm - 无需 root 权限的极简包管理器"""
    setup_logging_from_env()
    try:
        ctx.obj = Config.load(config_path)
    except InfpmError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e


# 注册各子命令
from infpm.cli.cmd_install import register as _reg_install  # noqa: E402

_reg_install(main)
