"""Linker CLI 主入口"""

import sys
from pathlib import Path
from typing import Optional

import click

from linker.cli.commands.add import add
from linker.cli.commands.init import init_cmd
from linker.cli.commands.link import link_cmd, unlink_cmd
from linker.cli.commands.list import list_command
from linker.cli.commands.remove import remove
from linker.cli.commands.resources import resources_cmd
from linker.cli.utils import OutputFormatter, FormatterConfig
from linker.core.config_manager import ConfigManager
from linker.core.exceptions import LinkerException
from linker.core.logger import LoggerConfig, configure_logger, verbosity_to_level
from linker.core.registry import default_registry_path

__version__ = "0.2.0"


@click.group()
@click.version_option(version=__version__, prog_name="linker")
@click.option('-v', '--verbose', count=True, help='增加日志详细程度（可重复使用）')
@click.option('-q', '--quiet', is_flag=True, help='只输出错误日志')
@click.option(
    '--registry',
    type=click.Path(dir_okay=False, path_type=Path),
    envvar='LINKER_REGISTRY',
    help='注册表文件路径，默认为 ~/.linker/config.json',
)
@click.option('--no-color', is_flag=True, help='关闭彩色输出')
@click.pass_context
def cli(ctx: click.Context, verbose: int, quiet: bool, registry: Optional[Path], no_color: bool) -> None:
    """Linker - 数据集与模型资源链接工具

    一次注册资源，然后在任意工作目录中按 resource.toml 创建符号链接。

    \b
    命令：
      init                    创建 resource.toml
      link                    按 resource.toml 创建链接
      unlink                  删除当前目录的链接
      list                    列出当前目录的链接
      add <name> <path>       添加或更新资源
      remove <name> | --all   删除资源
      resources               列出已注册的资源

    \b
    示例:
      linker add cityscapes /data/cityscapes
      linker init
      linker link
      linker list --check
    """
    ctx.ensure_object(dict)
    registry_path = registry or default_registry_path()

    settings = ConfigManager(registry_path.parent).load_config()
    log_settings = settings["logging"]
    configure_logger(LoggerConfig(
        log_dir=log_settings["log_dir"],
        level=verbosity_to_level(verbose, quiet, base=log_settings["level"]),
        json_output=log_settings["json"],
    ))

    ctx.obj['verbose'] = verbose
    ctx.obj['no_color'] = no_color
    ctx.obj['registry_path'] = registry_path
    ctx.obj['settings'] = settings


cli.add_command(init_cmd, name="init")
cli.add_command(link_cmd, name="link")
cli.add_command(unlink_cmd, name="unlink")
cli.add_command(list_command, name="list")
cli.add_command(add)
cli.add_command(remove)
cli.add_command(resources_cmd, name="resources")


def main():
    """CLI 入口点，处理全局异常"""
    try:
        cli()
    except LinkerException as e:
        click.echo(OutputFormatter(FormatterConfig()).error(e.message), err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
