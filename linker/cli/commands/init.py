"""Linker init 命令实现

确保当前目录存在清单文件。"""

from pathlib import Path
from typing import Any, Dict, Optional

import click

from linker.core.config_manager import ConfigManager
from linker.core.exceptions import LinkerException
from linker.core.logger import get_logger
from linker.core.manifest import ManifestReader
from linker.cli.utils import OutputFormatter, FormatterConfig

logger = get_logger("init_command")


class InitCommand:
    """清单初始化命令处理器"""

    def __init__(self, directory: Optional[Path] = None, settings: Optional[Dict[str, Any]] = None):
        settings = settings or ConfigManager.DEFAULT_CONFIG
        self.reader = ManifestReader(
            directory,
            filename=settings["manifest"]["filename"],
            table=settings["manifest"]["table"],
        )

    def execute(self) -> bool:
        """创建清单文件

        Returns:
            文件原本已存在返回 True
        """
        existed = self.reader.ensure()
        if existed:
            manifest = self.reader.load()
            logger.info("Manifest has entries", count=len(manifest))
        return existed


@click.command(name="init")
@click.pass_context
def init_cmd(ctx: click.Context) -> None:
    """在当前目录创建 resource.toml"""
    obj = ctx.obj or {}
    formatter = OutputFormatter(FormatterConfig(no_color=obj.get('no_color', False)))

    try:
        cmd = InitCommand(settings=obj.get('settings'))
        existed = cmd.execute()
    except LinkerException as e:
        click.echo(formatter.error(e.message), err=True)
        ctx.exit(1)

    filename = cmd.reader.filename
    if existed:
        click.echo(formatter.info(f"{filename} 已存在，无需初始化"))
    else:
        click.echo(formatter.success(f"已创建 {filename}"))
