"""Linker add 命令实现

注册新资源，或更新同名资源的路径。"""

from pathlib import Path
from typing import Optional

import click

from linker.core.data_structures import Resource
from linker.core.exceptions import LinkerException
from linker.core.logger import get_logger
from linker.core.registry import Registry
from linker.cli.utils import OutputFormatter, FormatterConfig

logger = get_logger("add_command")


class AddCommand:
    """添加资源命令处理器"""

    def __init__(self, registry_path: Optional[Path] = None):
        self.registry = Registry.load(registry_path)

    @staticmethod
    def normalize_path(path: str) -> str:
        """展开 ~ 并转换为绝对路径，不检查路径是否存在"""
        return str(Path(path).expanduser().absolute())

    def execute(self, name: str, path: str) -> Resource:
        return self.registry.add_resource(name, self.normalize_path(path))


@click.command(name="add")
@click.argument("name")
@click.argument("path")
@click.pass_context
def add(ctx: click.Context, name: str, path: str) -> None:
    """添加资源 NAME，指向 PATH；同名资源会被更新

    \b
    使用示例:
    linker add cityscapes /data/cityscapes
    linker add checkpoint ~/checkpoints
    """
    obj = ctx.obj or {}
    formatter = OutputFormatter(FormatterConfig(no_color=obj.get('no_color', False)))

    try:
        cmd = AddCommand(registry_path=obj.get('registry_path'))
        resource = cmd.execute(name, path)
    except LinkerException as e:
        click.echo(formatter.error(e.message), err=True)
        ctx.exit(1)

    if not Path(resource.path).exists():
        click.echo(formatter.warning(f"路径当前不存在: {resource.path}"), err=True)

    click.echo(formatter.success(f"资源已保存: {resource.name} --> {resource.path}"))
