"""Linker remove 命令实现

删除单个或全部资源。已有的链接和链接记录不受影响。"""

from pathlib import Path
from typing import List, Optional

import click

from linker.core.data_structures import Resource
from linker.core.exceptions import LinkerException, ResourceNotFoundError
from linker.core.logger import get_logger
from linker.core.registry import Registry
from linker.cli.utils import OutputFormatter, FormatterConfig

logger = get_logger("remove_command")


class RemoveCommand:
    """删除资源命令处理器"""

    def __init__(self, registry_path: Optional[Path] = None):
        self.registry = Registry.load(registry_path)

    def execute(self, name: Optional[str] = None, all: bool = False) -> List[Resource]:
        return self.registry.remove_resource(name, all=all)


@click.command(name="remove")
@click.argument("name", required=False)
@click.option("-a", "--all", "remove_all", is_flag=True, help="删除全部资源")
@click.pass_context
def remove(ctx: click.Context, name: Optional[str], remove_all: bool) -> None:
    """删除资源 NAME，或使用 --all 删除全部资源"""
    obj = ctx.obj or {}
    formatter = OutputFormatter(FormatterConfig(no_color=obj.get('no_color', False)))

    if not name and not remove_all:
        click.echo(formatter.format_error('missing_target'), err=True)
        ctx.exit(1)

    try:
        cmd = RemoveCommand(registry_path=obj.get('registry_path'))
        removed = cmd.execute(name, all=remove_all)
    except ResourceNotFoundError:
        click.echo(formatter.format_error('resource_not_found', name=name), err=True)
        ctx.exit(1)
    except LinkerException as e:
        click.echo(formatter.error(e.message), err=True)
        ctx.exit(1)

    click.echo(formatter.success(f"已删除 {len(removed)} 个资源"))
