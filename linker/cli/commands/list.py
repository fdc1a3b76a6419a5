"""Linker list 命令实现

列出当前目录记录的链接。"""

from pathlib import Path
from typing import Dict, Optional

import click

from linker.core.data_structures import LinkHealth, LinkSet
from linker.core.exceptions import LinkerException
from linker.core.logger import get_logger
from linker.core.registry import Registry
from linker.core.symlink_manager import SymlinkManager
from linker.cli.utils import OutputFormatter, FormatterConfig

logger = get_logger("list_command")


class ListCommand:
    """列表命令处理器"""

    def __init__(self, directory: Optional[Path] = None, registry_path: Optional[Path] = None):
        self.directory = Path(directory) if directory else Path.cwd()
        self.registry = Registry.load(registry_path)
        self.symlink_manager = SymlinkManager()

    def get_link_set(self) -> Optional[LinkSet]:
        return self.registry.get_link_set(str(self.directory.absolute()))

    def check(self, link_set: LinkSet) -> Dict[str, LinkHealth]:
        return self.symlink_manager.check_health(link_set.entries, Path(link_set.directory))


@click.command(name="list")
@click.option("-c", "--check", is_flag=True, help="检查每个链接是否仍然有效")
@click.pass_context
def list_command(ctx: click.Context, check: bool) -> None:
    """列出当前目录的链接"""
    obj = ctx.obj or {}
    formatter = OutputFormatter(FormatterConfig(no_color=obj.get('no_color', False)))

    try:
        cmd = ListCommand(registry_path=obj.get('registry_path'))
        link_set = cmd.get_link_set()
    except LinkerException as e:
        click.echo(formatter.error(e.message), err=True)
        ctx.exit(1)

    if link_set is None:
        click.echo(formatter.format_error('not_linked'))
        return

    health = cmd.check(link_set) if check else {}
    for entry in link_set.entries:
        status = health[entry.name].value if check else None
        click.echo(formatter.format_link(entry.name, entry.path, status))
