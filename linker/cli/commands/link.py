"""Linker link / unlink 命令实现

根据当前目录的 resource.toml 重新创建链接，或拆除已有链接。"""

from pathlib import Path
from typing import Any, Dict, Optional

import click

from linker.core.config_manager import ConfigManager
from linker.core.data_structures import LinkSet, Resolution
from linker.core.exceptions import LinkerException, SymlinkException
from linker.core.lifecycle import LinkLifecycle
from linker.core.logger import get_logger
from linker.core.manifest import ManifestReader
from linker.core.registry import Registry
from linker.cli.utils.formatting import OutputFormatter, FormatterConfig

logger = get_logger("link_command")


class LinkCommand:
    """链接命令处理器"""

    def __init__(
        self,
        directory: Optional[Path] = None,
        registry_path: Optional[Path] = None,
        settings: Optional[Dict[str, Any]] = None,
        id_factory=None,
    ):
        self.directory = Path(directory) if directory else Path.cwd()
        self.settings = settings or ConfigManager.DEFAULT_CONFIG
        self.registry = Registry.load(registry_path)
        self.reader = ManifestReader(
            self.directory,
            filename=self.settings["manifest"]["filename"],
            table=self.settings["manifest"]["table"],
        )
        self.lifecycle = LinkLifecycle(
            self.registry,
            id_factory=id_factory,
            suffix_length=self.settings["instance"]["suffix_length"],
        )

    def execute(self) -> Resolution:
        """读取清单并重新链接当前目录"""
        manifest = self.reader.load()
        return self.lifecycle.link(self.directory, manifest)

    def unlink(self) -> Optional[LinkSet]:
        """拆除当前目录的链接"""
        return self.lifecycle.unlink(self.directory)


@click.command(name="link")
@click.pass_context
def link_cmd(ctx: click.Context) -> None:
    """根据 resource.toml 在当前目录创建链接

    \b
    已有的链接会先被删除，然后按清单重新创建。
    无法解析的条目会被跳过并给出警告。
    """
    obj = ctx.obj or {}
    formatter = OutputFormatter(FormatterConfig(no_color=obj.get('no_color', False)))

    try:
        cmd = LinkCommand(registry_path=obj.get('registry_path'), settings=obj.get('settings'))
        resolution = cmd.execute()
    except SymlinkException as e:
        click.echo(formatter.format_error('symlink_failed', error=e.message), err=True)
        ctx.exit(1)
    except LinkerException as e:
        click.echo(formatter.error(e.message), err=True)
        ctx.exit(1)

    for issue in resolution.issues:
        click.echo(formatter.warning(f"已跳过 {issue}"), err=True)

    for entry in resolution.entries:
        click.echo(formatter.format_link(entry.name, entry.path))

    click.echo(formatter.success(f"已链接 {len(resolution.entries)} 个资源"))


@click.command(name="unlink")
@click.pass_context
def unlink_cmd(ctx: click.Context) -> None:
    """删除当前目录下由 linker 创建的全部链接"""
    obj = ctx.obj or {}
    formatter = OutputFormatter(FormatterConfig(no_color=obj.get('no_color', False)))

    try:
        cmd = LinkCommand(registry_path=obj.get('registry_path'), settings=obj.get('settings'))
        link_set = cmd.unlink()
    except LinkerException as e:
        click.echo(formatter.error(e.message), err=True)
        ctx.exit(1)

    if link_set is None:
        click.echo(formatter.format_error('not_linked'))
        return

    click.echo(formatter.success(f"已删除 {len(link_set)} 个链接"))
