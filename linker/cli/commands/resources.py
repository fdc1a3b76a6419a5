"""Linker resources 命令实现

显示已注册的资源表。"""

import click

from linker.core.exceptions import LinkerException
from linker.core.registry import Registry
from linker.cli.utils import OutputFormatter, FormatterConfig


@click.command(name="resources")
@click.pass_context
def resources_cmd(ctx: click.Context) -> None:
    """列出已注册的资源"""
    obj = ctx.obj or {}
    formatter = OutputFormatter(FormatterConfig(no_color=obj.get('no_color', False)))

    try:
        registry = Registry.load(obj.get('registry_path'))
    except LinkerException as e:
        click.echo(formatter.error(e.message), err=True)
        ctx.exit(1)

    resources = registry.resources
    if not resources:
        click.echo(formatter.info("还没有注册任何资源，使用 'linker add <name> <path>' 添加"))
        return

    rows = [[r.name, r.path] for r in resources.values()]
    click.echo(formatter.format_table(["NAME", "PATH"], rows))
