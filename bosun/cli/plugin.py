import json

import click
from tabulate import tabulate

from bosun.api import Node
from bosun.cli.config import Config, pass_config


@click.command(name="list")
@pass_config
def cli_list(config: Config):
    config.run(_run_list(config.node))


async def _run_list(node: Node):
    plugins = await node.plugin_list()
    result = []
    for plugin in plugins:
        manifest = plugin['manifest']
        status = plugin['status']
        if plugin['error'] is not None:
            status = "%s: %s" % (status, plugin['error'])
        builtin = "yes" if manifest['builtin'] else ""
        result.append([plugin['id'], manifest['name'], plugin['installed_version'],
                       manifest['type'], builtin, status])
    click.echo(tabulate(result,
                        headers=['ID', 'Name', 'Version', 'Type', 'Builtin', 'Status'],
                        tablefmt="fancy_grid"))


@click.command(name="install")
@click.argument("manifest", type=click.File('r'))
@pass_config
def cli_install(config: Config, manifest):
    """Install a plugin from a MANIFEST file"""
    try:
        data = json.load(manifest)
    except ValueError as e:
        raise click.ClickException("invalid manifest file: %s" % e) from e
    plugin = config.run(config.node.plugin_install(data))
    click.echo("installed [%s] version %s" % (plugin['id'], plugin['installed_version']))


@click.command(name="uninstall")
@click.argument("plugin_id")
@click.option("--yes", is_flag=True, help="do not ask for confirmation")
@pass_config
def cli_uninstall(config: Config, plugin_id, yes):
    """Uninstall a plugin and remove its mappings"""
    if not yes:
        click.confirm("Uninstall plugin [%s] and remove its mappings?" % plugin_id, abort=True)
    config.run(config.node.plugin_uninstall(plugin_id))
    click.echo("OK")


@click.command(name="enable")
@click.argument("plugin_id")
@pass_config
def cli_enable(config: Config, plugin_id):
    plugin = config.run(config.node.plugin_enable(plugin_id))
    click.echo("[%s] is %s" % (plugin['id'], plugin['status']))


@click.command(name="disable")
@click.argument("plugin_id")
@pass_config
def cli_disable(config: Config, plugin_id):
    plugin = config.run(config.node.plugin_disable(plugin_id))
    click.echo("[%s] is %s" % (plugin['id'], plugin['status']))


@click.group(name="plugin")
def plugins():
    """Manage installed plugins"""
    pass  # pragma: no cover


plugins.add_command(cli_list)
plugins.add_command(cli_install)
plugins.add_command(cli_uninstall)
plugins.add_command(cli_enable)
plugins.add_command(cli_disable)
