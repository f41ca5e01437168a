import click
from tabulate import tabulate

from bosun.api import Node
from bosun.cli.config import Config, pass_config


@click.command(name="list")
@click.option("--refresh", "-r", is_flag=True, help="fetch the registry first")
@pass_config
def cli_list(config: Config, refresh):
    config.run(_run_list(config.node, refresh))


async def _run_list(node: Node, refresh: bool):
    resp = await node.registry_list(refresh)
    result = []
    for entry in resp['plugins']:
        if entry['hasUpdate']:
            state = "update available"
        elif entry['isInstalled']:
            state = "installed"
        else:
            state = ""
        result.append([entry['id'], entry['name'], entry['latestVersion'],
                       entry['author'], entry['flag'] or "", state])
    click.echo(tabulate(result,
                        headers=['ID', 'Name', 'Latest', 'Author', 'Flag', 'State'],
                        tablefmt="fancy_grid"))
    if resp['last_error'] is not None:
        click.echo("registry error: %s" % resp['last_error'], err=True)


@click.command(name="install")
@click.argument("plugin_id")
@click.option("--version", help="version to install, defaults to the latest")
@pass_config
def cli_install(config: Config, plugin_id, version):
    """Install or update a plugin from the registry"""
    plugin = config.run(config.node.registry_install(plugin_id, version))
    click.echo("installed [%s] version %s" % (plugin['id'], plugin['installed_version']))


@click.group(name="registry")
def registry():
    """Browse the plugin marketplace"""
    pass  # pragma: no cover


registry.add_command(cli_list)
registry.add_command(cli_install)
