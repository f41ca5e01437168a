import click
from tabulate import tabulate

from bosun.api import Node
from bosun.cli.config import Config, pass_config
from bosun.utilities import timestamp_to_human


@click.command(name="list")
@click.option("--all", "-a", "show_all", is_flag=True, help="include inactive mappings")
@pass_config
def cli_list(config: Config, show_all):
    config.run(_run_list(config.node, show_all))


async def _run_list(node: Node, show_all: bool):
    mappings = await node.mapping_list()
    result = []
    for mapping in mappings:
        if not mapping['active'] and not show_all:
            continue
        if mapping['last_update'] is None:
            last_update = "\u2014"
        else:
            last_update = timestamp_to_human(mapping['last_update'])
        freshness = mapping['freshness']
        if freshness is None:
            state = "inactive"
        elif freshness['severity'] != 'none':
            state = "%s (%s)" % (freshness['state'], freshness['severity'])
        else:
            state = freshness['state']
        result.append([mapping['slot_type'], mapping['plugin_id'], mapping['stream_id'],
                       last_update, state])
    click.echo(tabulate(result,
                        headers=['Slot', 'Plugin', 'Stream', 'Last Update', 'State'],
                        tablefmt="fancy_grid"))


@click.command(name="bind")
@click.argument("slot_type")
@click.argument("plugin_id")
@click.argument("stream_id")
@pass_config
def cli_bind(config: Config, slot_type, plugin_id, stream_id):
    """Route STREAM_ID of PLUGIN_ID to SLOT_TYPE"""
    config.run(config.node.mapping_bind(slot_type, plugin_id, stream_id))
    click.echo("OK")


@click.command(name="unbind")
@click.argument("slot_type")
@click.argument("plugin_id")
@click.argument("stream_id")
@pass_config
def cli_unbind(config: Config, slot_type, plugin_id, stream_id):
    removed = config.run(config.node.mapping_unbind(slot_type, plugin_id, stream_id))
    if removed:
        click.echo("OK")
    else:
        click.echo("[%s] is not mapped to [%s:%s]" % (slot_type, plugin_id, stream_id))


@click.command(name="auto")
@click.argument("plugin_id")
@pass_config
def cli_auto(config: Config, plugin_id):
    """Map the streams of PLUGIN_ID to unambiguous slots"""
    created = config.run(config.node.mapping_auto(plugin_id))
    click.echo("created %d mapping(s)" % created)


@click.command(name="clear")
@click.option("--yes", is_flag=True, help="do not ask for confirmation")
@pass_config
def cli_clear(config: Config, yes):
    """Remove every active mapping"""
    if not yes:
        click.confirm("Remove all sensor mappings?", abort=True)
    removed = config.run(config.node.mapping_clear())
    click.echo("removed %d mapping(s)" % removed)


@click.group(name="mapping")
def mappings():
    """Route plugin streams to sensor slots"""
    pass  # pragma: no cover


mappings.add_command(cli_list)
mappings.add_command(cli_bind)
mappings.add_command(cli_unbind)
mappings.add_command(cli_auto)
mappings.add_command(cli_clear)
