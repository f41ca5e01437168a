import click
from tabulate import tabulate

from bosun.cli.config import Config, pass_config


@click.command(name="list")
@click.option("--data-type", "-t", help="only streams of this data type")
@pass_config
def cli_list(config: Config, data_type):
    streams = config.run(config.node.stream_list(data_type))
    result = [[s['plugin_id'], s['stream_id'], s['stream_name'], s['data_type']]
              for s in streams]
    click.echo(tabulate(result,
                        headers=['Plugin', 'Stream', 'Name', 'Data Type'],
                        tablefmt="fancy_grid"))


@click.group(name="stream")
def streams():
    """Streams offered by enabled drivers"""
    pass  # pragma: no cover


streams.add_command(cli_list)
