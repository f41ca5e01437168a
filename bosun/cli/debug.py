import json

import click
from tabulate import tabulate

from bosun.cli.config import Config, pass_config
from bosun.utilities import human_to_timestamp, timestamp_to_human


@click.command(name="debug")
@click.option("--since", help="only values received after this time")
@click.option("--limit", "-n", type=int, help="maximum number of values")
@pass_config
def debug(config: Config, since, limit):
    """Show the latest raw values received from drivers"""
    if since is not None:
        try:
            since = human_to_timestamp(since)
        except ValueError:
            raise click.ClickException("invalid --since time, use a date or \"5 minutes ago\"")
    resp = config.run(config.node.debug_recent(since, limit))
    result = []
    for entry in resp['entries']:
        result.append([timestamp_to_human(entry['timestamp']), entry['plugin_id'],
                       entry['stream_id'], entry['data_type'] or "",
                       json.dumps(entry['value'])])
    click.echo(tabulate(result,
                        headers=['Time', 'Plugin', 'Stream', 'Data Type', 'Value'],
                        tablefmt="fancy_grid"))
    stats = resp['stats']
    click.echo("accepted %d, unmapped %d, unknown %d, malformed %d, out of order %d, overflow %d" %
               (stats['accepted'], stats['unmapped'], stats['unknown'],
                stats['malformed'], stats['out_of_order'], stats['overflow']))
