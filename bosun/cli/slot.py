import click
from tabulate import tabulate

from bosun.cli.config import Config, pass_config


@click.command(name="list")
@click.option("--category", "-c", help="only slots in this category")
@pass_config
def cli_list(config: Config, category):
    slots = config.run(config.node.slot_list(category))
    result = [[s['category'], s['slot_type'], s['label'], s['expected_data_type']]
              for s in slots]
    click.echo(tabulate(result,
                        headers=['Category', 'Slot', 'Label', 'Data Type'],
                        tablefmt="fancy_grid"))


@click.group(name="slot")
def slots():
    """Sensor slots of the dashboard"""
    pass  # pragma: no cover


slots.add_command(cli_list)
