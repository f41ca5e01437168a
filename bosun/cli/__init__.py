import click

from bosun.cli.plugin import plugins
from bosun.cli.registry import registry
from bosun.cli.mapping import mappings
from bosun.cli.stream import streams
from bosun.cli.slot import slots
from bosun.cli.debug import debug
from bosun.cli.config import Config, pass_config


@click.group()
@click.option('-u', '--url', default="http://127.0.0.1:8088", envvar="BOSUN_URL",
              help="Bosun daemon URL")
@click.version_option(package_name="bosun")
@pass_config
def main(config, url):
    config.set_url(url)


main.add_command(plugins)
main.add_command(registry)
main.add_command(mappings)
main.add_command(streams)
main.add_command(slots)
main.add_command(debug)
