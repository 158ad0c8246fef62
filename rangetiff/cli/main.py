"""rangetiff command line tool with subcommands."""

import click
from click_plugins import with_plugins

from rangetiff import __version__
from rangetiff.registered import commands


@with_plugins(commands)
@click.version_option(version=__version__, message="%(version)s")
@click.group()
def main():
    pass
