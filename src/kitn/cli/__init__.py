"""
cli:
    Command line entry point for kitn
"""

import click

from kitn import __version__
from kitn.cli.add import add_command, update_command
from kitn.cli.browse import diff_command, info_command, list_command
from kitn.cli.init import init_command
from kitn.cli.registry import registry
from kitn.cli.remove import remove_command


@click.group()
@click.version_option(__version__, prog_name='kitn')
def main():
    """
    Install AI agent components from the kitn registry.

    Components (agents, tools, skills, storage adapters and packages) are
    copied into your project as source files and tracked in kitn.json.
    """
    pass


main.add_command(init_command)
main.add_command(add_command)
main.add_command(add_command, name='install')
main.add_command(update_command)
main.add_command(remove_command)
main.add_command(remove_command, name='uninstall')
main.add_command(list_command)
main.add_command(info_command)
main.add_command(diff_command)
main.add_command(registry)
