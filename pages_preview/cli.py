import click
from colorama import init

from .core.utils import print_header, print_info, set_debug_mode
from .commands.deploy import deploy
from .commands.detect import detect
from .commands.config import config
from .commands.cleanup import cleanup

# Initialize colorama
init()


@click.group()
@click.version_option(version="1.0.0")
@click.option('--debug', '-d', is_flag=True, help='Show detailed output')
@click.pass_context
def cli(ctx, debug):
    """
    Pages Preview - branch previews on GitHub Enterprise Pages

    Every deploy builds the current npm project for the previews
    repository's base path and pushes it to a new branch:

    • deploy  - Build and publish a preview branch
    • detect  - Show how this project would be built
    • config  - Inspect or change the saved configuration
    • cleanup - Delete preview branches older than 4 months
    """
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    set_debug_mode(debug)

    print_header("PAGES PREVIEW")
    print_info("GitHub Enterprise Pages preview deployments")
    click.echo()


# Register commands
cli.add_command(deploy)
cli.add_command(detect)
cli.add_command(config)
cli.add_command(cleanup)


if __name__ == '__main__':
    cli()
