import sys

import click

from ..core import github
from ..core.cleanup_manager import CleanupManager
from ..core.config_manager import ConfigManager
from ..core.utils import print_error, print_info, print_warning


@click.command()
@click.option('--auto', 'auto_mode', is_flag=True, help='Delete without asking for confirmation')
def cleanup(auto_mode):
    """
    Delete preview branches older than 4 months

    Example: pages-preview cleanup
    Example: pages-preview cleanup --auto
    """
    try:
        config_manager = ConfigManager()
        if not config_manager.config_exists():
            print_error("No configuration found")
            print_info("Run 'pages-preview config setup' first")
            sys.exit(1)

        if not github.check_github_cli():
            sys.exit(1)

        config = config_manager.load_config()
        CleanupManager(config).cleanup_old_branches(auto_mode=auto_mode)

    except KeyboardInterrupt:
        print_warning("Cleanup interrupted by user")
        sys.exit(1)

    except Exception as e:
        print_error(f"Cleanup failed: {str(e)}")
        sys.exit(1)
