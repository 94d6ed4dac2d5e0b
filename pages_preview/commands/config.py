import json
import sys
from pathlib import Path

import click

from ..core import github
from ..core.build_detector import load_package_json
from ..core.config_manager import ConfigManager
from ..core.errors import DeployToolError
from ..core.utils import (
    print_success, print_error, print_info, print_warning, print_header
)

EDITABLE_KEYS = {"hostname", "username", "repository", "autoCleanup"}


@click.group()
def config():
    """ Configuration management commands """
    pass


@config.command()
@click.option('--show-all', is_flag=True, help='Show all configuration')
def show(show_all):
    """ Display current configuration """
    try:
        config_manager = ConfigManager()

        if not config_manager.config_exists():
            print_warning("No configuration found")
            print_info("Run 'pages-preview config setup' to create initial configuration")
            return

        config = config_manager.load_config()
        project_dir = Path.cwd()

        print_header("DEPLOYMENT REPOSITORY")
        print_info(f"Server: {config.get('hostname', 'Not configured')}")
        print_info(f"Repository: {config.get('username')}/{config.get('repository')}")
        print_info(f"Auto Cleanup: {config.get('autoCleanup', False)}")
        print_info(f"Created: {config.get('createdAt', 'Unknown')}")

        print_header("THIS PROJECT")
        print_info(f"Project Name: {config_manager.get_project_name(project_dir) or 'Not set'}")
        print_info(f"Last Environment: {config_manager.get_last_environment(project_dir) or 'None'}")

        last = config.get('lastDeployment')
        if last:
            print_header("LAST DEPLOYMENT")
            print_info(f"Project: {last.get('project')}")
            print_info(f"Branch: {last.get('branch')}")
            print_info(f"URL: {last.get('url')}")
            print_info(f"Deployed: {last.get('deployedAt')}")

        if show_all:
            print_header("FULL CONFIGURATION")
            print_info(json.dumps(config, indent=2))

    except DeployToolError as e:
        print_error(f"Failed to show configuration: {e}")
        sys.exit(1)


@config.command()
def setup():
    """Run first-time setup for the current project"""
    try:
        if not github.check_github_cli():
            sys.exit(1)
        hostname = github.check_authentication()
        if not hostname:
            sys.exit(1)

        project_dir = Path.cwd()
        ConfigManager().setup_config(hostname, load_package_json(project_dir), project_dir)

    except DeployToolError as e:
        print_error(f"Setup failed: {e}")
        sys.exit(1)


@config.command()
@click.confirmation_option(prompt='This will reset all configuration. Continue?')
def reset():
    """Reset all configuration"""
    try:
        if ConfigManager().reset_config():
            print_success("Configuration reset successfully")
            print_info("Run 'pages-preview config setup' to create a new configuration")
        else:
            print_info("No configuration found to reset")

    except OSError as e:
        print_error(f"Failed to reset configuration: {e}")
        sys.exit(1)


@config.command(name='set')
@click.argument('key')
@click.argument('value')
def set_value(key, value):
    """Set a configuration value"""
    try:
        config_manager = ConfigManager()

        if not config_manager.config_exists():
            print_error("No configuration found. Run 'pages-preview config setup' first.")
            sys.exit(1)

        if key not in EDITABLE_KEYS:
            print_error(f"Invalid key: '{key}'. Editable keys: {', '.join(sorted(EDITABLE_KEYS))}")
            sys.exit(1)

        config_manager.update_config({key: _parse_value(value)})
        print_success(f"Set {key} = {value}")

    except DeployToolError as e:
        print_error(f"Failed to set configuration: {e}")
        sys.exit(1)


@config.command(name='get')
@click.argument('key')
def get_value(key):
    """Get a configuration value (dot notation, e.g. lastDeployment.url)"""
    try:
        config_manager = ConfigManager()

        if not config_manager.config_exists():
            print_error("No configuration found.")
            sys.exit(1)

        missing = object()
        value = config_manager.get_config_value(key, missing)
        if value is missing:
            print_warning(f"Key '{key}' not found.")
            return

        print_info(f"{key} = {value}")

    except DeployToolError as e:
        print_error(f"Failed to get configuration: {e}")
        sys.exit(1)


def _parse_value(value):
    if value.lower() == "true":
        return True
    elif value.lower() == "false":
        return False
    return value
