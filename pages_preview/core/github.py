"""Thin wrappers around the GitHub CLI for an Enterprise Server host"""

import json
import re
from typing import Any, List, Optional

from git import Repo
from git.exc import GitCommandError

from .errors import CommandError, DeployError
from .utils import (
    print_error, print_info, check_command_exists, command_env, run_command,
    create_temp_directory, clean_directory
)
from ..config.constants import GIT_USER_NAME, GIT_USER_EMAIL


def gh(args: List[str], hostname: Optional[str] = None, timeout: int = 120) -> str:
    """Run a gh command against hostname and return its stdout"""
    env = command_env(GH_HOST=hostname) if hostname else None
    result = run_command(['gh'] + args, capture_output=True, timeout=timeout, env=env)
    return result.stdout or ''


def gh_json(args: List[str], hostname: Optional[str] = None) -> Any:
    output = gh(args, hostname)
    try:
        return json.loads(output)
    except json.JSONDecodeError as e:
        raise DeployError(f"Unexpected response from gh {' '.join(args)}: {e}")


def check_github_cli() -> bool:
    """Check the gh CLI is installed"""
    if check_command_exists('gh'):
        return True
    print_error("GitHub CLI (gh) is required but not installed.")
    print_info("Install it from: https://cli.github.com/")
    return False


def check_authentication() -> Optional[str]:
    """Return the authenticated Enterprise hostname, or None"""
    try:
        result = run_command(['gh', 'auth', 'status'], capture_output=True, timeout=30)
        output = (result.stdout or '') + (result.stderr or '')
    except CommandError:
        print_error("Not authenticated with GitHub Enterprise Server.")
        print_info("Please authenticate: gh auth login --hostname your-enterprise-server.com")
        return None

    match = re.search(r'Logged in to (\S+)', output)
    if not match:
        print_error("Could not determine GitHub hostname from authentication status.")
        return None

    hostname = match.group(1)
    if hostname == 'github.com':
        print_error("This tool only works with GitHub Enterprise Server.")
        print_info("Please authenticate: gh auth login --hostname your-enterprise-server.com")
        return None
    return hostname


def get_username(hostname: str) -> str:
    try:
        return gh(['api', 'user', '--jq', '.login'], hostname).strip()
    except CommandError as e:
        raise DeployError(f"Could not get GitHub username. Make sure you are authenticated with gh: {e}")


def repo_exists(hostname: str, username: str, repo_name: str) -> bool:
    try:
        gh(['repo', 'view', f"{username}/{repo_name}"], hostname)
        return True
    except CommandError:
        return False


def repo_url(hostname: str, username: str, repo_name: str) -> str:
    return f"https://{hostname}/{username}/{repo_name}"


def pages_url(hostname: str, username: str, repo_name: str) -> str:
    return f"https://{hostname}/pages/{username}/{repo_name}/"


def create_deployment_repo(hostname: str, username: str, repo_name: str) -> None:
    """Create the previews repository and push an initial README"""
    if not hostname:
        raise DeployError("No enterprise hostname configured")

    temp_dir = None
    try:
        gh(['repo', 'create', repo_name, '--public',
            '--description', 'Auto-deployed previews from pages-preview'], hostname)

        temp_dir = create_temp_directory("pages-preview-setup-")
        repo = Repo.clone_from(f"{repo_url(hostname, username, repo_name)}.git", str(temp_dir))
        with repo.config_writer() as writer:
            writer.set_value('user', 'name', GIT_USER_NAME)
            writer.set_value('user', 'email', GIT_USER_EMAIL)

        readme = temp_dir / 'README.md'
        readme.write_text(
            "# Preview Deployments\n\n"
            "This repository contains auto-deployed previews created with `pages-preview`.\n\n"
            "Each branch is one deployment:\n"
            "- Branch names follow the pattern `{project-name}-{timestamp}-{hash}`\n"
            "- The most recent deployment is served by GitHub Pages\n"
            f"- View deployments at: {pages_url(hostname, username, repo_name)}\n",
            encoding='utf-8'
        )

        repo.index.add(['README.md'])
        repo.index.commit("Initial setup for preview deployments")
        repo.git.branch('-M', 'main')
        repo.git.push('-u', 'origin', 'main')
    except (CommandError, GitCommandError) as e:
        raise DeployError(f"Failed to create deployment repository: {e}")
    finally:
        if temp_dir:
            clean_directory(temp_dir)
