from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

from . import github
from .config_manager import ConfigManager
from .errors import CommandError, DeployError
from .utils import print_debug, print_info, print_success, print_warning, print_step


@dataclass
class PagesResult:
    pages_url: str
    repo_url: str
    configured: bool


class PagesManager:
    """Points the previews repository's Pages site at a deployment branch"""

    def __init__(self, config: Dict, package_json: Dict, branch_name: str,
                 config_manager: Optional[ConfigManager] = None):
        self.config = config
        self.package_json = package_json
        self.branch_name = branch_name
        self.config_manager = config_manager or ConfigManager()

    @property
    def api_path(self) -> str:
        return f"repos/{self.config['username']}/{self.config['repository']}/pages"

    def _source_args(self, method: str):
        return ['api', self.api_path, '-X', method,
                '-f', f"source[branch]={self.branch_name}",
                '-f', 'source[path]=/']

    def enable_pages(self) -> PagesResult:
        """Configure Pages; failure here is reported but not fatal"""
        hostname = self.config.get('hostname')
        if not hostname:
            raise DeployError("No enterprise hostname configured")

        print_step("PAGES", "Setting up GitHub Enterprise Pages deployment...")
        username, repository = self.config['username'], self.config['repository']
        result = PagesResult(
            pages_url=github.pages_url(hostname, username, repository),
            repo_url=f"{github.repo_url(hostname, username, repository)}/tree/{self.branch_name}",
            configured=self._configure_source(hostname)
        )

        self.config['lastDeployment'] = {
            'branch': self.branch_name,
            'url': result.pages_url,
            'deployedAt': datetime.now(timezone.utc).isoformat(),
            'project': self.package_json.get('name') or 'Unknown',
            'hostname': hostname
        }
        self.config_manager.save_config(self.config)

        if result.configured:
            print_success("Deployment complete!")
            print_info(f"Preview: {result.pages_url}")
            print_info(f"Branch: {self.branch_name}")
        else:
            print_warning("GitHub Pages setup failed, but deployment succeeded")
            print_info(f"Branch: {self.branch_name}")
            print_info(f"Manual setup: {result.repo_url.replace('/tree/' + self.branch_name, '/settings/pages')}")
        return result

    def _configure_source(self, hostname: str) -> bool:
        try:
            current = github.gh_json(['api', self.api_path], hostname)
            print_debug(f"Current pages source: {current.get('source', {}).get('branch', 'unknown')}")
            method = 'PUT'
        except (CommandError, DeployError, AttributeError):
            print_debug("No existing pages configuration found")
            method = 'POST'

        try:
            github.gh(self._source_args(method), hostname)
            print_debug(f"GitHub Pages source set to branch: {self.branch_name} ({method})")
            return True
        except CommandError as e:
            print_debug(f"{method} request failed: {e}")

        return self._configure_source_graphql(hostname)

    def _configure_source_graphql(self, hostname: str) -> bool:
        print_debug("Attempting alternative pages configuration...")
        mutation = (
            'mutation { updateRepository(input: {'
            f' repositoryId: "{self.config["username"]}/{self.config["repository"]}"'
            f' pagesConfig: {{ source: {{ branch: "{self.branch_name}" path: "/" }} }}'
            ' }) { repository { id } } }'
        )
        try:
            github.gh(['api', 'graphql', '-f', f"query={mutation}"], hostname)
            print_debug("GitHub Pages configured via GraphQL")
            return True
        except CommandError as e:
            print_debug(f"GraphQL approach failed: {e}")
            return False
