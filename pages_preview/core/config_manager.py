import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional

import click

from . import github
from .errors import DeployToolError
from .utils import print_info, print_success, print_warning
from ..config.constants import CONFIG_FILE, DEFAULT_PREVIEWS_REPO


class ConfigManager:
    """Manages the global preview deployment configuration"""

    def __init__(self, config_file: str = CONFIG_FILE):
        self.config_file = Path(config_file)
        self.config_data: Optional[Dict[str, Any]] = None

    def config_exists(self) -> bool:
        """Check if configuration file exists"""
        return self.config_file.exists()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file"""
        if not self.config_exists():
            raise DeployToolError(f"Configuration file {self.config_file} not found")

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                self.config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise DeployToolError(f"Invalid JSON in configuration file: {str(e)}")
        except (OSError, UnicodeDecodeError) as e:
            raise DeployToolError(f"Failed to load configuration: {str(e)}")

        return self.config_data

    def save_config(self, config: Dict[str, Any]) -> None:
        """Save configuration to file"""
        try:
            self.config_data = config
            with open(self.config_file, 'w', encoding='utf-8') as f:
                json.dump(config, f, indent=2, sort_keys=True)
        except (OSError, TypeError) as e:
            raise DeployToolError(f"Failed to save configuration: {str(e)}")

    def reset_config(self) -> bool:
        """Delete the configuration file; False when there was none"""
        self.config_data = None
        if not self.config_exists():
            return False
        self.config_file.unlink()
        return True

    def update_config(self, updates: Dict[str, Any]) -> None:
        """Update specific configuration values"""
        if not self.config_data:
            self.config_data = self.load_config()

        def deep_update(original: dict, updates: dict) -> dict:
            """Recursively update nested dictionaries"""
            for key, value in updates.items():
                if isinstance(value, dict) and key in original and isinstance(original[key], dict):
                    deep_update(original[key], value)
                else:
                    original[key] = value
            return original

        deep_update(self.config_data, updates)
        self.save_config(self.config_data)

    def get_config_value(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'lastDeployment.url')"""
        if not self.config_data:
            self.config_data = self.load_config()

        keys = key_path.split('.')
        value = self.config_data

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    # Per-project values are keyed by absolute project directory

    @staticmethod
    def project_key(project_dir: Path) -> str:
        return str(Path(project_dir).resolve())

    def get_project_name(self, project_dir: Path) -> Optional[str]:
        return self.get_config_value('projectNames', {}).get(self.project_key(project_dir))

    def save_project_name(self, project_dir: Path, name: str) -> None:
        self.update_config({'projectNames': {self.project_key(project_dir): name}})

    def get_last_environment(self, project_dir: Path) -> Optional[str]:
        return self.get_config_value('projectEnvironments', {}).get(self.project_key(project_dir))

    def save_last_environment(self, project_dir: Path, environment: str) -> None:
        self.update_config({'projectEnvironments': {self.project_key(project_dir): environment}})

    def setup_config(self, hostname: str, package_json: Dict, project_dir: Path) -> Dict[str, Any]:
        """Interactive first-run setup; creates the previews repository if needed"""
        print_info("First time setup - configuring deployment repository...")
        username = github.get_username(hostname)

        print_info("A repository will store all your preview deployments.")
        print_info("Each deployment is a separate branch in this repository.")
        print_info(f"GitHub Enterprise Server: {hostname}")

        default_name = package_json.get('name') or Path(project_dir).resolve().name
        project_name = click.prompt("Project name for branch naming", default=default_name)
        repo_name = click.prompt("Repository name", default=DEFAULT_PREVIEWS_REPO)
        auto_cleanup = click.confirm("Enable automatic cleanup of branches older than 4 months?", default=False)

        if github.repo_exists(hostname, username, repo_name):
            print_success(f"Repository {username}/{repo_name} already exists, will use it.")
        else:
            print_info(f"Creating repository {username}/{repo_name}...")
            github.create_deployment_repo(hostname, username, repo_name)

        config = {
            'username': username,
            'repository': repo_name,
            'hostname': hostname,
            'createdAt': datetime.now(timezone.utc).isoformat(),
            'autoCleanup': auto_cleanup,
            'projectNames': {self.project_key(project_dir): project_name},
            'projectEnvironments': {}
        }
        self.save_config(config)

        print_success(f"Configuration saved to {self.config_file}")
        print_info(f"Project name \"{project_name}\" saved for this directory")
        return config

    def ensure_project_name(self, package_json: Dict, project_dir: Path) -> str:
        """Return the stored project name, prompting once when missing"""
        name = self.get_project_name(project_dir)
        if name:
            print_info(f"Using project name: {name}")
            return name

        print_warning("No project name set for this directory.")
        default_name = package_json.get('name') or Path(project_dir).resolve().name
        name = click.prompt("Project name for branch naming", default=default_name)
        self.save_project_name(project_dir, name)
        print_info(f"Project name \"{name}\" saved for this directory")
        return name
