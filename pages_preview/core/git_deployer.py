import json
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

import click
from git import Repo
from git.exc import GitCommandError

from .config_manager import ConfigManager
from .errors import DeployError
from .utils import (
    print_info, print_debug, print_success, print_warning, print_step,
    copy_directory_contents, create_temp_directory, clean_directory
)
from ..config.constants import (
    GIT_USER_NAME, GIT_USER_EMAIL, ENV_CONFIG_DIR, ENV_CONFIG_FILE
)

REDIRECT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta http-equiv="refresh" content="0; url={target}">
  <title>Redirecting...</title>
</head>
<body>
  <p>Redirecting to <a href="{target}">{target}</a>...</p>
</body>
</html>
"""


class GitDeployer:
    """Pushes build output to a fresh orphan branch of the previews repository"""

    def __init__(self, config: Dict, package_json: Dict, project_dir: Path,
                 branch_name: str, output_dir: Path,
                 framework: str = 'generic',
                 config_manager: Optional[ConfigManager] = None):
        self.config = config
        self.package_json = package_json
        self.project_dir = Path(project_dir)
        self.branch_name = branch_name
        self.output_dir = Path(output_dir)
        self.framework = framework
        self.config_manager = config_manager or ConfigManager()
        self.temp_dir: Optional[Path] = None
        self.repo: Optional[Repo] = None

    @property
    def remote_url(self) -> str:
        hostname = self.config.get('hostname')
        if not hostname:
            raise DeployError("No enterprise hostname configured")
        return f"https://{hostname}/{self.config['username']}/{self.config['repository']}.git"

    def prepare(self) -> None:
        """Create a temporary git repository pointed at the previews remote"""
        remote_url = self.remote_url

        print_info("Setting up temporary deployment repository...")
        self.temp_dir = create_temp_directory("pages-preview-deploy-")
        self.repo = Repo.init(str(self.temp_dir))

        with self.repo.config_writer() as writer:
            writer.set_value('user', 'name', GIT_USER_NAME)
            writer.set_value('user', 'email', GIT_USER_EMAIL)

        self.repo.create_remote('origin', remote_url)

    def deploy(self) -> None:
        """Copy output, commit and push the preview branch"""
        if self.repo is None:
            self.prepare()

        print_step("PUSH", f"Preparing deployment to branch: {self.branch_name}")
        try:
            self.repo.git.checkout('--orphan', self.branch_name)

            copy_directory_contents(self.output_dir, self.temp_dir)
            self.apply_environment_config()
            self._write_static_extras()

            self.repo.git.add(A=True)
            project = self.package_json.get('name') or 'project'
            self.repo.index.commit(f"Deploy {project} - {self.branch_name}")

            print_debug("Pushing to GitHub...")
            self.repo.git.push('-u', 'origin', self.branch_name)
        except GitCommandError as e:
            raise DeployError(f"Failed to push branch {self.branch_name}: {e}")

        print_success(f"Pushed branch {self.branch_name}")

    def _write_static_extras(self) -> None:
        # Pages would otherwise run Jekyll and drop _next/ and friends
        (self.temp_dir / '.nojekyll').write_text('', encoding='utf-8')

        index = self.temp_dir / 'index.html'
        if not index.exists():
            html_files = sorted(p.name for p in self.temp_dir.glob('*.html'))
            if html_files:
                print_debug("No index.html found, creating redirect...")
                index.write_text(REDIRECT_TEMPLATE.format(target=html_files[0]), encoding='utf-8')

        deploy_info = {
            'project': self.package_json.get('name') or 'Unknown',
            'deployedAt': datetime.now(timezone.utc).isoformat(),
            'branch': self.branch_name,
            'buildConfig': self.framework
        }
        (self.temp_dir / 'deploy-info.json').write_text(json.dumps(deploy_info, indent=2), encoding='utf-8')

    def apply_environment_config(self) -> Optional[str]:
        """Replace config.js in the output with env/<name>/config.js"""
        env_base = self.project_dir / ENV_CONFIG_DIR
        if not env_base.is_dir():
            print_debug("No env directory found, skipping config replacement")
            return None

        env_dirs = sorted(p.name for p in env_base.iterdir() if p.is_dir())
        if not env_dirs:
            print_debug("No directories found in env folder, skipping config replacement")
            return None

        print_info(f"Found environment directories in {ENV_CONFIG_DIR}/: {', '.join(env_dirs)}")

        last_used = self.config_manager.get_last_environment(self.project_dir)
        default = last_used if last_used in env_dirs else ''
        selected = click.prompt("Environment directory name", default=default, show_default=bool(default)).strip()
        if not selected:
            print_info("No environment selected, skipping config replacement")
            return None

        env_path = env_base / selected
        if not env_path.is_dir():
            raise DeployError(f"Environment directory '{ENV_CONFIG_DIR}/{selected}' does not exist")

        source = env_path / ENV_CONFIG_FILE
        if not source.is_file():
            raise DeployError(f"{ENV_CONFIG_FILE} not found in '{ENV_CONFIG_DIR}/{selected}' directory")

        destination = self.temp_dir / ENV_CONFIG_FILE
        if not destination.exists():
            print_warning(f"{ENV_CONFIG_FILE} not found in build output, copying anyway...")

        shutil.copy2(source, destination)
        print_success(f"Replaced {ENV_CONFIG_FILE} with version from '{ENV_CONFIG_DIR}/{selected}'")

        self.config_manager.save_last_environment(self.project_dir, selected)
        return selected

    def cleanup(self) -> None:
        """Remove the temporary repository"""
        if self.repo is not None:
            self.repo.close()
        if self.temp_dir and self.temp_dir.exists():
            try:
                clean_directory(self.temp_dir)
            except OSError:
                print_warning("Could not clean up temporary files")
