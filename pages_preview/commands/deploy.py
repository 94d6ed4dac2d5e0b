import sys
from pathlib import Path

import click

from ..core import github
from ..core.build_detector import load_package_json
from ..core.build_manager import BuildManager
from ..core.cleanup_manager import CleanupManager
from ..core.config_manager import ConfigManager
from ..core.errors import DeployToolError
from ..core.git_deployer import GitDeployer
from ..core.pages_manager import PagesManager
from ..core.utils import (
    print_success, print_error, print_info, print_warning, print_step,
    generate_branch_name
)
from ..config.constants import DEFAULT_PREVIEWS_REPO


@click.command()
@click.option('--build-only', is_flag=True, help='Only build, do not deploy')
@click.pass_context
def deploy(ctx, build_only):
    """
    Build the current project and publish it as a preview branch

    Example: pages-preview deploy
    Example: pages-preview deploy --build-only
    """
    project_dir = Path.cwd()
    git_deployer = None
    try:
        print_step("DEPLOY", "Starting GitHub Pages deployment...")
        package_json = load_package_json(project_dir)
        config_manager = ConfigManager()

        if build_only:
            repository = DEFAULT_PREVIEWS_REPO
            if config_manager.config_exists():
                repository = config_manager.load_config().get('repository') or repository
            build_manager = BuildManager(project_dir, package_json)
            _, build_info = build_manager.build_and_prepare_for_deployment(f"/{repository}")
            print_success("Build completed successfully")
            print_info(f"Framework: {build_info['framework']}")
            print_info(f"Files: {build_info['total_files']}")
            print_info(f"Size: {build_info['total_size_formatted']}")
            return

        # Pre-flight checks
        if not github.check_github_cli():
            sys.exit(1)
        hostname = github.check_authentication()
        if not hostname:
            sys.exit(1)
        print_info(f"Connected to GitHub Enterprise Server: {hostname}")

        if config_manager.config_exists():
            config = config_manager.load_config()
            print_info(f"Using deployment repository: {config['username']}/{config['repository']}")
            project_name = config_manager.ensure_project_name(package_json, project_dir)
        else:
            config = config_manager.setup_config(hostname, package_json, project_dir)
            project_name = config_manager.get_project_name(project_dir)

        branch_name = generate_branch_name(project_name or package_json.get('name') or project_dir.name)
        print_info(f"Branch: {branch_name}")

        # Step 1: Temporary repository
        print_step("1/4", "Preparing repository...")
        build_manager = BuildManager(project_dir, package_json)
        profile = build_manager.detect()
        git_deployer = GitDeployer(
            config, package_json, project_dir, branch_name,
            project_dir / build_manager.deploy_dir_name(profile),
            framework=profile.framework.value,
            config_manager=config_manager
        )
        git_deployer.prepare()

        # Step 2: Build with the base path patched in
        print_step("2/4", "Building project...")
        build_manager.build(profile, f"/{config['repository']}")

        # Step 3: Push the preview branch
        print_step("3/4", "Deploying branch...")
        git_deployer.deploy()

        # Step 4: Point Pages at it
        print_step("4/4", "Configuring GitHub Pages...")
        PagesManager(config, package_json, branch_name, config_manager).enable_pages()

        if config.get('autoCleanup'):
            try:
                CleanupManager(config).cleanup_old_branches(auto_mode=True)
            except DeployToolError as e:
                print_warning(f"Auto-cleanup failed: {e}")

    except KeyboardInterrupt:
        print_warning("Deployment interrupted by user")
        sys.exit(1)

    except Exception as e:
        print_error(f"Deployment failed: {str(e)}")
        sys.exit(1)

    finally:
        if git_deployer is not None:
            git_deployer.cleanup()
