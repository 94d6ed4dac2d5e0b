import sys
from pathlib import Path

import click

from ..core.build_detector import BuildDetector
from ..core.build_manager import BuildManager
from ..core.errors import DeployToolError
from ..core.utils import print_error, print_info, print_step


@click.command()
@click.option('--path', 'project_path', default='.', type=click.Path(file_okay=False),
              help='Project directory (defaults to the current one)')
def detect(project_path):
    """Show the detected framework and build output for a project"""
    try:
        project_dir = Path(project_path).resolve()
        profile = BuildDetector.from_project(project_dir).detect()

        print_step("DETECT", f"Analyzing {project_dir}")
        print_info(f"Framework: {profile.framework.value}")
        print_info(f"Build command: {profile.build_command}")
        print_info(f"Output directory: {profile.output_dir}")
        if BuildManager.deploy_dir_name(profile) != profile.output_dir:
            print_info(f"Deployed from: {BuildManager.deploy_dir_name(profile)} (static export)")
        print_info(f"Config file: {profile.config_file or 'none'}")
        print_info(f"Static export: {'yes' if profile.requires_static_export else 'no'}")

    except DeployToolError as e:
        print_error(str(e))
        sys.exit(1)
