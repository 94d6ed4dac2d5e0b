import shlex
from pathlib import Path
from typing import Dict, Optional, Tuple

from .build_detector import BuildDetector, BuildProfile, Framework
from .config_patcher import ConfigPatcher
from .errors import DeployToolError
from .utils import (
    print_info, print_step, print_success, run_command,
    format_file_size, get_directory_size
)
from ..config.constants import BUILD_TIMEOUT, NEXT_EXPORT_DIR, NEXT_SERVER_DIR


class BuildManager:
    """Detects, patches, builds and restores a project in one pass"""

    def __init__(self, project_dir: Path, package_json: Optional[Dict] = None):
        self.project_dir = Path(project_dir)
        self.package_json = package_json
        self.patcher = ConfigPatcher(self.project_dir)

    def detect(self) -> BuildProfile:
        """Detect build profile; a broken package.json is fatal"""
        if self.package_json is None:
            detector = BuildDetector.from_project(self.project_dir)
            self.package_json = detector.package_json
        else:
            detector = BuildDetector(self.project_dir, self.package_json)
        return detector.detect()

    def build_and_prepare_for_deployment(self, base_path: str) -> Tuple[Path, Dict]:
        """Complete build pipeline"""
        profile = self.detect()

        print_step("ANALYZE", f"Framework: {profile.framework.value}")
        print_info(f"Build directory: {self.deploy_dir_name(profile)}")

        output_dir = self.build(profile, base_path)

        file_count = sum(1 for f in output_dir.rglob('*') if f.is_file())
        build_size = get_directory_size(output_dir)
        print_success(f"Build completed: {file_count} files, {format_file_size(build_size)}")

        build_info = {
            'framework': profile.framework.value,
            'output_dir': self.deploy_dir_name(profile),
            'build_dir': str(output_dir),
            'total_files': file_count,
            'total_size_formatted': format_file_size(build_size)
        }
        return output_dir, build_info

    def build(self, profile: BuildProfile, base_path: str) -> Path:
        """Run the build command with the config patched for base_path"""
        print_step("BUILD", f"Building project using: {profile.build_command}")

        # Restore runs even if the build fails or is interrupted
        with self.patcher.patched(profile, base_path):
            run_command(
                shlex.split(profile.build_command),
                cwd=str(self.project_dir),
                timeout=BUILD_TIMEOUT
            )

        output_dir = self.project_dir / self.deploy_dir_name(profile)
        if not self._verify_build(output_dir):
            raise DeployToolError(f"Build output directory '{self.deploy_dir_name(profile)}' not found or empty")

        print_success(f"Build completed. Output in: {self.deploy_dir_name(profile)}")
        return output_dir

    @staticmethod
    def deploy_dir_name(profile: BuildProfile) -> str:
        """Directory that holds static files after a patched build"""
        # The patch forces static export, so Next.js never deploys .next
        if profile.framework == Framework.NEXT and profile.output_dir == NEXT_SERVER_DIR:
            return NEXT_EXPORT_DIR
        return profile.output_dir

    def _verify_build(self, build_dir: Path) -> bool:
        """Verify build has content"""
        if not build_dir.is_dir():
            return False
        return any(f.is_file() for f in build_dir.rglob('*'))
