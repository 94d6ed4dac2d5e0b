import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Dict, Optional

from .errors import DeployToolError, ManifestError
from .utils import print_debug, load_json_file
from ..config.constants import (
    PACKAGE_JSON, BUILD_COMMAND,
    NEXT_CONFIG_FILES, NEXT_EXPORT_DIR, NEXT_SERVER_DIR,
    VITE_CONFIG_FILES, VITE_OUTPUT_DIR,
    REACT_SCRIPTS_PACKAGE, REACT_OUTPUT_DIR, REACT_ENV_FILES,
    GENERIC_OUTPUT_DIRS, GENERIC_OUTPUT_DIR
)

_QUOTED = r"['\"`]([^'\"`]+)['\"`]"

NEXT_DIST_DIR_RE = re.compile(r"distDir\s*:\s*" + _QUOTED)
NEXT_EXPORT_RE = re.compile(r"output\s*:\s*['\"`]export['\"`]")
NEXT_OUT_DIR_RE = re.compile(r"outDir\s*:\s*" + _QUOTED)
VITE_BUILD_OUT_DIR_RE = re.compile(r"build\s*:\s*\{[^}]*outDir\s*:\s*" + _QUOTED, re.DOTALL)
VITE_OUT_DIR_RE = re.compile(r"outDir\s*:\s*" + _QUOTED)
BUILD_PATH_RE = re.compile(r"BUILD_PATH=(\S+)")


class Framework(str, Enum):
    NEXT = "next"
    VITE = "vite"
    REACT_CRA = "react"
    GENERIC = "generic"


@dataclass(frozen=True)
class BuildProfile:
    """Result of build detection for one project directory"""
    framework: Framework
    output_dir: str
    build_command: str = BUILD_COMMAND
    config_file: Optional[str] = None
    requires_static_export: bool = False


def load_package_json(project_dir: Path) -> Dict:
    """Read package.json; anything unreadable is fatal for detection"""
    manifest_path = Path(project_dir) / PACKAGE_JSON
    if not manifest_path.is_file():
        raise ManifestError(f"No {PACKAGE_JSON} found in {project_dir}. Are you in an npm project?")

    try:
        package_json = load_json_file(manifest_path)
    except DeployToolError as e:
        raise ManifestError(str(e))

    if not isinstance(package_json, dict):
        raise ManifestError(f"Invalid {PACKAGE_JSON} in {project_dir}: expected a JSON object")
    return package_json


def safe_relative_dir(candidate: Optional[str]) -> Optional[str]:
    """Return candidate normalised if it stays inside the project, else None"""
    if not candidate:
        return None

    value = candidate.strip().strip('\'"').replace('\\', '/')
    if not value or value.startswith('/') or re.match(r'^[A-Za-z]:', value):
        return None

    parts = [p for p in PurePosixPath(value).parts if p != '.']
    if not parts or '..' in parts:
        return None
    return '/'.join(parts)


class BuildDetector:
    """Classifies a project into a single BuildProfile.

    Signals are checked in a fixed priority order (Next.js, Vite, Create
    React App, generic) because several can coexist in one project.
    """

    def __init__(self, project_dir: Path, package_json: Optional[Dict] = None):
        self.project_dir = Path(project_dir)
        self.package_json = package_json or {}

    @classmethod
    def from_project(cls, project_dir: Path) -> "BuildDetector":
        return cls(project_dir, load_package_json(project_dir))

    def detect(self) -> BuildProfile:
        """Detect framework and output directory"""
        return (
            self.find_next_config()
            or self.find_vite_config()
            or self.find_react_config()
            or self.find_generic_config()
        )

    # Manifest accessors: missing or mistyped fields are treated as absent

    def _section(self, name: str) -> Dict:
        value = self.package_json.get(name)
        return value if isinstance(value, dict) else {}

    @property
    def build_script(self) -> str:
        script = self._section('scripts').get('build')
        return script if isinstance(script, str) else ''

    def _find_file(self, candidates) -> Optional[str]:
        for name in candidates:
            if (self.project_dir / name).is_file():
                return name
        return None

    def _read(self, name: str) -> str:
        return (self.project_dir / name).read_text(encoding='utf-8')

    # Next.js

    def find_next_config(self) -> Optional[BuildProfile]:
        config_file = self._find_file(NEXT_CONFIG_FILES)
        if not config_file:
            return None

        print_debug(f"Detected Next.js project ({config_file})")
        output_dir, static_export = self.parse_next_config(config_file)
        return BuildProfile(
            framework=Framework.NEXT,
            output_dir=output_dir,
            config_file=config_file,
            requires_static_export=static_export
        )

    def parse_next_config(self, config_file: str):
        """Return (output_dir, static_export) from a Next.js config file"""
        try:
            content = self._read(config_file)
        except (OSError, UnicodeDecodeError) as e:
            print_debug(f"Could not parse {config_file} ({e}), using default output directory")
            return NEXT_EXPORT_DIR, False

        static_export = bool(NEXT_EXPORT_RE.search(content))

        dist_dir = NEXT_DIST_DIR_RE.search(content)
        if dist_dir:
            resolved = safe_relative_dir(dist_dir.group(1))
            if resolved:
                print_debug(f"Found custom distDir: {resolved}")
                return resolved, static_export
            print_debug(f"Ignoring distDir outside the project: {dist_dir.group(1)}")

        if static_export:
            out_dir = NEXT_OUT_DIR_RE.search(content)
            resolved = safe_relative_dir(out_dir.group(1)) if out_dir else None
            if resolved:
                print_debug(f"Found custom outDir for export: {resolved}")
                return resolved, True
            return NEXT_EXPORT_DIR, True

        return NEXT_SERVER_DIR, False

    # Vite

    def find_vite_config(self) -> Optional[BuildProfile]:
        config_file = self._find_file(VITE_CONFIG_FILES)
        if not config_file and 'vite' not in self._section('devDependencies'):
            return None

        print_debug(f"Detected Vite project{f' ({config_file})' if config_file else ''}")
        output_dir = self.parse_vite_config(config_file) if config_file else VITE_OUTPUT_DIR
        return BuildProfile(
            framework=Framework.VITE,
            output_dir=output_dir,
            config_file=config_file
        )

    def parse_vite_config(self, config_file: str) -> str:
        try:
            content = self._read(config_file)
        except (OSError, UnicodeDecodeError) as e:
            print_debug(f"Could not parse {config_file} ({e}), using default output directory")
            return VITE_OUTPUT_DIR

        match = VITE_BUILD_OUT_DIR_RE.search(content) or VITE_OUT_DIR_RE.search(content)
        resolved = safe_relative_dir(match.group(1)) if match else None
        if resolved:
            print_debug(f"Found custom outDir: {resolved}")
            return resolved
        return VITE_OUTPUT_DIR

    # Create React App

    def find_react_config(self) -> Optional[BuildProfile]:
        if REACT_SCRIPTS_PACKAGE not in self._section('dependencies'):
            return None

        print_debug("Detected Create React App project")
        return BuildProfile(
            framework=Framework.REACT_CRA,
            output_dir=self.parse_react_config()
        )

    def parse_react_config(self) -> str:
        # BUILD_PATH inline in the build script wins over .env files
        match = BUILD_PATH_RE.search(self.build_script)
        resolved = safe_relative_dir(match.group(1)) if match else None
        if resolved:
            print_debug(f"Found custom BUILD_PATH: {resolved}")
            return resolved

        for env_file in REACT_ENV_FILES:
            if not (self.project_dir / env_file).is_file():
                continue
            try:
                match = BUILD_PATH_RE.search(self._read(env_file))
            except (OSError, UnicodeDecodeError) as e:
                print_debug(f"Could not read {env_file}: {e}")
                continue
            resolved = safe_relative_dir(match.group(1)) if match else None
            if resolved:
                print_debug(f"Found BUILD_PATH in {env_file}: {resolved}")
                return resolved

        return REACT_OUTPUT_DIR

    # Anything else

    def find_generic_config(self) -> BuildProfile:
        script = self.build_script

        # A hint only: the name may appear in an unrelated flag
        for candidate in GENERIC_OUTPUT_DIRS:
            if re.search(rf'(?<![\w.-]){re.escape(candidate)}(?![\w-])', script):
                print_debug(f"Detected generic project with inferred output: {candidate}")
                return BuildProfile(framework=Framework.GENERIC, output_dir=candidate)

        for candidate in GENERIC_OUTPUT_DIRS:
            if (self.project_dir / candidate).is_dir():
                print_debug(f"Detected generic project, found existing directory: {candidate}")
                return BuildProfile(framework=Framework.GENERIC, output_dir=candidate)

        print_debug("Detected generic project")
        return BuildProfile(framework=Framework.GENERIC, output_dir=GENERIC_OUTPUT_DIR)
