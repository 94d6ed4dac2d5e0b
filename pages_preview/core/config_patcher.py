from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

from .build_detector import BuildProfile, Framework
from .config_parser import ConfigParser
from .errors import PatchError, PatchStateError, RestoreError
from .utils import print_debug, print_error, print_info
from ..config.constants import (
    NEXT_DEFAULT_CONFIG_FILE, REACT_OVERRIDE_ENV_FILE
)

# Record value for a file that did not exist before configure()
CREATED = None


class ConfigPatcher:
    """Temporarily rewrites framework config for a subdirectory build.

    Every touched file is snapshotted (full original bytes, or CREATED) before
    it is written, so restore() never depends on how well the rewrite went.
    """

    def __init__(self, project_dir: Path, parser: Optional[ConfigParser] = None):
        self.project_dir = Path(project_dir)
        self.parser = parser or ConfigParser()
        self._records: Optional[Dict[str, Optional[bytes]]] = None

    @property
    def is_active(self) -> bool:
        return self._records is not None

    @property
    def records(self) -> Dict[str, Optional[bytes]]:
        return dict(self._records or {})

    def configure(self, profile: BuildProfile, base_path: str) -> None:
        """Patch the project so assets resolve under base_path"""
        if self.is_active:
            raise PatchStateError("configure() called again before restore()")

        self._records = {}
        print_debug(f"Configuring base path: {base_path}")

        if profile.framework == Framework.NEXT:
            self._configure_next(profile, base_path)
        elif profile.framework == Framework.VITE:
            self._configure_vite(profile, base_path)
        elif profile.framework == Framework.REACT_CRA:
            self._configure_react(base_path)
        else:
            print_info("Generic project - asset paths may need manual configuration")

    def restore(self) -> None:
        """Put every touched file back; a no-op when nothing is recorded"""
        records, self._records = self._records or {}, None
        if not records:
            return

        print_debug("Restoring original configuration files...")
        failures: Dict[str, str] = {}

        for name, original in records.items():
            path = self.project_dir / name
            try:
                if original is CREATED:
                    path.unlink(missing_ok=True)
                    print_debug(f"Removed temporary {name}")
                else:
                    path.write_bytes(original)
                    print_debug(f"Restored {name}")
            except OSError as e:
                failures[name] = str(e)

        if failures:
            raise RestoreError(failures)

    @contextmanager
    def patched(self, profile: BuildProfile, base_path: str) -> Iterator["ConfigPatcher"]:
        """configure() on entry, restore() exactly once on exit"""
        if self.is_active:
            raise PatchStateError("A patch cycle is already outstanding")
        failure = None
        try:
            self.configure(profile, base_path)
            yield self
        except BaseException as e:
            failure = e
            raise
        finally:
            try:
                self.restore()
            except RestoreError as restore_error:
                if failure is None:
                    raise
                # RestoreError replaces the build error on the way out
                print_error(f"Build step failed before restore: {failure}")
                raise restore_error from failure

    # File primitives

    def _read_original(self, name: str) -> Optional[bytes]:
        path = self.project_dir / name
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise PatchError(name, str(e))

    def _write(self, name: str, original: Optional[bytes], content: str) -> None:
        # Record before writing so a failed write is still restorable
        self._records[name] = original
        try:
            (self.project_dir / name).write_bytes(content.encode('utf-8'))
        except OSError as e:
            raise PatchError(name, str(e))

    @staticmethod
    def _decode(name: str, original: bytes) -> str:
        try:
            return original.decode('utf-8')
        except UnicodeDecodeError as e:
            raise PatchError(name, f"not valid UTF-8 ({e})")

    # Framework handlers

    def _configure_next(self, profile: BuildProfile, base_path: str) -> None:
        name = profile.config_file or NEXT_DEFAULT_CONFIG_FILE
        original = self._read_original(name)

        if original is None:
            self._write(name, CREATED, self.parser.generate_next_config(base_path))
            print_debug(f"Created temporary {name} for deployment")
            return

        content = self.parser.generate_next_config(base_path, self._decode(name, original))
        self._write(name, original, content)
        print_debug(f"Temporarily modified {name} for deployment")

    def _configure_vite(self, profile: BuildProfile, base_path: str) -> None:
        name = profile.config_file
        if name is None:
            is_typescript = (self.project_dir / 'tsconfig.json').exists()
            name = 'vite.config.ts' if is_typescript else 'vite.config.js'

        is_typescript = name.endswith('.ts')
        original = self._read_original(name)

        if original is None:
            self._write(name, CREATED, self.parser.generate_vite_config(base_path, is_typescript))
            print_debug(f"Created temporary {name} for deployment")
            return

        content = self.parser.generate_vite_config(
            base_path, is_typescript, self._decode(name, original)
        )
        self._write(name, original, content)
        print_debug(f"Temporarily modified {name} for deployment")

    def _configure_react(self, base_path: str) -> None:
        name = REACT_OVERRIDE_ENV_FILE
        original = self._read_original(name)

        if original is None:
            self._write(name, CREATED, self.parser.generate_react_env_config(base_path))
        else:
            content = self.parser.generate_react_env_config(base_path, self._decode(name, original))
            self._write(name, original, content)
        print_debug("Temporarily set PUBLIC_URL for Create React App deployment")
