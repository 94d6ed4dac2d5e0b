import json
from pathlib import Path

import pytest

from pages_preview.core import utils
from pages_preview.core.config_manager import ConfigManager


@pytest.fixture(autouse=True)
def reset_debug_mode():
    yield
    utils.set_debug_mode(False)


@pytest.fixture
def make_project(tmp_path):
    """Create an npm project directory with the given package.json and files"""

    def _make(package_json=None, files=None, dirs=None):
        project = tmp_path / "project"
        project.mkdir(exist_ok=True)
        if package_json is not None:
            (project / "package.json").write_text(json.dumps(package_json), encoding="utf-8")
        for name, content in (files or {}).items():
            path = project / name
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content, encoding="utf-8")
        for name in dirs or []:
            (project / name).mkdir(parents=True, exist_ok=True)
        return project

    return _make


@pytest.fixture
def sample_config():
    return {
        "hostname": "ghe.example.com",
        "username": "octo",
        "repository": "gh-pages-previews",
        "createdAt": "2026-01-01T00:00:00+00:00",
        "autoCleanup": False,
        "projectNames": {},
        "projectEnvironments": {},
    }


@pytest.fixture
def config_manager(tmp_path, sample_config):
    manager = ConfigManager(config_file=str(tmp_path / "pages-preview.json"))
    manager.save_config(sample_config)
    return manager


@pytest.fixture
def snapshot():
    """Map of relative path -> bytes for every file under a directory"""

    def _snapshot(project: Path):
        return {
            str(p.relative_to(project)): p.read_bytes()
            for p in sorted(project.rglob("*")) if p.is_file()
        }

    return _snapshot
