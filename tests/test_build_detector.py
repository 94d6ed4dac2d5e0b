from unittest import mock

import pytest

from pages_preview.core.build_detector import (
    BuildDetector, Framework, load_package_json, safe_relative_dir
)
from pages_preview.core.errors import ManifestError


class TestNextDetection:
    def test_export_config_defaults_to_out(self, make_project):
        project = make_project(
            {"name": "site"},
            {"next.config.js": "module.exports = { output: 'export' };\n"}
        )
        profile = BuildDetector.from_project(project).detect()

        assert profile.framework == Framework.NEXT
        assert profile.output_dir == "out"
        assert profile.config_file == "next.config.js"
        assert profile.requires_static_export is True

    def test_custom_dist_dir(self, make_project):
        project = make_project(
            {"name": "site"},
            {"next.config.js": "module.exports = { distDir: 'custom-out' };\n"}
        )
        profile = BuildDetector.from_project(project).detect()

        assert profile.output_dir == "custom-out"
        assert profile.requires_static_export is False

    def test_server_config_uses_dot_next(self, make_project):
        project = make_project(
            {"name": "site"},
            {"next.config.mjs": "export default { reactStrictMode: true };\n"}
        )
        profile = BuildDetector.from_project(project).detect()

        assert profile.output_dir == ".next"
        assert profile.config_file == "next.config.mjs"

    def test_next_wins_over_vite(self, make_project):
        project = make_project(
            {"name": "site", "devDependencies": {"vite": "^5.0.0"}},
            {
                "next.config.js": "module.exports = {};\n",
                "vite.config.js": "export default {};\n",
            }
        )
        assert BuildDetector.from_project(project).detect().framework == Framework.NEXT

    def test_unreadable_config_falls_back_to_out(self, make_project):
        project = make_project({"name": "site"}, {"next.config.js": b"\xff\xfe\x00bad"})
        profile = BuildDetector.from_project(project).detect()

        assert profile.framework == Framework.NEXT
        assert profile.output_dir == "out"

    def test_dist_dir_outside_project_is_ignored(self, make_project):
        project = make_project(
            {"name": "site"},
            {"next.config.js": "module.exports = { output: 'export', distDir: '../../etc' };\n"}
        )
        assert BuildDetector.from_project(project).detect().output_dir == "out"


class TestViteDetection:
    def test_config_file_with_build_out_dir(self, make_project):
        project = make_project(
            {"name": "app"},
            {"vite.config.ts": "export default defineConfig({\n  build: { outDir: 'web-dist' }\n});\n"}
        )
        profile = BuildDetector.from_project(project).detect()

        assert profile.framework == Framework.VITE
        assert profile.output_dir == "web-dist"
        assert profile.config_file == "vite.config.ts"

    def test_dev_dependency_without_config(self, make_project):
        project = make_project({"name": "app", "devDependencies": {"vite": "^5.0.0"}})
        profile = BuildDetector.from_project(project).detect()

        assert profile.framework == Framework.VITE
        assert profile.output_dir == "dist"
        assert profile.config_file is None

    def test_vite_wins_over_react_scripts(self, make_project):
        project = make_project({
            "name": "app",
            "dependencies": {"react-scripts": "5.0.1"},
            "devDependencies": {"vite": "^5.0.0"},
        })
        assert BuildDetector.from_project(project).detect().framework == Framework.VITE


class TestReactDetection:
    def test_default_build_dir(self, make_project):
        project = make_project({"name": "cra", "dependencies": {"react-scripts": "5.0.1"}})
        profile = BuildDetector.from_project(project).detect()

        assert profile.framework == Framework.REACT_CRA
        assert profile.output_dir == "build"
        assert profile.build_command == "npm run build"

    def test_build_path_in_script(self, make_project):
        project = make_project({
            "name": "cra",
            "dependencies": {"react-scripts": "5.0.1"},
            "scripts": {"build": "BUILD_PATH=./www react-scripts build"},
        })
        assert BuildDetector.from_project(project).detect().output_dir == "www"

    def test_build_path_in_env_file(self, make_project):
        project = make_project(
            {"name": "cra", "dependencies": {"react-scripts": "5.0.1"}},
            {".env.production": "GENERATE_SOURCEMAP=false\nBUILD_PATH=static-build\n"}
        )
        assert BuildDetector.from_project(project).detect().output_dir == "static-build"


class TestGenericDetection:
    def test_empty_manifest_defaults_to_dist(self, tmp_path):
        profile = BuildDetector(tmp_path, {}).detect()

        assert profile.framework == Framework.GENERIC
        assert profile.output_dir == "dist"

    def test_script_hint(self, make_project):
        project = make_project({"name": "lib", "scripts": {"build": "webpack --output-path public"}})
        assert BuildDetector.from_project(project).detect().output_dir == "public"

    def test_hint_needs_whole_word(self, make_project):
        project = make_project(
            {"name": "lib", "scripts": {"build": "eleventy --config=.eleventy.js --distribution"}},
            dirs=["_site"]
        )
        assert BuildDetector.from_project(project).detect().output_dir == "_site"

    def test_existing_directory(self, make_project):
        project = make_project({"name": "lib", "scripts": {"build": "make"}}, dirs=["docs"])
        assert BuildDetector.from_project(project).detect().output_dir == "docs"

    def test_mistyped_sections_are_ignored(self, tmp_path):
        detector = BuildDetector(tmp_path, {"scripts": "npm", "dependencies": ["react-scripts"]})
        assert detector.detect().framework == Framework.GENERIC


class TestManifest:
    def test_missing_package_json(self, tmp_path):
        with pytest.raises(ManifestError):
            load_package_json(tmp_path)

    def test_invalid_json(self, make_project):
        project = make_project(files={"package.json": "{ not json"})
        with pytest.raises(ManifestError):
            BuildDetector.from_project(project)

    def test_non_object_manifest(self, make_project):
        project = make_project(files={"package.json": "[1, 2]"})
        with pytest.raises(ManifestError):
            load_package_json(project)

    def test_undecodable_manifest(self, make_project):
        project = make_project(files={"package.json": b'{"name": "\xff"}'})
        with pytest.raises(ManifestError, match="Could not read"):
            load_package_json(project)

    def test_unreadable_manifest(self, make_project):
        project = make_project({"name": "app"})
        with mock.patch("pages_preview.core.utils.open", side_effect=PermissionError("denied"), create=True):
            with pytest.raises(ManifestError, match="denied"):
                load_package_json(project)


@pytest.mark.parametrize("candidate,expected", [
    ("dist", "dist"),
    ("./build/web", "build/web"),
    ("'out'", "out"),
    ("/var/www", None),
    ("C:\\site", None),
    ("../outside", None),
    ("a/../../b", None),
    ("", None),
])
def test_safe_relative_dir(candidate, expected):
    assert safe_relative_dir(candidate) == expected
