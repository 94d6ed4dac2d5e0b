import json
from unittest import mock

import pytest

from pages_preview.core.config_manager import ConfigManager
from pages_preview.core.errors import DeployToolError


class TestPersistence:
    def test_missing_file(self, tmp_path):
        manager = ConfigManager(config_file=str(tmp_path / "none.json"))

        assert manager.config_exists() is False
        with pytest.raises(DeployToolError):
            manager.load_config()

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{ nope")

        with pytest.raises(DeployToolError, match="Invalid JSON"):
            ConfigManager(config_file=str(path)).load_config()

    def test_update_is_a_deep_merge(self, config_manager):
        config_manager.update_config({'lastDeployment': {'branch': 'a'}})
        config_manager.update_config({'lastDeployment': {'url': 'https://x'}})

        stored = json.loads(config_manager.config_file.read_text())
        assert stored['lastDeployment'] == {'branch': 'a', 'url': 'https://x'}
        assert stored['repository'] == 'gh-pages-previews'

    def test_get_config_value_dot_path(self, config_manager):
        config_manager.update_config({'lastDeployment': {'url': 'https://x'}})

        fresh = ConfigManager(config_file=str(config_manager.config_file))
        assert fresh.get_config_value('lastDeployment.url') == 'https://x'
        assert fresh.get_config_value('lastDeployment.missing', 'n/a') == 'n/a'

    def test_reset(self, config_manager):
        assert config_manager.reset_config() is True
        assert config_manager.config_exists() is False
        assert config_manager.reset_config() is False


class TestProjectValues:
    def test_names_and_environments_are_per_directory(self, config_manager, tmp_path):
        first, second = tmp_path / "a", tmp_path / "b"
        first.mkdir()
        second.mkdir()

        config_manager.save_project_name(first, "alpha")
        config_manager.save_last_environment(first, "staging")

        assert config_manager.get_project_name(first) == "alpha"
        assert config_manager.get_last_environment(first) == "staging"
        assert config_manager.get_project_name(second) is None

    def test_ensure_project_name_prompts_once(self, config_manager, tmp_path):
        with mock.patch("pages_preview.core.config_manager.click.prompt", return_value="chosen") as prompt:
            assert config_manager.ensure_project_name({"name": "pkg"}, tmp_path) == "chosen"
            assert config_manager.ensure_project_name({"name": "pkg"}, tmp_path) == "chosen"

        prompt.assert_called_once()
        assert prompt.call_args.kwargs['default'] == "pkg"


class TestSetup:
    def test_creates_repository_when_missing(self, tmp_path):
        manager = ConfigManager(config_file=str(tmp_path / "cfg.json"))
        project = tmp_path / "app"
        project.mkdir()

        with mock.patch("pages_preview.core.config_manager.github") as github, \
                mock.patch("pages_preview.core.config_manager.click.prompt",
                           side_effect=["my-app", "previews"]), \
                mock.patch("pages_preview.core.config_manager.click.confirm", return_value=True):
            github.get_username.return_value = "octo"
            github.repo_exists.return_value = False

            config = manager.setup_config("ghe.example.com", {"name": "@scope/my-app"}, project)

        github.create_deployment_repo.assert_called_once_with("ghe.example.com", "octo", "previews")
        assert config['repository'] == "previews"
        assert config['autoCleanup'] is True
        assert manager.get_project_name(project) == "my-app"
        assert json.loads(manager.config_file.read_text())['hostname'] == "ghe.example.com"

    def test_reuses_existing_repository(self, tmp_path):
        manager = ConfigManager(config_file=str(tmp_path / "cfg.json"))

        with mock.patch("pages_preview.core.config_manager.github") as github, \
                mock.patch("pages_preview.core.config_manager.click.prompt",
                           side_effect=["app", "gh-pages-previews"]), \
                mock.patch("pages_preview.core.config_manager.click.confirm", return_value=False):
            github.get_username.return_value = "octo"
            github.repo_exists.return_value = True

            manager.setup_config("ghe.example.com", {}, tmp_path)

        github.create_deployment_repo.assert_not_called()
