import json
from unittest import mock

import pytest
from git import Repo

from pages_preview.core.errors import DeployError
from pages_preview.core.git_deployer import GitDeployer

BRANCH = "site-20261017-1200-abcdef"


@pytest.fixture
def bare_remote(tmp_path):
    path = tmp_path / "remote.git"
    Repo.init(str(path), bare=True)
    return path


@pytest.fixture
def deployer_for(sample_config, config_manager, bare_remote):
    created = []

    def _make(project, output_dir):
        deployer = GitDeployer(
            sample_config, {"name": "site"}, project, BRANCH, output_dir,
            framework="vite", config_manager=config_manager
        )
        deployer.prepare()
        deployer.repo.remote('origin').set_url(str(bare_remote))
        created.append(deployer)
        return deployer

    yield _make
    for deployer in created:
        deployer.cleanup()


def read_blob(repo, path):
    return (repo.heads[BRANCH].commit.tree / path).data_stream.read().decode('utf-8')


class TestDeploy:
    def test_pushes_output_to_orphan_branch(self, make_project, deployer_for, bare_remote):
        project = make_project({"name": "site"}, {
            "dist/index.html": "<html>home</html>",
            "dist/assets/app.js": "console.log(1)",
        })
        deployer = deployer_for(project, project / "dist")

        deployer.deploy()

        remote = Repo(str(bare_remote))
        assert BRANCH in [head.name for head in remote.heads]
        commit = remote.heads[BRANCH].commit
        assert not commit.parents
        assert commit.message.strip() == f"Deploy site - {BRANCH}"
        names = {item.path for item in commit.tree.traverse()}
        assert {"index.html", "assets/app.js", ".nojekyll", "deploy-info.json"} <= names

        info = json.loads(read_blob(remote, "deploy-info.json"))
        assert info['branch'] == BRANCH
        assert info['buildConfig'] == "vite"

    def test_redirect_index_when_missing(self, make_project, deployer_for, bare_remote):
        project = make_project({"name": "site"}, {"out/about.html": "<html>about</html>"})
        deployer = deployer_for(project, project / "out")

        deployer.deploy()

        index = read_blob(Repo(str(bare_remote)), "index.html")
        assert 'url=about.html' in index

    def test_cleanup_removes_temp_dir(self, make_project, deployer_for):
        project = make_project({"name": "site"}, {"dist/index.html": "x"})
        deployer = deployer_for(project, project / "dist")
        temp_dir = deployer.temp_dir

        deployer.cleanup()

        assert not temp_dir.exists()

    def test_push_failure_is_a_deploy_error(self, make_project, deployer_for, tmp_path):
        project = make_project({"name": "site"}, {"dist/index.html": "x"})
        deployer = deployer_for(project, project / "dist")
        deployer.repo.remote('origin').set_url(str(tmp_path / "missing.git"))

        with pytest.raises(DeployError):
            deployer.deploy()


class TestEnvironmentConfig:
    def test_selected_environment_replaces_config(self, make_project, deployer_for, bare_remote, config_manager):
        project = make_project({"name": "site"}, {
            "dist/index.html": "x",
            "dist/config.js": "window.API = 'dev'",
            "env/staging/config.js": "window.API = 'staging'",
            "env/prod/config.js": "window.API = 'prod'",
        })
        deployer = deployer_for(project, project / "dist")

        with mock.patch("pages_preview.core.git_deployer.click.prompt", return_value="staging"):
            deployer.deploy()

        assert read_blob(Repo(str(bare_remote)), "config.js") == "window.API = 'staging'"
        assert config_manager.get_last_environment(project) == "staging"

    def test_last_environment_is_the_default(self, make_project, deployer_for, config_manager):
        project = make_project({"name": "site"}, {
            "dist/index.html": "x",
            "env/qa/config.js": "qa",
        })
        config_manager.save_last_environment(project, "qa")
        deployer = deployer_for(project, project / "dist")

        with mock.patch("pages_preview.core.git_deployer.click.prompt", return_value="qa") as prompt:
            assert deployer.apply_environment_config() == "qa"

        assert prompt.call_args.kwargs['default'] == "qa"
        assert (deployer.temp_dir / "config.js").read_text() == "qa"

    def test_empty_answer_skips(self, make_project, deployer_for):
        project = make_project({"name": "site"}, {"env/qa/config.js": "qa"})
        deployer = deployer_for(project, project / "dist")

        with mock.patch("pages_preview.core.git_deployer.click.prompt", return_value=""):
            assert deployer.apply_environment_config() is None

        assert not (deployer.temp_dir / "config.js").exists()

    def test_unknown_environment(self, make_project, deployer_for):
        project = make_project({"name": "site"}, {"env/qa/config.js": "qa"})
        deployer = deployer_for(project, project / "dist")

        with mock.patch("pages_preview.core.git_deployer.click.prompt", return_value="prod"):
            with pytest.raises(DeployError, match="does not exist"):
                deployer.apply_environment_config()

    def test_environment_without_config_file(self, make_project, deployer_for):
        project = make_project({"name": "site"}, {"env/qa/settings.json": "{}"})
        deployer = deployer_for(project, project / "dist")

        with mock.patch("pages_preview.core.git_deployer.click.prompt", return_value="qa"):
            with pytest.raises(DeployError, match="config.js not found"):
                deployer.apply_environment_config()

    def test_no_env_directory(self, make_project, deployer_for):
        project = make_project({"name": "site"})
        deployer = deployer_for(project, project / "dist")

        with mock.patch("pages_preview.core.git_deployer.click.prompt") as prompt:
            assert deployer.apply_environment_config() is None

        prompt.assert_not_called()


def test_prepare_requires_hostname(sample_config, tmp_path):
    sample_config['hostname'] = ''
    deployer = GitDeployer(sample_config, {}, tmp_path, BRANCH, tmp_path / "dist")

    with pytest.raises(DeployError):
        deployer.prepare()
