"""Shared fixtures for app-level tests."""
import pytest
from dependency_injector import providers

from autofix_runner.app.config import AppConfig, DirectoryConfig, GitHubConfig, LoggingConfig
from autofix_runner.app.container import Container

from fakes import (
    FakeCodeHost,
    FakeGit,
    FakeRunner,
    FakeTokenProvider,
    command_result,
    cookstyle_json,
    raw_offense,
    remote_repo,
)


class Fakes:
    """Adapters the mocked container hands out instead of GitHub, git and the linter."""

    def __init__(self):
        self.code_host = FakeCodeHost([remote_repo("alpha"), remote_repo("beta")])
        self.git = FakeGit()
        self.runner = FakeRunner({
            "--display-cop-names": command_result(
                exit_code=1,
                stdout=cookstyle_json({"recipes/default.rb": [raw_offense(correctable=True)]}),
            ),
            "--autocorrect-all": command_result(exit_code=0, args=("cookstyle", "--autocorrect-all")),
        })
        self.token_provider = FakeTokenProvider(token="test-token")


def _create_mocked_container(fakes: Fakes) -> Container:
    container = Container()
    container.github.override(providers.Object(fakes.code_host))
    container.git.override(providers.Object(fakes.git))
    container.command_runner.override(providers.Object(fakes.runner))
    container.token_provider.override(providers.Object(fakes.token_provider))
    return container


@pytest.fixture
def test_config(tmp_path):
    """Create test configuration with explicit values."""
    return AppConfig(
        directories=DirectoryConfig(home=tmp_path),
        github=GitHubConfig(token="test-token", owner="acme", topics=["chef-cookbook"]),
        logging=LoggingConfig(console_output=False),
    )


@pytest.fixture
def cli_env(tmp_path, monkeypatch):
    """Environment the CLI loads its AppConfig from."""
    monkeypatch.setenv("AUTOFIX_RUNNER_DIRECTORIES__HOME", str(tmp_path))
    monkeypatch.setenv("AUTOFIX_RUNNER_GITHUB__TOKEN", "ghp-secret-value")
    monkeypatch.setenv("AUTOFIX_RUNNER_GITHUB__OWNER", "acme")
    monkeypatch.setenv("AUTOFIX_RUNNER_GITHUB__TOPICS", "chef-cookbook")
    monkeypatch.setenv("AUTOFIX_RUNNER_LOGGING__CONSOLE_OUTPUT", "false")
    return tmp_path


@pytest.fixture
def fakes():
    return Fakes()


@pytest.fixture
def mock_container(fakes, monkeypatch):
    """Patch Container in the CLI and the facade so no network or subprocess is touched."""
    monkeypatch.setattr("autofix_runner.app.cli.Container", lambda: _create_mocked_container(fakes))
    monkeypatch.setattr("autofix_runner.app.main.Container", lambda: _create_mocked_container(fakes))
    return fakes
