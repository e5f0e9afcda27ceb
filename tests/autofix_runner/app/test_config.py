"""Tests for Pydantic BaseSettings configuration."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from autofix_runner.app.config import (
    AppConfig,
    CacheConfig,
    DirectoryConfig,
    GitConfig,
    GitHubConfig,
    LoggingConfig,
    ProcessingConfig,
)


def test_directory_config_computed_paths(tmp_path):
    """Test that computed paths are created automatically."""
    config = DirectoryConfig(home=tmp_path)

    assert config.cache_dir == tmp_path / "cache"
    assert config.workspace_dir == tmp_path / "repos"
    assert config.logs_dir == tmp_path / "logs"

    assert config.cache_dir.exists()
    assert config.workspace_dir.exists()
    assert config.logs_dir.exists()


def test_defaults():
    config = AppConfig()

    assert config.github.token is None
    assert config.github.api_url == "https://api.github.com"
    assert config.github.max_retries == 3
    assert config.git.branch_name == "cookstyle-fixes"
    assert config.git.default_branch == "main"
    assert config.artifacts.pr_title == "Cookstyle Automated Changes"
    assert config.artifacts.issue_title == "Manual Cookstyle Fixes Required"
    assert config.artifacts.labels == ["cookstyle", "automated"]
    assert config.lint.command == "cookstyle"
    assert config.cache.enabled is True
    assert config.cache.max_age_days == 7
    assert config.processing.thread_count == 4
    assert config.processing.dry_run is False
    assert config.logging.level == "INFO"


def test_env_nested_values(monkeypatch, tmp_path):
    monkeypatch.setenv("AUTOFIX_RUNNER_DIRECTORIES__HOME", str(tmp_path))
    monkeypatch.setenv("AUTOFIX_RUNNER_GITHUB__TOKEN", "ghp_test")
    monkeypatch.setenv("AUTOFIX_RUNNER_GITHUB__OWNER", "acme")
    monkeypatch.setenv("AUTOFIX_RUNNER_PROCESSING__THREAD_COUNT", "8")
    monkeypatch.setenv("AUTOFIX_RUNNER_CACHE__MAX_AGE_DAYS", "1.5")
    monkeypatch.setenv("AUTOFIX_RUNNER_PROCESSING__DRY_RUN", "true")

    config = AppConfig()

    assert config.directories.home == Path(tmp_path)
    assert config.github.token == "ghp_test"
    assert config.github.owner == "acme"
    assert config.processing.thread_count == 8
    assert config.cache.max_age_days == 1.5
    assert config.processing.dry_run is True


def test_env_comma_lists(monkeypatch):
    monkeypatch.setenv("AUTOFIX_RUNNER_GITHUB__TOPICS", "chef-cookbook, cookbooks")
    monkeypatch.setenv("AUTOFIX_RUNNER_ARTIFACTS__LABELS", "lint,bot,")
    monkeypatch.setenv("AUTOFIX_RUNNER_PROCESSING__EXCLUDE_REPOS", "legacy")
    monkeypatch.setenv("AUTOFIX_RUNNER_CACHE__FORCE_REFRESH_REPOS", "acme/alpha,beta")

    config = AppConfig()

    assert config.github.topics == ["chef-cookbook", "cookbooks"]
    assert config.artifacts.labels == ["lint", "bot"]
    assert config.processing.exclude_repos == ["legacy"]
    assert config.cache.force_refresh_repos == ["acme/alpha", "beta"]


def test_lists_accept_python_values():
    assert ProcessingConfig(include_repos=["a", "b"]).include_repos == ["a", "b"]
    assert GitHubConfig(topics="x,y").topics == ["x", "y"]


def test_log_level_is_normalized():
    assert LoggingConfig(level="debug").level == "DEBUG"
    with pytest.raises(ValidationError):
        LoggingConfig(level="verbose")


@pytest.mark.parametrize("branch", ["", "   ", "fix branch"])
def test_branch_names_are_validated(branch):
    with pytest.raises(ValidationError):
        GitConfig(branch_name=branch)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"thread_count": 0},
        {"unknown_option": True},
    ],
)
def test_processing_rejects_bad_values(kwargs):
    with pytest.raises(ValidationError):
        ProcessingConfig(**kwargs)


def test_cache_ttl_must_be_positive():
    with pytest.raises(ValidationError):
        CacheConfig(max_age_days=0)


def test_config_is_frozen(tmp_path):
    config = AppConfig(directories=DirectoryConfig(home=tmp_path))
    with pytest.raises(ValidationError):
        config.processing.thread_count = 2


def test_model_copy_overrides_section(tmp_path):
    config = AppConfig(directories=DirectoryConfig(home=tmp_path))
    updated = config.model_copy(update={"processing": config.processing.model_copy(update={"dry_run": True})})

    assert updated.processing.dry_run is True
    assert config.processing.dry_run is False
