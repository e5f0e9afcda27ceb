from __future__ import annotations

from pathlib import Path
from typing import Annotated

from platformdirs import PlatformDirs
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


APP_NAME = "autofix_runner"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

CommaList = Annotated[list[str], NoDecode]


def _default_home() -> Path:
    """Get default home directory using platformdirs."""
    return Path(PlatformDirs(appname=APP_NAME, appauthor=False).user_cache_dir)


def _split_commas(value: object) -> object:
    """Accept ``a,b,c`` strings from the environment as lists."""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class _Section(BaseModel):
    """Nested settings block, populated from AppConfig's environment source."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class DirectoryConfig(_Section):
    """Directory configuration with computed paths."""

    home: Path = Field(
        default_factory=_default_home,
        description="Base directory for all autofix_runner data",
    )

    @computed_field
    @property
    def cache_dir(self) -> Path:
        """Directory holding cache.json."""
        path = self.home / "cache"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @computed_field
    @property
    def workspace_dir(self) -> Path:
        """Root of the per-repository working trees."""
        path = self.home / "repos"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @computed_field
    @property
    def logs_dir(self) -> Path:
        path = self.home / "logs"
        path.mkdir(parents=True, exist_ok=True)
        return path


class GitHubConfig(_Section):
    """GitHub access: either a token or a GitHub App identity."""

    token: str | None = Field(default=None, description="Personal access token")
    app_id: str | None = Field(default=None, description="GitHub App ID")
    installation_id: str | None = Field(default=None, description="GitHub App installation ID")
    private_key: str | None = Field(
        default=None,
        description="GitHub App private key, PEM content or path to a .pem file",
    )
    api_url: str = Field(default="https://api.github.com", description="REST API endpoint")
    host: str = Field(default="github.com", description="Git host used in clone URLs")
    owner: str | None = Field(default=None, description="Organization whose repositories are processed")
    topics: CommaList = Field(default_factory=list, description="Repository topics to search for")
    request_timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=1, description="Attempts per API call, including the first")

    @field_validator("topics", mode="before")
    @classmethod
    def _split_topics(cls, value: object) -> object:
        return _split_commas(value)


class GitConfig(_Section):
    author_name: str = Field(default="Autofix Bot", description="Commit author name")
    author_email: str = Field(default="autofix-bot@users.noreply.github.com", description="Commit author email")
    branch_name: str = Field(default="cookstyle-fixes", description="Disposable fix branch")
    default_branch: str = Field(default="main", description="Base branch to lint and target with PRs")
    commit_message: str = Field(default="Cookstyle auto-corrections")
    timeout: float = Field(default=600, gt=0, description="Seconds allowed for fetch and push")

    @field_validator("branch_name", "default_branch")
    @classmethod
    def _no_blank_branch(cls, value: str) -> str:
        value = value.strip()
        if not value or " " in value:
            raise ValueError("branch names must be non-empty and contain no spaces")
        return value


class ArtifactConfig(_Section):
    pr_title: str = Field(default="Cookstyle Automated Changes")
    issue_title: str = Field(default="Manual Cookstyle Fixes Required")
    labels: CommaList = Field(default_factory=lambda: ["cookstyle", "automated"])
    create_manual_fix_issues: bool = Field(default=True)
    dedupe_issues: bool = Field(
        default=True,
        description="Reuse an open issue with the same title instead of opening another",
    )

    @field_validator("labels", mode="before")
    @classmethod
    def _split_labels(cls, value: object) -> object:
        return _split_commas(value)


class LintConfig(_Section):
    command: str = Field(default="cookstyle", description="Linter executable")
    tool_name: str = Field(default="Cookstyle", description="Name shown in PR and issue bodies")
    timeout: float = Field(default=300, gt=0, description="Seconds allowed per linter run")


class CacheConfig(_Section):
    enabled: bool = Field(default=True)
    max_age_days: float = Field(default=7, gt=0, description="Cache entry TTL in days")
    force_refresh: bool = Field(default=False)
    force_refresh_repos: CommaList = Field(default_factory=list)

    @field_validator("force_refresh_repos", mode="before")
    @classmethod
    def _split_force(cls, value: object) -> object:
        return _split_commas(value)


class ProcessingConfig(_Section):
    thread_count: int = Field(default=4, ge=1)
    filter_repos: CommaList = Field(default_factory=list, description="Name substrings to keep")
    include_repos: CommaList = Field(default_factory=list, description="Exact names to keep")
    exclude_repos: CommaList = Field(default_factory=list, description="Exact names to drop")
    dry_run: bool = Field(default=False, description="Lint and autocorrect locally, never push or open artifacts")
    cleanup_workdirs: bool = Field(default=False)

    @field_validator("filter_repos", "include_repos", "exclude_repos", mode="before")
    @classmethod
    def _split_lists(cls, value: object) -> object:
        return _split_commas(value)


class LoggingConfig(_Section):
    level: str = Field(default="INFO")
    console_output: bool = Field(default=True)
    json_file: bool = Field(default=True)
    logger_name: str = Field(default=APP_NAME)

    @field_validator("level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}")
        return value


class AppConfig(BaseSettings):
    """Root application configuration.

    All configuration is loaded from environment variables with AUTOFIX_RUNNER_ prefix.
    Use double underscore for nested config: AUTOFIX_RUNNER_GITHUB__TOKEN

    Example env vars:
        # Required
        export AUTOFIX_RUNNER_GITHUB__OWNER=my-org
        export AUTOFIX_RUNNER_GITHUB__TOKEN=ghp_xxxxxxxxxxxxx
        #   or GitHub App auth
        export AUTOFIX_RUNNER_GITHUB__APP_ID=12345
        export AUTOFIX_RUNNER_GITHUB__INSTALLATION_ID=67890
        export AUTOFIX_RUNNER_GITHUB__PRIVATE_KEY=/path/to/app.pem

        # Optional (with defaults)
        export AUTOFIX_RUNNER_GITHUB__TOPICS=chef-cookbook
        export AUTOFIX_RUNNER_PROCESSING__THREAD_COUNT=4
        export AUTOFIX_RUNNER_CACHE__MAX_AGE_DAYS=7
        export AUTOFIX_RUNNER_ARTIFACTS__LABELS=cookstyle,automated
        export AUTOFIX_RUNNER_DIRECTORIES__HOME=/custom/path
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTOFIX_RUNNER_",
        env_nested_delimiter="__",
        frozen=True,
        extra="forbid",
    )

    directories: DirectoryConfig = Field(default_factory=DirectoryConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    git: GitConfig = Field(default_factory=GitConfig)
    artifacts: ArtifactConfig = Field(default_factory=ArtifactConfig)
    lint: LintConfig = Field(default_factory=LintConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
