from __future__ import annotations

from dependency_injector import containers, providers

from ..core.domain.credentials import resolve_credentials
from ..core.services import (
    ArtifactManager,
    ConcurrencyCoordinator,
    LintEngine,
    ProcessorSettings,
    RepositoryContextFactory,
    RepositoryDiscovery,
    RepositoryProcessor,
)
from ..core.usecases.cache_status import CacheStatusUseCase
from ..core.usecases.clear_cache import ClearCacheUseCase
from ..core.usecases.list import ListRepositoriesUseCase
from ..core.usecases.run import RunUseCase
from ..infra.cache_store import JsonCacheStore
from ..infra.command_runner import SubprocessCommandRunner
from ..infra.git_repo import GitRepository
from ..infra.github import GitHubClient, TokenProvider
from ..infra.logging import RunLogger


class Container(containers.DeclarativeContainer):
    """DI container wiring AppConfig into adapters, services and use cases."""

    # Populated with from_pydantic(AppConfig) by whoever builds the container
    config = providers.Configuration()

    # Logger (Resource: manages lifecycle with init/shutdown)
    logger = providers.Resource(
        RunLogger,
        logs_dir=config.directories.logs_dir,
        logger_name=config.logging.logger_name,
        json_file=config.logging.json_file,
        console_output=config.logging.console_output,
        level=config.logging.level,
    )

    # Resolved once; every component receives the same credential variant
    credentials = providers.Singleton(
        resolve_credentials,
        token=config.github.token,
        app_id=config.github.app_id,
        installation_id=config.github.installation_id,
        private_key=config.github.private_key,
    )

    token_provider = providers.Singleton(
        TokenProvider,
        credentials=credentials,
        api_url=config.github.api_url,
        host=config.github.host,
        timeout=config.github.request_timeout,
    )

    # Adapters
    github = providers.Singleton(
        GitHubClient,
        token_provider=token_provider,
        api_url=config.github.api_url,
        timeout=config.github.request_timeout,
        max_retries=config.github.max_retries,
    )

    cache = providers.Singleton(
        JsonCacheStore,
        cache_dir=config.directories.cache_dir,
        default_ttl_days=config.cache.max_age_days,
    )

    git = providers.Singleton(
        GitRepository,
        token_provider=token_provider,
        author_name=config.git.author_name,
        author_email=config.git.author_email,
        timeout=config.git.timeout,
    )

    command_runner = providers.Singleton(SubprocessCommandRunner)

    # Domain services
    lint_engine = providers.Factory(
        LintEngine,
        runner=command_runner,
        git=git,
        logger=logger,
        command=config.lint.command,
        timeout=config.lint.timeout,
    )

    artifact_manager = providers.Factory(
        ArtifactManager,
        code_host=github,
        logger=logger,
        labels=config.artifacts.labels,
        dedupe_issues=config.artifacts.dedupe_issues,
    )

    context_factory = providers.Factory(
        RepositoryContextFactory,
        workspace_dir=config.directories.workspace_dir,
        credentials=credentials,
        logger=logger,
        default_branch=config.git.default_branch,
    )

    processor_settings = providers.Singleton(
        ProcessorSettings,
        branch_name=config.git.branch_name,
        pr_title=config.artifacts.pr_title,
        issue_title=config.artifacts.issue_title,
        commit_message=config.git.commit_message,
        tool_name=config.lint.tool_name,
        cache_ttl_days=config.cache.max_age_days,
        use_cache=config.cache.enabled,
        force_refresh=config.cache.force_refresh,
        force_refresh_repos=config.cache.force_refresh_repos,
        dry_run=config.processing.dry_run,
        create_manual_fix_issues=config.artifacts.create_manual_fix_issues,
        cleanup_workdirs=config.processing.cleanup_workdirs,
    )

    processor = providers.Factory(
        RepositoryProcessor,
        contexts=context_factory,
        git=git,
        lint=lint_engine,
        artifacts=artifact_manager,
        cache=cache,
        logger=logger,
        settings=processor_settings,
    )

    coordinator = providers.Factory(
        ConcurrencyCoordinator,
        processor=processor,
        logger=logger,
        thread_count=config.processing.thread_count,
    )

    discovery = providers.Factory(
        RepositoryDiscovery,
        code_host=github,
        token_provider=token_provider,
        logger=logger,
        owner=config.github.owner,
        topics=config.github.topics,
        filter_repos=config.processing.filter_repos,
        include_repos=config.processing.include_repos,
        exclude_repos=config.processing.exclude_repos,
    )

    # Use cases
    run_uc = providers.Factory(
        RunUseCase,
        discovery=discovery,
        coordinator=coordinator,
        cache=cache,
        logger=logger,
    )

    list_uc = providers.Factory(
        ListRepositoriesUseCase,
        discovery=discovery,
    )

    cache_status_uc = providers.Factory(
        CacheStatusUseCase,
        cache=cache,
    )

    clear_cache_uc = providers.Factory(
        ClearCacheUseCase,
        cache=cache,
    )
