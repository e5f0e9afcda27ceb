import json

from typer.testing import CliRunner

from autofix_runner import __version__
from autofix_runner.app.cli import app

from fakes import api_error


runner = CliRunner()


def test_cli_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert result.stdout.strip() == __version__


def test_cli_run_opens_pull_requests(cli_env, mock_container):
    result = runner.invoke(app, ["run"])

    assert result.exit_code == 0, result.output
    assert "Total repositories considered: 2" in result.stdout
    assert "Successfully processed: 2" in result.stdout
    assert "Pull Requests Created: 2" in result.stdout
    assert sorted(p["repo"] for p in mock_container.code_host.created_pulls) == ["acme/alpha", "acme/beta"]
    assert mock_container.code_host.searches == [("acme", ("chef-cookbook",))]


def test_cli_run_json_output(cli_env, mock_container):
    result = runner.invoke(app, ["run", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["total_repos"] == 2
    assert data["exit_code"] == 0
    assert {o["status"] for o in data["outcomes"]} == {"auto_fixed_pr_created"}
    assert data["cache_stats"]["misses"] == 2


def test_cli_run_second_time_skips_cached_repositories(cli_env, mock_container):
    first = runner.invoke(app, ["run"])
    assert first.exit_code == 0, first.output

    second = runner.invoke(app, ["run", "--json"])

    assert second.exit_code == 0, second.output
    data = json.loads(second.stdout)
    assert data["skipped_count"] == 2
    assert data["cache_stats"]["hits"] == 2
    assert len(mock_container.code_host.created_pulls) == 2


def test_cli_run_force_ignores_cache(cli_env, mock_container):
    runner.invoke(app, ["run"])
    result = runner.invoke(app, ["run", "--force", "--json"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["skipped_count"] == 0


def test_cli_run_explicit_repository(cli_env, mock_container):
    result = runner.invoke(app, ["run", "alpha"])

    assert result.exit_code == 0, result.output
    assert [p["repo"] for p in mock_container.code_host.created_pulls] == ["acme/alpha"]


def test_cli_run_dry_run_touches_nothing_remote(cli_env, mock_container):
    result = runner.invoke(app, ["run", "--dry-run", "--threads", "1", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert {o["status"] for o in data["outcomes"]} == {"issues_found"}
    assert mock_container.code_host.created_pulls == []
    assert "push_branch" not in mock_container.git.names()

    status = runner.invoke(app, ["status"])
    assert "Cache is empty." in status.stdout


def test_cli_run_artifact_failure_exits_1(cli_env, mock_container):
    mock_container.code_host.fail_on["create_pull_request"] = api_error(422, "Validation Failed")

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 1
    assert "Artifact Creation Errors: 2" in result.stdout
    assert "--- Repository Errors (2) ---" in result.stdout


def test_cli_run_setup_error_exits_1(cli_env, mock_container):
    mock_container.code_host.repos = []

    result = runner.invoke(app, ["run"])

    assert result.exit_code == 1
    assert "No repositories found" in result.output


def test_cli_run_rejects_unknown_log_level(cli_env, mock_container):
    result = runner.invoke(app, ["run", "--log-level", "chatty"])
    assert result.exit_code == 2


def test_cli_run_rejects_zero_threads(cli_env, mock_container):
    result = runner.invoke(app, ["run", "--threads", "0"])
    assert result.exit_code == 2


def test_cli_invalid_environment_exits_2(cli_env, monkeypatch):
    monkeypatch.setenv("AUTOFIX_RUNNER_PROCESSING__THREAD_COUNT", "0")

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_cli_list_json(cli_env, mock_container):
    result = runner.invoke(app, ["list", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert data["count"] == 2
    assert [r["name"] for r in data["repositories"]] == ["alpha", "beta"]


def test_cli_list_text(cli_env, mock_container):
    result = runner.invoke(app, ["list", "beta"])

    assert result.exit_code == 0, result.output
    assert "Repositories (1):" in result.stdout
    assert "acme/beta" in result.stdout
    assert "acme/alpha" not in result.stdout


def test_cli_list_without_owner_exits_1(cli_env, mock_container, monkeypatch):
    monkeypatch.delenv("AUTOFIX_RUNNER_GITHUB__OWNER")

    result = runner.invoke(app, ["list"])

    assert result.exit_code == 1
    assert "owner" in result.output


def test_cli_status_and_clear_cache(cli_env, mock_container):
    runner.invoke(app, ["run"])

    status = runner.invoke(app, ["status", "--json"])
    assert status.exit_code == 0, status.output
    data = json.loads(status.stdout)
    assert data["stats"]["entry_count"] == 2
    assert [e["key"] for e in data["entries"]] == ["acme/alpha", "acme/beta"]
    assert {e["result"] for e in data["entries"]} == {"issues_found"}

    cleared = runner.invoke(app, ["clear-cache", "acme/alpha"])
    assert cleared.exit_code == 0
    assert "Cleared cache entry for acme/alpha." in cleared.stdout

    status = runner.invoke(app, ["status"])
    assert "Entries: 1" in status.stdout
    assert "acme/beta" in status.stdout

    cleared = runner.invoke(app, ["clear-cache"])
    assert "Cleared cache." in cleared.stdout
    assert "Cache is empty." in runner.invoke(app, ["status"]).stdout


def test_cli_config_masks_secrets(cli_env):
    result = runner.invoke(app, ["config"])

    assert result.exit_code == 0, result.output
    assert "github.token = ****" in result.stdout
    assert "ghp-secret-value" not in result.stdout
    assert "github.owner = acme" in result.stdout
    assert "artifacts.labels = cookstyle,automated" in result.stdout


def test_cli_config_json(cli_env):
    result = runner.invoke(app, ["config", "--json"])

    data = json.loads(result.stdout)
    assert data["github"]["token"] == "****"
    assert data["github"]["private_key"] is None
    assert data["git"]["branch_name"] == "cookstyle-fixes"


def test_cli_config_validate(cli_env):
    result = runner.invoke(app, ["config", "--validate"])
    assert result.exit_code == 0, result.output
    assert "Configuration is valid (auth: pat)." in result.stdout


def test_cli_config_validate_without_credentials(cli_env, monkeypatch):
    monkeypatch.delenv("AUTOFIX_RUNNER_GITHUB__TOKEN")

    result = runner.invoke(app, ["config", "--validate"])

    assert result.exit_code == 2
    assert "No GitHub credentials configured" in result.output


def test_cli_config_validate_without_owner(cli_env, monkeypatch):
    monkeypatch.delenv("AUTOFIX_RUNNER_GITHUB__OWNER")

    result = runner.invoke(app, ["config", "--validate"])

    assert result.exit_code == 2
    assert "AUTOFIX_RUNNER_GITHUB__OWNER" in result.output
