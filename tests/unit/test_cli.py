"""Tests for the dorgu command line."""

import json
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from dorgu import __version__
from dorgu.cli import cli
from dorgu.config.loader import global_config_path, load_global_config
from dorgu.core.llm import PersonaEnricher

ANALYSIS = {
    "name": "orders-api",
    "type": "api",
    "language": "python",
    "framework": "fastapi",
    "ports": [{"port": 8000, "purpose": "HTTP API"}],
    "health_check": {"path": "/health", "port": 8000},
    "scaling": {"min_replicas": 2, "max_replicas": 6, "target_cpu": 75},
}


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workspace(monkeypatch, tmp_path):
    """A workspace directory (the cwd) holding one application and its analysis."""
    monkeypatch.chdir(tmp_path)
    (tmp_path / "app").mkdir()
    (tmp_path / "analysis.json").write_text(json.dumps(ANALYSIS))
    return tmp_path


def dry_run(runner, *args):
    return runner.invoke(cli, ["generate", "app", "--analysis", "analysis.json", "--dry-run", "--no-llm", *args])


class TestVersion:
    def test_version(self, runner):
        result = runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert result.output.strip() == f"dorgu {__version__}"


class TestGenerate:
    def test_dry_run_prints_headers_and_writes_nothing(self, runner, workspace):
        result = dry_run(runner)
        assert result.exit_code == 0, result.output
        for header in (
            "--- app/k8s/deployment.yaml ---",
            "--- app/k8s/service.yaml ---",
            "--- app/k8s/ingress.yaml ---",
            "--- app/k8s/hpa.yaml ---",
            "--- app/k8s/argocd/application.yaml ---",
            "--- app/.github/workflows/deploy.yaml ---",
            "--- app/PERSONA.md ---",
            "--- app/k8s/persona.yaml ---",
        ):
            assert header in result.output
        assert not (workspace / "app" / "k8s").exists()

    def test_writes_files(self, runner, workspace):
        result = runner.invoke(cli, ["generate", "app", "--analysis", "analysis.json", "--no-llm"])
        assert result.exit_code == 0, result.output
        app = workspace / "app"
        deployment = yaml.safe_load((app / "k8s" / "deployment.yaml").read_text())
        assert deployment["metadata"]["name"] == "orders-api"
        assert (app / "PERSONA.md").read_text().startswith("# orders-api")
        assert "k8s/deployment.yaml" in (app / ".github" / "workflows" / "deploy.yaml").read_text()
        assert "Generated 8 file(s) for orders-api" in result.output

    def test_custom_output_dir(self, runner, workspace):
        result = runner.invoke(cli, [
            "generate", "app", "--analysis", "analysis.json", "--no-llm", "--output", "app/deploy/manifests",
        ])
        assert result.exit_code == 0, result.output
        argocd = yaml.safe_load((workspace / "app" / "deploy" / "manifests" / "argocd" / "application.yaml").read_text())
        assert argocd["spec"]["source"]["path"] == "deploy/manifests"

    def test_flags(self, runner, workspace):
        result = dry_run(
            runner, "--name", "checkout", "--namespace", "shop", "--registry", "ghcr.io/example",
            "--skip-argocd", "--skip-ci", "--skip-persona", "--skip-validation",
        )
        assert result.exit_code == 0, result.output
        assert "name: checkout" in result.output
        assert "namespace: shop" in result.output
        assert "image: ghcr.io/example/checkout:latest" in result.output
        assert "argocd/application.yaml" not in result.output
        assert "deploy.yaml" not in result.output
        assert "PERSONA.md" not in result.output
        assert "Validation" not in result.output

    def test_app_config_is_applied(self, runner, workspace, yaml_writer):
        yaml_writer(workspace / "app" / ".dorgu.yaml", {"app": {"name": "orders", "team": "commerce"}, "namespace": "commerce"})
        result = dry_run(runner)
        assert result.exit_code == 0, result.output
        assert "name: orders\n" in result.output
        assert "app.kubernetes.io/team: commerce" in result.output
        assert "namespace: commerce" in result.output

    def test_validation_errors_do_not_fail(self, runner, workspace, yaml_writer):
        yaml_writer(workspace / "app" / ".dorgu.yaml", {"scaling": {"min_replicas": 5, "max_replicas": 2}})
        result = dry_run(runner)
        assert result.exit_code == 0, result.output
        assert "[scaling] HPA minReplicas (5) > maxReplicas (2)" in result.output
        assert "1 error(s)" in result.output

    def test_broken_workspace_config_is_skipped(self, runner, workspace):
        (workspace / ".dorgu.yaml").write_text("ingress: {class: [\n")
        result = dry_run(runner)
        assert result.exit_code == 0, result.output
        assert "--- app/k8s/deployment.yaml ---" in result.output

    def test_bad_analysis_file(self, runner, workspace):
        (workspace / "broken.json").write_text("{nope")
        result = runner.invoke(cli, ["generate", "app", "--analysis", "broken.json", "--dry-run"])
        assert result.exit_code == 1
        assert "failed to parse analysis" in result.output

    def test_name_from_directory_without_analysis(self, runner, workspace):
        result = runner.invoke(cli, ["generate", "app", "--dry-run", "--no-llm", "--skip-validation"])
        assert result.exit_code == 0, result.output
        assert "name: app\n" in result.output
        assert "service.yaml" not in result.output

    def test_missing_api_key_uses_basic_persona(self, runner, workspace):
        result = runner.invoke(cli, ["generate", "app", "--analysis", "analysis.json", "--dry-run"])
        assert result.exit_code == 0, result.output
        assert "No API key for LLM provider 'openai'" in result.stderr
        assert "No API key" not in result.stdout
        assert "## Technical Stack" in result.stdout

    def test_enriched_persona(self, runner, workspace, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test-0000000000")
        with patch.object(PersonaEnricher, "__call__", return_value="# orders-api\n\nEnriched persona.\n") as call:
            result = runner.invoke(cli, ["generate", "app", "--analysis", "analysis.json", "--dry-run"])
        assert result.exit_code == 0, result.output
        call.assert_called_once()
        assert "Enriched persona." in result.output


class TestValidateCommand:
    def test_reports_without_writing(self, runner, workspace):
        result = runner.invoke(cli, ["validate", "app", "--analysis", "analysis.json"])
        assert result.exit_code == 0, result.output
        assert "[image] Image uses ':latest' tag" in result.output
        assert "Validation: 1 warning(s), 2 info(s)" in result.output
        assert not (workspace / "app" / "k8s").exists()


class TestConfigCommands:
    def test_path(self, runner, isolated_env):
        result = runner.invoke(cli, ["config", "path"])
        assert result.output.strip() == str(isolated_env / "xdg" / "dorgu" / "config.yaml")

    def test_set_get_list(self, runner):
        assert runner.invoke(cli, ["config", "set", "defaults.namespace", "apps"]).exit_code == 0
        assert runner.invoke(cli, ["config", "set", "llm.api_key", "sk-abcdefghijklmnop"]).exit_code == 0

        assert runner.invoke(cli, ["config", "get", "defaults.namespace"]).output.strip() == "apps"
        assert runner.invoke(cli, ["config", "get", "llm.api_key"]).output.strip() == "sk-a***********mnop"

        listing = runner.invoke(cli, ["config", "list"]).output
        assert "defaults.namespace = apps" in listing
        assert "abcdefghijkl" not in listing
        assert "llm.model = (not set)" in listing
        assert load_global_config().llm.api_key == "sk-abcdefghijklmnop"

    def test_set_rejects_unknown_key(self, runner):
        result = runner.invoke(cli, ["config", "set", "llm.temperature", "1"])
        assert result.exit_code == 1
        assert "unknown config key" in result.output
        assert not global_config_path().exists()

    def test_set_rejects_invalid_provider(self, runner):
        result = runner.invoke(cli, ["config", "set", "llm.provider", "gemini"])
        assert result.exit_code == 1
        assert "invalid LLM provider" in result.output

    def test_reset(self, runner):
        runner.invoke(cli, ["config", "set", "defaults.registry", "ghcr.io/example"])
        result = runner.invoke(cli, ["config", "reset"], input="y\n")
        assert result.exit_code == 0, result.output
        assert load_global_config().defaults.registry == ""

    def test_reset_aborted(self, runner):
        runner.invoke(cli, ["config", "set", "defaults.registry", "ghcr.io/example"])
        result = runner.invoke(cli, ["config", "reset"], input="n\n")
        assert result.exit_code == 1
        assert load_global_config().defaults.registry == "ghcr.io/example"
