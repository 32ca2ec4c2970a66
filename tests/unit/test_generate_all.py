"""Tests for generate_all orchestration."""

from unittest.mock import MagicMock

import pytest
import yaml

from dorgu.config.models import OrgConfig
from dorgu.config.resolver import resolve
from dorgu.core.analysis import AnalysisResult, Port
from dorgu.core.generator import GenerationOptions, generate_all
from dorgu.core.generator import persona_yaml
from dorgu.utils.exceptions import GenerationError

FULL_ORDER = [
    "deployment.yaml",
    "service.yaml",
    "ingress.yaml",
    "hpa.yaml",
    "argocd/application.yaml",
    "../.github/workflows/deploy.yaml",
    "../PERSONA.md",
    "persona.yaml",
]


def paths(documents):
    return [d.path for d in documents]


class TestGenerateAll:
    def test_full_application(self, sample_analysis, effective_config):
        documents = generate_all(sample_analysis, effective_config)
        assert paths(documents) == FULL_ORDER
        for document in documents:
            if document.path.endswith(".yaml"):
                assert yaml.safe_load(document.content)

    def test_minimal_application(self, minimal_analysis, effective_config):
        documents = generate_all(minimal_analysis, effective_config)
        assert paths(documents) == [
            "deployment.yaml",
            "argocd/application.yaml",
            "../.github/workflows/deploy.yaml",
            "../PERSONA.md",
            "persona.yaml",
        ]

    def test_ports_without_scaling(self, effective_config):
        analysis = AnalysisResult(name="web", ports=[Port(port=3000)])
        assert paths(generate_all(analysis, effective_config))[:3] == ["deployment.yaml", "service.yaml", "ingress.yaml"]
        assert "hpa.yaml" not in paths(generate_all(analysis, effective_config))

    def test_skip_flags(self, sample_analysis, effective_config):
        options = GenerationOptions(skip_argocd=True, skip_ci=True, skip_persona=True)
        assert paths(generate_all(sample_analysis, effective_config, options)) == FULL_ORDER[:4]

    def test_idempotent(self, sample_analysis, effective_config):
        assert generate_all(sample_analysis, effective_config) == generate_all(sample_analysis, effective_config)

    def test_namespace_option(self, sample_analysis, effective_config):
        documents = generate_all(sample_analysis, effective_config, GenerationOptions(namespace="shop"))
        assert yaml.safe_load(documents[0].content)["metadata"]["namespace"] == "shop"

    def test_argocd_destination_namespace_from_workspace(self):
        config = resolve(workspace_config=OrgConfig.model_validate({"argocd": {"destination": {"namespace": "apps"}}}))
        documents = generate_all(AnalysisResult(name="orders", ports=[Port(port=8080)]), config)
        by_path = {d.path: yaml.safe_load(d.content) for d in documents if d.path.endswith(".yaml")}
        assert by_path["argocd/application.yaml"]["spec"]["destination"]["namespace"] == "apps"
        assert by_path["deployment.yaml"]["metadata"]["namespace"] == "default"

    def test_namespace_option_beats_argocd_destination(self):
        config = resolve(workspace_config=OrgConfig.model_validate({"argocd": {"destination": {"namespace": "apps"}}}))
        documents = generate_all(AnalysisResult(name="orders"), config, GenerationOptions(namespace="shop"))
        argocd_app = next(d for d in documents if d.path == "argocd/application.yaml")
        assert yaml.safe_load(argocd_app.content)["spec"]["destination"]["namespace"] == "shop"

    def test_manifest_dir_option(self, sample_analysis, effective_config):
        documents = generate_all(sample_analysis, effective_config, GenerationOptions(manifest_dir="deploy"))
        by_path = {d.path: d.content for d in documents}
        assert yaml.safe_load(by_path["argocd/application.yaml"])["spec"]["source"]["path"] == "deploy"
        assert "deploy/deployment.yaml" in by_path["../.github/workflows/deploy.yaml"]

    def test_empty_name_is_fatal(self, effective_config):
        with pytest.raises(GenerationError):
            generate_all(AnalysisResult(ports=[Port(port=80)]), effective_config)


class TestPersonaWriter:
    def test_enriched_persona_used(self, sample_analysis, effective_config):
        writer = MagicMock(return_value="# orders-api\n\nEnriched.\n")
        documents = generate_all(sample_analysis, effective_config, GenerationOptions(persona_writer=writer))
        writer.assert_called_once_with(sample_analysis, effective_config)
        persona = next(d for d in documents if d.path == "../PERSONA.md")
        assert persona.content == "# orders-api\n\nEnriched.\n"

    def test_failing_writer_falls_back(self, sample_analysis, effective_config):
        writer = MagicMock(side_effect=RuntimeError("rate limited"))
        documents = generate_all(sample_analysis, effective_config, GenerationOptions(persona_writer=writer))
        persona = next(d for d in documents if d.path == "../PERSONA.md")
        assert "## Technical Stack" in persona.content
        assert paths(documents) == FULL_ORDER

    def test_blank_writer_output_falls_back(self, sample_analysis, effective_config):
        writer = MagicMock(return_value="   \n")
        documents = generate_all(sample_analysis, effective_config, GenerationOptions(persona_writer=writer))
        persona = next(d for d in documents if d.path == "../PERSONA.md")
        assert persona.content.startswith("# orders-api")

    def test_skip_persona_never_calls_writer(self, sample_analysis, effective_config):
        writer = MagicMock()
        generate_all(sample_analysis, effective_config, GenerationOptions(skip_persona=True, persona_writer=writer))
        writer.assert_not_called()

    def test_persona_yaml_failure_is_not_fatal(self, monkeypatch, sample_analysis, effective_config):
        def boom(*args, **kwargs):
            raise GenerationError("failed to serialize document", document=persona_yaml.DOCUMENT)

        monkeypatch.setattr(persona_yaml, "generate_persona_yaml", boom)
        assert paths(generate_all(sample_analysis, effective_config)) == FULL_ORDER[:-1]
