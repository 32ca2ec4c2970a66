import os
from pathlib import Path
from typing import List, Optional, Tuple

import click

from dorgu import __version__
from dorgu.config import Config
from dorgu.config.loader import ConfigLayers, global_config_path, load_global_config, load_layers, save_global_config
from dorgu.config.models import SUPPORTED_LLM_PROVIDERS, EffectiveConfig, GlobalConfig
from dorgu.config.resolver import cli_layer, resolve
from dorgu.core.analysis import AnalysisResult, build_analysis, load_analysis
from dorgu.core.generator import GeneratedDocument, GenerationOptions, generate_all
from dorgu.core.llm import PersonaEnricher
from dorgu.core.validate import validate_generated
from dorgu.output import header, print_validation_report, render_dry_run, success, warn, write_documents
from dorgu.utils.exceptions import DorguError
from dorgu.utils.logger import DorguLogger, set_log_level

cli_logger = DorguLogger("CLI")

DEFAULT_MANIFEST_DIR = "k8s"


def _prepare(
    path: str,
    analysis_file: Optional[str],
    name: Optional[str],
    namespace: Optional[str],
    registry: Optional[str],
    llm_provider: Optional[str] = None,
) -> Tuple[ConfigLayers, EffectiveConfig, AnalysisResult]:
    """Load the layers, resolve the effective config and assemble the analysis."""
    app_dir = Path(path).resolve()
    if not app_dir.is_dir():
        raise click.ClickException(f"not a directory: {path}")

    layers = load_layers(app_dir)
    config = resolve(
        global_config=layers.global_config,
        workspace_config=layers.workspace_config,
        app_config=layers.app_config,
        cli_overrides=cli_layer(namespace=namespace, registry=registry, llm_provider=llm_provider),
    )
    base = load_analysis(Path(analysis_file)) if analysis_file else None
    analysis = build_analysis(app_dir, analysis=base, app_config=layers.app_config, name=name)
    if not analysis.name:
        raise click.ClickException("application name is empty; set app.name in .dorgu.yaml or pass --name")

    cli_logger.log_structured(
        level="DEBUG",
        message="Resolved configuration",
        extra={
            "app": analysis.name,
            "namespace": config.defaults.namespace,
            "registry": config.ci.registry,
            "layers_skipped": len(layers.warnings),
        },
    )
    return layers, config, analysis


def _manifest_dir(app_dir: Path, output_dir: Path) -> str:
    """Repository-relative manifest directory used by the Argo CD source and the CI workflow."""
    try:
        return output_dir.relative_to(app_dir).as_posix()
    except ValueError:
        return DEFAULT_MANIFEST_DIR


def _persona_writer(layers: ConfigLayers, config: EffectiveConfig, llm_provider: Optional[str]) -> Optional[PersonaEnricher]:
    global_config = layers.global_config or GlobalConfig()
    provider = llm_provider or config.llm.provider
    if not global_config.get_api_key(provider):
        warn(f"No API key for LLM provider '{provider}', writing the basic persona")
        return None
    return PersonaEnricher(global_config=global_config, provider=provider)


@click.group()
@click.option('--verbose', '-v', 'verbose', is_flag=True, help='Enable debug logging')
def cli(verbose: bool):
    """Generate Kubernetes deployment documents from an application analysis."""
    if verbose:
        set_log_level("DEBUG")


@cli.command()
@click.argument('path', default='.', type=click.Path(file_okay=False))
@click.option('--analysis', 'analysis_file', type=click.Path(exists=True, dir_okay=False), help='Analysis document (JSON or YAML)')
@click.option('--output', '-o', 'output', type=click.Path(file_okay=False), help='Output directory (default: <path>/k8s)')
@click.option('--name', 'name', help='Application name')
@click.option('--namespace', '-n', 'namespace', help='Target namespace')
@click.option('--registry', 'registry', help='Container registry')
@click.option('--dry-run', 'dry_run', is_flag=True, help='Print documents instead of writing them')
@click.option('--skip-argocd', 'skip_argocd', is_flag=True, help='Do not generate the Argo CD application')
@click.option('--skip-ci', 'skip_ci', is_flag=True, help='Do not generate the CI workflow')
@click.option('--skip-persona', 'skip_persona', is_flag=True, help='Do not generate persona documents')
@click.option('--skip-validation', 'skip_validation', is_flag=True, help='Do not validate generated documents')
@click.option('--llm-provider', 'llm_provider', type=click.Choice(SUPPORTED_LLM_PROVIDERS), help='LLM provider for persona enrichment')
@click.option('--no-llm', 'no_llm', is_flag=True, help='Write the basic persona without an LLM')
def generate(
    path: str,
    analysis_file: Optional[str],
    output: Optional[str],
    name: Optional[str],
    namespace: Optional[str],
    registry: Optional[str],
    dry_run: bool,
    skip_argocd: bool,
    skip_ci: bool,
    skip_persona: bool,
    skip_validation: bool,
    llm_provider: Optional[str],
    no_llm: bool,
):
    """
    Generate manifests, GitOps and CI documents for the application at PATH.

    Validation findings are reported but never change the exit code.
    """
    try:
        layers, config, analysis = _prepare(path, analysis_file, name, namespace, registry, llm_provider)
        app_dir = Path(path).resolve()
        output_dir = Path(output).resolve() if output else app_dir / Config().OUTPUT_DIR
        output_dir = Path(os.path.normpath(output_dir))

        writer = None
        if not (skip_persona or no_llm):
            writer = _persona_writer(layers, config, llm_provider)

        options = GenerationOptions(
            namespace=namespace or "",
            skip_argocd=skip_argocd,
            skip_ci=skip_ci,
            skip_persona=skip_persona,
            manifest_dir=_manifest_dir(app_dir, output_dir),
            persona_writer=writer,
        )
        documents = generate_all(analysis, config, options)

        if dry_run:
            click.echo(render_dry_run(documents, os.path.relpath(output_dir)))
        else:
            header(f"Generated {len(documents)} file(s) for {analysis.name}")
            for written in write_documents(output_dir, documents):
                success(str(written))

        if not skip_validation:
            print_validation_report(validate_generated(analysis, documents, config))
    except DorguError as e:
        cli_logger.log_structured(level="DEBUG", message="Generation failed", extra={"error": str(e)})
        raise click.ClickException(str(e))


@cli.command()
@click.argument('path', default='.', type=click.Path(file_okay=False))
@click.option('--analysis', 'analysis_file', type=click.Path(exists=True, dir_okay=False), help='Analysis document (JSON or YAML)')
@click.option('--name', 'name', help='Application name')
@click.option('--namespace', '-n', 'namespace', help='Target namespace')
@click.option('--registry', 'registry', help='Container registry')
def validate(path: str, analysis_file: Optional[str], name: Optional[str], namespace: Optional[str], registry: Optional[str]):
    """Generate in memory and report validation findings without writing anything."""
    try:
        _, config, analysis = _prepare(path, analysis_file, name, namespace, registry)
        documents: List[GeneratedDocument] = generate_all(analysis, config, GenerationOptions(namespace=namespace or ""))
    except DorguError as e:
        raise click.ClickException(str(e))
    print_validation_report(validate_generated(analysis, documents, config))


@cli.group('config')
def config_group():
    """Manage the global configuration file."""


def _load_global() -> GlobalConfig:
    try:
        return load_global_config()
    except DorguError as e:
        raise click.ClickException(str(e))


@config_group.command('list')
def config_list():
    """Show every global setting (API keys masked)."""
    global_config = _load_global()
    for entry in global_config.list_all():
        value = entry.value if entry.value not in (None, "") else "(not set)"
        source = f"  [{entry.source}]" if entry.source else ""
        click.echo(f"{entry.key} = {value}{source}")


@config_group.command('get')
@click.argument('key')
def config_get(key: str):
    """Print one global setting."""
    try:
        click.echo(_load_global().get(key))
    except DorguError as e:
        raise click.ClickException(str(e))


@config_group.command('set')
@click.argument('key')
@click.argument('value')
def config_set(key: str, value: str):
    """Set one global setting and save the file."""
    global_config = _load_global()
    try:
        global_config.set(key, value)
        saved = save_global_config(global_config)
    except DorguError as e:
        raise click.ClickException(str(e))
    shown = global_config.get(key)
    success(f"{key} = {shown} ({saved})")


@config_group.command('path')
def config_path():
    """Print the location of the global config file."""
    click.echo(str(global_config_path()))


@config_group.command('reset')
@click.option('--yes', 'yes', is_flag=True, help='Do not ask for confirmation')
def config_reset(yes: bool):
    """Overwrite the global config file with defaults."""
    if not yes:
        click.confirm("Reset the global configuration to defaults?", abort=True)
    try:
        saved = save_global_config(GlobalConfig())
    except DorguError as e:
        raise click.ClickException(str(e))
    success(f"Global configuration reset ({saved})")


@cli.command()
def version():
    """Print the dorgu version."""
    click.echo(f"dorgu {__version__}")


def main():
    cli()


if __name__ == '__main__':
    main()
