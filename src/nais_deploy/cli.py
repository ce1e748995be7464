"""Command line entry point for nais-deploy."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from rich import box
from rich import print as rich_print
from rich.logging import RichHandler
from rich.table import Table

from .config import DeployerConfig
from .deployer import Deployer
from .errors import DeployError, InvalidDeploymentRequest
from .kube import KubernetesObjectStore
from .operations.reconcile import format_result_message
from .operations.status import DeployStatus
from .registry import FasitClient
from .request import DeploymentRequest, merge_deprecated_fields, validate_request

app = typer.Typer(help="Deploy applications to a cluster from their manifests.")

_STATUS_COLOURS = {
    DeployStatus.SUCCESS: "green",
    DeployStatus.IN_PROGRESS: "yellow",
    DeployStatus.FAILED: "red",
}


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, log_time_format="%X")],
    )


def _load_config(
    config_path: Optional[Path],
    kube_context: Optional[str],
    kubeconfig: Optional[Path],
) -> DeployerConfig:
    deployer_config = DeployerConfig.from_file(config_path) if config_path else DeployerConfig()
    if kube_context:
        deployer_config.cluster.context = kube_context
    if kubeconfig:
        deployer_config.cluster.kubeconfig = str(kubeconfig)
    return deployer_config


def _create_deployer(deployer_config: DeployerConfig) -> Deployer:
    store = KubernetesObjectStore(deployer_config.cluster)
    registry = FasitClient(deployer_config.fasit_url, timeout=deployer_config.http_timeout)
    return Deployer(store, registry, deployer_config)


def _print_errors(errors: List[str]) -> None:
    for error in errors:
        rich_print(f"[red]- {error}[/red]")


def _load_request(request_path: Path) -> DeploymentRequest:
    data = yaml.safe_load(request_path.read_text())
    if not isinstance(data, dict):
        raise typer.BadParameter("Deployment request must contain a mapping at the top level.")
    return DeploymentRequest.model_validate(data)


@app.command("validate")
def validate(
    request_path: Path = typer.Argument(..., help="Path to a deployment request (YAML or JSON)."),
) -> None:
    """Check a deployment request without contacting any external system."""

    merged, warnings = merge_deprecated_fields(_load_request(request_path))
    for warning in warnings:
        rich_print(f"[yellow]{warning}[/yellow]")
    errors = validate_request(merged)
    if errors:
        _print_errors(errors)
        raise typer.Exit(code=1)
    rich_print("[green]Deployment request is valid.[/green]")


@app.command("deploy")
def deploy(
    request_path: Path = typer.Argument(..., help="Path to a deployment request (YAML or JSON)."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to the deployer configuration file."),
    kube_context: Optional[str] = typer.Option(None, "--context", help="Override kubeconfig context."),
    kubeconfig: Optional[Path] = typer.Option(None, help="Path to kubeconfig file."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Deploy an application version described by a deployment request."""

    _configure_logging(verbose)
    request = _load_request(request_path)
    merged, _ = merge_deprecated_fields(request)
    errors = validate_request(merged)
    if errors:
        _print_errors(errors)
        raise typer.Exit(code=1)

    deployer = _create_deployer(_load_config(config_path, kube_context, kubeconfig))
    try:
        result, warnings = deployer.deploy(request)
    except InvalidDeploymentRequest as exc:
        _print_errors(exc.errors)
        raise typer.Exit(code=1)
    except DeployError as exc:
        rich_print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)
    typer.echo(format_result_message(result, warnings))


@app.command("status")
def status(
    namespace: str = typer.Argument(..., help="Namespace the application runs in."),
    application: str = typer.Argument(..., help="Application name."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to the deployer configuration file."),
    kube_context: Optional[str] = typer.Option(None, "--context", help="Override kubeconfig context."),
    kubeconfig: Optional[Path] = typer.Option(None, help="Path to kubeconfig file."),
) -> None:
    """Show the rollout status of an application."""

    deployer = _create_deployer(_load_config(config_path, kube_context, kubeconfig))
    try:
        verdict, view = deployer.deployment_status(namespace, application)
    except DeployError as exc:
        rich_print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"{namespace}/{application}", box=box.SIMPLE)
    table.add_column("Field")
    table.add_column("Value")
    colour = _STATUS_COLOURS[verdict]
    table.add_row("status", f"[{colour}]{verdict.value}[/{colour}]")
    table.add_row("version", view.version or "")
    table.add_row("replicas", f"{view.ready}/{view.desired} ready, {view.available} available, {view.updated} updated")
    table.add_row("images", ", ".join(view.images))
    if view.reason:
        table.add_row("reason", view.reason)
    rich_print(table)
    if verdict is DeployStatus.FAILED:
        raise typer.Exit(code=2)


if __name__ == "__main__":  # pragma: no cover
    app()
