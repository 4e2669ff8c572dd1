"""Command line entry point for the site provisioner."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
import uvicorn
import yaml
from pydantic import ValidationError
from rich import box
from rich import print as rich_print
from rich.logging import RichHandler
from rich.table import Table

from .config import ProvisionerSettings, SiteDefaults, load_settings
from .errors import ClusterError, DeprovisionError, InvalidSiteRequest, ProvisionError, SiteConflict
from .kube import SiteAPI
from .models import SiteRequest
from .operations.deprovision import DeprovisionOperations, DeprovisionReport
from .operations.provision import ProvisionOperations
from .resources.site import build_route, build_service, build_workload, check_identity_fits
from .resources.workload import WorkloadConfig
from .server import create_app

SERVICE_NAME_PLACEHOLDER = "<generated-service-name>"

app = typer.Typer(help="Provision and tear down the cluster resources backing a site.")


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, log_time_format="%X")],
    )


def _load(config_path: Optional[Path], namespace: Optional[str]) -> ProvisionerSettings:
    settings = load_settings(config_path)
    if namespace:
        settings.site.namespace = namespace
    return settings


def _site_request(domain_name: str, site_id: str, defaults: Optional[SiteDefaults] = None) -> SiteRequest:
    try:
        request = SiteRequest(domainName=domain_name, websiteId=site_id)
    except ValidationError as exc:
        messages = "; ".join(str(error.get("msg")) for error in exc.errors())
        rich_print(f"[red]Invalid site request: {messages}[/red]")
        raise typer.Exit(code=2) from exc
    if defaults is not None:
        try:
            check_identity_fits(request.identity, defaults)
        except InvalidSiteRequest as exc:
            rich_print(f"[red]Invalid site request: {exc}[/red]")
            raise typer.Exit(code=2) from exc
    return request


def _create_api(settings: ProvisionerSettings) -> SiteAPI:
    return SiteAPI(settings.context, settings.site.namespace)


def _report_table(report: DeprovisionReport) -> Table:
    table = Table(title=f"Site {report.identity}", box=box.SIMPLE)
    table.add_column("Kind")
    table.add_column("Name / selector")
    table.add_column("Result")
    for kind, name in report.deleted:
        table.add_row(kind, name, "[green]deleted[/green]")
    for kind, target, message in report.failures:
        table.add_row(kind, target, f"[red]{message}[/red]")
    return table


@app.command("serve")
def serve(
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to a YAML settings file."),
    host: Optional[str] = typer.Option(None, help="Override the bind address."),
    port: Optional[int] = typer.Option(None, help="Override the listening port."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Serve the provisioning HTTP endpoint."""

    _configure_logging(verbose)
    settings = _load(config_path, None)
    uvicorn.run(
        create_app(settings),
        host=host or settings.host,
        port=port or settings.port,
        log_config=None,
    )


@app.command("provision")
def provision(
    domain_name: str = typer.Argument(..., help="Fully qualified domain name of the site."),
    site_id: str = typer.Argument(..., help="External site identifier stored as a label."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to a YAML settings file."),
    namespace: Optional[str] = typer.Option(None, help="Override the target namespace."),
    rollback: bool = typer.Option(False, "--rollback", help="Delete created resources if a later step fails."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Create the Deployment, Service and Ingress for a site."""

    _configure_logging(verbose)
    settings = _load(config_path, namespace)
    if rollback:
        settings.rollback_on_failure = True
    request = _site_request(domain_name, site_id, settings.site)

    operations = ProvisionOperations(_create_api(settings), settings)
    try:
        result = operations.provision(request)
    except SiteConflict as exc:
        rich_print(f"[yellow]{exc}[/yellow]")
        raise typer.Exit(code=1) from exc
    except ProvisionError as exc:
        rich_print(f"[red]{exc}[/red]")
        for kind, name in exc.created:
            rich_print(f"  left in place: {kind}/{name}")
        raise typer.Exit(code=1) from exc
    except ClusterError as exc:
        rich_print(f"[red]Provision of {request.identity} aborted before creating anything: {exc}[/red]")
        raise typer.Exit(code=1) from exc

    rich_print(
        f"[green]Provisioned {result.identity}: Deployment/{result.workload}, "
        f"Service/{result.service}, Ingress/{result.route}.[/green]"
    )


@app.command("deprovision")
def deprovision(
    domain_name: str = typer.Argument(..., help="Fully qualified domain name of the site."),
    site_id: str = typer.Argument(..., help="External site identifier."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to a YAML settings file."),
    namespace: Optional[str] = typer.Option(None, help="Override the target namespace."),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    """Delete every resource labelled with the site's identity."""

    _configure_logging(verbose)
    settings = _load(config_path, namespace)
    request = _site_request(domain_name, site_id)

    operations = DeprovisionOperations(_create_api(settings))
    try:
        report = operations.deprovision(request)
    except DeprovisionError as exc:
        rich_print(_report_table(exc.report))
        rich_print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if report.deleted:
        rich_print(_report_table(report))
    else:
        rich_print(f"[cyan]Nothing to delete for {report.identity}.[/cyan]")


@app.command("render")
def render(
    domain_name: str = typer.Argument(..., help="Fully qualified domain name of the site."),
    site_id: str = typer.Argument(..., help="External site identifier."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to a YAML settings file."),
    namespace: Optional[str] = typer.Option(None, help="Override the target namespace."),
) -> None:
    """Print the manifests a provision call would create, without contacting the cluster."""

    settings = _load(config_path, namespace)
    request = _site_request(domain_name, site_id, settings.site)
    defaults = settings.site
    identity = request.identity

    selector = WorkloadConfig(identity=identity, site_id=request.site_id, defaults=defaults).workload_selector
    definitions = [
        build_workload(identity, request.site_id, defaults),
        build_service(identity, request.site_id, selector, defaults),
        build_route(identity, request.site_id, request.domain_name, SERVICE_NAME_PLACEHOLDER, defaults),
    ]
    typer.echo(yaml.safe_dump_all([item.to_dict() for item in definitions], sort_keys=False), nl=False)


if __name__ == "__main__":  # pragma: no cover
    app()
