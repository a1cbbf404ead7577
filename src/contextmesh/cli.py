"""命令行入口：contextmesh publish。

Command-line interface for contextmesh.

The only layer that reads the environment, renders output and maps errors
to process exit codes.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from contextmesh import __version__
from contextmesh.config import (
    DEFAULT_REGISTRY_URL,
    DEFAULT_TIMEOUT_SECS,
    REGISTRY_ENV,
    TIMEOUT_ENV,
    TOKEN_ENV,
    PublishOptions,
)
from contextmesh.errors import exit_code_for, format_error
from contextmesh.manifest import ConnectorManifest, ensure_manifest, validate_manifest
from contextmesh.publisher import PublishResult, publish_connector
from contextmesh.telemetry import ContextMeshLogger, LogLevel

app = typer.Typer(
    name="contextmesh",
    help="Publish connectors to the ContextMesh registry",
    no_args_is_help=True,
)

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"contextmesh {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """ContextMesh connector tooling."""


def _show_dry_run(manifest: ConnectorManifest) -> None:
    console.print("[yellow]Dry run mode - skipping upload[/yellow]")
    console.print("[dim]Would publish:[/dim]")
    console.print(f"[dim]  ID: {manifest.id}[/dim]")
    console.print(f"[dim]  Version: {manifest.version}[/dim]")
    tags = ", ".join(manifest.metadata.tags) or "none"
    console.print(f"[dim]  Tags: {tags}[/dim]")


def _show_result(result: PublishResult) -> None:
    console.print()
    console.print("[bold green]Published successfully![/bold green]")
    console.print(f"[dim]  ID: {result.id}[/dim]")
    console.print(f"[dim]  Version: {result.version}[/dim]")
    console.print(f"[dim]  Checksum: {result.checksum}[/dim]")
    console.print()
    console.print("[blue]Install with:[/blue]")
    console.print(f"  contextmesh install {result.id}@{result.version}")


@app.command()
def publish(
    directory: Annotated[
        Path,
        typer.Argument(help="Directory containing the connector"),
    ] = Path("."),
    registry: Annotated[
        str,
        typer.Option("--registry", "-r", envvar=REGISTRY_ENV, help="Registry URL"),
    ] = DEFAULT_REGISTRY_URL,
    token: Annotated[
        str | None,
        typer.Option(
            "--token",
            "-t",
            envvar=TOKEN_ENV,
            help="Authentication token",
            show_default=False,
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Validate and print what would be published"),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logs and error stacks"),
    ] = False,
    timeout: Annotated[
        float,
        typer.Option("--timeout", envvar=TIMEOUT_ENV, help="HTTP timeout in seconds"),
    ] = DEFAULT_TIMEOUT_SECS,
) -> None:
    """Publish a connector to the ContextMesh registry."""
    ContextMeshLogger.configure(level=LogLevel.DEBUG if verbose else LogLevel.WARNING)

    connector_path = directory.resolve()
    console.print(f"[blue]Publishing connector from:[/blue] {connector_path}")

    try:
        manifest_path = ensure_manifest(connector_path)
        manifest = validate_manifest(manifest_path)
        console.print(f"[green]Manifest validated:[/green] [bold]{manifest.id}[/bold]")

        if dry_run:
            _show_dry_run(manifest)
            return

        options = PublishOptions(
            directory=connector_path,
            registry_url=registry,
            token=token,
            timeout=timeout,
        )
        with console.status("Publishing connector to registry..."):
            result = asyncio.run(publish_connector(options, manifest))
    except Exception as e:
        err_console.print("[red]Publication failed[/red]")
        err_console.print(format_error(e, verbose), markup=False, highlight=False)
        raise typer.Exit(exit_code_for(e)) from e

    _show_result(result)


if __name__ == "__main__":
    app()
