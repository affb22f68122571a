"""
scaffoldkit.cli - Command Line Interface
========================================

This module provides the command-line interface for scaffoldkit using Typer.

Architecture
------------
The CLI is structured around Typer's app pattern:

    app (main entry point)
    ├── new   - Create a new project from a template
    └── list  - Show the templates in the catalog

Usage Examples
--------------
Create a project (prompts for the template's variables):
    $ scaffoldkit new --template express-api

Use another catalog and package manager:
    $ scaffoldkit new -t my-template --catalog ./templates.json -m pnpm

Show the catalog:
    $ scaffoldkit list

See Also
--------
- pipeline.py: Provisioning stages
- models.py: Catalog data models
- config.py: Settings file
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from scaffoldkit import __version__
from scaffoldkit.config import ScaffoldSettings, load_settings
from scaffoldkit.errors import ScaffoldError, TemplateNotFoundError
from scaffoldkit.installer import DependencyInstaller
from scaffoldkit.models import PackageManager, TemplateCatalog
from scaffoldkit.pipeline import ProvisioningPipeline
from scaffoldkit.variables import QuestionaryPrompter


# =============================================================================
# CLI Application Setup
# =============================================================================

# Create the main Typer application
app = typer.Typer(
    name="scaffoldkit",
    help="Create new projects from template archives.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=True,
)

# Console for rich output
console = Console()


# =============================================================================
# Helpers
# =============================================================================

def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(Panel(
            f"[bold green]scaffoldkit[/] version [cyan]{__version__}[/]\n\n"
            f"[dim]Project scaffolding from template archives[/]",
            border_style="green",
        ))
        raise typer.Exit()


def load_catalog(path: Path | None) -> TemplateCatalog:
    """
    Load the catalog at ``path``, or the bundled one.

    Exits with status 1 if the catalog cannot be loaded.
    """
    try:
        if path is not None:
            return TemplateCatalog.load(path)
        return TemplateCatalog.bundled()
    except ScaffoldError as e:
        rprint(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)


def get_settings(path: Path | None) -> ScaffoldSettings:
    """Load settings, exiting with status 1 on an invalid settings file."""
    try:
        return load_settings(path)
    except ScaffoldError as e:
        rprint(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)


# =============================================================================
# Main Application Callback
# =============================================================================

@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """
    [bold]scaffoldkit[/] - Create new projects from template archives.

    [bold]Quick Start:[/]

        scaffoldkit new --template express-api
    """


# =============================================================================
# New Command - Provision a Template
# =============================================================================

@app.command()
def new(
    template: Annotated[
        str | None,
        typer.Option(
            "--template",
            "-t",
            help="Name of the template to create the project from",
        ),
    ] = None,
    catalog: Annotated[
        Path | None,
        typer.Option(
            "--catalog",
            "-c",
            help="Templates catalog (JSON or TOML) to use instead of the bundled one",
        ),
    ] = None,
    output_dir: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Directory to create the project in (default: current directory)",
        ),
    ] = None,
    package_manager: Annotated[
        str | None,
        typer.Option(
            "--package-manager",
            "-m",
            help="Package manager: npm, yarn, pnpm, uv",
        ),
    ] = None,
    skip_install: Annotated[
        bool,
        typer.Option(
            "--skip-install",
            help="Do not install dependencies",
        ),
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="Settings file (default: ./scaffoldkit.toml)",
        ),
    ] = None,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only print errors",
        ),
    ] = False,
) -> None:
    """
    Create a new project from a template.

    Asks for the template's variables, downloads and unpacks the template,
    fills in its placeholders, creates extra directories and installs
    dependencies.

    [bold]Examples:[/]

        scaffoldkit new --template express-api

        scaffoldkit new -t static-site --output ~/sites --skip-install
    """
    settings = get_settings(config)

    if package_manager:
        try:
            settings = settings.model_copy(
                update={"package_manager": PackageManager(package_manager.lower())}
            )
        except ValueError:
            valid = ", ".join(pm.value for pm in PackageManager)
            rprint(f"[red]Error:[/] Invalid package manager '{package_manager}'. Valid: {valid}")
            raise typer.Exit(1)

    templates = load_catalog(catalog or settings.catalog)

    if template is None:
        rprint("[red]Error:[/] No template given. Use --template NAME.")
        rprint(f"[dim]Available templates: {', '.join(templates.names())}[/]")
        raise typer.Exit(1)

    try:
        descriptor = templates.get(template)
    except TemplateNotFoundError as e:
        rprint(f"[bold red]{e}[/]")
        raise typer.Exit(1)

    pipeline = ProvisioningPipeline(
        descriptor,
        prompter=QuestionaryPrompter(),
        installer=DependencyInstaller(settings.package_manager),
        working_dir=output_dir,
        settings=settings,
        output=console,
        verbose=not quiet,
        skip_install=skip_install,
    )

    try:
        pipeline.run()
    except ScaffoldError as e:
        if quiet:
            rprint(f"[red]Error:[/] {escape(str(e))}")
        raise typer.Exit(1)


# =============================================================================
# List Command - Show the Catalog
# =============================================================================

@app.command("list")
def list_templates(
    catalog: Annotated[
        Path | None,
        typer.Option(
            "--catalog",
            "-c",
            help="Templates catalog (JSON or TOML) to use instead of the bundled one",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            help="Settings file (default: ./scaffoldkit.toml)",
        ),
    ] = None,
) -> None:
    """
    List the templates available in the catalog.
    """
    settings = get_settings(config)
    templates = load_catalog(catalog or settings.catalog)

    if not templates.templates:
        console.print("[yellow]The catalog has no templates.[/]")
        return

    table = Table(title="Templates", show_header=True)
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Repository", style="dim")
    table.add_column("Variables", justify="right")

    for descriptor in templates.templates:
        table.add_row(
            descriptor.name,
            descriptor.description,
            descriptor.repository,
            str(len(descriptor.variables)),
        )

    console.print(table)


if __name__ == "__main__":
    app()
