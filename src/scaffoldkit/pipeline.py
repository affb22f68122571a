"""
scaffoldkit.pipeline - Template Provisioning Pipeline
=====================================================

This module sequences the provisioning stages and decides how a run is
reported. It is the only place that knows the order of the stages.

Architecture
------------
A run is an explicit, strictly linear state machine:

    idle → resolving → acquiring → extracting → substituting
         → scaffolding → installing_deps → done

Any stage may instead move the run to ``failed``, which is terminal: the
remaining stages never execute. The one exception is scaffolding, whose
per-directory failures are downgraded to warnings.

Each stage consumes the completed output of the previous one:

    1. resolving        variables → frozen variable context
    2. acquiring        repository → archive.zip, fully written and fsynced
    3. extracting       archive.zip → <working_dir>/<APP_NAME>/, archive deleted
    4. substituting     placeholders rewritten in every extracted file
    5. scaffolding      extra empty directories
    6. installing_deps  base install, then extra dependencies

Run-scoped State
----------------
The variable context, the progress displays and the HTTP client all
belong to one ``ProvisioningPipeline`` instance. Nothing is kept at module
level, so repeated runs (in tests, for instance) do not interfere.

Usage Example
-------------
>>> from scaffoldkit.models import TemplateCatalog
>>> from scaffoldkit.pipeline import provision
>>> from scaffoldkit.variables import QuestionaryPrompter
>>>
>>> descriptor = TemplateCatalog.bundled().get("express-api")
>>> result = provision(descriptor, prompter=QuestionaryPrompter())
>>> result.project_path
PosixPath('/current/dir/my-api')
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any

import httpx
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from scaffoldkit import __version__
from scaffoldkit.acquisition import acquire_archive
from scaffoldkit.config import ScaffoldSettings
from scaffoldkit.errors import ScaffoldError, VariableResolutionError
from scaffoldkit.extraction import extract_archive
from scaffoldkit.installer import DependencyInstaller, resolve_dependencies
from scaffoldkit.models import APP_NAME, TemplateDescriptor
from scaffoldkit.scaffolding import create_directories
from scaffoldkit.substitution import substitute_tree
from scaffoldkit.variables import Prompter, resolve_variables


# Console for rich output
console = Console()


# =============================================================================
# States
# =============================================================================

class PipelineState(str, Enum):
    """States of a provisioning run."""

    IDLE = "idle"
    RESOLVING = "resolving"
    ACQUIRING = "acquiring"
    EXTRACTING = "extracting"
    SUBSTITUTING = "substituting"
    SCAFFOLDING = "scaffolding"
    INSTALLING_DEPS = "installing_deps"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition is possible."""
        return self in {PipelineState.DONE, PipelineState.FAILED}


# The single successor of every non-terminal state
NEXT_STATE: dict[PipelineState, PipelineState] = {
    PipelineState.IDLE: PipelineState.RESOLVING,
    PipelineState.RESOLVING: PipelineState.ACQUIRING,
    PipelineState.ACQUIRING: PipelineState.EXTRACTING,
    PipelineState.EXTRACTING: PipelineState.SUBSTITUTING,
    PipelineState.SUBSTITUTING: PipelineState.SCAFFOLDING,
    PipelineState.SCAFFOLDING: PipelineState.INSTALLING_DEPS,
    PipelineState.INSTALLING_DEPS: PipelineState.DONE,
}


# =============================================================================
# Result Data Class
# =============================================================================

@dataclass
class ProvisioningResult:
    """
    Result of one provisioning run.

    Attributes
    ----------
    success : bool
        Whether every stage completed.

    project_path : Path | None
        ``<working_dir>/<APP_NAME>``, known once variables are resolved.

    state : PipelineState
        Final state, ``done`` or ``failed``.

    history : list[PipelineState]
        Every state the run entered, in order.

    context : dict[str, str]
        Resolved variables.

    files_rewritten : list[Path]
        Files changed by placeholder substitution.

    directories_created : list[Path]
        Extra directories created by scaffolding.

    dependencies : list[str]
        Extra dependency specifiers after interpolation.

    warnings : list[str]
        Non-fatal problems (directories that could not be created).

    errors : list[str]
        Message of the fatal error, if any.

    error : ScaffoldError | None
        The fatal error itself.
    """

    success: bool = False
    project_path: Path | None = None
    state: PipelineState = PipelineState.IDLE
    history: list[PipelineState] = field(default_factory=lambda: [PipelineState.IDLE])
    context: dict[str, str] = field(default_factory=dict)
    files_rewritten: list[Path] = field(default_factory=list)
    directories_created: list[Path] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    error: ScaffoldError | None = None


def make_progress(output: Console, verbose: bool = True) -> Progress:
    """Progress display for one stage of one run."""
    return Progress(
        TextColumn("└─>"),
        BarColumn(bar_width=30),
        TaskProgressColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=output,
        disable=not verbose,
    )


# =============================================================================
# Pipeline
# =============================================================================

class ProvisioningPipeline:
    """
    One provisioning run of one template.

    Parameters
    ----------
    descriptor : TemplateDescriptor
        Template to provision.

    prompter : Prompter
        Source of answers for prompted variables.

    installer : DependencyInstaller | None
        Installer for the last stage. Defaults to the settings' package
        manager.

    client : httpx.Client | None
        HTTP client for acquisition. When omitted, the run creates its own
        and closes it when done.

    working_dir : Path | None
        Directory the project is created in. Defaults to the current
        directory.

    settings : ScaffoldSettings | None
        Timeouts, branch fallback, package manager.

    output : Console | None
        Console for stage narration. Defaults to the module console.

    verbose : bool
        If False, nothing is printed.

    skip_install : bool
        If True, the dependency stage is entered but runs no installs.
    """

    def __init__(
        self,
        descriptor: TemplateDescriptor,
        *,
        prompter: Prompter,
        installer: DependencyInstaller | None = None,
        client: httpx.Client | None = None,
        working_dir: Path | None = None,
        settings: ScaffoldSettings | None = None,
        output: Console | None = None,
        verbose: bool = True,
        skip_install: bool = False,
    ) -> None:
        self.descriptor = descriptor
        self.prompter = prompter
        self.settings = settings or ScaffoldSettings()
        self.installer = installer or DependencyInstaller(self.settings.package_manager)
        self.client = client
        self.working_dir = (working_dir or Path.cwd()).resolve()
        self.console = output or console
        self.verbose = verbose
        self.skip_install = skip_install

        self.state = PipelineState.IDLE
        self.result = ProvisioningResult()

    # -------------------------------------------------------------------------
    # State machine
    # -------------------------------------------------------------------------

    def _advance(self, expected: PipelineState) -> None:
        """Move to the successor of the current state, which must be ``expected``."""
        successor = NEXT_STATE.get(self.state)
        if successor != expected:
            msg = f"Invalid transition {self.state.value} → {expected.value}"
            raise RuntimeError(msg)
        self.state = successor
        self.result.state = successor
        self.result.history.append(successor)

    def _fail(self, error: ScaffoldError) -> None:
        self.state = PipelineState.FAILED
        self.result.state = PipelineState.FAILED
        self.result.history.append(PipelineState.FAILED)
        self.result.error = error
        self.result.errors.append(str(error))

    def _say(self, message: str) -> None:
        if self.verbose:
            self.console.print(message)

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def resolve(self) -> tuple[MappingProxyType[str, str], Path]:
        """
        Resolve variables and decide the project directory.

        Returns
        -------
        tuple[MappingProxyType[str, str], Path]
            The frozen variable context and ``<working_dir>/<APP_NAME>``.

        Raises
        ------
        VariableResolutionError
            If a prompt is cancelled, ``APP_NAME`` is not a usable directory
            name (surrounding whitespace included), or the project directory
            already exists with content.
        """
        context = resolve_variables(self.descriptor, self.prompter)

        app_name = context[APP_NAME]
        if (
            not app_name
            or app_name != app_name.strip()
            or app_name in {".", ".."}
            or Path(app_name).name != app_name
        ):
            raise VariableResolutionError(
                f"'{context[APP_NAME]}' cannot be used as a project directory name."
            )

        project_path = self.working_dir / app_name
        if project_path.exists() and (not project_path.is_dir() or any(project_path.iterdir())):
            raise VariableResolutionError(
                f"Directory '{project_path}' already exists. "
                "Use a different name or remove the existing directory."
            )

        self.result.context = dict(context)
        self.result.project_path = project_path
        if self.verbose:
            self.console.print()
        return context, project_path

    def acquire(self, client: httpx.Client) -> Path:
        """Download the template archive into the working directory."""
        self._say(f"[bold]⬇  Downloading[/] {self.descriptor.repository}")
        with make_progress(self.console, self.verbose) as progress:
            return acquire_archive(
                client,
                self.descriptor,
                self.working_dir,
                fallback_branch=self.settings.default_branch,
                progress=progress,
                token=self.settings.github_token,
            )

    def extract(self, archive: Path, project_path: Path) -> list[Path]:
        """Unpack the archive into the project directory."""
        self._say(f"\n[bold]📦 Extracting into[/] {project_path}")
        with make_progress(self.console, self.verbose) as progress:
            return extract_archive(archive, project_path, progress=progress)

    def substitute(self, project_path: Path, context: MappingProxyType[str, str]) -> list[Path]:
        """Rewrite placeholders in the extracted files."""
        self._say("\n[bold]📝 Adjusting template...[/]")
        rewritten = substitute_tree(project_path, context)
        self.result.files_rewritten = rewritten
        for path in rewritten:
            self._say(f"  Updated {path.relative_to(project_path)}")
        return rewritten

    def scaffold(self, project_path: Path, context: MappingProxyType[str, str]) -> None:
        """Create extra directories; failures only produce warnings."""
        self._say("\n[bold]📁 Creating directories...[/]")
        outcome = create_directories(project_path, self.descriptor.create_directories, context)
        self.result.directories_created = outcome.created

        for directory in outcome.created:
            self._say(f"  Created {directory.relative_to(project_path)}/")
        for warning in outcome.warnings:
            self.result.warnings.append(str(warning))
            self._say(f"  [yellow]⚠[/] {escape(str(warning))}")

    def install(self, project_path: Path, context: MappingProxyType[str, str]) -> None:
        """Install base and extra dependencies."""
        dependencies = resolve_dependencies(self.descriptor.extra_dependencies, context)
        self.result.dependencies = dependencies

        if self.skip_install:
            self._say("\n[dim]Skipping dependency installation.[/]")
            return

        self._say(f"\n[bold]🔧 Installing dependencies with {self.installer.manager.value}...[/]\n")
        self.installer.install(project_path, dependencies)

    # -------------------------------------------------------------------------
    # Run
    # -------------------------------------------------------------------------

    def run(self) -> ProvisioningResult:
        """
        Execute every stage in order.

        Returns
        -------
        ProvisioningResult
            The successful result.

        Raises
        ------
        ScaffoldError
            The first fatal error. The run is left in the ``failed`` state
            and ``self.result`` describes how far it got.
        """
        if self.state != PipelineState.IDLE:
            msg = "A provisioning run can only be executed once."
            raise RuntimeError(msg)

        owns_client = self.client is None
        client = self.client or httpx.Client(
            timeout=self.settings.timeout,
            headers={"User-Agent": f"scaffoldkit/{__version__}"},
        )

        try:
            self._advance(PipelineState.RESOLVING)
            context, project_path = self.resolve()

            self._advance(PipelineState.ACQUIRING)
            archive = self.acquire(client)

            self._advance(PipelineState.EXTRACTING)
            self.extract(archive, project_path)

            self._advance(PipelineState.SUBSTITUTING)
            self.substitute(project_path, context)

            self._advance(PipelineState.SCAFFOLDING)
            self.scaffold(project_path, context)

            self._advance(PipelineState.INSTALLING_DEPS)
            self.install(project_path, context)

            self._advance(PipelineState.DONE)
            self.result.success = True

        except ScaffoldError as e:
            self._fail(e)
            self._say(f"\n[bold red]Error:[/] {escape(str(e))}")
            raise

        finally:
            if owns_client:
                client.close()

        if self.verbose:
            self.console.print()
            self.console.print(
                Panel(
                    f"[bold green]✨ Template '{project_path.name}' was successfully created.[/]\n\n"
                    f"[dim]Location:[/] {project_path}",
                    title="[bold green]Success[/]",
                    border_style="green",
                )
            )

        return self.result


def provision(descriptor: TemplateDescriptor, **kwargs: Any) -> ProvisioningResult:
    """
    Provision ``descriptor`` in one call.

    Keyword arguments are passed to ``ProvisioningPipeline``.
    """
    return ProvisioningPipeline(descriptor, **kwargs).run()
