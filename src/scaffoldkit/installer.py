"""
scaffoldkit.installer - Dependency Installation
===============================================

Runs the package manager in the new project, twice:

    1. install the manifest the template already ships (``npm install``)
    2. add the template's extra dependencies (``npm install dotenv pg``)

Both must succeed. Nothing is rolled back when the second one fails.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable, Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

from scaffoldkit.errors import DependencyInstallError
from scaffoldkit.models import PackageManager
from scaffoldkit.variables import interpolate


Runner = Callable[..., Any]


def resolve_dependencies(
    specifiers: Iterable[str],
    context: Mapping[str, str],
) -> list[str]:
    """
    Interpolate dependency specifiers against the variable context.

    Specifiers that interpolate to nothing are dropped.

    Examples
    --------
    >>> resolve_dependencies(["left-pad@{{ V }}", "{{ DB }}"], {"V": "1"})
    ['left-pad@1']
    """
    resolved = (interpolate(s, context).strip() for s in specifiers)
    return [s for s in resolved if s]


class DependencyInstaller:
    """
    Drives one package manager against a project directory.

    Parameters
    ----------
    manager : PackageManager
        Which package manager to run.

    runner : Callable
        Replacement for ``subprocess.run``; tests pass a fake.
    """

    def __init__(
        self,
        manager: PackageManager = PackageManager.NPM,
        runner: Runner = subprocess.run,
    ) -> None:
        self.manager = manager
        self.runner = runner

    def _run(self, command: Sequence[str], target: Path) -> None:
        try:
            self.runner(list(command), cwd=target, check=True)
        except FileNotFoundError as e:
            raise DependencyInstallError(
                f"'{command[0]}' was not found. Is {self.manager.value} installed?",
                target=target,
            ) from e
        except subprocess.CalledProcessError as e:
            raise DependencyInstallError(
                f"'{' '.join(command)}' failed with exit code {e.returncode}.",
                target=target,
            ) from e

    def install_base(self, target: Path) -> None:
        """Install the dependencies declared by the project's own manifest."""
        self._run(self.manager.base_command, target)

    def install_extra(self, target: Path, specifiers: Sequence[str]) -> None:
        """Add extra dependency specifiers. No-op when there are none."""
        if not specifiers:
            return
        self._run([*self.manager.add_command, *specifiers], target)

    def install(self, target: Path, specifiers: Sequence[str]) -> None:
        """Run the base install, then the extra install."""
        self.install_base(target)
        self.install_extra(target, specifiers)
