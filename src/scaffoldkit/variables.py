"""
scaffoldkit.variables - Variable Resolution
===========================================

This module turns a template's variable declarations into the variable
context: one string value per declared variable.

Placeholders
------------
Prompts, defaults, directory names, dependency specifiers and the files of
the template all use the same token grammar:

    {{ NAME }}        whitespace inside the braces is optional

``interpolate`` is the tolerant form used while resolving variables: a name
that is unknown (or not resolved yet) becomes the empty string.
The strict form, used to rewrite extracted files, lives in
``scaffoldkit.substitution`` and leaves undeclared placeholders alone.

Resolution Order
----------------
Variables are resolved one at a time, in declaration order. A prompt or a
default can reference any variable declared before it:

    APP_NAME     prompt "Name?"                     -> "hello"
    DESCRIPTION  default "{{ APP_NAME }}-suffix"    -> "hello-suffix"

Usage Example
-------------
>>> from scaffoldkit.variables import interpolate
>>> interpolate("{{APP_NAME}} v{{ VERSION }}", {"APP_NAME": "demo"})
'demo v'
"""

from __future__ import annotations

import re
import secrets
from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any, Protocol

import questionary

from scaffoldkit.errors import VariableResolutionError
from scaffoldkit.models import (
    GeneratedVariable,
    GenerateKind,
    PromptedVariable,
    TemplateDescriptor,
    VariableType,
)


PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


# =============================================================================
# Placeholder Interpolation
# =============================================================================

def interpolate(template: Any, context: Mapping[str, str]) -> str:
    """
    Replace every placeholder in ``template`` with its value from ``context``.

    Parameters
    ----------
    template : Any
        Text containing ``{{ NAME }}`` placeholders. None becomes ``""``,
        other non-string values are converted with ``str``.

    context : Mapping[str, str]
        Values resolved so far.

    Returns
    -------
    str
        The interpolated text. Unknown names interpolate to ``""``.
    """
    if template is None:
        return ""
    if not isinstance(template, str):
        template = str(template)
    return PLACEHOLDER_PATTERN.sub(lambda m: context.get(m.group(1), ""), template)


# =============================================================================
# Value Helpers
# =============================================================================

def initial_selection(options: Sequence[str], default: str | None) -> int:
    """Index of ``default`` within ``options``, or 0 when it is not one of them."""
    try:
        return list(options).index(default)  # type: ignore[arg-type]
    except ValueError:
        return 0


def generate_value(kind: GenerateKind, length: int = 30) -> str:
    """
    Generate a random string of ``length`` characters.

    Characters are drawn with ``secrets`` so the values are suitable for
    secret keys and tokens.
    """
    alphabet = kind.alphabet
    return "".join(secrets.choice(alphabet) for _ in range(length))


def is_blank(value: str | None) -> bool:
    """Whether an answer counts as empty for a required variable."""
    return value is None or value.strip() == ""


# =============================================================================
# Prompting
# =============================================================================

class Prompter(Protocol):
    """
    Something that can ask the user for one variable's value.

    ``ask`` returns the answer as a string, or None if the user aborted
    (e.g. with Ctrl-C).
    """

    def ask(self, variable: PromptedVariable, message: str, default: str) -> str | None: ...


class QuestionaryPrompter:
    """
    Interactive prompter built on questionary.

    Each VariableType maps onto the matching questionary prompt. Required
    variables are validated inline so the user gets immediate feedback.
    """

    def ask(self, variable: PromptedVariable, message: str, default: str) -> str | None:
        def validate(value: str) -> bool | str:
            if variable.required and is_blank(value):
                return "A value is required."
            return True

        if variable.type == VariableType.SELECT:
            options = list(variable.options or ())
            return questionary.select(
                message,
                choices=options,
                default=options[initial_selection(options, default)],
            ).ask()

        if variable.type == VariableType.CONFIRM:
            answer = questionary.confirm(
                message,
                default=default.strip().lower() in {"true", "yes", "y", "1"},
            ).ask()
            if answer is None:
                return None
            return "true" if answer else "false"

        if variable.type == VariableType.PASSWORD:
            return questionary.password(message, default=default, validate=validate).ask()

        if variable.type == VariableType.NUMBER:
            def validate_number(value: str) -> bool | str:
                if is_blank(value):
                    return validate(value)
                try:
                    float(value)
                except ValueError:
                    return "Please enter a number."
                return True

            return questionary.text(message, default=default, validate=validate_number).ask()

        return questionary.text(message, default=default, validate=validate).ask()


# =============================================================================
# Resolution
# =============================================================================

def resolve_prompted(
    variable: PromptedVariable,
    context: Mapping[str, str],
    prompter: Prompter,
) -> str:
    """
    Ask for one prompted variable.

    The prompt message and default are interpolated against ``context``
    first. A required variable is asked again until the answer is not
    empty.

    Raises
    ------
    VariableResolutionError
        If the user aborts the prompt.
    """
    message = interpolate(variable.prompt, context)
    default = interpolate(variable.default, context)

    while True:
        answer = prompter.ask(variable, message, default)
        if answer is None:
            raise VariableResolutionError(
                f"Prompt for '{variable.name}' was cancelled."
            )
        if variable.required and is_blank(answer):
            continue
        return answer


def resolve_variables(
    descriptor: TemplateDescriptor,
    prompter: Prompter,
) -> MappingProxyType[str, str]:
    """
    Build the variable context for a template.

    Variables are resolved strictly in declaration order, so each prompt
    and default sees the values of the variables declared before it, and
    nothing resolved after it.

    Parameters
    ----------
    descriptor : TemplateDescriptor
        Template whose variables are resolved.

    prompter : Prompter
        Source of answers for prompted variables. Generated variables never
        consult it.

    Returns
    -------
    MappingProxyType[str, str]
        Read-only context with exactly one entry per declared variable.

    Raises
    ------
    VariableResolutionError
        If a prompt is cancelled.
    """
    context: dict[str, str] = {}

    for variable in descriptor.variables:
        if isinstance(variable, GeneratedVariable):
            context[variable.name] = generate_value(variable.generate, variable.length)
        else:
            context[variable.name] = resolve_prompted(variable, context, prompter)

    return MappingProxyType(context)
