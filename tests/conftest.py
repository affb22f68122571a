"""
pytest configuration and shared fixtures for scaffoldkit tests.

This module provides fixtures and configuration used across all test modules.
Fixtures defined here are automatically available to all tests.

Fixtures
--------
descriptor_data : dict
    Raw catalog entry for a small template.

descriptor : TemplateDescriptor
    The same entry, validated.

make_zip : Callable
    Builds a zip archive in memory from a {name: content} mapping.

stored_zip : bytes
    One uncompressed entry; patch_zip_entry rewrites its headers.

FakePrompter / FakeRunner
    Stand-ins for questionary and subprocess.run.
"""

import io
import subprocess
import zipfile
from pathlib import Path

import pytest

from scaffoldkit.models import PromptedVariable, TemplateDescriptor


# =============================================================================
# Test Doubles
# =============================================================================

class FakePrompter:
    """
    Answers prompts from a {name: answer or list of answers} mapping.

    A list is consumed one answer per prompt, which lets tests simulate a
    user retrying. Variables without an answer get their default.
    """

    def __init__(self, answers: dict | None = None) -> None:
        self.answers = {k: list(v) if isinstance(v, list) else [v] for k, v in (answers or {}).items()}
        self.calls: list[tuple[str, str, str]] = []

    def ask(self, variable: PromptedVariable, message: str, default: str) -> str | None:
        self.calls.append((variable.name, message, default))
        queue = self.answers.get(variable.name)
        if not queue:
            return default
        return queue.pop(0) if len(queue) > 1 else queue[0]


class FakeRunner:
    """Records commands instead of running them."""

    def __init__(self, fail_on: int | None = None, missing: bool = False) -> None:
        self.commands: list[list[str]] = []
        self.cwds: list[Path] = []
        self.fail_on = fail_on
        self.missing = missing

    def __call__(self, command, cwd=None, check=False, **kwargs):
        if self.missing:
            raise FileNotFoundError(command[0])
        self.commands.append(list(command))
        self.cwds.append(Path(cwd))
        if self.fail_on is not None and len(self.commands) == self.fail_on:
            raise subprocess.CalledProcessError(1, command)
        return subprocess.CompletedProcess(command, 0)


def patch_zip_entry(data: bytes, compress_type: int | None = None, flag_bits: int = 0) -> bytes:
    """
    Rewrite the headers of a single-entry stored zip.

    Sets the compression method and ORs ``flag_bits`` into the general
    purpose flags, in both the local and the central directory header.
    """
    patched = bytearray(data)
    # (signature, offset of flag bits, offset of compression method)
    for signature, flags_at, method_at in ((b"PK\x03\x04", 6, 8), (b"PK\x01\x02", 8, 10)):
        start = patched.index(signature)
        flags = int.from_bytes(patched[start + flags_at:start + flags_at + 2], "little")
        patched[start + flags_at:start + flags_at + 2] = (flags | flag_bits).to_bytes(2, "little")
        if compress_type is not None:
            patched[start + method_at:start + method_at + 2] = compress_type.to_bytes(2, "little")
    return bytes(patched)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def descriptor_data() -> dict:
    """Catalog entry with prompted, dependent and generated variables."""
    return {
        "name": "demo",
        "description": "Demo template",
        "repository": "https://github.com/acme/demo-template",
        "variables": [
            {"name": "APP_NAME", "prompt": "Name?", "required": True},
            {"name": "DESCRIPTION", "prompt": "Describe {{ APP_NAME }}:", "default": "{{APP_NAME}} app"},
            {"name": "PAD_VERSION", "generate": "numeric", "length": 1},
        ],
        "create_directories": ["logs"],
        "extra_dependencies": ["left-pad@{{PAD_VERSION}}"],
    }


@pytest.fixture
def descriptor(descriptor_data: dict) -> TemplateDescriptor:
    """Validated demo template."""
    return TemplateDescriptor.model_validate(descriptor_data)


@pytest.fixture
def make_zip():
    """Factory building zip archive bytes from a {name: content} mapping."""

    def _make(entries: dict[str, str | bytes | None]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for name, content in entries.items():
                if content is None:
                    archive.writestr(zipfile.ZipInfo(name), "")
                else:
                    archive.writestr(name, content)
        return buffer.getvalue()

    return _make


@pytest.fixture
def stored_zip() -> bytes:
    """Single uncompressed entry, the base for header-patched archives."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_STORED) as archive:
        archive.writestr("r/a.txt", "a")
    return buffer.getvalue()


@pytest.fixture
def template_zip(make_zip) -> bytes:
    """GitHub-style archive of the demo template."""
    return make_zip({
        "demo-template-master/": None,
        "demo-template-master/package.json": '{"name": "{{ APP_NAME }}", "version": "1.0.0"}\n',
        "demo-template-master/README.md": "# {{APP_NAME}}\n\n{{ DESCRIPTION }}\n\nUnknown: {{ OTHER }}\n",
        "demo-template-master/src/": None,
        "demo-template-master/src/index.js": "console.log('{{ APP_NAME }}');\n",
    })


# =============================================================================
# pytest Configuration
# =============================================================================

def pytest_configure(config: pytest.Config) -> None:
    """
    Configure pytest with custom markers.

    This function is called by pytest during startup to register
    custom markers used in our test suite.
    """
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests requiring external resources"
    )
