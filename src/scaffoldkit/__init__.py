"""
scaffoldkit - Project Scaffolding from Template Archives
========================================================

A CLI tool that creates a new project from a named template: it asks for
the template's variables, downloads the template's repository archive,
unpacks it, fills in ``{{ PLACEHOLDERS }}`` across the unpacked files,
creates extra directories and installs dependencies.

Features
--------
- **Ordered Variables**: Later prompts and defaults can reference earlier
  answers with ``{{ NAME }}``
- **Generated Secrets**: Random keys and tokens without user interaction
- **Any Package Manager**: npm, yarn, pnpm or uv
- **Custom Catalogs**: Point at your own JSON or TOML templates catalog

Quick Start
-----------
```bash
# Install scaffoldkit
pip install scaffoldkit

# See the available templates
scaffoldkit list

# Create a new project
scaffoldkit new --template express-api
```

Example
-------
>>> from scaffoldkit import TemplateCatalog, provision
>>> from scaffoldkit.variables import QuestionaryPrompter
>>> descriptor = TemplateCatalog.bundled().get("express-api")
>>> provision(descriptor, prompter=QuestionaryPrompter())

Architecture
------------
The package is organized into these main modules:

- ``cli``: Typer-based command line interface
- ``pipeline``: Stage sequencing and run reporting
- ``variables``: Placeholder interpolation and variable resolution
- ``acquisition``: Archive download
- ``extraction``: Archive unpacking
- ``substitution``: Placeholder rewriting in extracted files
- ``scaffolding``: Extra directory creation
- ``installer``: Package manager invocation
- ``models``: Pydantic models for templates and the catalog
- ``config``: User settings
- ``errors``: Error taxonomy

License
-------
MIT License - see LICENSE file for details.
"""

# =============================================================================
# Package Metadata
# =============================================================================
__version__ = "0.1.0"
__license__ = "MIT"

# =============================================================================
# Public API Exports
# =============================================================================
# These are the main functions/classes users should interact with when using
# scaffoldkit as a library (as opposed to the CLI)

from scaffoldkit.errors import ScaffoldError, TemplateNotFoundError
from scaffoldkit.models import TemplateCatalog, TemplateDescriptor
from scaffoldkit.pipeline import ProvisioningPipeline, ProvisioningResult, provision


__all__ = [
    "ProvisioningPipeline",
    "ProvisioningResult",
    "ScaffoldError",
    # Catalog models
    "TemplateCatalog",
    "TemplateDescriptor",
    "TemplateNotFoundError",
    # Version info
    "__version__",
    # Core functions
    "provision",
]
