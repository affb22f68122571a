"""
scaffoldkit test suite
======================

This package contains the tests for scaffoldkit.

Test Modules
------------
- test_models.py: Template, variable and catalog models
- test_config.py: Settings loading
- test_variables.py: Interpolation and variable resolution
- test_acquisition.py: Archive download
- test_extraction.py: Archive unpacking
- test_substitution.py: Placeholder rewriting in files
- test_scaffolding.py: Extra directory creation
- test_installer.py: Package manager invocation
- test_pipeline.py: Stage sequencing, end to end
- test_cli.py: Command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Run specific module
    pytest tests/test_pipeline.py

    # Run specific test class
    pytest tests/test_pipeline.py::TestShortCircuit
"""
