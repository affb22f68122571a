"""Allow ``python -m scaffoldkit``."""

from scaffoldkit.cli import app


app()
