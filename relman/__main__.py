"""Allow ``python -m relman``."""

from relman.cli import app

app()
