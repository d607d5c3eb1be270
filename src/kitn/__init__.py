"""kitn: install AI agent components from a registry into your project."""

__version__ = "0.1.0"
