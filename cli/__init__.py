"""CLI package for viewing the tank monitor dashboard from a terminal."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)

# The Typer application is ``cli.app.app``. Re-exporting it here would shadow
# the ``cli.app`` module, and tests patch ``cli.app.ApiClient`` by that path.

__all__ = []
