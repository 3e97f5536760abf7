"""CLI package for querying the maintenance records service."""

from importlib import import_module
from types import ModuleType

# ``cli.app`` must stay the module, not the Typer instance, so tests can patch
# ``cli.app.ApiClient``. Resolve it lazily instead of re-exporting.


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("cli.app")
    raise AttributeError(name)


__all__ = []
