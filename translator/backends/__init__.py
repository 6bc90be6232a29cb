"""Target-language backends for SIL."""

from __future__ import annotations

from ._base import BaseBackend, EmissionState
from .. import constants

# Lazy imports so only the requested backend is loaded
_BACKEND_CLASSES: dict[str, str] = {
    "python": "python.PythonBackend",
    "cpp": "cpp.CppBackend",
}


def get_backend(name: str, indent: str = constants.DEFAULT_INDENT) -> BaseBackend:
    """Instantiate the backend registered under *name*.

    Raises ``ValueError`` if *name* has no registered backend.
    """
    entry = _BACKEND_CLASSES.get(name)
    if entry is None:
        raise ValueError(f"Unsupported backend: {name}")
    module_name, class_name = entry.split(".")
    import importlib

    mod = importlib.import_module(f".{module_name}", package=__package__)
    cls = getattr(mod, class_name)
    return cls(indent=indent)


SUPPORTED_BACKENDS: tuple[str, ...] = tuple(_BACKEND_CLASSES.keys())

__all__ = [
    "BaseBackend",
    "EmissionState",
    "get_backend",
    "SUPPORTED_BACKENDS",
]
