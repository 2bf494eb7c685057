"""Resolve module:attribute entrypoints for host-provided collaborators."""

from __future__ import annotations

import importlib
from typing import Any

from thingshell.errors import EntrypointError


def load_object(entrypoint: str) -> Any:
    """Import ``package.module:attr.path`` and return the named object."""

    module_name, sep, attr_path = entrypoint.strip().partition(":")
    if not sep or not module_name or not attr_path:
        raise EntrypointError(f"invalid entrypoint {entrypoint!r}, expected module:attribute")

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise EntrypointError(f"cannot import {module_name!r}: {exc}") from exc

    for part in attr_path.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise EntrypointError(f"{module_name!r} has no attribute {attr_path!r}") from exc
    return target
