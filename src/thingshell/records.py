"""Utilities for reading records returned by collaborators."""

from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import Any


def field_of(record: Any, key: str, default: Any = None) -> Any:
    """Read a field from mapping-like or attribute-based records."""

    if isinstance(record, Mapping):
        return record.get(key, default)
    return getattr(record, key, default)


async def resolve[T](value: T) -> Any:
    """Await deferred collaborator results; pass plain values through."""

    if inspect.isawaitable(value):
        return await value
    return value
