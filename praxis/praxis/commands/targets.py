"""Resolve ``pkg.module:attr`` references to a registry."""

from __future__ import annotations

from importlib import import_module
from typing import Any

from ..errors import ConfigError
from ..rules import PraxisModule, Registry


def _coerce(obj: Any) -> Registry | None:
    if isinstance(obj, Registry):
        return obj
    if isinstance(obj, PraxisModule):
        registry = Registry()
        registry.register_module(obj)
        return registry
    return None


def load_registry(target: str) -> Registry:
    """
    Load a registry from ``module:attr``.

    ``attr`` may name a Registry, a PraxisModule, or a zero-argument callable
    returning either.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name.strip() or not attr_path.strip():
        raise ConfigError(f"Target must look like 'package.module:attribute', got {target!r}")

    try:
        obj: Any = import_module(module_name.strip())
    except ImportError as e:
        raise ConfigError(f"Cannot import {module_name!r}: {e}") from e

    for part in attr_path.strip().split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ConfigError(f"{module_name!r} has no attribute {attr_path!r}") from e

    registry = _coerce(obj)
    if registry is None and callable(obj):
        registry = _coerce(obj())
    if registry is None:
        raise ConfigError(f"{target!r} is not a Registry, PraxisModule, or a factory returning one")
    return registry
