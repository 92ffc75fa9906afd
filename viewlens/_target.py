"""Resolution of ``module:attribute`` targets to live objects."""

from __future__ import annotations

import importlib
from typing import Any


def resolve_target(target: str) -> Any:
    """Import ``package.module:attr.path`` and return the object it names.

    A bare ``package.module`` returns the module itself.  A trailing
    ``()`` calls the resolved object with no arguments, for factories
    that build a fresh view tree.

    Raises:
        ValueError: If the target is malformed or the attribute is missing.
        ImportError: If the module cannot be imported.
    """
    module_path, sep, attr_path = target.strip().partition(":")
    call = attr_path.endswith("()")
    if call:
        attr_path = attr_path[:-2]
    if not module_path or (sep and not attr_path):
        raise ValueError(f"Invalid target '{target}'. Expected 'module:attribute'.")

    obj: Any = importlib.import_module(module_path)
    if sep:
        for part in attr_path.split("."):
            try:
                obj = getattr(obj, part)
            except AttributeError:
                raise ValueError(
                    f"Target '{target}': '{part}' not found on {type(obj).__name__}"
                ) from None

    if call:
        if not callable(obj):
            raise ValueError(f"Target '{target}' is not callable")
        obj = obj()
    return obj
