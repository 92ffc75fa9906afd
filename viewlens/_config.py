"""Traversal limits, overridable through environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

import structlog

logger = structlog.get_logger()

DEFAULT_MAX_DEPTH = 64
DEFAULT_MAX_CHILDREN = 256
DEFAULT_COLLECTION_PREVIEW = 256

# Deeper recursion would run into the interpreter's own stack limit
MAX_DEPTH_CEILING = 200

_ENV_VARS = {
    "max_depth": "VIEWLENS_MAX_DEPTH",
    "max_children": "VIEWLENS_MAX_CHILDREN",
    "collection_preview": "VIEWLENS_COLLECTION_PREVIEW",
}


@dataclass(frozen=True)
class InspectorConfig:
    max_depth: int = DEFAULT_MAX_DEPTH
    max_children: int = DEFAULT_MAX_CHILDREN
    collection_preview: int = DEFAULT_COLLECTION_PREVIEW

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> InspectorConfig:
        """Build a config from ``VIEWLENS_*`` variables.

        Malformed or non-positive values are ignored (with a warning) and
        the default is kept.
        """
        env = os.environ if environ is None else environ
        values: dict[str, int] = {}
        for attr, var in _ENV_VARS.items():
            raw = env.get(var)
            if raw is None:
                continue
            try:
                parsed = int(raw)
            except ValueError:
                parsed = 0
            if parsed <= 0:
                logger.warning("invalid_config_value", variable=var, value=raw)
                continue
            values[attr] = parsed
        return cls(**values)


def clamp_depth(max_depth: int) -> int:
    return max(0, min(max_depth, MAX_DEPTH_CEILING))
