"""Logging setup for voxel-scout entrypoints.

Components log through named loggers (``voxel_scout.<component>``) using
snake_case event names with ``extra`` payloads. Call :func:`configure_logging`
once from an entrypoint to make them visible.
"""

from __future__ import annotations

import logging
import sys


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure root logging if no handlers are attached yet."""
    root = logging.getLogger()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    if root.handlers:
        root.setLevel(level)
        return

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    root.addHandler(handler)
    root.setLevel(level)
