"""
MMR utilities

  - mmr.utils.bytes : hex helpers, length guards, bytes coercion
  - mmr.utils.hash  : BLAKE2b-256 / Keccak-256 / double-SHA256 digests
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

_SUBMODULES = ("bytes", "hash")


def __getattr__(name: str) -> Any:
    if name in _SUBMODULES:
        return import_module(f"{__name__}.{name}")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = list(_SUBMODULES)
