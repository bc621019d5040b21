"""
MMR configuration.

This module defines the small configuration surface of the MMR package:
- Layer storage geometry (chunk length of `ChunkedLayer`)
- BLAKE2b personalization used by the default hash combiner
- Default fragment size for multipart proofs
- Logging level / format for the command line tools

All fields have sensible defaults and can be overridden via environment
variables. Nothing here imports heavy dependencies.

Environment variables (all optional):

  MMR_CHUNK_SHIFT=9                     # chunk length = 1 << shift (1..24)
  MMR_BLAKE2B_PERSONAL=VerusDefaultHash # at most 16 ASCII bytes
  MMR_MULTIPART_CHUNK_SIZE=4096         # bytes (supports KiB/MiB suffixes too)
  MMR_LOG_LEVEL=INFO
  MMR_LOG_FORMAT=text                   # or json; unset = auto (text on a TTY)
"""

from __future__ import annotations

import os
import re
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Dict, Optional

from .constants import (
    DEFAULT_BLAKE2B_PERSONAL,
    DEFAULT_CHUNK_SHIFT,
    DEFAULT_MULTIPART_CHUNK_SIZE,
)
from .errors import ConfigError

# ------------------------------- helpers ------------------------------------


_SIZE_RE = re.compile(
    r"^\s*(?P<num>\d+)\s*(?P<unit>bytes?|b|kb|kib|mb|mib)?\s*$",
    re.IGNORECASE,
)

_UNITS = {
    "b": 1,
    "byte": 1,
    "bytes": 1,
    "kb": 1000,
    "kib": 1024,
    "mb": 1000**2,
    "mib": 1024**2,
}

_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")


def _parse_size(value: Optional[str], *, default: int) -> int:
    """Parse human sizes like '4096', '4KiB', '1MB' → bytes."""
    if not value:
        return default
    m = _SIZE_RE.match(value)
    if not m:
        v = value.strip().lower()
        if v.startswith("0x"):
            return int(v, 16)
        raise ConfigError(f"Invalid size: {value!r}")
    unit = (m.group("unit") or "b").lower()
    return int(m.group("num")) * _UNITS[unit]


def _getenv(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.environ.get(key)
    return v if v is not None and v.strip() != "" else default


def _getenv_int(key: str, default: int) -> int:
    v = _getenv(key)
    if v is None:
        return default
    base = 16 if v.strip().lower().startswith("0x") else 10
    try:
        return int(v, base)
    except ValueError as e:
        raise ConfigError(f"Invalid int for {key}: {v!r}") from e


# ------------------------------- config -------------------------------------


@dataclass(frozen=True)
class MMRConfig:
    """
    Top-level MMR configuration.

    - chunk_shift: log2 of the chunk length used by ChunkedLayer storage
    - blake2b_personal: personalization bytes for the BLAKE2b combiner
    - multipart_chunk_size: default max bytes per multipart proof fragment
    - log_level / log_format: used by the CLI tools when configuring logging
    """
    chunk_shift: int = DEFAULT_CHUNK_SHIFT
    blake2b_personal: bytes = DEFAULT_BLAKE2B_PERSONAL
    multipart_chunk_size: int = DEFAULT_MULTIPART_CHUNK_SIZE
    log_level: str = "INFO"
    log_format: Optional[str] = None

    def validate(self) -> None:
        if not (1 <= self.chunk_shift <= 24):
            raise ConfigError("chunk_shift must be in 1..24")
        if len(self.blake2b_personal) > 16:
            raise ConfigError("blake2b_personal must be at most 16 bytes")
        if self.multipart_chunk_size <= 0:
            raise ConfigError("multipart_chunk_size must be > 0")
        if self.log_level.upper() not in _LEVELS:
            raise ConfigError(f"unknown log level {self.log_level!r}")
        if self.log_format not in (None, "json", "text"):
            raise ConfigError("log_format must be 'json' or 'text'")

    def to_dict(self) -> Dict[str, object]:
        d = asdict(self)
        d["blake2b_personal"] = self.blake2b_personal.decode("ascii", "replace")
        return d


# ------------------------------- loader -------------------------------------


def _load_from_env() -> MMRConfig:
    personal = _getenv("MMR_BLAKE2B_PERSONAL")
    fmt = _getenv("MMR_LOG_FORMAT")
    cfg = MMRConfig(
        chunk_shift=_getenv_int("MMR_CHUNK_SHIFT", DEFAULT_CHUNK_SHIFT),
        blake2b_personal=(
            personal.encode("ascii") if personal is not None else DEFAULT_BLAKE2B_PERSONAL
        ),
        multipart_chunk_size=_parse_size(
            _getenv("MMR_MULTIPART_CHUNK_SIZE"), default=DEFAULT_MULTIPART_CHUNK_SIZE
        ),
        log_level=(_getenv("MMR_LOG_LEVEL", "INFO") or "INFO").upper(),
        log_format=fmt.strip().lower() if fmt is not None else None,
    )
    cfg.validate()
    return cfg


@lru_cache(maxsize=1)
def get_config() -> MMRConfig:
    """
    Load and validate configuration (cached). Clear the cache in tests
    via `get_config.cache_clear()` to observe env changes.
    """
    return _load_from_env()


def format_config(cfg: MMRConfig | None = None) -> str:
    cfg = cfg or get_config()
    return "\n".join(f"{k}: {v}" for k, v in cfg.to_dict().items())


__all__ = ["MMRConfig", "get_config", "format_config"]
