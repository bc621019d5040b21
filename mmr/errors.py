"""
MMR errors.

Lightweight, typed exception hierarchy with structured metadata.

Usage:

    from mmr.errors import LayerIndexError

    raise LayerIndexError("index out of range", data={"index": i, "size": n})

All errors expose:
- .code   : stable machine-readable code (snake_case)
- .data   : optional structured payload (dict-like)
- .to_dict() : JSON-friendly rendering for logs and CLI output

Failure classes
---------------
Faults that indicate programmer error or corrupted data raise (layer index
past the end, power overflow). Proof checks never raise: they return the null
hash, and `get_proof` returns None for positions outside the view.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


class MMRError(Exception):
    """
    Base class for MMR errors.

    Subclasses should set `default_code`.
    """
    default_code = "mmr_error"

    def __init__(
        self,
        message: str = "",
        *,
        code: Optional[str] = None,
        data: Optional[Mapping[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.data: Dict[str, Any] = dict(data) if data else {}

    def __str__(self) -> str:  # pragma: no cover - trivial
        if self.message:
            return f"{self.code}: {self.message}"
        return self.code

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message or None,
            "data": self.data or None,
        }


class LayerIndexError(MMRError, IndexError):
    """
    Indexed read past the end of a layer (or of the MMR leaf layer).
    """
    default_code = "layer_index_out_of_range"


class PowerOverflowError(MMRError, OverflowError):
    """
    Accumulated stake or work no longer fits in 128 bits.
    """
    default_code = "power_overflow"


class SerializationError(MMRError, ValueError):
    """
    Malformed, truncated or out-of-range data while encoding/decoding.
    """
    default_code = "serialization_error"


class ProofCorruptError(MMRError):
    """
    A serialized proof sequence could not be decoded (strict path only).
    """
    default_code = "proof_corrupt"


class UnsupportedNodeError(MMRError):
    """
    The node type has no proof branch encoding.
    """
    default_code = "unsupported_node_type"


class ConfigError(MMRError, ValueError):
    default_code = "config_error"


__all__ = [
    "MMRError",
    "LayerIndexError",
    "PowerOverflowError",
    "SerializationError",
    "ProofCorruptError",
    "UnsupportedNodeError",
    "ConfigError",
]
