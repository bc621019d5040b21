"""
Merkle Mountain Range (MMR) accumulator

An append-only, rewindable accumulator of 32-byte content hashes with compact
inclusion proofs and mergeable peak summaries.

  • node.py      : plain and power (stake/work) node types and their combine rules
  • layer.py     : chunked and overlay layers (indexable node sequences)
  • range.py     : MerkleMountainRange (append / truncate / node lookup)
  • view.py      : MerkleMountainView (peaks, peak-merkle root, proof building)
  • path.py      : proof-walk math shared by proof generation and verification
  • branch.py    : Bitcoin-style and MMR proof branches
  • patricia.py  : foreign-chain (Patricia trie) branch payload
  • proof.py     : heterogeneous proof container, wire codec, multipart chunks

Typical usage
-------------
    from mmr.range import MerkleMountainRange
    from mmr.view import MerkleMountainView
    from mmr.node import MMRNode

    m = MerkleMountainRange()
    for h in leaf_hashes:
        m.add(MMRNode(h))

    view = MerkleMountainView(m, 5)
    root = view.get_root()
    proof = view.get_proof(2)
    assert proof.check_proof(leaf_hashes[2]) == root

Submodules are loaded lazily.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any

try:
    from .version import __version__  # type: ignore[F401]
except Exception:  # pragma: no cover
    __version__ = "0.0.0+unknown"

_SUBMODULES = (
    "constants",
    "errors",
    "config",
    "hashers",
    "serialize",
    "node",
    "layer",
    "range",
    "path",
    "view",
    "branch",
    "patricia",
    "proof",
)


def __getattr__(name: str) -> Any:
    """
    Lazily resolve well-known submodules, e.g. `mmr.view`.
    """
    if name in _SUBMODULES:
        return import_module(f"{__name__}.{name}")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(_SUBMODULES))


__all__ = ["__version__", *_SUBMODULES]
