"""
mmr.utils.hash
==============

Digest primitives behind the hash combiners (all return 32 `bytes`):

- blake2b_256(data, person=...)  BLAKE2b with a 32-byte digest and a 16-byte
                                 personalization (domain tag)
- keccak256(data)                Ethereum-style Keccak-256 (pycryptodome)
- sha256d(data)                  Bitcoin double SHA-256
"""

from __future__ import annotations

import hashlib

from Crypto.Hash import keccak as _keccak

from ..constants import DEFAULT_BLAKE2B_PERSONAL
from .bytes import BytesLike
from .bytes import b as _b


def blake2b_256(data: BytesLike, *, person: bytes = DEFAULT_BLAKE2B_PERSONAL) -> bytes:
    """BLAKE2b digest truncated to 32 bytes at construction, personalized."""
    return hashlib.blake2b(_b(data), digest_size=32, person=person).digest()


def keccak256(data: BytesLike) -> bytes:
    """Keccak-256 digest (pre-standard SHA-3 padding, as used by Ethereum)."""
    h = _keccak.new(digest_bits=256)
    h.update(_b(data))
    return h.digest()


def sha256d(data: BytesLike) -> bytes:
    """SHA-256 applied twice."""
    return hashlib.sha256(hashlib.sha256(_b(data)).digest()).digest()


__all__ = ["blake2b_256", "keccak256", "sha256d"]
