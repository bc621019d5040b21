"""
Hash combiners

A combiner turns an ordered sequence of 32-byte hashes into a parent hash.
Node types and proof branches hold one as a class attribute, so combining is
a plain method call with no runtime type dispatch.

    BLAKE2B.combine(left, right) == blake2b_256(left || right, person=...)

Combination is order-sensitive. Domain separation between tree combination
and leaf-content hashing comes from the BLAKE2b personalization; leaf content
hashing itself happens outside this package.
"""

from __future__ import annotations

from typing import Protocol

from .config import get_config
from .utils.bytes import BytesLike, b
from .utils.hash import blake2b_256, keccak256, sha256d


class HashCombiner(Protocol):
    name: str

    def combine(self, *parts: BytesLike) -> bytes:
        ...


class Blake2bWriter:
    """BLAKE2b-256 over the concatenated parts, with a personalization tag."""

    name = "blake2b"

    def __init__(self, person: bytes | None = None) -> None:
        self._person = person

    @property
    def person(self) -> bytes:
        # Resolved lazily so MMR_BLAKE2B_PERSONAL is honoured after import.
        return self._person if self._person is not None else get_config().blake2b_personal

    def combine(self, *parts: BytesLike) -> bytes:
        return blake2b_256(b"".join(b(p) for p in parts), person=self.person)

    def __repr__(self) -> str:
        return f"Blake2bWriter(person={self.person!r})"


class Keccak256Writer:
    name = "keccak256"

    def combine(self, *parts: BytesLike) -> bytes:
        return keccak256(b"".join(b(p) for p in parts))

    def __repr__(self) -> str:
        return "Keccak256Writer()"


class Sha256dWriter:
    """Bitcoin merkle combination: SHA-256(SHA-256(left || right))."""

    name = "sha256d"

    def combine(self, *parts: BytesLike) -> bytes:
        return sha256d(b"".join(b(p) for p in parts))

    def __repr__(self) -> str:
        return "Sha256dWriter()"


BLAKE2B = Blake2bWriter()
KECCAK256 = Keccak256Writer()
SHA256D = Sha256dWriter()

__all__ = [
    "HashCombiner",
    "Blake2bWriter",
    "Keccak256Writer",
    "Sha256dWriter",
    "BLAKE2B",
    "KECCAK256",
    "SHA256D",
]
