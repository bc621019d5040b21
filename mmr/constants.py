"""
MMR constants: hash geometry, branch type codes and serializer limits.

Branch type codes are part of the wire format and must never be renumbered:

    0 = INVALID
    1 = BTC                  Bitcoin-style merkle branch (double SHA-256)
    2 = MMR_NODE             MMR branch over plain BLAKE2b nodes
    3 = MMR_POWER_NODE       MMR branch over power (stake/work) nodes
    4 = ETH                  foreign-chain Patricia trie branch
    5 = MULTIPART            opaque fragment of a larger serialized proof
"""

from __future__ import annotations

from enum import IntEnum

HASH_SIZE = 32
ADDRESS_SIZE = 20
NULL_HASH = b"\x00" * HASH_SIZE

# Power nodes pack (stake, work) as two 128-bit halves of one uint256.
POWER_HALF_BITS = 128
POWER_HALF_MAX = (1 << POWER_HALF_BITS) - 1

# Sentinel stored in a branch index to mark the branch unusable.
INVALID_INDEX = 0xFFFFFFFF

# CompactSize lengths above this are rejected on read (Bitcoin's MAX_SIZE).
MAX_SERIALIZED_SIZE = 0x02000000

DEFAULT_CHUNK_SHIFT = 9
DEFAULT_BLAKE2B_PERSONAL = b"VerusDefaultHash"
DEFAULT_MULTIPART_CHUNK_SIZE = 4096


class BranchType(IntEnum):
    INVALID = 0
    BTC = 1
    MMR_NODE = 2
    MMR_POWER_NODE = 3
    ETH = 4
    MULTIPART = 5


__all__ = [
    "HASH_SIZE",
    "ADDRESS_SIZE",
    "NULL_HASH",
    "POWER_HALF_BITS",
    "POWER_HALF_MAX",
    "INVALID_INDEX",
    "MAX_SERIALIZED_SIZE",
    "DEFAULT_CHUNK_SHIFT",
    "DEFAULT_BLAKE2B_PERSONAL",
    "DEFAULT_MULTIPART_CHUNK_SIZE",
    "BranchType",
]
