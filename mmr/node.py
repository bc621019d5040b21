"""
MMR nodes and their combination rules

Two node families are provided:

  • MMRNode       hash only. Parent = Combine(left.hash, right.hash)
  • PowerNode     hash plus a packed `power` word carrying accumulated
                  (stake, work), each an unsigned 128-bit half:

                      power = stake << 128 | work     (uint256, little-endian)

                  Parent.power = (l.stake + r.stake, l.work + r.work)
                  Parent.hash  = Combine(Combine(l.hash, r.hash), Parent.power)

The two-step power hash lets a proof replay it as an ordinary merkle path:
after each sibling step the verifier combines with the accumulated power,
which the proof carries as one extra hash per step (`extra_hash_count`).

Every node type exposes the same capability set used by ranges, views and
branches:

    create_parent(right)        -> node
    proof_hashes(proving)       -> [hash, ...]  contribution of this sibling
    leaf_extra_hashes()         -> [hash, ...]  prepended once for a leaf
    extra_hash_count            class attribute
    hasher                      class attribute (HashCombiner)
    branch_type                 class attribute (None = no branch encoding)

Node types must be constructible with no arguments; the default node is the
value returned for reads past the end of an MMR.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, List, Optional

from .constants import HASH_SIZE, NULL_HASH, POWER_HALF_BITS, POWER_HALF_MAX, BranchType
from .errors import PowerOverflowError
from .hashers import BLAKE2B, KECCAK256, HashCombiner
from .utils.bytes import to_hex


def _check_hash(h: bytes, where: str) -> None:
    if not isinstance(h, bytes) or len(h) != HASH_SIZE:
        raise ValueError(f"{where} must be {HASH_SIZE} bytes")


# --------------------------------------------------------------------------- #
# Power word packing
# --------------------------------------------------------------------------- #


def pack_power(stake: int, work: int) -> bytes:
    """Pack (stake, work) into a uint256 word; either half above 128 bits is fatal."""
    if not (0 <= stake <= POWER_HALF_MAX) or not (0 <= work <= POWER_HALF_MAX):
        raise PowerOverflowError(
            "stake/work exceeds 128 bits",
            data={"stake": stake, "work": work},
        )
    return ((stake << POWER_HALF_BITS) | work).to_bytes(HASH_SIZE, "little")


def unpack_power(power: bytes) -> tuple[int, int]:
    """Return (stake, work) from a packed power word."""
    v = int.from_bytes(power, "little")
    return v >> POWER_HALF_BITS, v & POWER_HALF_MAX


# --------------------------------------------------------------------------- #
# Plain node
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class MMRNode:
    """
    Plain MMR node combining with BLAKE2b.

    Subclass and override `hasher` to combine with another algorithm (see
    `KeccakMMRNode`).
    """

    hash: bytes = NULL_HASH

    hasher: ClassVar[HashCombiner] = BLAKE2B
    extra_hash_count: ClassVar[int] = 0
    branch_type: ClassVar[Optional[BranchType]] = BranchType.MMR_NODE

    def __post_init__(self) -> None:
        _check_hash(self.hash, "MMRNode.hash")

    def create_parent(self, right: "MMRNode") -> "MMRNode":
        return type(self)(self.hasher.combine(self.hash, right.hash))

    def proof_hashes(self, proving: "MMRNode") -> List[bytes]:
        return [self.hash]

    def leaf_extra_hashes(self) -> List[bytes]:
        return []

    def __repr__(self) -> str:
        return f"{type(self).__name__}(hash={to_hex(self.hash)[:12]}…)"


@dataclass(frozen=True, repr=False)
class KeccakMMRNode(MMRNode):
    """Plain node combining with Keccak-256 (foreign-chain compatible roots)."""

    hasher: ClassVar[HashCombiner] = KECCAK256
    branch_type: ClassVar[Optional[BranchType]] = None


# --------------------------------------------------------------------------- #
# Power node
# --------------------------------------------------------------------------- #


@dataclass(frozen=True)
class PowerNode:
    """
    Node tracking accumulated stake and work alongside its hash.
    """

    hash: bytes = NULL_HASH
    power: bytes = NULL_HASH

    hasher: ClassVar[HashCombiner] = BLAKE2B
    extra_hash_count: ClassVar[int] = 1
    branch_type: ClassVar[Optional[BranchType]] = BranchType.MMR_POWER_NODE

    def __post_init__(self) -> None:
        _check_hash(self.hash, "PowerNode.hash")
        _check_hash(self.power, "PowerNode.power")

    @classmethod
    def make_leaf(cls, pre_hash: bytes, stake: int, work: int) -> "PowerNode":
        """
        Build a leaf from its content pre-hash. The leaf hash commits to the
        power word, so proofs for it start from `pre_hash`.
        """
        _check_hash(pre_hash, "pre_hash")
        power = pack_power(stake, work)
        return cls(cls.hasher.combine(pre_hash, power), power)

    @property
    def stake(self) -> int:
        return unpack_power(self.power)[0]

    @property
    def work(self) -> int:
        return unpack_power(self.power)[1]

    def combined_power(self, other: "PowerNode") -> bytes:
        return pack_power(self.stake + other.stake, self.work + other.work)

    def create_parent(self, right: "PowerNode") -> "PowerNode":
        node_power = self.combined_power(right)
        pre_hash = self.hasher.combine(self.hash, right.hash)
        return type(self)(self.hasher.combine(pre_hash, node_power), node_power)

    def proof_hashes(self, proving: "PowerNode") -> List[bytes]:
        return [self.hash, self.combined_power(proving)]

    def leaf_extra_hashes(self) -> List[bytes]:
        return [self.power]

    def __repr__(self) -> str:
        return (
            f"PowerNode(hash={to_hex(self.hash)[:12]}…, "
            f"stake={self.stake}, work={self.work})"
        )


def combine(left, right):
    """Parent of two nodes of the same type."""
    return left.create_parent(right)


__all__ = [
    "pack_power",
    "unpack_power",
    "MMRNode",
    "KeccakMMRNode",
    "PowerNode",
    "combine",
]
