"""
Proof branches

A branch is one typed fragment of a proof: a list of sibling hashes plus the
positional data needed to replay them from a starting hash to a root.

  • MerkleBranch        Bitcoin-style merkle branch (type 1), double SHA-256.
                        The stored index's bits are the left/right decisions.
  • MMRNodeBranch       MMR branch over plain nodes (type 2), BLAKE2b.
  • MMRPowerNodeBranch  MMR branch over power nodes (type 3), BLAKE2b.
                        For MMR branches the bits are rebuilt from
                        (index, size) with `mmr.path.get_mmr_proof_index`.

Replay (`safe_check`), LSB-first over the bits:

    bit 1:  sibling must differ from the running hash, else the proof is
            non-canonical and the null hash is returned;
            h = Combine(sibling, h)
    bit 0:  h = Combine(h, sibling)

Wire layout of each branch (see `mmr.serialize`):

    MerkleBranch : u8 type | VARINT index | vector<uint256>
    MMRBranch    : u8 type | VARINT index | VARINT size | vector<uint256>
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Type

from .constants import INVALID_INDEX, NULL_HASH, BranchType
from .errors import SerializationError
from .hashers import SHA256D, HashCombiner
from .node import MMRNode, PowerNode
from .path import get_mmr_proof_index
from .serialize import Reader, Writer
from .utils.bytes import to_hex


def replay(start: bytes, index: int, branch: Sequence[bytes], hasher: HashCombiner) -> bytes:
    """Fold `branch` into `start` following the LSB-first bits of `index`."""
    h = start
    for sibling in branch:
        if index & 1:
            if sibling == h:
                return NULL_HASH
            h = hasher.combine(sibling, h)
        else:
            h = hasher.combine(h, sibling)
        index >>= 1
    return h


# --------------------------------------------------------------------------- #
# Base
# --------------------------------------------------------------------------- #


class MerkleBranchBase:
    """
    Common tag handling. Every branch serialization starts with its u8 type.
    """

    branch_type: ClassVar[BranchType] = BranchType.INVALID

    def serialize(self, w: Writer) -> None:
        w.u8(int(self.branch_type))

    @classmethod
    def _read_tag(cls, r: Reader) -> None:
        tag = r.u8()
        if tag != cls.branch_type:
            raise SerializationError(
                "branch type tag mismatch",
                data={"expected": int(cls.branch_type), "got": tag},
            )

    @classmethod
    def deserialize(cls, r: Reader) -> "MerkleBranchBase":
        raise NotImplementedError

    def safe_check(self, start: bytes) -> bytes:
        return NULL_HASH

    def to_bytes(self) -> bytes:
        w = Writer()
        self.serialize(w)
        return w.getvalue()

    @classmethod
    def from_bytes(cls, data: bytes) -> "MerkleBranchBase":
        r = Reader(data)
        out = cls.deserialize(r)
        if not r.at_end():
            raise SerializationError("trailing bytes after branch", data={"remaining": r.remaining()})
        return out

    def to_dict(self) -> Dict[str, Any]:
        return {"branchtype": int(self.branch_type)}


# --------------------------------------------------------------------------- #
# Bitcoin-style merkle branch
# --------------------------------------------------------------------------- #


@dataclass
class MerkleBranch(MerkleBranchBase):
    index: int = 0
    branch: List[bytes] = field(default_factory=list)

    branch_type: ClassVar[BranchType] = BranchType.BTC
    hasher: ClassVar[HashCombiner] = SHA256D

    def extend(self, other: "MerkleBranch") -> "MerkleBranch":
        """Append `other` above this branch (its bits shift past ours)."""
        self.index += other.index << len(self.branch)
        self.branch.extend(other.branch)
        return self

    def __lshift__(self, other: "MerkleBranch") -> "MerkleBranch":
        return type(self)(self.index, list(self.branch)).extend(other)

    def __ilshift__(self, other: "MerkleBranch") -> "MerkleBranch":
        return self.extend(other)

    def serialize(self, w: Writer) -> None:
        super().serialize(w)
        w.varint(self.index)
        w.hashes(self.branch)

    @classmethod
    def deserialize(cls, r: Reader) -> "MerkleBranch":
        cls._read_tag(r)
        index = r.varint()
        return cls(index=index, branch=r.hashes())

    def safe_check(self, start: bytes) -> bytes:
        if self.index == INVALID_INDEX:
            return NULL_HASH
        return replay(start, self.index, self.branch, self.hasher)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update(index=self.index, branch=[to_hex(h, prefix=False) for h in self.branch])
        return d


# --------------------------------------------------------------------------- #
# MMR branches
# --------------------------------------------------------------------------- #


@dataclass
class MMRBranch(MerkleBranchBase):
    """
    Inclusion branch produced by `MerkleMountainView.get_branch`.

    `index` is the leaf position and `size` the view size; together they
    determine every left/right decision of the path.
    """

    index: int = 0
    size: int = 0
    branch: List[bytes] = field(default_factory=list)

    node_type: ClassVar[type] = MMRNode

    @property
    def hasher(self) -> HashCombiner:
        return self.node_type.hasher

    def proof_index(self) -> int:
        return get_mmr_proof_index(self.index, self.size, self.node_type.extra_hash_count)

    def extend(self, other: "MMRBranch") -> "MMRBranch":
        self.index += other.index << len(self.branch)
        self.branch.extend(other.branch)
        return self

    def __lshift__(self, other: "MMRBranch") -> "MMRBranch":
        return type(self)(self.index, self.size, list(self.branch)).extend(other)

    def __ilshift__(self, other: "MMRBranch") -> "MMRBranch":
        return self.extend(other)

    def serialize(self, w: Writer) -> None:
        super().serialize(w)
        w.varint(self.index)
        w.varint(self.size)
        w.hashes(self.branch)

    @classmethod
    def deserialize(cls, r: Reader) -> "MMRBranch":
        cls._read_tag(r)
        index = r.varint()
        size = r.varint()
        return cls(index=index, size=size, branch=r.hashes())

    def safe_check(self, start: bytes) -> bytes:
        index = self.proof_index()
        if index == -1:
            return NULL_HASH
        return replay(start, index, self.branch, self.hasher)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update(
            index=self.index,
            size=self.size,
            branch=[to_hex(h, prefix=False) for h in self.branch],
        )
        return d


@dataclass
class MMRNodeBranch(MMRBranch):
    branch_type: ClassVar[BranchType] = BranchType.MMR_NODE
    node_type: ClassVar[type] = MMRNode


@dataclass
class MMRPowerNodeBranch(MMRBranch):
    branch_type: ClassVar[BranchType] = BranchType.MMR_POWER_NODE
    node_type: ClassVar[type] = PowerNode


_MMR_BRANCHES: Dict[BranchType, Type[MMRBranch]] = {
    BranchType.MMR_NODE: MMRNodeBranch,
    BranchType.MMR_POWER_NODE: MMRPowerNodeBranch,
}


def branch_class_for(node_type: Any) -> Optional[Type[MMRBranch]]:
    """Branch class used to prove nodes of `node_type` (None if it has none)."""
    bt = getattr(node_type, "branch_type", None)
    if bt is None:
        return None
    return _MMR_BRANCHES.get(BranchType(bt))


__all__ = [
    "replay",
    "MerkleBranchBase",
    "MerkleBranch",
    "MMRBranch",
    "MMRNodeBranch",
    "MMRPowerNodeBranch",
    "branch_class_for",
]
