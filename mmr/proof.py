"""
Proof container, wire codec and multipart chunking.

An `MMRProof` is an ordered sequence of heterogeneous branches. Checking a
proof folds every branch's `safe_check` over a starting hash: the output of
one branch is the input of the next, so a transaction proof can be chained
into a block MMR proof and so on.

Wire layout
-----------
    int32 LE  count
    count ×   u8 tag || branch serialization

Every branch serialization itself starts with its own u8 tag, so the tag
appears twice on the wire. Decoding is fail-closed: an unknown tag, a tag
mismatch, a truncated stream or any other decoding fault discards the whole
sequence. The default path logs and returns an empty proof flagged `corrupt`;
`from_bytes(..., strict=True)` raises `ProofCorruptError` instead.

Multipart
---------
Large serialized proofs can be carried in fragments. `break_to_chunks` cuts
the serialized proof into slices of at most `max_size` bytes, each wrapped as
a single-branch proof holding one `MultiPartProof`. `from_chunks` concatenates
the fragments back and decodes the original proof.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterable, List, Optional, Type

from .branch import MerkleBranch, MerkleBranchBase, MMRNodeBranch, MMRPowerNodeBranch
from .config import get_config
from .constants import NULL_HASH, BranchType
from .errors import MMRError, ProofCorruptError, SerializationError
from .logging import get_logger
from .patricia import PatriciaBranch
from .serialize import Reader, Writer
from .utils.bytes import BytesLike, b, to_hex

log = get_logger(__name__)


# --------------------------------------------------------------------------- #
# Multipart fragment
# --------------------------------------------------------------------------- #


@dataclass
class MultiPartProof(MerkleBranchBase):
    """Opaque fragment of a larger serialized proof. Never verifies."""

    vch: bytes = b""

    branch_type: ClassVar[BranchType] = BranchType.MULTIPART

    @classmethod
    def from_proofs(cls, chunks: Iterable["MMRProof"]) -> "MultiPartProof":
        """Reassemble the payload of single-fragment proofs, in order."""
        parts: List[bytes] = []
        for i, chunk in enumerate(chunks):
            if not chunk.is_multipart():
                raise SerializationError("chunk is not a multipart proof", data={"chunk": i})
            parts.append(chunk.branches[0].vch)  # type: ignore[attr-defined]
        return cls(b"".join(parts))

    def extend(self, other: "MultiPartProof") -> "MultiPartProof":
        self.vch += other.vch
        return self

    def __lshift__(self, other: "MultiPartProof") -> "MultiPartProof":
        return type(self)(self.vch + other.vch)

    def __ilshift__(self, other: "MultiPartProof") -> "MultiPartProof":
        return self.extend(other)

    def break_to_chunks(self, max_size: int) -> List["MMRProof"]:
        if max_size <= 0:
            raise ValueError("max_size must be > 0")
        return [
            MMRProof([MultiPartProof(self.vch[i : i + max_size])])
            for i in range(0, len(self.vch), max_size)
        ]

    def serialize(self, w: Writer) -> None:
        super().serialize(w)
        w.bytes_(self.vch)

    @classmethod
    def deserialize(cls, r: Reader) -> "MultiPartProof":
        cls._read_tag(r)
        return cls(r.bytes_())

    def safe_check(self, start: bytes) -> bytes:
        return NULL_HASH

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["data"] = to_hex(self.vch, prefix=False)
        return d


# --------------------------------------------------------------------------- #
# Registry
# --------------------------------------------------------------------------- #

BRANCH_TYPES: Dict[BranchType, Type[MerkleBranchBase]] = {
    BranchType.BTC: MerkleBranch,
    BranchType.MMR_NODE: MMRNodeBranch,
    BranchType.MMR_POWER_NODE: MMRPowerNodeBranch,
    BranchType.ETH: PatriciaBranch,
    BranchType.MULTIPART: MultiPartProof,
}


# --------------------------------------------------------------------------- #
# Proof
# --------------------------------------------------------------------------- #


class MMRProof:
    """
    Chain of branches replayed in order by `check_proof`.

    `corrupt` is set when the proof came out of a failed decode; such a proof
    has no branches and never verifies.
    """

    def __init__(self, branches: Optional[Iterable[MerkleBranchBase]] = None) -> None:
        self.branches: List[MerkleBranchBase] = list(branches or [])
        self.corrupt = False

    # ------------------------------------------------------------------ #
    # Building
    # ------------------------------------------------------------------ #

    def append(self, branch: MerkleBranchBase) -> "MMRProof":
        """Add a copy of `branch` to the end of the sequence."""
        if type(branch).branch_type not in BRANCH_TYPES:
            raise SerializationError(
                "unsupported branch type", data={"branch_type": int(branch.branch_type)}
            )
        self.branches.append(copy.deepcopy(branch))
        return self

    def __lshift__(self, branch: MerkleBranchBase) -> "MMRProof":
        return self.append(branch)

    def __len__(self) -> int:
        return len(self.branches)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MMRProof):
            return NotImplemented
        return self.branches == other.branches

    def is_multipart(self) -> bool:
        return len(self.branches) == 1 and self.branches[0].branch_type == BranchType.MULTIPART

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def check_proof(self, start_hash: bytes) -> bytes:
        """
        Replay every branch from `start_hash`. Returns the proven root, or the
        null hash if any branch fails.

        An empty proof returns the null hash rather than `start_hash`: a proof
        with no branches proves nothing, so it never verifies. A multipart-only
        proof fails the same way, since its fragment branch does not replay.
        """
        if not self.branches:
            return NULL_HASH
        h = start_hash
        for branch in self.branches:
            h = branch.safe_check(h)
            if h == NULL_HASH:
                return NULL_HASH
        return h

    # ------------------------------------------------------------------ #
    # Wire codec
    # ------------------------------------------------------------------ #

    def serialize(self, w: Writer) -> None:
        w.int32(len(self.branches))
        for branch in self.branches:
            if branch.branch_type not in BRANCH_TYPES:
                raise SerializationError(
                    "unknown branch type", data={"branch_type": int(branch.branch_type)}
                )
            w.u8(int(branch.branch_type))
            branch.serialize(w)

    def to_bytes(self) -> bytes:
        w = Writer()
        self.serialize(w)
        return w.getvalue()

    @classmethod
    def deserialize(cls, r: Reader, *, strict: bool = False) -> "MMRProof":
        """
        Decode one proof from `r`. On any fault the sequence is discarded: the
        result is an empty proof with `corrupt=True` (or `ProofCorruptError`
        when `strict`).
        """
        proof = cls()
        count = tag = None
        try:
            count = r.int32()
            if count < 0:
                raise SerializationError("negative branch count", data={"count": count})
            for _ in range(count):
                tag = r.u8()
                try:
                    branch_cls = BRANCH_TYPES[BranchType(tag)]
                except (ValueError, KeyError):
                    raise SerializationError(
                        "unknown branch type", data={"branch_type": tag}
                    ) from None
                proof.branches.append(branch_cls.deserialize(r))
        except MMRError as e:
            log.error(
                "proof sequence is likely corrupt",
                extra={"count": count, "branch_type": tag, "error": e.code},
            )
            if strict:
                raise ProofCorruptError(
                    "proof sequence is corrupt",
                    data={"count": count, "branch_type": tag, "cause": e.to_dict()},
                ) from e
            proof = cls()
            proof.corrupt = True
        return proof

    @classmethod
    def from_bytes(cls, data: BytesLike, *, strict: bool = False) -> "MMRProof":
        """Decode a proof that must span all of `data`."""
        r = Reader(b(data))
        proof = cls.deserialize(r, strict=strict)
        if not proof.corrupt and not r.at_end():
            log.error("trailing bytes after proof", extra={"remaining": r.remaining()})
            if strict:
                raise ProofCorruptError("trailing bytes after proof", data={"remaining": r.remaining()})
            proof = cls()
            proof.corrupt = True
        return proof

    # ------------------------------------------------------------------ #
    # Multipart
    # ------------------------------------------------------------------ #

    def break_to_chunks(self, max_size: Optional[int] = None) -> List["MMRProof"]:
        """Serialize and cut into single-fragment proofs of at most `max_size` bytes."""
        if max_size is None:
            max_size = get_config().multipart_chunk_size
        chunks = MultiPartProof(self.to_bytes()).break_to_chunks(max_size)
        log.debug("proof split into chunks", extra={"chunks": len(chunks), "max_size": max_size})
        return chunks

    @classmethod
    def from_chunks(cls, chunks: Iterable["MMRProof"], *, strict: bool = False) -> "MMRProof":
        """Inverse of `break_to_chunks`."""
        chunks = list(chunks)
        joined = MultiPartProof.from_proofs(chunks)
        log.debug("proof reassembled", extra={"chunks": len(chunks), "bytes": len(joined.vch)})
        return cls.from_bytes(joined.vch, strict=strict)

    # ------------------------------------------------------------------ #
    # Rendering
    # ------------------------------------------------------------------ #

    def to_dict(self) -> Dict[str, Any]:
        return {"proofsequence": [br.to_dict() for br in self.branches]}

    def __repr__(self) -> str:
        kinds = ",".join(BranchType(br.branch_type).name for br in self.branches)
        return f"MMRProof([{kinds}]{', corrupt' if self.corrupt else ''})"


__all__ = ["MultiPartProof", "BRANCH_TYPES", "MMRProof"]
