"""
Foreign-chain (Ethereum-style) Patricia trie branches.

This package only carries the payload; it does not walk RLP tries. A
verifier callable can be installed with `set_verifier`:

    def verify(branch: PatriciaBranch, start_hash: bytes) -> bytes:
        ...  # return the proven root, or NULL_HASH

    set_verifier(verify)

Without a verifier every `PatriciaBranch.safe_check` fails closed (returns the
null hash) and logs a warning.

Wire layout (after the shared u8 type tag):

    RLPProof account proof  : VARINT count | count × bytes
    address                 : uint160
    balance                 : uint256 (little-endian)
    code hash               : uint256
    nonce                   : VARINT
    storage hash            : uint256
    storage proof key       : uint256
    RLPProof storage proof
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Optional

from .branch import MerkleBranchBase
from .constants import ADDRESS_SIZE, HASH_SIZE, NULL_HASH, BranchType
from .logging import get_logger
from .serialize import Reader, Writer
from .utils.bytes import to_hex

log = get_logger(__name__)

Verifier = Callable[["PatriciaBranch", bytes], bytes]

_verifier: Optional[Verifier] = None


def set_verifier(fn: Optional[Verifier]) -> Optional[Verifier]:
    """Install (or clear, with None) the Patricia verifier. Returns the previous one."""
    global _verifier
    prev, _verifier = _verifier, fn
    return prev


def get_verifier() -> Optional[Verifier]:
    return _verifier


@dataclass
class RLPProof:
    """Ordered list of RLP-encoded trie nodes."""

    proof_branch: List[bytes] = field(default_factory=list)

    def serialize(self, w: Writer) -> None:
        w.varint(len(self.proof_branch))
        for node in self.proof_branch:
            w.bytes_(node)

    @classmethod
    def deserialize(cls, r: Reader) -> "RLPProof":
        count = r.varint()
        nodes: List[bytes] = []
        for _ in range(count):
            nodes.append(r.bytes_())
        return cls(nodes)

    def to_list(self) -> List[str]:
        return [to_hex(n, prefix=False) for n in self.proof_branch]


@dataclass
class PatriciaBranch(MerkleBranchBase):
    proof_data: RLPProof = field(default_factory=RLPProof)
    address: bytes = b"\x00" * ADDRESS_SIZE
    balance: int = 0
    code_hash: bytes = NULL_HASH
    nonce: int = 0
    storage_hash: bytes = NULL_HASH
    storage_proof_key: bytes = NULL_HASH
    storage_proof: RLPProof = field(default_factory=RLPProof)
    branch: List[bytes] = field(default_factory=list)

    branch_type: ClassVar[BranchType] = BranchType.ETH

    def extend(self, other: "PatriciaBranch") -> "PatriciaBranch":
        self.branch.extend(other.branch)
        return self

    def __ilshift__(self, other: "PatriciaBranch") -> "PatriciaBranch":
        return self.extend(other)

    def balance_be(self) -> bytes:
        """Balance as minimal big-endian bytes (empty for zero)."""
        return self.balance.to_bytes((self.balance.bit_length() + 7) // 8, "big")

    def serialize(self, w: Writer) -> None:
        super().serialize(w)
        self.proof_data.serialize(w)
        w.uint160(self.address)
        w.uint256(self.balance.to_bytes(HASH_SIZE, "little"))
        w.uint256(self.code_hash)
        w.varint(self.nonce)
        w.uint256(self.storage_hash)
        w.uint256(self.storage_proof_key)
        self.storage_proof.serialize(w)

    @classmethod
    def deserialize(cls, r: Reader) -> "PatriciaBranch":
        cls._read_tag(r)
        proof_data = RLPProof.deserialize(r)
        address = r.uint160()
        balance = int.from_bytes(r.uint256(), "little")
        code_hash = r.uint256()
        nonce = r.varint()
        storage_hash = r.uint256()
        storage_proof_key = r.uint256()
        storage_proof = RLPProof.deserialize(r)
        return cls(
            proof_data=proof_data,
            address=address,
            balance=balance,
            code_hash=code_hash,
            nonce=nonce,
            storage_hash=storage_hash,
            storage_proof_key=storage_proof_key,
            storage_proof=storage_proof,
        )

    def safe_check(self, start: bytes) -> bytes:
        verifier = _verifier
        if verifier is None:
            log.warning("patricia branch checked with no verifier installed")
            return NULL_HASH
        return verifier(self, start)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d.update(
            accountproof=self.proof_data.to_list(),
            address=to_hex(self.address),
            balance=self.balance,
            codehash=to_hex(self.code_hash, prefix=False),
            nonce=self.nonce,
            storagehash=to_hex(self.storage_hash, prefix=False),
            storageproofkey=to_hex(self.storage_proof_key, prefix=False),
            storageproof=self.storage_proof.to_list(),
        )
        return d


__all__ = ["RLPProof", "PatriciaBranch", "set_verifier", "get_verifier"]
