"""
Merkle Mountain View

A read-only window onto a `MerkleMountainRange` frozen at a size no larger
than the range itself. The view computes, lazily and once:

  • peaks        the top node of every mountain, highest mountain first
  • peak_merkle  pairwise reduction of the peaks down to a single node;
                 an unpaired last entry passes through a layer unchanged

and builds inclusion proofs for any leaf below its size.

A view never reads beyond `sizes[0]`, so appends to the underlying range do
not disturb it. Truncating the range below the view size does.
"""

from __future__ import annotations

from typing import Any, Generic, List, Optional, TypeVar

from .branch import MMRBranch, branch_class_for
from .constants import NULL_HASH
from .errors import UnsupportedNodeError
from .path import MOUNTAIN, is_peak, proof_steps
from .proof import MMRProof
from .range import MerkleMountainRange, layer_sizes

N = TypeVar("N")


class MerkleMountainView(Generic[N]):
    """
    Snapshot of `mmr` at `view_size` leaves. A size of 0, or one larger than
    the range, selects the range's current size.
    """

    def __init__(self, mmr: MerkleMountainRange[N], view_size: int = 0) -> None:
        self.mmr = mmr
        self.sizes: List[int] = []
        self.peaks: List[N] = []
        self.peak_merkle: List[List[N]] = []
        self._set_sizes(view_size)

    @classmethod
    def from_view(cls, view: "MerkleMountainView[N]", view_size: int = 0) -> "MerkleMountainView[N]":
        """New view over the same range at another size."""
        return cls(view.mmr, view_size)

    def _set_sizes(self, view_size: int) -> None:
        max_size = self.mmr.size()
        if view_size <= 0 or view_size > max_size:
            view_size = max_size
        self.sizes = layer_sizes(view_size)

    # ------------------------------------------------------------------ #
    # Size
    # ------------------------------------------------------------------ #

    def size(self) -> int:
        return self.sizes[0] if self.sizes else 0

    def __len__(self) -> int:
        return self.size()

    def max_size(self) -> int:
        """Largest leaf index of the underlying range."""
        return self.mmr.size() - 1

    def resize(self, new_size: int) -> int:
        """
        Re-target the view (clamped to the range size) and drop cached
        peaks. Returns the resulting size.
        """
        if new_size != self.size():
            self.peaks = []
            self.peak_merkle = []
            self.sizes = layer_sizes(min(max(new_size, 0), self.mmr.size()))
        return self.size()

    # ------------------------------------------------------------------ #
    # Peaks and root
    # ------------------------------------------------------------------ #

    def calc_peaks(self, force: bool = False) -> None:
        if force or (not self.peaks and self.size() != 0):
            self.peaks = []
            self.peak_merkle = []
            for ht in range(len(self.sizes)):
                if is_peak(self.sizes, ht):
                    self.peaks.insert(0, self.mmr.get_node(ht, self.sizes[ht] - 1))

    def get_peaks(self) -> List[N]:
        self.calc_peaks()
        return self.peaks

    def get_root(self) -> bytes:
        """Root hash of the view; the null hash for an empty view."""
        if self.size() > 0 and not self.peak_merkle:
            self.calc_peaks()
            below: List[Any] = self.peaks
            while not self.peak_merkle or len(below) > 1:
                layer = [
                    below[i].create_parent(below[i + 1]) for i in range(0, len(below) - 1, 2)
                ]
                if len(below) & 1:
                    layer.append(below[-1])
                self.peak_merkle.append(layer)
                below = layer
        if self.peak_merkle:
            return self.peak_merkle[-1][0].hash
        return NULL_HASH

    def get_root_node(self) -> Optional[N]:
        if self.size() == 0:
            return None
        self.get_root()
        return self.peak_merkle[-1][0]

    def get_hash(self, index: int) -> bytes:
        """Leaf hash at `index`, or the null hash outside the view."""
        if 0 <= index < self.size():
            return self.mmr.layer0[index].hash
        return NULL_HASH

    # ------------------------------------------------------------------ #
    # Proofs
    # ------------------------------------------------------------------ #

    def get_branch(self, pos: int) -> Optional[MMRBranch]:
        """
        MMR branch proving the leaf at `pos` against `get_root()`, or None if
        pos is outside the view.
        """
        if not (0 <= pos < self.size()):
            return None
        branch_cls = branch_class_for(self.mmr.node_type)
        if branch_cls is None:
            raise UnsupportedNodeError(
                "node type has no proof branch encoding",
                data={"node_type": getattr(self.mmr.node_type, "__name__", str(self.mmr.node_type))},
            )

        self.get_root()

        hashes: List[bytes] = list(self.mmr.layer0[pos].leaf_extra_hashes())
        for step in proof_steps(pos, self.size()):
            if step.tier == MOUNTAIN:
                sibling = self.mmr.get_node(step.layer, step.sibling)
                current = self.mmr.get_node(step.layer, step.index)
            else:
                layer = self.peaks if step.layer == 0 else self.peak_merkle[step.layer - 1]
                sibling, current = layer[step.sibling], layer[step.index]
            hashes.extend(sibling.proof_hashes(current))

        return branch_cls(index=pos, size=self.size(), branch=hashes)

    def get_proof(self, pos: int, proof: Optional[MMRProof] = None) -> Optional[MMRProof]:
        """
        Append the branch for `pos` to `proof` (a new `MMRProof` if omitted)
        and return it; None if pos is outside the view.
        """
        branch = self.get_branch(pos)
        if branch is None:
            return None
        if proof is None:
            proof = MMRProof()
        proof.append(branch)
        return proof

    def __repr__(self) -> str:
        return f"MerkleMountainView(size={self.size()}, peaks={len(self.peaks)})"


__all__ = ["MerkleMountainView"]
