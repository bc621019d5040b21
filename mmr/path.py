"""
Proof path math

The path from a leaf to the root of a view of size `n` has two tiers:

  1. Mountain tier. Walk up the heights of the MMR. At height l with local
     index p: an odd p pairs with p - 1 (sibling on the LEFT), an even p
     pairs with p + 1 when that node exists (sibling on the RIGHT). When an
     even p has no right neighbour, p is the peak of its mountain and the
     walk moves to the second tier.

  2. Peak tier. Peaks are ordered highest mountain first and reduced
     pairwise, layer by layer; an unpaired last entry passes through to the
     next layer unchanged and contributes no proof step for that layer.

Everything here depends only on (pos, n). `MerkleMountainView.get_proof`
uses `proof_steps` to decide which nodes to emit, and verification uses
`get_mmr_proof_index` to rebuild the left/right bits, so generator and
verifier share one derivation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from .range import layer_sizes

MOUNTAIN = "mountain"
PEAKS = "peaks"


@dataclass(frozen=True)
class PathStep:
    """
    One sibling step.

      • tier    : MOUNTAIN (layer = MMR height) or PEAKS (layer 0 = the peaks,
                  layer k = k-th reduction of the peak merkle)
      • index   : position of the running node within that layer
      • sibling : position of the sibling within that layer
    """

    tier: str
    layer: int
    index: int
    sibling: int

    @property
    def bit(self) -> int:
        """1 if the running node is the right child (sibling on the left)."""
        return self.index & 1


def is_peak(sizes: List[int], height: int) -> bool:
    """
    A height holds a peak if it is the top, or the layer above it is smaller
    than half of this layer rounded up (i.e. this layer has odd length).
    """
    return height == len(sizes) - 1 or sizes[height + 1] < ((sizes[height] + 1) >> 1)


def peak_heights(size: int) -> List[int]:
    """Heights holding a peak for a view of `size`, highest first."""
    if size <= 0:
        return []
    sizes = layer_sizes(size)
    return [ht for ht in reversed(range(len(sizes))) if is_peak(sizes, ht)]


def peak_merkle_sizes(peak_count: int) -> List[int]:
    """
    Lengths of the successive peak-merkle layers above the peaks themselves.
    Always yields at least one layer, ending with 1 (empty for no peaks).
    """
    if peak_count <= 0:
        return []
    out: List[int] = []
    layer_size = peak_count
    while not out or layer_size > 1:
        layer_size = (layer_size >> 1) + (layer_size & 1)
        out.append(layer_size)
    return out


def proof_steps(pos: int, size: int) -> List[PathStep]:
    """
    Sibling steps for the leaf at `pos` in a view of `size`, bottom to root.

    Raises IndexError if pos is outside [0, size).
    """
    if not (0 <= pos < size):
        raise IndexError(f"position {pos} out of range [0, {size})")

    sizes = layer_sizes(size)
    steps: List[PathStep] = []
    p = pos
    for height, layer_size in enumerate(sizes):
        if p & 1:
            steps.append(PathStep(MOUNTAIN, height, p, p - 1))
            p >>= 1
        elif layer_size > p + 1:
            steps.append(PathStep(MOUNTAIN, height, p, p + 1))
            p >>= 1
        else:
            # p tops its mountain; continue through the peak merkle.
            heights = peak_heights(size)
            merkle = peak_merkle_sizes(len(heights))
            p = heights.index(height)
            layer, span = 0, len(heights)
            while layer == 0 or span > 1:
                if p < span - 1 or p & 1:
                    steps.append(PathStep(PEAKS, layer, p, p - 1 if p & 1 else p + 1))
                p >>= 1
                span = merkle[layer]
                layer += 1
            break
    return steps


def get_proof_bits(pos: int, size: int, extra_hash_count: int = 0) -> List[int]:
    """
    The left/right bit consumed by each proof element, in order.

    A 1 means the element is a LEFT sibling. Extra per-step hashes (the power
    word of power nodes) occupy 0 bits: one block before the first step for
    the leaf, and one block after every step. Empty when pos is outside the
    view.
    """
    if not (0 <= pos < size):
        return []
    extra = [0] * extra_hash_count
    bits: List[int] = list(extra)
    for step in proof_steps(pos, size):
        bits.append(step.bit)
        bits.extend(extra)
    return bits


def get_mmr_proof_index(pos: int, size: int, extra_hash_count: int = 0) -> int:
    """
    Pack `get_proof_bits` LSB-first into the integer a verifier shifts
    through. Returns -1 when pos is outside the view.
    """
    if not (0 <= pos < size):
        return -1
    index = 0
    for i, bit in enumerate(get_proof_bits(pos, size, extra_hash_count)):
        index |= bit << i
    return index


def proof_length(pos: int, size: int, extra_hash_count: int = 0) -> int:
    """Number of hashes in the MMR proof for `pos`, 0 outside the view."""
    return len(get_proof_bits(pos, size, extra_hash_count))


__all__ = [
    "MOUNTAIN",
    "PEAKS",
    "PathStep",
    "is_peak",
    "peak_heights",
    "peak_merkle_sizes",
    "proof_steps",
    "get_proof_bits",
    "get_mmr_proof_index",
    "proof_length",
]
