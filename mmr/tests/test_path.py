import pytest

from mmr.path import (
    MOUNTAIN,
    PEAKS,
    get_mmr_proof_index,
    get_proof_bits,
    is_peak,
    peak_heights,
    peak_merkle_sizes,
    proof_length,
    proof_steps,
)
from mmr.range import layer_sizes


# ---------------------------
# Peaks
# ---------------------------


@pytest.mark.parametrize("n", list(range(1, 70)))
def test_peak_count_is_popcount(n):
    assert len(peak_heights(n)) == bin(n).count("1")


@pytest.mark.parametrize("n", list(range(1, 70)))
def test_peak_heights_are_set_bits_highest_first(n):
    assert peak_heights(n) == [h for h in reversed(range(n.bit_length())) if (n >> h) & 1]


def test_is_peak_top_is_always_peak():
    sizes = layer_sizes(6)
    assert is_peak(sizes, len(sizes) - 1)
    assert not is_peak(sizes, 0)
    assert is_peak(sizes, 1)


def test_peak_merkle_sizes():
    assert peak_merkle_sizes(0) == []
    assert peak_merkle_sizes(1) == [1]
    assert peak_merkle_sizes(2) == [1]
    assert peak_merkle_sizes(3) == [2, 1]
    assert peak_merkle_sizes(5) == [3, 2, 1]


# ---------------------------
# Steps
# ---------------------------


def test_steps_five_leaves_pos_two():
    steps = proof_steps(2, 5)
    assert [(s.tier, s.layer, s.index, s.sibling) for s in steps] == [
        (MOUNTAIN, 0, 2, 3),
        (MOUNTAIN, 1, 1, 0),
        (PEAKS, 0, 0, 1),
    ]
    assert [s.bit for s in steps] == [0, 1, 0]


def test_steps_single_leaf_is_empty():
    assert proof_steps(0, 1) == []


def test_steps_unpaired_peak_passes_through():
    # size 7 -> peaks at heights 2, 1, 0; the third peak is unpaired in the
    # first peak-merkle layer and only pairs one layer up.
    steps = proof_steps(6, 7)
    assert [(s.tier, s.layer, s.index, s.sibling) for s in steps] == [
        (PEAKS, 1, 1, 0),
    ]


def test_steps_out_of_range():
    with pytest.raises(IndexError):
        proof_steps(5, 5)
    with pytest.raises(IndexError):
        proof_steps(-1, 5)


# ---------------------------
# Bits / packed index
# ---------------------------


def test_bits_interleave_extra_hash_zeros():
    assert get_proof_bits(2, 5) == [0, 1, 0]
    assert get_proof_bits(2, 5, 1) == [0, 0, 0, 1, 0, 0, 0]


def test_packed_index():
    assert get_mmr_proof_index(2, 5) == 0b010
    assert get_mmr_proof_index(2, 5, 1) == 0b0001000
    assert get_mmr_proof_index(5, 5) == -1


@pytest.mark.parametrize("pos,size", [(5, 5), (-1, 5), (0, 0), (9, 3)])
def test_bits_and_length_empty_outside_view(pos, size):
    assert get_proof_bits(pos, size) == []
    assert get_proof_bits(pos, size, 2) == []
    assert proof_length(pos, size) == 0
    assert proof_length(pos, size, 1) == 0


@pytest.mark.parametrize("extra", [0, 1, 2])
def test_bits_and_index_agree_for_all_positions(extra):
    for size in range(1, 90):
        for pos in range(size):
            bits = get_proof_bits(pos, size, extra)
            assert len(bits) == proof_length(pos, size, extra)
            assert len(bits) == extra + len(proof_steps(pos, size)) * (1 + extra)
            packed = get_mmr_proof_index(pos, size, extra)
            assert packed == sum(bit << i for i, bit in enumerate(bits))
            assert packed >> len(bits) == 0
