import logging

import pytest

from mmr.branch import MerkleBranch, MMRNodeBranch, MMRPowerNodeBranch
from mmr.constants import NULL_HASH, BranchType
from mmr.errors import ProofCorruptError, SerializationError
from mmr.node import MMRNode
from mmr.patricia import PatriciaBranch, RLPProof
from mmr.proof import MMRProof, MultiPartProof
from mmr.range import MerkleMountainRange
from mmr.serialize import Reader, Writer
from mmr.view import MerkleMountainView


def _h(i: int) -> bytes:
    return bytes([i]) * 32


def _view(hashes):
    m = MerkleMountainRange()
    for h in hashes:
        m.add(MMRNode(h))
    return MerkleMountainView(m)


# ---------------------------
# Wire fixtures
# ---------------------------


def test_single_mmr_branch_wire_layout():
    proof = MMRProof([MMRNodeBranch(index=2, size=5, branch=[_h(7)])])
    expected = bytes.fromhex("01000000" "02" "02" "02" "05" "01") + _h(7)
    assert proof.to_bytes() == expected


def test_btc_branch_wire_layout():
    proof = MMRProof([MerkleBranch(index=0x80, branch=[_h(1), _h(2)])])
    expected = bytes.fromhex("01000000" "01" "01" "8000" "02") + _h(1) + _h(2)
    assert proof.to_bytes() == expected


def test_multipart_wire_layout():
    proof = MMRProof([MultiPartProof(b"\xaa\xbb")])
    assert proof.to_bytes() == bytes.fromhex("01000000" "05" "05" "02aabb")


def test_empty_proof_wire_layout():
    assert MMRProof().to_bytes() == b"\x00\x00\x00\x00"
    assert len(MMRProof.from_bytes(b"\x00\x00\x00\x00")) == 0


# ---------------------------
# Round trips
# ---------------------------


def _mixed_proof() -> MMRProof:
    patricia = PatriciaBranch(
        proof_data=RLPProof([b"\xf8\x51", b"\x01" * 40]),
        address=bytes(range(20)),
        balance=10**18,
        code_hash=_h(3),
        nonce=9,
        storage_hash=_h(4),
        storage_proof_key=_h(5),
        storage_proof=RLPProof([b"\xc0"]),
    )
    return MMRProof(
        [
            MerkleBranch(index=3, branch=[_h(1), _h(2)]),
            MMRNodeBranch(index=4, size=9, branch=[_h(6), _h(7), _h(8)]),
            MMRPowerNodeBranch(index=0, size=1, branch=[_h(9)]),
            patricia,
            MultiPartProof(b"xyz"),
        ]
    )


def test_mixed_proof_round_trip():
    proof = _mixed_proof()
    decoded = MMRProof.from_bytes(proof.to_bytes(), strict=True)
    assert not decoded.corrupt
    assert decoded == proof
    assert [br.branch_type for br in decoded.branches] == [
        BranchType.BTC,
        BranchType.MMR_NODE,
        BranchType.MMR_POWER_NODE,
        BranchType.ETH,
        BranchType.MULTIPART,
    ]


def test_view_proof_survives_serialization(leaf_hashes):
    hs = leaf_hashes(23)
    view = _view(hs)
    for pos in (0, 7, 15, 22):
        data = view.get_proof(pos).to_bytes()
        assert MMRProof.from_bytes(data).check_proof(hs[pos]) == view.get_root()


def test_deserialize_leaves_reader_after_proof():
    data = _mixed_proof().to_bytes() + b"tail"
    r = Reader(data)
    MMRProof.deserialize(r)
    assert r.raw(r.remaining()) == b"tail"


# ---------------------------
# Fail-closed decoding
# ---------------------------


def test_unknown_tag_discards_everything(caplog):
    good = MMRProof([MMRNodeBranch(index=0, size=1, branch=[])]).to_bytes()
    # bump the count to 2 and append an unknown tag
    data = b"\x02\x00\x00\x00" + good[4:] + b"\x09"
    with caplog.at_level(logging.ERROR, logger="mmr.proof"):
        proof = MMRProof.from_bytes(data)
    assert proof.corrupt
    assert len(proof) == 0
    assert proof.check_proof(_h(1)) == NULL_HASH
    assert any("corrupt" in rec.getMessage() for rec in caplog.records)


def test_truncated_stream_is_corrupt():
    data = _mixed_proof().to_bytes()
    for cut in (3, 10, len(data) // 2, len(data) - 1):
        proof = MMRProof.from_bytes(data[:cut])
        assert proof.corrupt and len(proof) == 0


def test_mismatched_inner_tag_is_corrupt():
    data = bytearray(MMRProof([MMRNodeBranch(index=0, size=1, branch=[])]).to_bytes())
    data[5] = BranchType.MMR_POWER_NODE
    assert MMRProof.from_bytes(bytes(data)).corrupt


def test_trailing_bytes_are_corrupt():
    data = MMRProof([MultiPartProof(b"a")]).to_bytes() + b"\x00"
    assert MMRProof.from_bytes(data).corrupt
    with pytest.raises(ProofCorruptError):
        MMRProof.from_bytes(data, strict=True)


def test_strict_raises_with_cause():
    with pytest.raises(ProofCorruptError) as ei:
        MMRProof.from_bytes(b"\x01\x00\x00\x00\x00", strict=True)
    assert ei.value.data["branch_type"] == 0


def test_negative_count_is_corrupt():
    assert MMRProof.from_bytes(b"\xff\xff\xff\xff").corrupt


# ---------------------------
# Checking
# ---------------------------


def test_check_proof_chains_branches(leaf_hashes):
    inner_leaves = leaf_hashes(5)
    inner = _view(inner_leaves)
    inner_root = inner.get_root()

    outer_leaves = leaf_hashes(12)
    outer_leaves[6] = inner_root
    outer = _view(outer_leaves)

    proof = inner.get_proof(3)
    outer.get_proof(6, proof)
    assert len(proof) == 2
    assert proof.check_proof(inner_leaves[3]) == outer.get_root()


def test_check_proof_stops_on_failed_branch(leaf_hashes):
    hs = leaf_hashes(4)
    view = _view(hs)
    proof = MMRProof([MMRNodeBranch(index=9, size=4, branch=[])])
    proof << view.get_branch(0)
    assert proof.check_proof(hs[0]) == NULL_HASH


def test_empty_and_multipart_proofs_never_verify():
    assert MMRProof().check_proof(_h(1)) == NULL_HASH
    assert MMRProof().check_proof(_h(1)) != _h(1)
    assert MMRProof([MultiPartProof(b"abc")]).check_proof(_h(1)) == NULL_HASH


def test_append_copies_branch():
    br = MMRNodeBranch(index=0, size=2, branch=[_h(1)])
    proof = MMRProof()
    proof.append(br)
    br.branch.append(_h(2))
    assert proof.branches[0].branch == [_h(1)]


def test_to_dict():
    d = MMRProof([MultiPartProof(b"\x01")]).to_dict()
    assert d == {"proofsequence": [{"branchtype": 5, "data": "01"}]}


# ---------------------------
# Multipart
# ---------------------------


def test_break_to_chunks_round_trip(leaf_hashes):
    hs = leaf_hashes(100)
    view = _view(hs)
    proof = view.get_proof(37)
    view.get_proof(99, proof)
    proof << MerkleBranch(index=1, branch=[_h(1)])

    chunks = proof.break_to_chunks(50)
    assert len(chunks) > 1
    assert all(c.is_multipart() for c in chunks)
    assert all(len(c.branches[0].vch) <= 50 for c in chunks)

    wire = [c.to_bytes() for c in chunks]
    rebuilt = MMRProof.from_chunks(MMRProof.from_bytes(w) for w in wire)
    assert rebuilt == proof
    assert rebuilt.to_bytes() == proof.to_bytes()
    assert rebuilt.check_proof(hs[37]) == proof.check_proof(hs[37])


def test_break_to_chunks_default_size_from_config(monkeypatch, leaf_hashes):
    from mmr.config import get_config

    monkeypatch.setenv("MMR_MULTIPART_CHUNK_SIZE", "16")
    get_config.cache_clear()
    proof = _view(leaf_hashes(8)).get_proof(3)
    size = len(proof.to_bytes())
    chunks = proof.break_to_chunks()
    assert len(chunks) == (size + 15) // 16


def test_multipart_from_proofs_rejects_non_multipart():
    with pytest.raises(SerializationError):
        MultiPartProof.from_proofs([MMRProof([MerkleBranch()])])


def test_multipart_concatenation():
    a, b = MultiPartProof(b"ab"), MultiPartProof(b"cd")
    assert (a << b).vch == b"abcd"
    assert a.vch == b"ab"
    a <<= b
    assert a.vch == b"abcd"


def test_break_to_chunks_rejects_bad_size():
    with pytest.raises(ValueError):
        MultiPartProof(b"abc").break_to_chunks(0)


def test_writer_serializes_proof_inline():
    w = Writer()
    MMRProof([MultiPartProof(b"")]).serialize(w)
    assert w.getvalue() == bytes.fromhex("01000000" "05" "05" "00")
