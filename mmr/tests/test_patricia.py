import logging

from mmr.constants import NULL_HASH, BranchType
from mmr.patricia import PatriciaBranch, RLPProof, get_verifier, set_verifier
from mmr.proof import MMRProof
from mmr.serialize import Reader, Writer


def _branch(**kw) -> PatriciaBranch:
    fields = dict(
        proof_data=RLPProof([b"\x01\x02", b""]),
        address=b"\x11" * 20,
        balance=0x0102,
        code_hash=b"\x22" * 32,
        nonce=300,
        storage_hash=b"\x33" * 32,
        storage_proof_key=b"\x44" * 32,
        storage_proof=RLPProof([b"\x55" * 3]),
    )
    fields.update(kw)
    return PatriciaBranch(**fields)


def test_rlp_proof_layout():
    w = Writer()
    RLPProof([b"\xaa", b"\xbb\xcc"]).serialize(w)
    assert w.getvalue() == bytes.fromhex("02" "01aa" "02bbcc")
    assert RLPProof.deserialize(Reader(w.getvalue())).proof_branch == [b"\xaa", b"\xbb\xcc"]


def test_patricia_wire_layout():
    data = _branch().to_bytes()
    r = Reader(data)
    assert r.u8() == BranchType.ETH
    assert RLPProof.deserialize(r).proof_branch == [b"\x01\x02", b""]
    assert r.uint160() == b"\x11" * 20
    assert int.from_bytes(r.uint256(), "little") == 0x0102
    assert r.uint256() == b"\x22" * 32
    assert r.varint() == 300
    assert r.uint256() == b"\x33" * 32
    assert r.uint256() == b"\x44" * 32
    assert RLPProof.deserialize(r).proof_branch == [b"\x55" * 3]
    assert r.at_end()


def test_patricia_round_trip():
    br = _branch()
    assert PatriciaBranch.from_bytes(br.to_bytes()) == br


def test_balance_be():
    assert _branch(balance=0).balance_be() == b""
    assert _branch(balance=0x0102).balance_be() == b"\x01\x02"
    assert _branch(balance=255).balance_be() == b"\xff"


def test_no_verifier_fails_closed(caplog):
    prev = set_verifier(None)
    try:
        with caplog.at_level(logging.WARNING, logger="mmr.patricia"):
            assert _branch().safe_check(b"\x01" * 32) == NULL_HASH
        assert any("no verifier" in rec.getMessage() for rec in caplog.records)
    finally:
        set_verifier(prev)


def test_installed_verifier_is_used():
    seen = []

    def verify(branch, start):
        seen.append((branch.nonce, start))
        return b"\x77" * 32

    prev = set_verifier(verify)
    try:
        assert get_verifier() is verify
        proof = MMRProof([_branch()])
        assert proof.check_proof(b"\x01" * 32) == b"\x77" * 32
        assert seen == [(300, b"\x01" * 32)]
    finally:
        set_verifier(prev)


def test_concatenation_appends_branch_hashes():
    a = _branch(branch=[b"\x01" * 32])
    a <<= _branch(branch=[b"\x02" * 32])
    assert a.branch == [b"\x01" * 32, b"\x02" * 32]


def test_to_dict_fields():
    d = _branch().to_dict()
    assert d["branchtype"] == 4
    assert d["nonce"] == 300
    assert d["accountproof"] == ["0102", ""]
    assert d["address"] == "0x" + "11" * 20
