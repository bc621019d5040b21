import json

from mmr.cli import build_root, check_proof
from mmr.node import MMRNode
from mmr.range import MerkleMountainRange
from mmr.utils.bytes import to_hex
from mmr.view import MerkleMountainView


def _hex_leaves(leaves):
    return [to_hex(h) for h in leaves]


def _root(leaves, size=0):
    m = MerkleMountainRange()
    for h in leaves:
        m.add(MMRNode(h))
    return MerkleMountainView(m, size).get_root()


# ---------------------------
# build_root
# ---------------------------


def test_build_root_json(capsys, leaf_hashes):
    hs = leaf_hashes(5)
    rc = build_root.main(_hex_leaves(hs) + ["--json", "--peaks", "--proof", "2"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["size"] == 5
    assert out["height"] == 3
    assert out["root"] == to_hex(_root(hs))
    assert len(out["peaks"]) == 2
    assert out["proof"].startswith("0x01000000")


def test_build_root_from_file_with_view_size(tmp_path, capsys, leaf_hashes):
    hs = leaf_hashes(9)
    path = tmp_path / "leaves.txt"
    path.write_text("# leaves\n" + "\n".join(h.hex() for h in hs) + "\n")
    rc = build_root.main(["--in", str(path), "--view-size", "4"])
    assert rc == 0
    text = capsys.readouterr().out
    assert f"root:   {to_hex(_root(hs, 4))}" in text
    assert "size:   4" in text


def test_build_root_rejects_bad_input(capsys):
    assert build_root.main(["0x1234"]) == 2
    assert "error" in capsys.readouterr().err
    assert build_root.main([]) == 2


def test_build_root_proof_out_of_range(capsys, leaf_hashes):
    assert build_root.main(_hex_leaves(leaf_hashes(3)) + ["--proof", "3"]) == 2


# ---------------------------
# check_proof
# ---------------------------


def _proof_for(capsys, args):
    assert build_root.main(args + ["--json"]) == 0
    return json.loads(capsys.readouterr().out)


def test_check_proof_round_trip(capsys, leaf_hashes):
    hs = leaf_hashes(7)
    built = _proof_for(capsys, _hex_leaves(hs) + ["--proof", "4"])
    rc = check_proof.main([built["proof"], "--start", to_hex(hs[4]), "--root", built["root"], "--json"])
    assert rc == 0
    out = json.loads(capsys.readouterr().out)
    assert out["valid"] is True
    assert out["result"] == built["root"]
    assert out["proof"]["proofsequence"][0]["branchtype"] == 2


def test_check_proof_mismatch_exits_one(capsys, leaf_hashes):
    hs = leaf_hashes(7)
    built = _proof_for(capsys, _hex_leaves(hs) + ["--proof", "4"])
    rc = check_proof.main([built["proof"], "--start", to_hex(hs[3]), "--root", built["root"]])
    assert rc == 1
    out = capsys.readouterr().out
    assert "INVALID" in out
    assert f"expected: {built['root']}" in out


def test_check_proof_without_root_reports_replay_only(capsys, leaf_hashes):
    hs = leaf_hashes(7)
    built = _proof_for(capsys, _hex_leaves(hs) + ["--proof", "4"])
    rc = check_proof.main([built["proof"], "--start", to_hex(hs[3])])
    assert rc == 0
    out = capsys.readouterr().out
    assert built["root"] not in out
    assert "replayed" in out
    assert "valid" not in out


def test_check_proof_multipart_chunks(capsys, leaf_hashes):
    hs = leaf_hashes(40)
    built = _proof_for(capsys, _hex_leaves(hs) + ["--proof", "17", "--chunk-size", "32"])
    assert len(built["chunks"]) > 1
    rc = check_proof.main(built["chunks"] + ["--start", to_hex(hs[17]), "--root", built["root"]])
    assert rc == 0
    assert "valid" in capsys.readouterr().out


def test_check_proof_power_leaves(tmp_path, capsys, leaf_hashes):
    pres = leaf_hashes(6)
    path = tmp_path / "power.txt"
    path.write_text("\n".join(f"{p.hex()},{i},{i * 3}" for i, p in enumerate(pres)))
    built = _proof_for(capsys, ["--power", "--in", str(path), "--proof", "5"])
    proof_file = tmp_path / "proof.hex"
    proof_file.write_text(built["proof"])
    rc = check_proof.main(["--in", str(proof_file), "--start", to_hex(pres[5]), "--root", built["root"]])
    assert rc == 0


def test_check_proof_corrupt_input(capsys, leaf_hashes):
    rc = check_proof.main(["0x0100000009", "--start", to_hex(leaf_hashes(1)[0])])
    assert rc == 2
    assert "error" in capsys.readouterr().err


def test_version_flag(capsys):
    import pytest

    from mmr.version import __version__

    with pytest.raises(SystemExit) as ei:
        check_proof.main(["--version"])
    assert ei.value.code == 0
    assert __version__ in capsys.readouterr().out


# ---------------------------
# Log context
# ---------------------------


def _json_log_lines(err):
    return [json.loads(ln) for ln in err.splitlines() if ln.startswith("{")]


def test_cli_logs_carry_component_and_trace_id(monkeypatch, capsys, leaf_hashes):
    from mmr import logging as mlog
    from mmr.config import get_config

    monkeypatch.setenv("MMR_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("MMR_LOG_FORMAT", "json")
    get_config.cache_clear()

    hs = leaf_hashes(5)
    assert build_root.main(_hex_leaves(hs) + ["--proof", "2", "--json"]) == 0
    captured = capsys.readouterr()
    built = json.loads(captured.out)
    recs = [r for r in _json_log_lines(captured.err) if r["msg"] == "proof built"]
    assert len(recs) == 1
    assert recs[0]["component"] == "mmr-root"
    assert recs[0]["trace_id"]
    assert recs[0]["pos"] == 2

    assert check_proof.main([built["proof"], "--start", to_hex(hs[2])]) == 0
    recs = [r for r in _json_log_lines(capsys.readouterr().err) if r["msg"] == "proof checked"]
    assert len(recs) == 1
    assert recs[0]["component"] == "mmr-check"
    assert mlog.context() == {}
