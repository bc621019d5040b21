"""
MMR • check_proof
=================

Decode a serialized proof and replay it from a starting hash.

Several proof arguments are treated as multipart chunks and reassembled
before checking. Exit status: 0 when the proof replays to a non-null hash
(and matches --root, if given), 1 when it does not, 2 on bad input.
Without --root only the replay is checked; compare the printed result
against a trusted root yourself.

Examples
--------
python -m mmr.cli.check_proof --start 0x22..22 0x0100000002...
python -m mmr.cli.check_proof --start 0x22..22 --root 0xab..cd --in proof.hex
python -m mmr.cli.check_proof --start 0x22..22 0x01000000050501... 0x01000000050501...
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from mmr.config import get_config
from mmr.constants import NULL_HASH
from mmr.errors import MMRError
from mmr.logging import bind, configure_from_config, get_logger, trace_scope
from mmr.proof import MMRProof
from mmr.utils.bytes import ensure_len, from_hex, to_hex
from mmr.version import __version__

log = get_logger("mmr.cli.check_proof")


def _read_proofs(values: List[str], in_path: Optional[str]) -> List[bytes]:
    items = list(values)
    if in_path is not None:
        if in_path == "-":
            text = sys.stdin.read()
        else:
            with open(in_path, "r", encoding="utf-8") as f:
                text = f.read()
        items.extend(text.split())
    return [from_hex(s) for s in items if s.strip()]


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="MMR • check proof — replay a serialized proof from a start hash"
    )
    p.add_argument("proofs", nargs="*", help="serialized proof as hex (several = multipart chunks)")
    p.add_argument(
        "--in",
        dest="in_path",
        default=None,
        help="read whitespace-separated hex proofs from a file ('-' for stdin)",
    )
    p.add_argument("--start", required=True, help="starting hash (leaf hash or power-leaf pre-hash)")
    p.add_argument("--root", default=None, help="expected root; exit 1 on mismatch")
    p.add_argument("--json", action="store_true", help="emit a JSON summary")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def run(args: argparse.Namespace) -> Dict[str, Any]:
    blobs = _read_proofs(args.proofs, args.in_path)
    if not blobs:
        raise ValueError("no proof given")
    start = ensure_len(from_hex(args.start), 32, name="start hash")
    expected = ensure_len(from_hex(args.root), 32, name="root") if args.root else None

    if len(blobs) == 1:
        proof = MMRProof.from_bytes(blobs[0], strict=True)
    else:
        chunks = [MMRProof.from_bytes(blob, strict=True) for blob in blobs]
        proof = MMRProof.from_chunks(chunks, strict=True)

    result = proof.check_proof(start)
    ok = result != NULL_HASH and (expected is None or result == expected)
    log.debug("proof checked", extra={"branches": len(proof), "ok": ok})
    out: Dict[str, Any] = {
        "branches": len(proof),
        "result": to_hex(result),
        "valid": ok,
        "proof": proof.to_dict(),
    }
    if expected is not None:
        out["expected"] = to_hex(expected)
    return out


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_from_config(get_config(), stream=sys.stderr)
    with trace_scope():
        bind(component="mmr-check")
        try:
            out = run(args)
        except (MMRError, ValueError, OSError) as e:
            log.debug("check failed", extra={"error": str(e)})
            print(f"error: {e}", file=sys.stderr)
            return 2

    if args.json:
        print(json.dumps(out, indent=2))
    else:
        print(f"branches: {out['branches']}")
        print(f"result:   {out['result']}")
        if "expected" in out:
            print(f"expected: {out['expected']}")
        if not out["valid"]:
            print("INVALID")
        elif "expected" in out:
            print("valid")
        else:
            print("replayed (no --root given)")
    return 0 if out["valid"] else 1


if __name__ == "__main__":
    sys.exit(main())
