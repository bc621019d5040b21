from __future__ import annotations

"""
MMR • build_root
================

Build a Merkle Mountain Range from 32-byte leaf hashes and print its root.

Leaves are hex strings, one per argument or per line of the input file.
With --power each leaf is `PREHASH,STAKE,WORK` and the range is built from
power nodes; proofs for power leaves start from PREHASH.

Examples
--------
# Root of three leaves
python -m mmr.cli.build_root 0x11..11 0x22..22 0x33..33

# Root of the first 5 leaves in a file, plus peaks and a proof for leaf 2
python -m mmr.cli.build_root --in leaves.txt --view-size 5 --peaks --proof 2

# Split the proof into multipart chunks of at most 64 bytes, JSON output
python -m mmr.cli.build_root --in leaves.txt --proof 2 --chunk-size 64 --json
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

from mmr.config import get_config
from mmr.errors import MMRError
from mmr.logging import bind, configure_from_config, get_logger, trace_scope
from mmr.node import MMRNode, PowerNode
from mmr.range import MerkleMountainRange
from mmr.utils.bytes import ensure_len, from_hex, to_hex
from mmr.version import __version__
from mmr.view import MerkleMountainView

log = get_logger("mmr.cli.build_root")


def _read_lines(values: List[str], in_path: Optional[str]) -> List[str]:
    lines = list(values)
    if in_path is not None:
        if in_path == "-":
            text = sys.stdin.read()
        else:
            with open(in_path, "r", encoding="utf-8") as f:
                text = f.read()
        lines.extend(text.splitlines())
    return [ln.strip() for ln in lines if ln.strip() and not ln.strip().startswith("#")]


def _parse_leaf(line: str, power: bool) -> Any:
    if not power:
        return MMRNode(ensure_len(from_hex(line), 32, name="leaf hash"))
    parts = [p.strip() for p in line.split(",")]
    if len(parts) != 3:
        raise ValueError(f"power leaf must be PREHASH,STAKE,WORK: {line!r}")
    pre = ensure_len(from_hex(parts[0]), 32, name="leaf pre-hash")
    return PowerNode.make_leaf(pre, int(parts[1], 0), int(parts[2], 0))


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="MMR • build root — compute the root (and proofs) of a Merkle Mountain Range"
    )
    p.add_argument("leaves", nargs="*", help="leaf hashes as hex (32 bytes each)")
    p.add_argument(
        "--in",
        dest="in_path",
        default=None,
        help="read leaves from a file, one per line ('-' for stdin)",
    )
    p.add_argument(
        "--power",
        action="store_true",
        help="leaves are PREHASH,STAKE,WORK and the range holds power nodes",
    )
    p.add_argument(
        "--view-size",
        type=int,
        default=0,
        help="number of leaves to compute the root over (default: all)",
    )
    p.add_argument("--peaks", action="store_true", help="also print the peak hashes")
    p.add_argument("--proof", type=int, default=None, metavar="POS", help="emit a proof for leaf POS")
    p.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="split the proof into multipart chunks of at most this many bytes",
    )
    p.add_argument("--json", action="store_true", help="emit a JSON summary")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def run(args: argparse.Namespace) -> Dict[str, Any]:
    leaves = [_parse_leaf(ln, args.power) for ln in _read_lines(args.leaves, args.in_path)]
    if not leaves:
        raise ValueError("no leaves given")

    mmr = MerkleMountainRange(PowerNode if args.power else MMRNode)
    for leaf in leaves:
        mmr.add(leaf)

    view = MerkleMountainView(mmr, args.view_size)
    out: Dict[str, Any] = {
        "size": view.size(),
        "height": mmr.height(),
        "root": to_hex(view.get_root()),
    }
    if args.peaks:
        out["peaks"] = [to_hex(pk.hash) for pk in view.get_peaks()]

    if args.proof is not None:
        proof = view.get_proof(args.proof)
        if proof is None:
            raise ValueError(f"position {args.proof} is outside the view of size {view.size()}")
        out["proof"] = to_hex(proof.to_bytes())
        if args.chunk_size is not None:
            out["chunks"] = [to_hex(c.to_bytes()) for c in proof.break_to_chunks(args.chunk_size)]
        log.debug("proof built", extra={"pos": args.proof, "view_size": view.size()})
    return out


def _print_text(out: Dict[str, Any]) -> None:
    print(f"size:   {out['size']}")
    print(f"height: {out['height']}")
    print(f"root:   {out['root']}")
    for i, pk in enumerate(out.get("peaks", [])):
        print(f"peak[{i}]: {pk}")
    if "proof" in out:
        print(f"proof:  {out['proof']}")
    for i, c in enumerate(out.get("chunks", [])):
        print(f"chunk[{i}]: {c}")


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_from_config(get_config(), stream=sys.stderr)
    with trace_scope():
        bind(component="mmr-root")
        try:
            out = run(args)
        except (MMRError, ValueError, OSError) as e:
            log.debug("build failed", extra={"error": str(e)})
            print(f"error: {e}", file=sys.stderr)
            return 2

    if args.json:
        print(json.dumps(out, indent=2))
    else:
        _print_text(out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
