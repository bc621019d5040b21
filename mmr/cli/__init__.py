"""
MMR command line tools.

- build_root.py  : build an MMR from leaf hashes; print root, peaks, proofs
- check_proof.py : decode a serialized proof and replay it from a start hash

Each tool is importable (`main(argv) -> int`) and runnable as a script, e.g.
`python -m mmr.cli.build_root`.
"""

from mmr.version import __version__

__all__ = ["__version__"]
