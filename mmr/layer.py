"""
Layers: indexable, appendable, truncatable node sequences

  • ChunkedLayer  owns its nodes, stored as a list of fixed-length chunks so
                  growth never copies one huge contiguous buffer
  • OverlayLayer  owns nothing; it tracks a size and forwards reads to an
                  external `NodeSource` (for example, a block index that can
                  produce the MMR node for any height on demand)

Both raise `LayerIndexError` when read at or past `size()`.
"""

from __future__ import annotations

from typing import Callable, Generic, Iterator, List, Optional, Protocol, TypeVar

from .config import get_config
from .errors import LayerIndexError

N = TypeVar("N")


class NodeSource(Protocol[N]):
    def get_mmr_node(self, index: int) -> N:
        ...


class ChunkedLayer(Generic[N]):
    """
    Growable node sequence made of `1 << chunk_shift` sized chunks.

    `default` builds the node used to fill slots when `resize` grows the layer.
    """

    def __init__(
        self,
        default: Callable[[], N],
        *,
        chunk_shift: Optional[int] = None,
    ) -> None:
        self._default = default
        self._shift = int(chunk_shift) if chunk_shift is not None else get_config().chunk_shift
        self._mask = (1 << self._shift) - 1
        self._chunks: List[List[N]] = []
        self._size = 0

    @property
    def chunk_size(self) -> int:
        return 1 << self._shift

    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, idx: int) -> N:
        if not (0 <= idx < self._size):
            raise LayerIndexError(
                "ChunkedLayer index out of range", data={"index": idx, "size": self._size}
            )
        return self._chunks[idx >> self._shift][idx & self._mask]

    def __iter__(self) -> Iterator[N]:
        for chunk in self._chunks:
            yield from chunk

    def append(self, node: N) -> None:
        if (self._size & self._mask) == 0:
            self._chunks.append([])
        self._chunks[-1].append(node)
        self._size += 1

    push_back = append

    def clear(self) -> None:
        self._chunks.clear()
        self._size = 0

    def resize(self, new_size: int) -> None:
        """Truncate to, or pad with default nodes up to, `new_size`."""
        if new_size < 0:
            raise ValueError("new_size must be >= 0")
        if new_size == 0:
            self.clear()
            return
        if new_size < self._size:
            n_chunks = ((new_size - 1) >> self._shift) + 1
            del self._chunks[n_chunks:]
            del self._chunks[-1][((new_size - 1) & self._mask) + 1 :]
            self._size = new_size
        else:
            while self._size < new_size:
                self.append(self._default())

    def __repr__(self) -> str:
        return f"ChunkedLayer(size={self._size}, chunks={len(self._chunks)})"


class OverlayLayer(Generic[N]):
    """
    Size-tracking view over nodes owned by a `NodeSource`.

    Appended nodes are not stored: the source is expected to already hold
    them at the matching index.
    """

    def __init__(self, source: NodeSource[N]) -> None:
        self._source = source
        self._size = 0

    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, idx: int) -> N:
        if not (0 <= idx < self._size):
            raise LayerIndexError(
                "OverlayLayer index out of range", data={"index": idx, "size": self._size}
            )
        return self._source.get_mmr_node(idx)

    def __iter__(self) -> Iterator[N]:
        for i in range(self._size):
            yield self._source.get_mmr_node(i)

    def append(self, node: N) -> None:
        self._size += 1

    push_back = append

    def clear(self) -> None:
        self._size = 0

    def resize(self, new_size: int) -> None:
        if new_size < 0:
            raise ValueError("new_size must be >= 0")
        self._size = new_size

    def __repr__(self) -> str:
        return f"OverlayLayer(size={self._size}, source={type(self._source).__name__})"


__all__ = ["NodeSource", "ChunkedLayer", "OverlayLayer"]
