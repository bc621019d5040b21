"""
Merkle Mountain Range

An in-memory MMR is a leaf layer plus a stack of interior layers:
`upper_nodes[h]` holds the combined nodes at height h + 1. A layer above
holds `floor(size_below / 2)` nodes, so each height is either made of full
pairs from below or, when the layer below has odd length, its last node is
the peak of a mountain at that height.

Appending a leaf adds at most one node per height (amortized O(1), worst case
O(log n)) and never changes an existing node, so proofs taken against an
earlier size stay valid. `truncate` rewinds to any earlier size.

Concurrency
-----------
No internal locking. Appends are safe to interleave with views fixed at a
smaller size. A truncate below the size of a live view invalidates that view:
callers must serialize truncate against in-flight view reads.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, List, Optional, TypeVar

from .errors import LayerIndexError
from .layer import ChunkedLayer
from .logging import get_logger
from .node import MMRNode

log = get_logger(__name__)

N = TypeVar("N")


def layer_sizes(size: int) -> List[int]:
    """[size, size >> 1, size >> 2, ...] stopping before zero (at least [size])."""
    sizes = [size]
    size >>= 1
    while size:
        sizes.append(size)
        size >>= 1
    return sizes


class MerkleMountainRange(Generic[N]):
    """
    Append-only, truncatable MMR over nodes of `node_type`.

    Parameters
    ----------
    node_type:
        Node class (MMRNode, PowerNode, ...). Its no-argument instance is the
        default node returned for out-of-range `get_node` reads.
    layer0:
        Optional leaf layer (e.g. an `OverlayLayer` over an external store).
        Defaults to a `ChunkedLayer`.
    layer_factory:
        Builds interior layers. Defaults to `ChunkedLayer(node_type)`.
    """

    def __init__(
        self,
        node_type: Callable[[], N] = MMRNode,  # type: ignore[assignment]
        *,
        layer0: Any = None,
        layer_factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.node_type = node_type
        self._layer_factory = layer_factory or (lambda: ChunkedLayer(node_type))
        self.layer0 = layer0 if layer0 is not None else self._layer_factory()
        self.upper_nodes: List[Any] = []

    # ------------------------------------------------------------------ #
    # Appends
    # ------------------------------------------------------------------ #

    def add(self, leaf: Optional[N] = None) -> int:
        """
        Append a leaf (a default node if omitted) and return its index.
        """
        self.layer0.append(self.node_type() if leaf is None else leaf)

        height = 0
        layer_size = len(self.layer0)
        while height <= len(self.upper_nodes) and layer_size > 1:
            new_size_above = layer_size >> 1

            if height == len(self.upper_nodes):
                self.upper_nodes.append(self._layer_factory())

            above = self.upper_nodes[height]
            if not (layer_size & 1) and new_size_above > len(above):
                below = self.upper_nodes[height - 1] if height else self.layer0
                idx = layer_size - 2
                above.append(below[idx].create_parent(below[idx + 1]))

            layer_size = new_size_above
            height += 1

        return len(self.layer0) - 1

    # ------------------------------------------------------------------ #
    # Size / access
    # ------------------------------------------------------------------ #

    def size(self) -> int:
        return len(self.layer0)

    def __len__(self) -> int:
        return len(self.layer0)

    def height(self) -> int:
        """Number of populated heights, counting the leaf layer (0 when empty)."""
        return len(self.upper_nodes) + 1 if len(self.layer0) else 0

    def __getitem__(self, pos: int) -> N:
        if not (0 <= pos < len(self.layer0)):
            raise LayerIndexError(
                "MerkleMountainRange index out of range",
                data={"index": pos, "size": len(self.layer0)},
            )
        return self.layer0[pos]

    def get_node(self, height: int, index: Optional[int] = None) -> N:
        """
        Node at (height, index), or a default node when out of range.

        With a single argument, returns the leaf at that index.
        """
        if index is None:
            height, index = 0, height
        if 0 <= height < self.height() and index >= 0:
            layer = self.upper_nodes[height - 1] if height else self.layer0
            if index < len(layer):
                return layer[index]
        return self.node_type()

    # ------------------------------------------------------------------ #
    # Rewind
    # ------------------------------------------------------------------ #

    def truncate(self, new_size: int) -> None:
        """
        Rewind to `new_size` leaves; no-op unless smaller than the current size.

        Views reading beyond `new_size` become invalid. Callers must serialize
        this against any view that may extend past the truncation point.
        """
        cur_size = len(self.layer0)
        if new_size < 0 or new_size >= cur_size:
            return

        sizes = layer_sizes(new_size)
        del self.upper_nodes[len(sizes) - 1 :]
        self.layer0.resize(sizes[0])
        for i, layer in enumerate(self.upper_nodes):
            layer.resize(sizes[i + 1])
        log.debug("mmr truncated", extra={"old_size": cur_size, "new_size": new_size})

    def __repr__(self) -> str:
        return (
            f"MerkleMountainRange(node_type={getattr(self.node_type, '__name__', self.node_type)}, "
            f"size={self.size()}, height={self.height()})"
        )


__all__ = ["layer_sizes", "MerkleMountainRange"]
