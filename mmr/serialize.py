"""
Stream codec for proofs and branches.

The wire format is the Bitcoin-family serialization used by the chains that
exchange these proofs:

  • u8                 one byte
  • int32              4 bytes, little-endian, signed
  • VARINT             MSB-first base-128 with a +1 offset per continuation
                       byte (the compact integer of Bitcoin's serialize.h,
                       not LEB128); used for indices, sizes and nonces
  • CompactSize        1/3/5/9-byte length prefix (0xfd/0xfe/0xff markers)
                       used in front of every vector
  • uint256 / uint160  32 / 20 raw bytes
  • vector<uint256>    CompactSize(count) || count × 32 bytes
  • bytes              CompactSize(len) || data

`Writer` accumulates into a bytearray; `Reader` walks a buffer and raises
`SerializationError` on truncation or non-canonical input.
"""

from __future__ import annotations

import struct
from typing import Iterable, List

from .constants import ADDRESS_SIZE, HASH_SIZE, MAX_SERIALIZED_SIZE
from .errors import SerializationError
from .utils.bytes import BytesLike, b

_U64_MAX = (1 << 64) - 1


# --------------------------------------------------------------------------- #
# Integer encodings
# --------------------------------------------------------------------------- #


def encode_varint(n: int) -> bytes:
    """Bitcoin VARINT. Each continuation subtracts one so encodings are unique."""
    if n < 0 or n > _U64_MAX:
        raise SerializationError(f"VARINT out of range: {n}", data={"value": n})
    tmp = bytearray()
    first = True
    while True:
        tmp.append((n & 0x7F) | (0x00 if first else 0x80))
        if n <= 0x7F:
            break
        n = (n >> 7) - 1
        first = False
    tmp.reverse()
    return bytes(tmp)


def encode_compact_size(n: int) -> bytes:
    if n < 0 or n > _U64_MAX:
        raise SerializationError(f"CompactSize out of range: {n}", data={"value": n})
    if n < 253:
        return bytes((n,))
    if n <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", n)
    if n <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", n)
    return b"\xff" + struct.pack("<Q", n)


# --------------------------------------------------------------------------- #
# Writer
# --------------------------------------------------------------------------- #


class Writer:
    def __init__(self) -> None:
        self._buf = bytearray()

    def u8(self, v: int) -> "Writer":
        if not (0 <= v <= 0xFF):
            raise SerializationError(f"u8 out of range: {v}")
        self._buf.append(v)
        return self

    def int32(self, v: int) -> "Writer":
        try:
            self._buf += struct.pack("<i", v)
        except struct.error as e:
            raise SerializationError(f"int32 out of range: {v}") from e
        return self

    def varint(self, v: int) -> "Writer":
        self._buf += encode_varint(v)
        return self

    def compact_size(self, v: int) -> "Writer":
        self._buf += encode_compact_size(v)
        return self

    def raw(self, data: BytesLike, size: int) -> "Writer":
        d = b(data)
        if len(d) != size:
            raise SerializationError(f"expected {size} bytes, got {len(d)}")
        self._buf += d
        return self

    def uint256(self, h: BytesLike) -> "Writer":
        return self.raw(h, HASH_SIZE)

    def uint160(self, h: BytesLike) -> "Writer":
        return self.raw(h, ADDRESS_SIZE)

    def bytes_(self, data: BytesLike) -> "Writer":
        d = b(data)
        self.compact_size(len(d))
        self._buf += d
        return self

    def hashes(self, items: Iterable[BytesLike]) -> "Writer":
        lst = list(items)
        self.compact_size(len(lst))
        for h in lst:
            self.uint256(h)
        return self

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def __len__(self) -> int:
        return len(self._buf)


# --------------------------------------------------------------------------- #
# Reader
# --------------------------------------------------------------------------- #


class Reader:
    def __init__(self, data: BytesLike, offset: int = 0) -> None:
        self._buf = b(data)
        if offset < 0 or offset > len(self._buf):
            raise SerializationError("offset out of range")
        self._pos = offset

    @property
    def offset(self) -> int:
        return self._pos

    def remaining(self) -> int:
        return len(self._buf) - self._pos

    def at_end(self) -> bool:
        return self._pos >= len(self._buf)

    def _take(self, n: int) -> bytes:
        if n < 0 or self._pos + n > len(self._buf):
            raise SerializationError(
                "unexpected end of data",
                data={"need": n, "offset": self._pos, "len": len(self._buf)},
            )
        out = self._buf[self._pos : self._pos + n]
        self._pos += n
        return out

    def u8(self) -> int:
        return self._take(1)[0]

    def int32(self) -> int:
        return struct.unpack("<i", self._take(4))[0]

    def varint(self) -> int:
        n = 0
        while True:
            ch = self.u8()
            if n > (_U64_MAX >> 7):
                raise SerializationError("VARINT too large")
            n = (n << 7) | (ch & 0x7F)
            if ch & 0x80:
                if n == _U64_MAX:
                    raise SerializationError("VARINT too large")
                n += 1
            else:
                return n

    def compact_size(self, *, range_check: bool = True) -> int:
        first = self.u8()
        if first < 253:
            n = first
        elif first == 253:
            n = struct.unpack("<H", self._take(2))[0]
            if n < 253:
                raise SerializationError("non-canonical CompactSize")
        elif first == 254:
            n = struct.unpack("<I", self._take(4))[0]
            if n < 0x10000:
                raise SerializationError("non-canonical CompactSize")
        else:
            n = struct.unpack("<Q", self._take(8))[0]
            if n < 0x100000000:
                raise SerializationError("non-canonical CompactSize")
        if range_check and n > MAX_SERIALIZED_SIZE:
            raise SerializationError("CompactSize too large", data={"size": n})
        return n

    def raw(self, size: int) -> bytes:
        return self._take(size)

    def uint256(self) -> bytes:
        return self._take(HASH_SIZE)

    def uint160(self) -> bytes:
        return self._take(ADDRESS_SIZE)

    def bytes_(self) -> bytes:
        return self._take(self.compact_size())

    def hashes(self) -> List[bytes]:
        count = self.compact_size()
        # Bound by what is actually left before allocating.
        if count * HASH_SIZE > self.remaining():
            raise SerializationError(
                "hash vector exceeds buffer", data={"count": count, "remaining": self.remaining()}
            )
        return [self.uint256() for _ in range(count)]


__all__ = ["encode_varint", "encode_compact_size", "Writer", "Reader"]
