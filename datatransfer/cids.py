"""Content identifiers and their CBOR wire form."""

import base64
import hashlib
from dataclasses import dataclass
from typing import BinaryIO

_MAJOR_BYTES = 2
_MAJOR_TAG = 6
_TAG_CID = 42
_EXTRA_SIZES = {24: 1, 25: 2, 26: 4, 27: 8}

_SHA2_256 = 0x12
_RAW_CODEC = 0x55
_B58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def _b58encode(data: bytes) -> str:
    number = int.from_bytes(data, "big")
    digits = []
    while number:
        number, rem = divmod(number, 58)
        digits.append(_B58_ALPHABET[rem])
    leading_zeros = len(data) - len(data.lstrip(b"\0"))
    return "1" * leading_zeros + "".join(reversed(digits))


@dataclass(frozen=True)
class Cid:
    """A content identifier held in its binary form."""

    raw: bytes

    def __post_init__(self) -> None:
        if not self.raw:
            raise ValueError("a CID cannot be empty")
        object.__setattr__(self, "raw", bytes(self.raw))

    @classmethod
    def from_data(cls, data: bytes) -> "Cid":
        """Build a version 1 raw CID from the SHA-256 digest of ``data``."""
        digest = hashlib.sha256(data).digest()
        return cls(bytes([1, _RAW_CODEC, _SHA2_256, len(digest)]) + digest)

    def _is_v0(self) -> bool:
        return len(self.raw) == 34 and self.raw[0] == _SHA2_256 and self.raw[1] == 32

    def __str__(self) -> str:
        if self._is_v0():
            return _b58encode(self.raw)
        encoded = base64.b32encode(self.raw).decode("ascii").rstrip("=").lower()
        return "b" + encoded


def _header(major: int, value: int) -> bytes:
    if value < 24:
        return bytes([major << 5 | value])
    for extra, size in _EXTRA_SIZES.items():
        if value < 1 << (8 * size):
            return bytes([major << 5 | extra]) + value.to_bytes(size, "big")
    raise ValueError(f"value {value} too large for a CBOR header")


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) != size:
        raise ValueError("unexpected end of CID data")
    return data


def _read_header(stream: BinaryIO, first: int | None = None) -> tuple[int, int]:
    if first is None:
        first = _read_exact(stream, 1)[0]
    major, extra = first >> 5, first & 0x1F
    if extra < 24:
        return major, extra
    if extra not in _EXTRA_SIZES:
        raise ValueError(f"unsupported CBOR header byte {first:#x}")
    return major, int.from_bytes(_read_exact(stream, _EXTRA_SIZES[extra]), "big")


def write_cid(stream: BinaryIO, cid: Cid) -> None:
    """Write ``cid`` to ``stream`` as a CBOR tag-42 byte string."""
    payload = b"\0" + cid.raw
    stream.write(_header(_MAJOR_TAG, _TAG_CID) + _header(_MAJOR_BYTES, len(payload)) + payload)


def read_cid(stream: BinaryIO) -> Cid:
    """Read one CID from ``stream``; raise EOFError when the stream is exhausted."""
    first = stream.read(1)
    if not first:
        raise EOFError("no more CIDs in stream")
    major, value = _read_header(stream, first[0])
    if major != _MAJOR_TAG or value != _TAG_CID:
        raise ValueError("expected a CBOR tag 42 for a CID")
    major, length = _read_header(stream)
    if major != _MAJOR_BYTES:
        raise ValueError("expected a byte string inside a CID tag")
    payload = _read_exact(stream, length)
    if len(payload) < 2 or payload[0] != 0:
        raise ValueError("invalid CID multibase prefix")
    return Cid(payload[1:])