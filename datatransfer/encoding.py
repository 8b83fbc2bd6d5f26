"""CBOR encoding and decoding of vouchers, selectors and other values."""

import abc
import dataclasses
from typing import Any

import cbor2

from .cids import Cid

_TAG_CID = 42
_NODE_TYPES = (dict, list, tuple, str, bytes, bool, int, float, type(None), Cid)


class EncodingError(ValueError):
    """A value could not be encoded or decoded."""


@dataclasses.dataclass(frozen=True)
class _Raw:
    """Already encoded CBOR written verbatim into an enclosing value."""

    data: bytes


def _default(encoder, value):
    if isinstance(value, Cid):
        encoder.encode(cbor2.CBORTag(_TAG_CID, b"\0" + value.raw))
    elif isinstance(value, _Raw):
        encoder.write(value.data)
    else:
        raise cbor2.CBOREncodeError(f"cannot encode value of type {type(value).__name__}")


def _tag_hook(decoder, tag):
    if tag.tag == _TAG_CID:
        payload = tag.value
        if not isinstance(payload, bytes) or len(payload) < 2 or payload[0] != 0:
            raise EncodingError("invalid CID in tag 42")
        return Cid(payload[1:])
    return tag


def _dumps(value: Any, canonical: bool = False) -> bytes:
    try:
        return cbor2.dumps(value, canonical=canonical, default=_default)
    except (cbor2.CBORError, ValueError, TypeError) as exc:
        raise EncodingError(str(exc)) from exc


def _loads(data: bytes) -> Any:
    try:
        return cbor2.loads(data, tag_hook=_tag_hook)
    except (cbor2.CBORError, ValueError, TypeError, EOFError) as exc:
        raise EncodingError(str(exc)) from exc


def _has_cbor_methods(value: Any) -> bool:
    return callable(getattr(value, "to_cbor", None))


def encode(value: Any) -> bytes:
    """Encode ``value`` to CBOR using the best available path."""
    if not isinstance(value, type) and _has_cbor_methods(value):
        return value.to_cbor()
    if isinstance(value, _NODE_TYPES):
        return _dumps(value, canonical=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return _dumps(fields, canonical=True)
    raise EncodingError(f"cannot encode value of type {type(value).__name__}")


class Decoder(abc.ABC):
    """Decodes CBOR into new instances of one type."""

    @abc.abstractmethod
    def decode_from_cbor(self, encoded: bytes) -> Any:
        """Decode ``encoded`` into a new value."""


def _node_kind(value: Any) -> type:
    if isinstance(value, tuple):
        return list
    return type(value)


class _NodeDecoder(Decoder):
    def __init__(self, kind: type) -> None:
        self.kind = kind

    def decode_from_cbor(self, encoded: bytes) -> Any:
        decoded = _loads(encoded)
        if not isinstance(decoded, self.kind):
            raise EncodingError(
                f"expected {self.kind.__name__}, decoded {type(decoded).__name__}"
            )
        return decoded


class _CborGenDecoder(Decoder):
    def __init__(self, cls: type) -> None:
        self.cls = cls

    def decode_from_cbor(self, encoded: bytes) -> Any:
        try:
            return self.cls.from_cbor(encoded)
        except EncodingError:
            raise
        except (cbor2.CBORError, ValueError, TypeError, EOFError) as exc:
            raise EncodingError(str(exc)) from exc


def _decode_dataclass(cls: type, encoded: bytes) -> Any:
    data = _loads(encoded)
    if not isinstance(data, dict):
        raise EncodingError(f"expected a map to decode {cls.__name__}")
    try:
        return cls(**data)
    except TypeError as exc:
        raise EncodingError(str(exc)) from exc


class _DefaultDecoder(Decoder):
    def __init__(self, cls: type) -> None:
        self.cls = cls

    def decode_from_cbor(self, encoded: bytes) -> Any:
        return _decode_dataclass(self.cls, encoded)


def new_decoder(decode_type: Any) -> Decoder:
    """Return a decoder producing new values of the type of ``decode_type``."""
    if isinstance(decode_type, _NODE_TYPES):
        return _NodeDecoder(_node_kind(decode_type))
    cls = decode_type if isinstance(decode_type, type) else type(decode_type)
    if callable(getattr(cls, "from_cbor", None)):
        return _CborGenDecoder(cls)
    if not dataclasses.is_dataclass(cls):
        raise EncodingError("type must be a CBOR type, a data node or a dataclass")
    if not isinstance(decode_type, type):
        try:
            encoded = encode(decode_type)
        except EncodingError as exc:
            raise EncodingError("Object type did not encode") from exc
        try:
            _decode_dataclass(cls, encoded)
        except EncodingError as exc:
            raise EncodingError("Object type did not decode") from exc
    return _DefaultDecoder(cls)