from dataclasses import dataclass

import cbor2
import pytest

from datatransfer.cids import Cid
from datatransfer.encoding import EncodingError, encode, new_decoder


@dataclass
class StandardType:
    x: int
    y: str


@dataclass
class CbgType:
    x: int
    y: str

    def to_cbor(self) -> bytes:
        return cbor2.dumps([self.x, self.y])

    @classmethod
    def from_cbor(cls, data: bytes) -> "CbgType":
        x, y = cbor2.loads(data)
        return cls(x, y)


@dataclass
class Unencodable:
    thing: object


PRIME = {"X": 100, "Y": "appleSauce"}
STANDARD = StandardType(x=100, y="appleSauce")
CBG = CbgType(x=100, y="appleSauce")


@pytest.mark.parametrize("value", [PRIME, CBG, STANDARD], ids=["prime", "cbg", "standard"])
def test_round_trip(value):
    encoded = encode(value)
    decoder = new_decoder(value)
    assert decoder.decode_from_cbor(encoded) == value


def test_prime_encoding_is_canonical_cbor():
    expected = bytes.fromhex("a2615818646159") + bytes([0x6A]) + b"appleSauce"
    assert encode(PRIME) == expected


def test_standard_type_encodes_as_field_map():
    assert cbor2.loads(encode(STANDARD)) == {"x": 100, "y": "appleSauce"}


def test_decoder_from_class():
    decoder = new_decoder(StandardType)
    assert decoder.decode_from_cbor(encode(STANDARD)) == STANDARD


def test_cid_round_trip_inside_node():
    cid = Cid.from_data(b"content")
    value = {"link": cid, "items": [1, 2]}
    assert new_decoder({}).decode_from_cbor(encode(value)) == value


def test_unsupported_type_rejected():
    with pytest.raises(EncodingError):
        new_decoder(object())
    with pytest.raises(EncodingError):
        encode(object())


def test_dataclass_that_does_not_encode():
    with pytest.raises(EncodingError, match="did not encode"):
        new_decoder(Unencodable(thing=object()))


def test_malformed_input_raises():
    with pytest.raises(EncodingError):
        new_decoder(PRIME).decode_from_cbor(b"\xff")
    with pytest.raises(EncodingError):
        new_decoder(CBG).decode_from_cbor(b"")


def test_node_kind_mismatch_raises():
    with pytest.raises(EncodingError):
        new_decoder({}).decode_from_cbor(encode([1, 2]))


def test_default_decoder_rejects_non_map():
    with pytest.raises(EncodingError):
        new_decoder(STANDARD).decode_from_cbor(encode([100, "appleSauce"]))