"""The stored form of a channel's state."""

from dataclasses import dataclass, field
from typing import Any

from .cids import Cid
from .encoding import EncodingError, _dumps, _loads, _Raw
from .identifiers import Status


@dataclass(frozen=True)
class EncodedVoucher:
    """A voucher as stored: its type identifier and raw CBOR."""

    type: str
    voucher: bytes


@dataclass(frozen=True)
class EncodedVoucherResult:
    """A voucher result as stored: its type identifier and raw CBOR."""

    type: str
    voucher_result: bytes


@dataclass
class InternalChannelState:
    """The stored representation of a channel's state machine."""

    self_peer: str = ""
    transfer_id: int = 0
    initiator: str = ""
    responder: str = ""
    base_cid: Cid | None = None
    selector: bytes = b""
    sender: str = ""
    recipient: str = ""
    total_size: int = 0
    status: Status = Status.REQUESTED
    queued: int = 0
    sent: int = 0
    received: int = 0
    message: str = ""
    vouchers: list[EncodedVoucher] = field(default_factory=list)
    voucher_results: list[EncodedVoucherResult] = field(default_factory=list)


_FIELDS = (
    ("SelfPeer", "self_peer"),
    ("TransferID", "transfer_id"),
    ("Initiator", "initiator"),
    ("Responder", "responder"),
    ("BaseCid", "base_cid"),
    ("Selector", "selector"),
    ("Sender", "sender"),
    ("Recipient", "recipient"),
    ("TotalSize", "total_size"),
    ("Status", "status"),
    ("Queued", "queued"),
    ("Sent", "sent"),
    ("Received", "received"),
    ("Message", "message"),
    ("Vouchers", "vouchers"),
    ("VoucherResults", "voucher_results"),
)


def _deferred(raw: bytes) -> _Raw | None:
    return _Raw(raw) if raw else None


def _undefer(value: Any) -> bytes:
    return b"" if value is None else _dumps(value)


def _vouchers_to_cbor(vouchers) -> list:
    return [{"Type": v.type, "Voucher": _deferred(v.voucher)} for v in vouchers]


def _voucher_results_to_cbor(results) -> list:
    return [{"Type": r.type, "VoucherResult": _deferred(r.voucher_result)} for r in results]


def _vouchers_from_cbor(items) -> list[EncodedVoucher]:
    return [EncodedVoucher(item["Type"], _undefer(item["Voucher"])) for item in items or ()]


def _voucher_results_from_cbor(items) -> list[EncodedVoucherResult]:
    return [
        EncodedVoucherResult(item["Type"], _undefer(item["VoucherResult"]))
        for item in items or ()
    ]


_TO_CBOR = {
    "selector": _deferred,
    "status": int,
    "vouchers": _vouchers_to_cbor,
    "voucher_results": _voucher_results_to_cbor,
}

_FROM_CBOR = {
    "selector": _undefer,
    "status": Status,
    "vouchers": _vouchers_from_cbor,
    "voucher_results": _voucher_results_from_cbor,
}


def _convert(table: dict, attr: str, value: Any) -> Any:
    """Apply the converter registered for ``attr``, if any, to ``value``."""
    converter = table.get(attr)
    return value if converter is None else converter(value)


def _state_to_map(state) -> dict:
    """Map the shared channel state fields of ``state`` to their stored keys."""
    return {key: _convert(_TO_CBOR, attr, getattr(state, attr)) for key, attr in _FIELDS}


def _state_from_map(data: Any) -> dict:
    """Return constructor arguments for the shared channel state fields in ``data``."""
    if not isinstance(data, dict):
        raise EncodingError("channel state must be a CBOR map")
    try:
        return {attr: _convert(_FROM_CBOR, attr, data[key]) for key, attr in _FIELDS}
    except EncodingError:
        raise
    except (KeyError, TypeError, ValueError) as exc:
        raise EncodingError(f"malformed channel state: {exc!r}") from exc


def encode_channel_state(state: InternalChannelState) -> bytes:
    """Encode ``state`` as a CBOR map keyed by field name."""
    return _dumps(_state_to_map(state))


def decode_channel_state(data: bytes) -> InternalChannelState:
    """Decode a channel state written by :func:`encode_channel_state`."""
    return InternalChannelState(**_state_from_map(_loads(data)))