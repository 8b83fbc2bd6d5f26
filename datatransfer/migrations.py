"""Older stored forms of channel state and their migration to the current one."""

from dataclasses import dataclass, field

from .cidlists import CIDLists
from .cids import Cid
from .datastore import NamespacedDatastore
from .encoding import EncodingError, _dumps, _loads
from .identifiers import ChannelID, Status
from .internal import (
    EncodedVoucher,
    EncodedVoucherResult,
    InternalChannelState,
    _deferred,
    _state_from_map,
    _state_to_map,
    _undefer,
    encode_channel_state,
)

VERSION_KEY = "/versions/current"
CURRENT_VERSION = "2"


@dataclass
class ChannelStateV0:
    """Version 0 of the stored channel state, encoded as a CBOR array."""

    transfer_id: int = 0
    initiator: str = ""
    responder: str = ""
    base_cid: Cid | None = None
    selector: bytes = b""
    sender: str = ""
    recipient: str = ""
    total_size: int = 0
    status: Status = Status.REQUESTED
    sent: int = 0
    received: int = 0
    message: str = ""
    vouchers: list[EncodedVoucher] = field(default_factory=list)
    voucher_results: list[EncodedVoucherResult] = field(default_factory=list)

    def to_cbor(self) -> bytes:
        """Encode this state in its version 0 array form."""
        return _dumps([
            self.transfer_id,
            self.initiator,
            self.responder,
            self.base_cid,
            _deferred(self.selector),
            self.sender,
            self.recipient,
            self.total_size,
            int(self.status),
            self.sent,
            self.received,
            self.message,
            [[v.type, _deferred(v.voucher)] for v in self.vouchers],
            [[r.type, _deferred(r.voucher_result)] for r in self.voucher_results],
        ])


@dataclass
class ChannelStateV1:
    """Version 1 of the stored channel state, which keeps received CIDs inline."""

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
    received_cids: list[Cid] = field(default_factory=list)

    def to_cbor(self) -> bytes:
        """Encode this state in its version 1 map form."""
        data = _state_to_map(self)
        data["ReceivedCids"] = list(self.received_cids)
        return _dumps(data)


def decode_v0_state(data: bytes) -> ChannelStateV0:
    """Decode a version 0 channel state."""
    items = _loads(data)
    if not isinstance(items, list) or len(items) != 14:
        raise EncodingError("version 0 channel state must be an array of 14 items")
    (transfer_id, initiator, responder, base_cid, selector, sender, recipient,
     total_size, status, sent, received, message, vouchers, results) = items
    try:
        return ChannelStateV0(
            transfer_id=transfer_id,
            initiator=initiator,
            responder=responder,
            base_cid=base_cid,
            selector=_undefer(selector),
            sender=sender,
            recipient=recipient,
            total_size=total_size,
            status=Status(status),
            sent=sent,
            received=received,
            message=message,
            vouchers=[EncodedVoucher(t, _undefer(v)) for t, v in vouchers or ()],
            voucher_results=[EncodedVoucherResult(t, _undefer(r)) for t, r in results or ()],
        )
    except EncodingError:
        raise
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"malformed version 0 channel state: {exc!r}") from exc


def decode_v1_state(data: bytes) -> ChannelStateV1:
    """Decode a version 1 channel state."""
    raw = _loads(data)
    kwargs = _state_from_map(raw)
    try:
        received_cids = list(raw["ReceivedCids"] or ())
    except (KeyError, TypeError) as exc:
        raise EncodingError(f"malformed version 1 channel state: {exc!r}") from exc
    return ChannelStateV1(**kwargs, received_cids=received_cids)


def migrate_encoded_voucher_0_to_1(old: EncodedVoucher) -> EncodedVoucher:
    """Convert a version 0 voucher to its version 1 form."""
    return EncodedVoucher(type=old.type, voucher=old.voucher)


def migrate_encoded_voucher_result_0_to_1(old: EncodedVoucherResult) -> EncodedVoucherResult:
    """Convert a version 0 voucher result to its version 1 form."""
    return EncodedVoucherResult(type=old.type, voucher_result=old.voucher_result)


def migrate_channel_state_0_to_1(old: ChannelStateV0, self_peer: str) -> ChannelStateV1:
    """Convert a version 0 channel state to version 1, recording ``self_peer``."""
    return ChannelStateV1(
        self_peer=self_peer,
        transfer_id=old.transfer_id,
        initiator=old.initiator,
        responder=old.responder,
        base_cid=old.base_cid,
        selector=old.selector,
        sender=old.sender,
        recipient=old.recipient,
        total_size=old.total_size,
        status=old.status,
        sent=old.sent,
        received=old.received,
        message=old.message,
        vouchers=[migrate_encoded_voucher_0_to_1(v) for v in old.vouchers],
        voucher_results=[migrate_encoded_voucher_result_0_to_1(r) for r in old.voucher_results],
        received_cids=[],
    )


def migrate_channel_state_1_to_2(old: ChannelStateV1, cid_lists: CIDLists) -> InternalChannelState:
    """Convert a version 1 channel state to the current form.

    The received CIDs move out of the record into the channel's CID list.
    """
    chid = ChannelID(initiator=old.initiator, responder=old.responder, id=old.transfer_id)
    cid_lists.create_list(chid, old.received_cids)
    return InternalChannelState(
        self_peer=old.self_peer,
        transfer_id=old.transfer_id,
        initiator=old.initiator,
        responder=old.responder,
        base_cid=old.base_cid,
        selector=old.selector,
        sender=old.sender,
        recipient=old.recipient,
        total_size=old.total_size,
        status=old.status,
        sent=old.sent,
        received=old.received,
        message=old.message,
        vouchers=list(old.vouchers),
        voucher_results=list(old.voucher_results),
    )


def migrate_records(datastore, self_peer: str, cid_lists: CIDLists) -> int:
    """Bring every stored channel state up to the current version.

    Version 0 records live at the top level of ``datastore``; version 1
    records live under ``/1``; current records are written under ``/2``.
    Returns the number of records migrated.
    """
    if datastore.has(VERSION_KEY):
        version = datastore.get(VERSION_KEY).decode()
    else:
        version = "0"
    if version == CURRENT_VERSION:
        return 0

    target = NamespacedDatastore(datastore, "/" + CURRENT_VERSION)
    migrated = 0
    if version == "0":
        for key in datastore.keys():
            if key.count("/") != 1:
                continue
            old = decode_v0_state(datastore.get(key))
            state = migrate_channel_state_1_to_2(
                migrate_channel_state_0_to_1(old, self_peer), cid_lists
            )
            target.put(key, encode_channel_state(state))
            datastore.delete(key)
            migrated += 1
    elif version == "1":
        source = NamespacedDatastore(datastore, "/1")
        for key in source.keys():
            state = migrate_channel_state_1_to_2(decode_v1_state(source.get(key)), cid_lists)
            target.put(key, encode_channel_state(state))
            source.delete(key)
            migrated += 1
    else:
        raise ValueError(f"unknown channel state version {version!r}")

    datastore.put(VERSION_KEY, CURRENT_VERSION.encode())
    return migrated