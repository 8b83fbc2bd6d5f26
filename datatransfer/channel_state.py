"""Read-only view of a data transfer channel's state."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .cids import Cid
from .encoding import Decoder, _loads
from .identifiers import ChannelID, Status
from .internal import EncodedVoucher, EncodedVoucherResult, InternalChannelState

log = logging.getLogger("datatransfer")

DecoderByType = Callable[[str], "Decoder | None"]
ChannelCIDsReader = Callable[[ChannelID], list[Cid]]


def _decode(decoder_by_type: DecoderByType | None, type_identifier: str, raw: bytes, what: str) -> Any:
    decoder = decoder_by_type(type_identifier) if decoder_by_type is not None else None
    if decoder is None:
        raise LookupError(f"no decoder registered for {what} type {type_identifier!r}")
    return decoder.decode_from_cbor(raw)


@dataclass(frozen=True)
class ChannelState:
    """Immutable channel data plus its current mutable state."""

    self_peer: str = ""
    transfer_id: int = 0
    base_cid: Cid | None = None
    encoded_selector: bytes = b""
    sender: str = ""
    recipient: str = ""
    total_size: int = 0
    status: Status = Status.REQUESTED
    is_pull: bool = False
    queued: int = 0
    sent: int = 0
    received: int = 0
    message: str = ""
    encoded_vouchers: tuple[EncodedVoucher, ...] = ()
    encoded_voucher_results: tuple[EncodedVoucherResult, ...] = ()
    voucher_decoder: DecoderByType | None = field(default=None, compare=False, repr=False)
    voucher_result_decoder: DecoderByType | None = field(default=None, compare=False, repr=False)
    channel_cids_reader: ChannelCIDsReader | None = field(default=None, compare=False, repr=False)

    def channel_id(self) -> ChannelID:
        """Return the identifier of this channel."""
        if self.is_pull:
            return ChannelID(initiator=self.recipient, responder=self.sender, id=self.transfer_id)
        return ChannelID(initiator=self.sender, responder=self.recipient, id=self.transfer_id)

    def other_peer(self) -> str:
        """Return the peer on the channel that is not this node."""
        if self.sender == self.self_peer:
            return self.recipient
        return self.sender

    def selector(self) -> Any:
        """Return the decoded selector node, or None if it cannot be decoded."""
        try:
            return _loads(self.encoded_selector)
        except ValueError as exc:
            log.error("failed to decode selector: %s", exc)
            return None

    def _decode_voucher(self, encoded: EncodedVoucher) -> Any:
        return _decode(self.voucher_decoder, encoded.type, encoded.voucher, "voucher")

    def _decode_voucher_result(self, encoded: EncodedVoucherResult) -> Any:
        return _decode(
            self.voucher_result_decoder, encoded.type, encoded.voucher_result, "voucher result"
        )

    def voucher(self) -> Any:
        """Return the first voucher on the channel, or None if there is none."""
        if not self.encoded_vouchers:
            return None
        return self._decode_voucher(self.encoded_vouchers[0])

    def vouchers(self) -> list[Any]:
        """Return every voucher on the channel, oldest first."""
        return [self._decode_voucher(v) for v in self.encoded_vouchers]

    def last_voucher(self) -> Any:
        """Return the most recent voucher; raise IndexError if there is none."""
        if not self.encoded_vouchers:
            raise IndexError("channel has no vouchers")
        return self._decode_voucher(self.encoded_vouchers[-1])

    def voucher_results(self) -> list[Any]:
        """Return every voucher result on the channel, oldest first."""
        return [self._decode_voucher_result(r) for r in self.encoded_voucher_results]

    def last_voucher_result(self) -> Any:
        """Return the most recent voucher result; raise IndexError if there is none."""
        if not self.encoded_voucher_results:
            raise IndexError("channel has no voucher results")
        return self._decode_voucher_result(self.encoded_voucher_results[-1])

    def received_cids(self) -> list[Cid]:
        """Return the CIDs received so far, or an empty list if they cannot be read."""
        if self.channel_cids_reader is None:
            return []
        try:
            return list(self.channel_cids_reader(self.channel_id()))
        except (OSError, ValueError) as exc:
            log.error("failed to read received cids: %s", exc)
            return []


def from_internal_channel_state(
    state: InternalChannelState,
    voucher_decoder: DecoderByType | None,
    voucher_result_decoder: DecoderByType | None,
    channel_cids_reader: ChannelCIDsReader | None,
) -> ChannelState:
    """Build a read-only channel state from its stored form."""
    return ChannelState(
        self_peer=state.self_peer,
        transfer_id=state.transfer_id,
        base_cid=state.base_cid,
        encoded_selector=state.selector,
        sender=state.sender,
        recipient=state.recipient,
        total_size=state.total_size,
        status=state.status,
        is_pull=state.initiator == state.recipient,
        queued=state.queued,
        sent=state.sent,
        received=state.received,
        message=state.message,
        encoded_vouchers=tuple(state.vouchers),
        encoded_voucher_results=tuple(state.voucher_results),
        voucher_decoder=voucher_decoder,
        voucher_result_decoder=voucher_result_decoder,
        channel_cids_reader=channel_cids_reader,
    )