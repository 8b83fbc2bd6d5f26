"""A thread-safe, persistent collection of data transfer channels."""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from .channel_state import ChannelState, DecoderByType, from_internal_channel_state
from .cidlists import CIDLists
from .cids import Cid
from .cidsets import CIDSetManager
from .datastore import NamespacedDatastore
from .encoding import encode
from .errors import ChannelNotFoundError
from .events import Event, EventCode
from .fsm import CLEANUP_STATES, apply_event
from .identifiers import ChannelID, Status
from .internal import (
    EncodedVoucher,
    InternalChannelState,
    decode_channel_state,
    encode_channel_state,
)
from .migrations import CURRENT_VERSION, migrate_records

log = logging.getLogger("datatransfer")

Notifier = Callable[[Event, ChannelState], None]

_SEEN_CID_EVENTS = (EventCode.DATA_QUEUED, EventCode.DATA_SENT, EventCode.DATA_RECEIVED)


class ChannelEnvironment(Protocol):
    """What the channel state machine needs from the network layer."""

    def protect(self, peer: str, tag: str) -> None: ...

    def unprotect(self, peer: str, tag: str) -> bool: ...

    def id(self) -> str: ...

    def cleanup_channel(self, chid: ChannelID) -> None: ...


class NotFoundError(ChannelNotFoundError):
    """No channel exists with the given channel id."""

    def __init__(self, chid: ChannelID, message: str | None = None) -> None:
        self.channel_id = chid
        super().__init__(message if message is not None else f"No channel for channel ID {chid}")


def _type_identifier(value: Any) -> str:
    ident = getattr(value, "type_identifier", None)
    if callable(ident):
        ident = ident()
    return str(ident) if ident is not None else type(value).__name__


def _chid_of(state: InternalChannelState) -> ChannelID:
    return ChannelID(initiator=state.initiator, responder=state.responder, id=state.transfer_id)


def _seen_set_id(chid: ChannelID, code: EventCode) -> str:
    return f"{chid}/{code}"


class Channels:
    """Tracks data transfer channels and drives their state machines."""

    def __init__(
        self,
        datastore,
        cid_lists: CIDLists,
        notifier: Notifier,
        voucher_decoder: DecoderByType,
        voucher_result_decoder: DecoderByType,
        env: ChannelEnvironment,
        self_peer: str,
    ) -> None:
        self._ds = datastore
        self._records = NamespacedDatastore(datastore, "/" + CURRENT_VERSION)
        self._seen_cids = CIDSetManager(NamespacedDatastore(datastore, "/seencids"))
        self._cid_lists = cid_lists
        self._notifier = notifier
        self._voucher_decoder = voucher_decoder
        self._voucher_result_decoder = voucher_result_decoder
        self._env = env
        self._self_peer = self_peer
        self._lock = threading.RLock()

    def start(self) -> int:
        """Migrate stored channel states to the current version; return how many moved."""
        with self._lock:
            return migrate_records(self._ds, self._self_peer, self._cid_lists)

    # -- storage -------------------------------------------------------------

    @staticmethod
    def _key(chid: ChannelID) -> str:
        return "/" + str(chid)

    def _load(self, chid: ChannelID) -> InternalChannelState:
        return decode_channel_state(self._records.get(self._key(chid)))

    def _save(self, state: InternalChannelState) -> None:
        self._records.put(self._key(_chid_of(state)), encode_channel_state(state))

    def _view(self, state: InternalChannelState) -> ChannelState:
        return from_internal_channel_state(
            state, self._voucher_decoder, self._voucher_result_decoder, self._cid_lists.read_list
        )

    # -- queries -------------------------------------------------------------

    def create_new(
        self,
        self_peer: str,
        tid: int,
        base_cid: Cid,
        selector: Any,
        voucher: Any,
        initiator: str,
        data_sender: str,
        data_receiver: str,
    ) -> ChannelID:
        """Create and open a new channel; raise ValueError if it already exists."""
        responder = data_receiver if data_sender == initiator else data_sender
        chid = ChannelID(initiator=initiator, responder=responder, id=tid)
        voucher_bytes = encode(voucher)
        selector_bytes = encode(selector)
        state = InternalChannelState(
            self_peer=self_peer,
            transfer_id=tid,
            initiator=initiator,
            responder=responder,
            base_cid=base_cid,
            selector=selector_bytes,
            sender=data_sender,
            recipient=data_receiver,
            vouchers=[EncodedVoucher(_type_identifier(voucher), voucher_bytes)],
            status=Status.REQUESTED,
        )
        with self._lock:
            if self._records.has(self._key(chid)):
                raise ValueError(f"channel {chid} already exists")
            self._save(state)
            self._cid_lists.create_list(chid, None)
            self._apply(chid, state, EventCode.OPEN)
        return chid

    def in_progress(self) -> dict[ChannelID, ChannelState]:
        """Return every tracked channel by channel id."""
        with self._lock:
            states = [decode_channel_state(self._records.get(k)) for k in self._records.keys()]
        return {_chid_of(state): self._view(state) for state in states}

    def get_by_id(self, chid: ChannelID) -> ChannelState:
        """Return the state of channel ``chid``; raise NotFoundError if absent."""
        with self._lock:
            try:
                state = self._load(chid)
            except KeyError:
                raise NotFoundError(chid) from None
        return self._view(state)

    def has_channel(self, chid: ChannelID) -> bool:
        """Return True if channel ``chid`` is tracked."""
        return self._records.has(self._key(chid))

    # -- events --------------------------------------------------------------

    def accept(self, chid: ChannelID) -> None:
        """Mark a transfer as accepted."""
        self._send(chid, EventCode.ACCEPT)

    def restart(self, chid: ChannelID) -> None:
        """Mark a transfer as restarted."""
        self._send(chid, EventCode.RESTART)

    def complete_cleanup_on_restart(self, chid: ChannelID) -> None:
        """Finish cleaning up a channel that was cleaning up before a restart."""
        self._send(chid, EventCode.COMPLETE_CLEANUP_ON_RESTART)

    def data_sent(self, chid: ChannelID, cid: Cid, delta: int) -> None:
        """Record that the block ``cid`` of ``delta`` bytes was sent."""
        self._fire_progress_event(chid, EventCode.DATA_SENT, EventCode.DATA_SENT_PROGRESS, cid, delta)

    def data_queued(self, chid: ChannelID, cid: Cid, delta: int) -> None:
        """Record that the block ``cid`` of ``delta`` bytes was queued for sending."""
        self._fire_progress_event(
            chid, EventCode.DATA_QUEUED, EventCode.DATA_QUEUED_PROGRESS, cid, delta
        )

    def data_received(self, chid: ChannelID, cid: Cid, delta: int) -> None:
        """Record that the block ``cid`` of ``delta`` bytes was received."""
        self._cid_lists.append_list(chid, cid)
        self._fire_progress_event(
            chid, EventCode.DATA_RECEIVED, EventCode.DATA_RECEIVED_PROGRESS, cid, delta
        )

    def pause_initiator(self, chid: ChannelID) -> None:
        """Pause the initiator of the channel."""
        self._send(chid, EventCode.PAUSE_INITIATOR)

    def pause_responder(self, chid: ChannelID) -> None:
        """Pause the responder of the channel."""
        self._send(chid, EventCode.PAUSE_RESPONDER)

    def resume_initiator(self, chid: ChannelID) -> None:
        """Resume the initiator of the channel."""
        self._send(chid, EventCode.RESUME_INITIATOR)

    def resume_responder(self, chid: ChannelID) -> None:
        """Resume the responder of the channel."""
        self._send(chid, EventCode.RESUME_RESPONDER)

    def new_voucher(self, chid: ChannelID, voucher: Any) -> None:
        """Record a new voucher for the channel."""
        voucher_bytes = encode(voucher)
        self._send(chid, EventCode.NEW_VOUCHER, _type_identifier(voucher), voucher_bytes)

    def new_voucher_result(self, chid: ChannelID, voucher_result: Any) -> None:
        """Record a new voucher result for the channel."""
        result_bytes = encode(voucher_result)
        self._send(
            chid, EventCode.NEW_VOUCHER_RESULT, _type_identifier(voucher_result), result_bytes
        )

    def complete(self, chid: ChannelID) -> None:
        """The responder has completed sending or receiving data."""
        self._send(chid, EventCode.COMPLETE)

    def finish_transfer(self, chid: ChannelID) -> None:
        """The initiator has finished sending or receiving data."""
        self._send(chid, EventCode.FINISH_TRANSFER)

    def responder_completes(self, chid: ChannelID) -> None:
        """The initiator learned that the responder has finished."""
        self._send(chid, EventCode.RESPONDER_COMPLETES)

    def responder_begins_finalization(self, chid: ChannelID) -> None:
        """The responder finished but awaits confirmation from the initiator."""
        self._send(chid, EventCode.RESPONDER_BEGINS_FINALIZATION)

    def begin_finalizing(self, chid: ChannelID) -> None:
        """This responder finished and awaits confirmation from the initiator."""
        self._send(chid, EventCode.BEGIN_FINALIZING)

    def cancel(self, chid: ChannelID) -> None:
        """The channel was cancelled prematurely."""
        self._send(chid, EventCode.CANCEL)

    def error(self, chid: ChannelID, err: BaseException | str) -> None:
        """Something went wrong on the channel."""
        self._send(chid, EventCode.ERROR, err)

    def disconnected(self, chid: ChannelID) -> None:
        """The other party could not be reached."""
        self._send(chid, EventCode.DISCONNECTED)

    # -- internals -----------------------------------------------------------

    def _check_channel_exists(self, chid: ChannelID, code: EventCode) -> None:
        if not self.has_channel(chid):
            raise NotFoundError(
                chid,
                f"cannot send FSM event {code} to data-transfer channel {chid}: "
                f"No channel for channel ID {chid}",
            )

    def _send(self, chid: ChannelID, code: EventCode, *args: Any) -> None:
        with self._lock:
            self._check_channel_exists(chid, code)
            self._apply(chid, self._load(chid), code, *args)

    def _fire_progress_event(
        self, chid: ChannelID, code: EventCode, progress_code: EventCode, cid: Cid, delta: int
    ) -> None:
        with self._lock:
            self._check_channel_exists(chid, code)
            seen = self._seen_cids.insert_set_cid(_seen_set_id(chid, code), cid)
            if not seen:
                self._apply(chid, self._load(chid), progress_code, delta)
            self._apply(chid, self._load(chid), code)

    def _apply(self, chid: ChannelID, state: InternalChannelState, code: EventCode, *args: Any) -> None:
        transition = apply_event(state, code, *args)
        new_state = transition.state
        self._save(new_state)
        self._dispatch(chid, code, new_state)
        if transition.entered and new_state.status in CLEANUP_STATES:
            self._cleanup_connection(chid, new_state)

    def _cleanup_connection(self, chid: ChannelID, state: InternalChannelState) -> None:
        other_party = state.initiator
        if other_party == self._env.id():
            other_party = state.responder
        self._env.cleanup_channel(chid)
        self._env.unprotect(other_party, str(chid))
        self._apply(chid, state, EventCode.CLEANUP_COMPLETE)

    def _dispatch(self, chid: ChannelID, code: EventCode, state: InternalChannelState) -> None:
        event = Event(code=code, message=state.message, timestamp=datetime.now())
        self._notifier(event, self._view(state))
        if code == EventCode.CLEANUP_COMPLETE:
            try:
                self._remove_seen_cid_caches(chid)
            except Exception as exc:  # cleanup failures must not break the state machine
                log.error("failed to clean up channel %s: %s", chid, exc)

    def _remove_seen_cid_caches(self, chid: ChannelID) -> None:
        for code in _SEEN_CID_EVENTS:
            self._seen_cids.delete_set(_seen_set_id(chid, code))