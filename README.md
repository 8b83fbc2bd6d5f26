# datatransfer

Bookkeeping for peer-to-peer data transfer channels. Each transfer is tracked
as a channel whose status moves through a fixed state machine as data is
queued, sent and received, vouchers are exchanged, and the transfer is paused,
resumed, completed, cancelled or failed. Every state change is reported to a
notifier callback together with a read-only view of the channel.

## Installation

```
pip install .
```

Install the test extra to run the test suite:

```
pip install ".[test]"
pytest
```

## Building blocks

- `datatransfer.identifiers`: the `Status` of a channel and the `ChannelID`
  (`initiator`, `responder`, `id`) that names it. `ChannelID.other_party(peer)`
  returns the party that is not `peer`.
- `datatransfer.events`: the `EventCode` values fired on channels (their
  `str()` is the CamelCase name, such as `DataReceivedProgress`) and the
  frozen `Event` record (`code`, `message`, `timestamp`).
- `datatransfer.errors`: exceptions derived from `DataTransferError`, each
  with a fixed default message, such as `ChannelNotFoundError`,
  `DisconnectedError`, `RejectedError` and the `PauseChannel` /
  `ResumeChannel` signals.
- `datatransfer.cids`: the `Cid` value type (`Cid.from_data(data)` builds a
  version 1 raw CID from a SHA-256 digest) with `write_cid` and `read_cid` for
  streaming CIDs as CBOR tag 42. `read_cid` raises `EOFError` at the end of the
  stream.
- `datatransfer.cidlists`: `CIDLists`, which keeps one file per channel in a
  directory listing the CIDs received so far (`create_list`, `append_list`,
  `read_list`, `delete_list`). `transfer_filename` gives the file's path,
  `<id>-<initiator>-<responder>`.
- `datatransfer.datastore`: `MapDatastore`, a thread-safe in-memory store
  keyed by slash-separated paths, and `NamespacedDatastore`, a view of a store
  under a key prefix.
- `datatransfer.cidsets`: `CIDSetManager` and `CIDSet`, which record which
  blocks have already been seen, so progress is counted only once per block.
- `datatransfer.encoding`: `encode` and `new_decoder`. Plain data (dicts,
  lists, strings, numbers, `Cid`s) is written as canonical CBOR; objects with a
  `to_cbor()` method use it (and are decoded with a `from_cbor` class method);
  other dataclasses are written as a map of their fields. Failures raise
  `EncodingError`.
- `datatransfer.internal`: `InternalChannelState`, the stored form of a
  channel, with `encode_channel_state` and `decode_channel_state`.
- `datatransfer.migrations`: the older stored forms `ChannelStateV0` and
  `ChannelStateV1`, the functions that convert them, and `migrate_records`,
  which upgrades every record in a datastore to the current layout. Version 1
  records had their received CIDs inline; migration moves them into the
  channel's CID list.
- `datatransfer.fsm`: `apply_event`, which returns a `Transition` holding the
  next state without touching the given one, plus `is_channel_terminated` and
  `is_channel_cleaning_up`.
- `datatransfer.channel_state`: `ChannelState`, the read-only view of a
  channel handed to the notifier, with `channel_id()`, `other_peer()`,
  `selector()`, `voucher()`, `vouchers()`, `last_voucher()`,
  `voucher_results()`, `last_voucher_result()` and `received_cids()`.
- `datatransfer.channels`: `Channels`, the store of all channels, which
  applies events, persists the result and notifies.

## Example

```python
import tempfile
from dataclasses import dataclass

from datatransfer.channels import Channels
from datatransfer.cidlists import CIDLists
from datatransfer.cids import Cid
from datatransfer.datastore import MapDatastore
from datatransfer.encoding import new_decoder
from datatransfer.identifiers import Status


@dataclass
class Voucher:
    amount: int


voucher_decoder = new_decoder(Voucher(0))


def decoder_by_type(type_identifier):
    return voucher_decoder if type_identifier == "Voucher" else None


class Environment:
    def protect(self, peer, tag): ...
    def unprotect(self, peer, tag): return False
    def id(self): return "self"
    def cleanup_channel(self, chid): ...


events = []
channels = Channels(
    MapDatastore(),
    CIDLists(tempfile.mkdtemp()),
    lambda event, state: events.append((str(event.code), state.status)),
    decoder_by_type,
    decoder_by_type,
    Environment(),
    "self",
)
channels.start()

base_cid = Cid.from_data(b"hello")
selector = {".": {}}
chid = channels.create_new(
    "self", 1, base_cid, selector, Voucher(10), "self", "self", "other"
)
channels.accept(chid)
channels.data_sent(chid, base_cid, 5)

state = channels.get_by_id(chid)
assert state.status is Status.ONGOING
assert state.sent == 5
assert state.voucher() == Voucher(10)

channels.complete(chid)
assert channels.get_by_id(chid).status is Status.COMPLETED
```

The voucher type identifier is the value's `type_identifier` attribute (or
the result of calling it) when it has one, and its class name otherwise.

When a channel enters `Cancelling`, `Failing` or `Completing`, `Channels`
calls the environment's `cleanup_channel` and `unprotect`, then fires
`CleanupComplete`, moving the channel to `Cancelled`, `Failed` or
`Completed` and dropping its record of seen blocks.

## Errors

- Operations on a channel that does not exist raise
  `datatransfer.channels.NotFoundError` (a `ChannelNotFoundError`).
- `create_new` for a channel id that already exists raises `ValueError`.
- Events that are not allowed in the channel's current status raise
  `datatransfer.fsm.InvalidTransitionError`.

## What this package does not do

This package keeps track of channels; it does not move any data. It has no
network layer, no transport, no manager that opens push or pull channels,
handles requests and responses or restarts stalled transfers, no validators
or revalidators, and no event subscription service beyond the single
notifier callback. Channel records live only in the datastore you pass in,
and the only datastore provided is the in-memory `MapDatastore`; CID lists
are the one thing written to disk.