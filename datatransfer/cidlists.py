"""On-disk lists of CIDs received for data transfer channels."""

import os
from collections.abc import Iterable
from pathlib import Path

from .cids import Cid, read_cid, write_cid
from .identifiers import ChannelID


def transfer_filename(base_dir: str | os.PathLike, chid: ChannelID) -> Path:
    """Return the path of the CID list file for ``chid`` under ``base_dir``."""
    return Path(base_dir) / f"{chid.id}-{chid.initiator}-{chid.responder}"


class CIDLists:
    """Maintains files holding the CIDs received for different transfers."""

    def __init__(self, base_dir: str | os.PathLike) -> None:
        base = Path(os.path.normpath(base_dir))
        if not base.exists():
            raise FileNotFoundError(f"error getting {base} info: no such file or directory")
        if not base.is_dir():
            raise NotADirectoryError(f"{base} is not a directory")
        self.base_dir = base

    def create_list(self, chid: ChannelID, initial_cids: Iterable[Cid] | None = None) -> None:
        """Create (or truncate) the list for ``chid`` holding ``initial_cids``."""
        with open(transfer_filename(self.base_dir, chid), "wb") as f:
            for cid in initial_cids or ():
                write_cid(f, cid)

    def append_list(self, chid: ChannelID, cid: Cid) -> None:
        """Append a single CID to the list for ``chid``."""
        with open(transfer_filename(self.base_dir, chid), "ab") as f:
            write_cid(f, cid)

    def read_list(self, chid: ChannelID) -> list[Cid]:
        """Read every CID stored for ``chid``."""
        cids = []
        with open(transfer_filename(self.base_dir, chid), "rb") as f:
            while True:
                try:
                    cids.append(read_cid(f))
                except EOFError:
                    return cids

    def delete_list(self, chid: ChannelID) -> None:
        """Delete the list for ``chid``."""
        os.remove(transfer_filename(self.base_dir, chid))