"""Persistent sets of CIDs, tracked by set id."""

import threading

from .cids import Cid
from .datastore import NamespacedDatastore

SetID = str


class CIDSet:
    """Persists a set of CIDs in a datastore."""

    def __init__(self, datastore) -> None:
        self._ds = datastore
        self._lock = threading.Lock()

    def insert(self, cid: Cid) -> bool:
        """Insert ``cid``; return True if it was already in the set."""
        key = "/" + str(cid)
        with self._lock:
            if self._ds.has(key):
                return True
            self._ds.put(key, b"")
            return False

    def truncate(self) -> None:
        """Remove every CID in the set."""
        with self._lock:
            for key in self._ds.keys():
                self._ds.delete(key)


class CIDSetManager:
    """Keeps track of several CID sets by set id."""

    def __init__(self, datastore) -> None:
        self._ds = datastore
        self._lock = threading.Lock()
        self._sets: dict[SetID, CIDSet] = {}

    def insert_set_cid(self, sid: SetID, cid: Cid) -> bool:
        """Insert ``cid`` into set ``sid``; return True if it was already there."""
        return self._get_set(sid).insert(cid)

    def delete_set(self, sid: SetID) -> None:
        """Delete every CID in set ``sid``."""
        self._get_set(sid).truncate()

    def _get_set(self, sid: SetID) -> CIDSet:
        with self._lock:
            cid_set = self._sets.get(sid)
            if cid_set is None:
                cid_set = CIDSet(NamespacedDatastore(self._ds, f"{sid}/cids"))
                self._sets[sid] = cid_set
            return cid_set