"""Simple hierarchical key-value datastores."""

import posixpath
import threading


def _clean(key: str) -> str:
    return posixpath.normpath("/" + str(key).lstrip("/"))


def _is_under(key: str, prefix: str) -> bool:
    return prefix == "/" or key.startswith(prefix + "/")


class MapDatastore:
    """A thread-safe in-memory datastore keyed by slash-separated paths."""

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key``."""
        with self._lock:
            self._data[_clean(key)] = bytes(value)

    def get(self, key: str) -> bytes:
        """Return the value under ``key``; raise KeyError when absent."""
        clean = _clean(key)
        with self._lock:
            try:
                return self._data[clean]
            except KeyError:
                raise KeyError(clean) from None

    def has(self, key: str) -> bool:
        """Return whether ``key`` holds a value."""
        with self._lock:
            return _clean(key) in self._data

    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        with self._lock:
            self._data.pop(_clean(key), None)

    def keys(self, prefix: str = "/") -> list[str]:
        """Return the sorted keys below ``prefix``."""
        clean = _clean(prefix)
        with self._lock:
            return sorted(k for k in self._data if _is_under(k, clean))


class NamespacedDatastore:
    """A view of another datastore with every key placed under a namespace."""

    def __init__(self, backing, namespace: str) -> None:
        self.backing = backing
        self.namespace = _clean(namespace)

    def _full(self, key: str) -> str:
        return _clean(self.namespace + "/" + str(key))

    def put(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key`` in the namespace."""
        self.backing.put(self._full(key), value)

    def get(self, key: str) -> bytes:
        """Return the value under ``key`` in the namespace."""
        return self.backing.get(self._full(key))

    def has(self, key: str) -> bool:
        """Return whether ``key`` holds a value in the namespace."""
        return self.backing.has(self._full(key))

    def delete(self, key: str) -> None:
        """Remove ``key`` from the namespace."""
        self.backing.delete(self._full(key))

    def keys(self, prefix: str = "/") -> list[str]:
        """Return the sorted keys below ``prefix``, relative to the namespace."""
        found = self.backing.keys(self._full(prefix))
        if self.namespace == "/":
            return found
        return [k[len(self.namespace):] for k in found]