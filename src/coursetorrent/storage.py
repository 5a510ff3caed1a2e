"""
Key-value storage backing torrent, peer and statistics records.

The engine only needs atomic single-key reads and writes. Every record is a
bencoded dictionary carrying a format version, so stored data stays portable
and inspectable with any bencode tool.
"""

from __future__ import annotations

import threading
from typing import Any, Protocol

from . import bencode
from .errors import FormatError

RECORD_VERSION = 1

TORRENTS = "torrents"
ANNOUNCE_LISTS = "announce-lists"
PEERS = "peers"
STATISTICS = "statistics"
CATALOG = "catalog"


class KeyValueStorage(Protocol):
    """Storage collaborator: atomic read/write/delete of one key."""

    def read(self, key: bytes) -> bytes | None: ...

    def write(self, key: bytes, value: bytes) -> None: ...

    def delete(self, key: bytes) -> None: ...


class InMemoryStorage:
    """Process-local storage, used by default and in tests."""

    def __init__(self) -> None:
        self._data: dict[bytes, bytes] = {}
        self._lock = threading.Lock()

    def read(self, key: bytes) -> bytes | None:
        with self._lock:
            return self._data.get(key)

    def write(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def delete(self, key: bytes) -> None:
        with self._lock:
            self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class ScopedStorage:
    """View of a storage restricted to one category of records."""

    def __init__(self, storage: KeyValueStorage, category: str) -> None:
        self.storage = storage
        self.category = category
        self._prefix = category.encode() + b"/"

    def _key(self, infohash: str) -> bytes:
        return self._prefix + infohash.encode()

    def get(self, infohash: str) -> dict[str, Any] | None:
        raw = self.storage.read(self._key(infohash))
        if raw is None:
            return None
        return decode_record(raw)

    def put(self, infohash: str, record: dict[str, Any]) -> None:
        self.storage.write(self._key(infohash), encode_record(record))

    def delete(self, infohash: str) -> None:
        self.storage.delete(self._key(infohash))


def encode_record(record: dict[str, Any]) -> bytes:
    return bencode.encode({**record, "v": RECORD_VERSION})


def decode_record(raw: bytes) -> dict[str, Any]:
    """
    Decode a stored record and check its version.

    Raises:
        FormatError: If the record is not a bencoded dictionary of a known version
    """
    record = bencode.decode(raw)
    if not isinstance(record, dict):
        raise FormatError("Stored record must be a dictionary")
    version = record.pop("v", None)
    if version != RECORD_VERSION:
        raise FormatError(f"Unsupported record version: {version!r}")
    return record
