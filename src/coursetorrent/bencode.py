"""
Bencode codec used by torrent files, tracker responses and stored records.

Dictionary keys are decoded to ``str`` with the ``surrogateescape`` error
handler, so binary keys (such as raw infohashes in scrape responses) survive a
decode/encode round trip byte for byte.
"""

from __future__ import annotations

import hashlib
import re
from typing import Any

from .errors import FormatError

_INTEGER = re.compile(rb"-?\d+")
_LENGTH = re.compile(rb"\d+")


class BencodeError(FormatError):
    """Exception raised for bencode parsing and encoding errors."""

    pass


def binary_key(raw: bytes) -> str:
    """Return the dictionary key the decoder produces for ``raw`` key bytes."""
    return raw.decode("utf-8", errors="surrogateescape")


def _key_bytes(key: str | bytes) -> bytes:
    if isinstance(key, bytes):
        return key
    return key.encode("utf-8", errors="surrogateescape")


def decode(data: bytes) -> Any:
    """
    Decode a complete bencoded value.

    Args:
        data: The raw bytes to decode

    Returns:
        The decoded value (bytes, int, list or dict)

    Raises:
        BencodeError: If the data is malformed or has trailing bytes
    """
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise BencodeError(f"Cannot decode type: {type(data)}")
    data = bytes(data)
    try:
        value, index = _decode(data, 0)
    except RecursionError as e:
        raise BencodeError("Nesting too deep") from e
    if index != len(data):
        raise BencodeError(f"Trailing data at index {index}")
    return value


def _decode(data: bytes, index: int) -> tuple[Any, int]:
    """
    Decode bencoded data recursively.

    Args:
        data: The raw bytes to decode
        index: Current position in the data

    Returns:
        Tuple of (decoded_value, new_index)
    """
    if index >= len(data):
        raise BencodeError(f"Unexpected end of data at index {index}")

    char = data[index : index + 1]

    # Integer: i<number>e
    if char == b"i":
        end_index = data.find(b"e", index + 1)
        if end_index == -1:
            raise BencodeError(f"Unterminated integer at index {index}")
        digits = data[index + 1 : end_index]
        if not _INTEGER.fullmatch(digits):
            raise BencodeError(f"Invalid integer at index {index}")
        return int(digits), end_index + 1

    # List: l<elements>e
    elif char == b"l":
        index += 1
        result: list[Any] = []
        while index < len(data) and data[index : index + 1] != b"e":
            value, index = _decode(data, index)
            result.append(value)
        if index >= len(data):
            raise BencodeError(f"Unterminated list at index {index}")
        return result, index + 1

    # Dictionary: d<key-value pairs>e
    elif char == b"d":
        index += 1
        result_dict: dict[str, Any] = {}
        while index < len(data) and data[index : index + 1] != b"e":
            key, index = _decode(data, index)
            if not isinstance(key, bytes):
                raise BencodeError(f"Dictionary key must be a byte string at index {index}")
            value, index = _decode(data, index)
            result_dict[binary_key(key)] = value
        if index >= len(data):
            raise BencodeError(f"Unterminated dictionary at index {index}")
        return result_dict, index + 1

    # String: <length>:<data>
    elif char.isdigit():
        colon_index = data.find(b":", index)
        if colon_index == -1:
            raise BencodeError(f"No colon found for string at index {index}")
        prefix = data[index:colon_index]
        if not _LENGTH.fullmatch(prefix):
            raise BencodeError(f"Invalid string length at index {index}")

        start_index = colon_index + 1
        end_index = start_index + int(prefix)
        if end_index > len(data):
            raise BencodeError(f"String length exceeds data at index {index}")

        return data[start_index:end_index], end_index

    else:
        raise BencodeError(f"Unexpected character '{char.decode('latin-1', errors='replace')}' at index {index}")


def encode(value: Any) -> bytes:
    """
    Encode a Python value to canonical bencode.

    Dictionary keys are emitted in ascending order of their byte form.

    Args:
        value: The value to encode

    Returns:
        Bencoded bytes
    """
    chunks: list[bytes] = []
    _encode(value, chunks)
    return b"".join(chunks)


def _encode(value: Any, chunks: list[bytes]) -> None:
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        chunks.append(f"i{int(value)}e".encode())
    elif isinstance(value, int):
        chunks.append(f"i{value}e".encode())
    elif isinstance(value, (bytes, bytearray)):
        chunks.append(f"{len(value)}:".encode())
        chunks.append(bytes(value))
    elif isinstance(value, str):
        value_bytes = value.encode("utf-8", errors="surrogateescape")
        chunks.append(f"{len(value_bytes)}:".encode())
        chunks.append(value_bytes)
    elif isinstance(value, (list, tuple)):
        chunks.append(b"l")
        for item in value:
            _encode(item, chunks)
        chunks.append(b"e")
    elif isinstance(value, dict):
        chunks.append(b"d")
        keyed: dict[bytes, Any] = {}
        for key, item in value.items():
            if not isinstance(key, (str, bytes)):
                raise BencodeError(f"Dictionary key must be str or bytes, got {type(key)}")
            raw = _key_bytes(key)
            if raw in keyed:
                raise BencodeError(f"Duplicate dictionary key: {raw!r}")
            keyed[raw] = item
        for raw in sorted(keyed):
            _encode(raw, chunks)
            _encode(keyed[raw], chunks)
        chunks.append(b"e")
    else:
        raise BencodeError(f"Cannot encode type: {type(value)}")


def raw_entry(data: bytes, key: str) -> bytes | None:
    """
    Return the exact source bytes of ``key``'s value in a top-level dictionary.

    When the key repeats, the last occurrence wins, matching ``decode``.

    Raises:
        BencodeError: If the data is malformed or not a dictionary
    """
    data = bytes(data)
    if not isinstance(decode(data), dict):
        raise BencodeError("Top-level value must be a dictionary")

    wanted = _key_bytes(key)
    found: bytes | None = None
    index = 1
    while data[index : index + 1] != b"e":
        raw_key, index = _decode(data, index)
        start = index
        _, index = _decode(data, index)
        if raw_key == wanted:
            found = data[start:index]
    return found


def info_hash(torrent_data: bytes) -> bytes:
    """
    Calculate the SHA-1 hash of the 'info' dictionary of a torrent file.

    The hash covers the info dictionary exactly as it appears in the file,
    even when its keys are not in canonical order.

    Args:
        torrent_data: Raw .torrent file contents

    Returns:
        Raw bytes of the info hash (20 bytes)
    """
    decoded = decode(torrent_data)
    if not isinstance(decoded, dict):
        raise BencodeError("Torrent file must start with a dictionary")
    if not isinstance(decoded.get("info"), dict):
        raise FormatError("Torrent file missing 'info' dictionary")
    return hashlib.sha1(raw_entry(torrent_data, "info") or b"").digest()
