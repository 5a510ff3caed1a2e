"""
Torrent metainfo models built on the bencode codec.
Uses Pydantic for structured data validation and type safety.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, model_validator

from . import bencode
from .errors import FormatError


def _text(value: Any) -> Any:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


class TorrentFile(BaseModel):
    """Represents a single file in a torrent."""

    length: int = Field(default=0, ge=0, description="File size in bytes")
    path: list[str] = Field(default_factory=list, description="Path components for the file")

    @computed_field
    @property
    def full_path(self) -> str:
        """Get the full path as a string."""
        return "/".join(self.path)


class TorrentInfo(BaseModel):
    """
    The 'info' dictionary from a torrent file.

    Only the keys this engine reads are modelled, and none of them is
    required: the infohash covers whatever the dictionary contains.
    """

    name: str | None = Field(default=None, description="Name of the torrent (file or directory)")
    piece_length: int | None = Field(default=None, alias="piece length", ge=1, description="Size of each piece")
    pieces: bytes = Field(default=b"", description="Concatenated SHA-1 hashes of all pieces")
    length: int | None = Field(default=None, ge=0, description="Total length for single-file torrents")
    files: list[TorrentFile] | None = Field(default=None, description="List of files for multi-file torrents")
    private: int | None = Field(default=None, description="Private torrent flag")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def decode_bytes_fields(cls, data: Any) -> Any:
        """Decode bytes fields to strings where appropriate."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        name = _text(data.get("name"))
        data["name"] = name if isinstance(name, str) else None

        # Malformed optional keys are ignored rather than rejected
        for key, minimum in (("piece length", 1), ("length", 0), ("private", None)):
            value = data.get(key)
            if key in data and (not isinstance(value, int) or (minimum is not None and value < minimum)):
                del data[key]
        if not isinstance(data.get("pieces", b""), bytes):
            del data["pieces"]
        if "files" in data and not isinstance(data["files"], list):
            del data["files"]

        if isinstance(data.get("files"), list):
            decoded_files = []
            for file_info in data["files"]:
                if isinstance(file_info, TorrentFile):
                    decoded_files.append(file_info)
                    continue
                if not isinstance(file_info, dict):
                    continue
                path = file_info.get("path", [])
                path = [_text(p) if isinstance(p, bytes) else str(p) for p in path] if isinstance(path, list) else []
                length = file_info.get("length", 0)
                if not isinstance(length, int) or length < 0:
                    length = 0
                decoded_files.append({"length": length, "path": path})
            data["files"] = decoded_files

        return data

    @computed_field
    @property
    def piece_count(self) -> int:
        """Get the number of pieces (each SHA-1 hash is 20 bytes)."""
        return len(self.pieces) // 20

    @computed_field
    @property
    def total_size(self) -> int:
        """Get the total size of all files."""
        if self.length is not None:
            return self.length
        if self.files:
            return sum(f.length for f in self.files)
        return 0


class Torrent(BaseModel):
    """Top-level metainfo dictionary."""

    info: TorrentInfo = Field(description="The info dictionary")
    announce: str | None = Field(default=None, description="Primary tracker URL")
    announce_list: list[list[str]] | None = Field(
        default=None, alias="announce-list", description="Tiered list of tracker URLs"
    )
    creation_date: int | None = Field(default=None, alias="creation date", description="Creation timestamp")
    comment: str | None = Field(default=None, description="Optional comment")
    created_by: str | None = Field(default=None, alias="created by", description="Creator software")
    encoding: str | None = Field(default=None, description="String encoding used")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def decode_bytes_fields(cls, data: Any) -> Any:
        """Decode bytes fields to strings and drop malformed tracker entries."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for key in ("announce", "comment", "created by", "encoding"):
            if key in data:
                value = _text(data[key])
                data[key] = value if isinstance(value, str) else None

        # announce-list is a list of tiers, each a list of byte-string URLs
        if "announce-list" in data:
            decoded_list = []
            raw_tiers = data["announce-list"]
            for tier in raw_tiers if isinstance(raw_tiers, list) else []:
                if not isinstance(tier, list):
                    continue
                decoded_tier = [_text(url) for url in tier if isinstance(url, (bytes, str))]
                if decoded_tier:
                    decoded_list.append(decoded_tier)
            data["announce-list"] = decoded_list

        if not isinstance(data.get("creation date"), int):
            data.pop("creation date", None)

        return data

    @computed_field
    @property
    def creation_datetime(self) -> datetime | None:
        """Get creation date as datetime object."""
        if self.creation_date:
            return datetime.fromtimestamp(self.creation_date)
        return None

    def get_announce_tiers(self) -> list[list[str]]:
        """
        Get the announce tiers as defined by BEP 12.

        "announce-list" is used when present and non-empty; otherwise the lone
        "announce" URL forms tier 1.
        """
        if self.announce_list:
            return [list(tier) for tier in self.announce_list]
        if self.announce:
            return [[self.announce]]
        return []


class MetaInfo(BaseModel):
    """A parsed torrent file together with its identity."""

    torrent: Torrent
    info: dict[str, Any] = Field(description="Raw decoded info dictionary")
    info_hash: bytes = Field(description="SHA-1 of the bencoded info dictionary")

    @computed_field
    @property
    def info_hash_hex(self) -> str:
        """Get info hash as hex string."""
        return self.info_hash.hex()

    @property
    def announce_tiers(self) -> list[list[str]]:
        return self.torrent.get_announce_tiers()


def parse_metainfo(data: bytes) -> MetaInfo:
    """
    Parse torrent file contents.

    Args:
        data: Raw .torrent file contents

    Returns:
        MetaInfo with the validated model, the raw info dict and the infohash

    Raises:
        FormatError: If the data is not valid bencode or lacks an info dictionary
    """
    decoded = bencode.decode(data)
    if not isinstance(decoded, dict):
        raise bencode.BencodeError("Torrent file must start with a dictionary")

    info = decoded.get("info")
    if not isinstance(info, dict):
        raise FormatError("Torrent file missing 'info' dictionary")

    try:
        torrent = Torrent.model_validate(decoded)
    except ValidationError as e:
        raise FormatError(f"Invalid metainfo: {e.error_count()} validation error(s)") from e

    return MetaInfo(torrent=torrent, info=info, info_hash=bencode.info_hash(data))
