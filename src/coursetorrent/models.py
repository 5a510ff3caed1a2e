"""Records shared by the catalog, peer registry, statistics and tracker engine."""

from __future__ import annotations

import ipaddress
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TorrentState(str, Enum):
    """Lifecycle state of an infohash in the catalog."""

    ABSENT = "absent"
    LOADED = "loaded"
    UNLOADED = "unloaded"


class TorrentEvent(str, Enum):
    """Announce event; REGULAR is the periodic announce with no event parameter."""

    STARTED = "started"
    STOPPED = "stopped"
    COMPLETED = "completed"
    REGULAR = ""


class KnownPeer(BaseModel):
    """A peer returned by a tracker. Identity is (ip, port)."""

    ip: str = Field(description="IPv4 or IPv6 address in text form")
    port: int = Field(ge=0, le=65535, description="TCP port")
    peer_id: bytes | None = Field(default=None, description="20-byte peer id when the tracker sent one")

    model_config = ConfigDict(frozen=True)

    @field_validator("ip")
    @classmethod
    def normalize_ip(cls, value: str) -> str:
        """Normalise the address so equal addresses compare equal."""
        try:
            return str(ipaddress.ip_address(value))
        except ValueError as e:
            raise ValueError(f"Not an IP address: {value!r}") from e

    @property
    def key(self) -> tuple[str, int]:
        return self.ip, self.port

    @property
    def sort_key(self) -> tuple[int, int, int]:
        """IPv4 before IPv6, then numeric address, then port."""
        address = ipaddress.ip_address(self.ip)
        return address.version, int(address), self.port

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"ip": self.ip, "port": self.port}
        if self.peer_id is not None:
            record["peer id"] = self.peer_id
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> KnownPeer:
        ip = record["ip"]
        return cls(
            ip=ip.decode("ascii") if isinstance(ip, bytes) else ip,
            port=record["port"],
            peer_id=record.get("peer id"),
        )


class ScrapeData(BaseModel):
    """Latest known statistics for one tracker URL."""

    seeders: int = Field(default=0, ge=0)
    leechers: int = Field(default=0, ge=0)
    downloaded: int = Field(default=0, ge=0)
    interval: int = Field(default=0, ge=0, description="Last announce interval in seconds")
    failure_reason: str | None = Field(default=None, description="Set when the last response was a failure")

    def merged(self, update: ScrapeUpdate) -> ScrapeData:
        """Return a copy with the explicitly set fields of ``update`` applied."""
        changes = {
            name: value
            for name, value in update.model_dump(exclude_unset=True).items()
            if value is not None or name == "failure_reason"
        }
        return self.model_copy(update=changes)

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "seeders": self.seeders,
            "leechers": self.leechers,
            "downloaded": self.downloaded,
            "interval": self.interval,
        }
        if self.failure_reason is not None:
            record["failure reason"] = self.failure_reason
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> ScrapeData:
        reason = record.get("failure reason")
        return cls(
            seeders=record.get("seeders", 0),
            leechers=record.get("leechers", 0),
            downloaded=record.get("downloaded", 0),
            interval=record.get("interval", 0),
            failure_reason=reason.decode("utf-8", errors="replace") if isinstance(reason, bytes) else reason,
        )


class ScrapeUpdate(BaseModel):
    """
    Partial statistics from one tracker response.

    Only fields passed explicitly are applied; passing ``failure_reason=None``
    clears a previous failure.
    """

    seeders: int | None = Field(default=None, ge=0)
    leechers: int | None = Field(default=None, ge=0)
    downloaded: int | None = Field(default=None, ge=0)
    interval: int | None = Field(default=None, ge=0)
    failure_reason: str | None = None

    @classmethod
    def failure(cls, reason: str) -> ScrapeUpdate:
        return cls(failure_reason=reason)
