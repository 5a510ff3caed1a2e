"""Client configuration."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field

ENV_PREFIX = "COURSETORRENT_"


class ClientConfig(BaseModel):
    """Settings for the tracker engine and catalog."""

    port: int = Field(default=6881, ge=0, le=65535, description="Port announced to trackers")
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    peer_id_seed: str = Field(default="coursetorrent", description="Stable per-install seed for the peer id")
    numwant: int | None = Field(default=None, ge=0, description="Number of peers to request, tracker default if unset")
    keep_history_on_unload: bool = Field(
        default=False, description="Keep peers and statistics across unload/reload instead of starting fresh"
    )
    user_agent: str = Field(default="coursetorrent/0.1.0", description="User-Agent sent to trackers")

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ClientConfig:
        """
        Build a configuration from COURSETORRENT_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Validated configuration; unset variables keep their defaults
        """
        environ = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        return cls.model_validate(values)
