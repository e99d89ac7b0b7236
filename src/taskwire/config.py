"""Client configuration.

Values come from code defaults, then ``TASKWIRE_*`` environment variables,
then explicit arguments (CLI flags), highest last.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any

DEFAULT_URL = "wss://ws-api.runware.ai/v1"
DEFAULT_REQUEST_TIMEOUT = 60.0


class UnaddressedErrorPolicy(str, Enum):
    """What the dispatcher does with an error frame no request can claim."""

    BROADCAST = "broadcast"  # fail every pending request
    DROP = "drop"  # log and discard


@dataclass
class ClientConfig:
    """Configuration for a TaskClient and its transport."""

    # Connection
    url: str = DEFAULT_URL
    api_key: str | None = None
    open_timeout: float = 10.0
    close_timeout: float = 5.0
    ping_interval: float | None = 30.0

    # Requests
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    unaddressed_errors: UnaddressedErrorPolicy = UnaddressedErrorPolicy.BROADCAST

    def __post_init__(self) -> None:
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")
        self.unaddressed_errors = UnaddressedErrorPolicy(self.unaddressed_errors)

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientConfig:
        """Build a config from the environment, then apply non-None overrides."""
        values: dict[str, Any] = {}
        if url := os.getenv("TASKWIRE_URL"):
            values["url"] = url
        if api_key := os.getenv("TASKWIRE_API_KEY"):
            values["api_key"] = api_key
        if timeout := os.getenv("TASKWIRE_TIMEOUT"):
            try:
                values["request_timeout"] = float(timeout)
            except ValueError as e:
                raise ValueError(f"TASKWIRE_TIMEOUT must be a number, got {timeout!r}") from e
        if policy := os.getenv("TASKWIRE_UNADDRESSED_ERRORS"):
            values["unaddressed_errors"] = policy

        known = {f.name for f in fields(cls)}
        for key, value in overrides.items():
            if key not in known:
                raise TypeError(f"Unknown config option: {key}")
            if value is not None:
                values[key] = value
        return cls(**values)
