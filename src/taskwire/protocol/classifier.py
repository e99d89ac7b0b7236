"""Inbound message classification.

Every inbound frame is decoded into a JSON object and classified against the
set of correlation keys currently awaited:
- ErrorFrame: the error flag is set (wins over any other content)
- Match: an awaited key is present; sequence values yield one Match per element
- Unroutable: nothing awaited is present

Classification is pure. Routing is the dispatcher's job.
"""

from __future__ import annotations

import json
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import DecodeError

ERROR_FLAG = "error"
ERROR_CODE = "errorId"
ERROR_TEXT = "errorMessage"
REQUEST_ID = "id"


@dataclass(frozen=True)
class ErrorFrame:
    """An error-flagged frame.

    `request_id` and `key` are set when the frame names what it refers to.
    """

    code: Any
    text: str
    request_id: str | None = None
    key: str | None = None


@dataclass(frozen=True)
class Match:
    """One payload answering a request awaiting `key`."""

    key: str
    payload: Any


@dataclass(frozen=True)
class Unroutable:
    """A frame nobody is waiting for."""

    keys: tuple[str, ...] = field(default_factory=tuple)


Classification = ErrorFrame | Match | Unroutable


def decode_frame(raw: bytes | str) -> dict[str, Any]:
    """Decode one raw frame into a JSON object."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeError(str(e)) from e
    if not isinstance(data, dict):
        raise DecodeError(f"expected a JSON object, got {type(data).__name__}")
    return data


def classify_message(
    message: Mapping[str, Any], interesting: Collection[str]
) -> list[Classification]:
    """Classify one decoded frame.

    Args:
        message: Decoded frame
        interesting: Correlation keys with requests currently waiting

    Returns:
        ErrorFrame alone if the error flag is set, otherwise one Match per
        payload found, or a single Unroutable if there were none.
    """
    if message.get(ERROR_FLAG):
        request_id = message.get(REQUEST_ID)
        key = next((k for k in message if k in interesting), None)
        return [
            ErrorFrame(
                code=message.get(ERROR_CODE),
                text=str(message.get(ERROR_TEXT, "")),
                request_id=request_id if isinstance(request_id, str) else None,
                key=key,
            )
        ]

    matches: list[Classification] = []
    for key, value in message.items():
        if key not in interesting:
            continue
        if isinstance(value, list):
            # The first element answers the oldest waiter; the rest are
            # classified on their own, not dropped.
            matches.extend(Match(key=key, payload=item) for item in value)
        else:
            matches.append(Match(key=key, payload=value))

    if not matches:
        return [Unroutable(keys=tuple(message))]
    return matches
