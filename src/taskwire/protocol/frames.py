"""Outbound request frames and protocol constants.

Each request frame carries:
- `id`: a caller-chosen unique id
- `event`: the operation identifier
- `data`: the operation payload (an object, or a one-element list of it)

The answer to a request carries a field whose name is the request's
`response_event` (its correlation key). That name is kept client-side and is
not sent on the wire.

Example:
    {
        "id": "req_3f9c2a7d1b4e",
        "event": "newTask",
        "data": [{"taskType": "imageInference", "positivePrompt": "a fox", ...}]
    }
"""

from __future__ import annotations

import json
import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EventName(str, Enum):
    """Operation identifiers and the response events that answer them."""

    # Requests
    NEW_CONNECTION = "newConnection"
    NEW_TASK = "newTask"

    # Responses (correlation keys)
    NEW_CONNECTION_SESSION_UUID = "newConnectionSessionUUID"
    NEW_IMAGES = "newImages"


# Task types
class TaskType(str, Enum):
    """Task types understood by the inference service."""

    PING = "ping"
    IMAGE_INFERENCE = "imageInference"
    TEXT_TO_IMAGE = "textToImage"
    IMAGE_CAPTION = "imageCaption"
    INPAINTING = "inpainting"
    IMAGE_TO_TEXT = "imageToText"
    PROMPT_ENHANCER = "promptEnhancer"
    IMAGE_UPSCALE = "imageUpscale"
    IMAGE_UPLOAD = "imageUpload"
    REMOVE_BACKGROUND = "imageBackgroundRemoval"
    CONTROLNET_TEXT_TO_IMAGE = "controlNetTextToImage"
    CONTROLNET_IMAGE_TO_IMAGE = "controlNetImageToImage"
    CONTROLNET_PREPROCESS_IMAGE = "controlNetPreprocessImage"


class OutputType(str, Enum):
    URL = "URL"
    BASE64_DATA = "base64Data"
    DATA_URI = "dataURI"


class OutputFormat(str, Enum):
    JPG = "JPG"
    PNG = "PNG"
    WEBP = "WEBP"


class DeliveryMethod(str, Enum):
    SYNC = "sync"
    ASYNC = "async"


class PromptWeighting(str, Enum):
    COMPEL = "compel"
    SD_EMBEDS = "sdEmbeds"


class ACEType(str, Enum):
    PORTRAIT = "portrait"
    SUBJECT = "subject"
    LOCAL_EDITING = "local_editing"


def new_request_id() -> str:
    """Allocate a unique request id."""
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestFrame(BaseModel):
    """A request from client to service.

    `response_event` is the correlation key the answer must carry. It is
    excluded from the serialized frame.
    """

    id: str = Field(default_factory=new_request_id)
    event: str
    response_event: str = Field(exclude=True)
    data: Any = None

    @classmethod
    def create(
        cls,
        event: str | EventName,
        response_event: str | EventName,
        data: Any = None,
        request_id: str | None = None,
    ) -> RequestFrame:
        """Factory method for creating request frames."""
        return cls(
            id=request_id or new_request_id(),
            event=event.value if isinstance(event, EventName) else event,
            response_event=(
                response_event.value if isinstance(response_event, EventName) else response_event
            ),
            data=data,
        )

    def to_bytes(self) -> bytes:
        """Serialize to one JSON frame.

        Pydantic payloads are dumped by alias with unset fields omitted.
        """
        return json.dumps(
            {"id": self.id, "event": self.event, "data": _dump(self.data)},
            separators=(",", ":"),
        ).encode("utf-8")


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, list | tuple):
        return [_dump(v) for v in value]
    return value
