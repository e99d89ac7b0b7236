"""Wire protocol for the inference service connection.

Key concepts:
- Request frames: client -> service, each with a unique id and an operation
- Response events: service -> client, named after the correlation key the
  request declared
- Error frames: carry an error flag, a numeric code and a message
"""

from .classifier import (
    Classification,
    ErrorFrame,
    Match,
    Unroutable,
    classify_message,
    decode_frame,
)
from .frames import (
    ACEType,
    DeliveryMethod,
    EventName,
    OutputFormat,
    OutputType,
    PromptWeighting,
    RequestFrame,
    TaskType,
    new_request_id,
)

__all__ = [
    "Classification",
    "ErrorFrame",
    "Match",
    "Unroutable",
    "classify_message",
    "decode_frame",
    "ACEType",
    "DeliveryMethod",
    "EventName",
    "OutputFormat",
    "OutputType",
    "PromptWeighting",
    "RequestFrame",
    "TaskType",
    "new_request_id",
]
