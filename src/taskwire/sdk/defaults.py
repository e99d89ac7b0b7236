"""Per-operation request defaults.

Each operation builds its defaults explicitly and overlays them field by
field onto the caller's request. Only fields the caller left as `None` are
filled. The caller's request is never mutated.
"""

from __future__ import annotations

import uuid

from ..protocol.frames import DeliveryMethod, OutputFormat, OutputType, TaskType
from .types import ImageInferenceRequest, NewConnectRequest


def new_connect_defaults() -> NewConnectRequest:
    return NewConnectRequest(task_type=TaskType.PING.value)


def merge_new_connect_defaults(req: NewConnectRequest) -> NewConnectRequest:
    """Fill unset connect fields from the defaults."""
    defaults = new_connect_defaults()
    update = {}
    if req.task_type is None:
        update["task_type"] = defaults.task_type
    return req.model_copy(update=update)


def image_inference_defaults() -> ImageInferenceRequest:
    """Defaults for image inference. A fresh task UUID each call."""
    return ImageInferenceRequest(
        task_type=TaskType.IMAGE_INFERENCE.value,
        task_uuid=str(uuid.uuid4()),
        delivery_method=DeliveryMethod.SYNC.value,
        output_type=OutputType.URL.value,
        output_format=OutputFormat.JPG.value,
        output_quality=95,
        steps=20,
        cfg_scale=7.0,
        number_results=1,
        strength=0.8,
    )


# Fields image_inference_defaults() sets; everything else has no default.
IMAGE_INFERENCE_DEFAULTED_FIELDS = (
    "task_type",
    "task_uuid",
    "delivery_method",
    "output_type",
    "output_format",
    "output_quality",
    "steps",
    "cfg_scale",
    "number_results",
    "strength",
)


def merge_image_inference_defaults(req: ImageInferenceRequest) -> ImageInferenceRequest:
    """Fill unset image-inference fields from the defaults."""
    defaults = image_inference_defaults()
    update = {}
    for name in IMAGE_INFERENCE_DEFAULTED_FIELDS:
        if getattr(req, name) is None:
            update[name] = getattr(defaults, name)
    return req.model_copy(update=update)
