"""Unit tests for request defaults and serialization."""

from __future__ import annotations

import json

from taskwire.protocol.frames import EventName, RequestFrame
from taskwire.sdk.defaults import (
    image_inference_defaults,
    merge_image_inference_defaults,
    merge_new_connect_defaults,
)
from taskwire.sdk.types import ImageInferenceRequest, NewConnectRequest, Outpaint

# =============================================================================
# Default Merging Tests
# =============================================================================


class TestImageInferenceDefaults:
    """Tests for merging image-inference defaults."""

    def test_unset_fields_are_filled(self) -> None:
        """Fields left as None take the defaults."""
        merged = merge_image_inference_defaults(ImageInferenceRequest(positive_prompt="x"))

        assert merged.task_type == "imageInference"
        assert merged.delivery_method == "sync"
        assert merged.output_type == "URL"
        assert merged.output_format == "JPG"
        assert merged.output_quality == 95
        assert merged.steps == 20
        assert merged.cfg_scale == 7
        assert merged.number_results == 1
        assert merged.strength == 0.8
        assert merged.task_uuid

    def test_explicit_values_win(self) -> None:
        """Caller values are never overwritten, including zero."""
        req = ImageInferenceRequest(steps=30, cfg_scale=0, strength=0.0, output_format="PNG")
        merged = merge_image_inference_defaults(req)

        assert merged.steps == 30
        assert merged.cfg_scale == 0
        assert merged.strength == 0.0
        assert merged.output_format == "PNG"

    def test_fields_without_defaults_stay_unset(self) -> None:
        """Only defaulted fields are filled."""
        merged = merge_image_inference_defaults(ImageInferenceRequest())

        assert merged.width is None
        assert merged.clip_skip is None
        assert merged.seed is None

    def test_caller_request_not_mutated(self) -> None:
        """Merging returns a copy."""
        req = ImageInferenceRequest()
        merge_image_inference_defaults(req)
        assert req.steps is None

    def test_task_uuid_is_fresh(self) -> None:
        """Each defaults call allocates a new task UUID."""
        assert image_inference_defaults().task_uuid != image_inference_defaults().task_uuid

    def test_task_uuid_kept_when_given(self) -> None:
        """A caller-chosen task UUID is kept."""
        merged = merge_image_inference_defaults(ImageInferenceRequest(task_uuid="mine"))
        assert merged.task_uuid == "mine"


class TestNewConnectDefaults:
    """Tests for merging connect defaults."""

    def test_task_type_defaults_to_ping(self) -> None:
        assert merge_new_connect_defaults(NewConnectRequest(api_key="k")).task_type == "ping"

    def test_explicit_task_type_kept(self) -> None:
        req = NewConnectRequest(api_key="k", task_type="authentication")
        assert merge_new_connect_defaults(req).task_type == "authentication"


# =============================================================================
# Request Frame Tests
# =============================================================================


class TestRequestFrame:
    """Tests for outbound frame serialization."""

    def test_frame_shape(self) -> None:
        """Frames carry id, event and data; not the response event."""
        frame = RequestFrame.create(
            EventName.NEW_CONNECTION,
            EventName.NEW_CONNECTION_SESSION_UUID,
            NewConnectRequest(api_key="k", task_type="ping"),
            request_id="req_1",
        )
        data = json.loads(frame.to_bytes())

        assert data == {
            "id": "req_1",
            "event": "newConnection",
            "data": {"apiKey": "k", "taskType": "ping"},
        }
        assert frame.response_event == "newConnectionSessionUUID"

    def test_list_payload_uses_wire_names(self) -> None:
        """Nested models dump camelCase with unset fields omitted."""
        req = ImageInferenceRequest(
            positive_prompt="x",
            cfg_scale=7,
            task_uuid="t-1",
            outpaint=Outpaint(top=64),
        )
        frame = RequestFrame.create(EventName.NEW_TASK, EventName.NEW_IMAGES, [req])
        data = json.loads(frame.to_bytes())

        assert data["event"] == "newTask"
        assert data["data"] == [
            {
                "taskUUID": "t-1",
                "positivePrompt": "x",
                "CFGScale": 7.0,
                "outpaint": {"top": 64, "right": 0, "bottom": 0, "left": 0},
            }
        ]

    def test_ids_are_unique(self) -> None:
        """Each frame gets its own id."""
        first = RequestFrame.create("newTask", "newImages")
        second = RequestFrame.create("newTask", "newImages")
        assert first.id != second.id
        assert first.id.startswith("req_")
