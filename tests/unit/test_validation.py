"""Unit tests for request validation."""

from __future__ import annotations

import pytest

from taskwire.errors import ValidationError
from taskwire.sdk.defaults import merge_image_inference_defaults
from taskwire.sdk.types import NewConnectRequest, Outpaint
from taskwire.sdk.validation import validate_image_inference, validate_new_connect


def _validate(req) -> None:
    validate_image_inference(merge_image_inference_defaults(req))


def _error_for(req) -> ValidationError:
    with pytest.raises(ValidationError) as exc_info:
        _validate(req)
    return exc_info.value


# =============================================================================
# Image Inference Validation Tests
# =============================================================================


class TestImageInferenceValidation:
    """Tests for validate_image_inference."""

    def test_valid_request(self, image_request) -> None:
        """512x512, 20 steps, guidance 7, prompt and model validate."""
        _validate(image_request())

    def test_width_not_divisible_by_64(self, image_request) -> None:
        """width=500 fails with the documented reason."""
        error = _error_for(image_request(width=500))

        assert error.field == "width"
        assert error.reason == "must be divisible by 64, in [128,2048]"
        assert error.bounds == (128, 2048)

    def test_validation_is_deterministic(self, image_request) -> None:
        """The same invalid request fails the same way every time."""
        req = image_request(width=100)
        first = _error_for(req)
        second = _error_for(req)

        assert type(first) is type(second)
        assert first.field == second.field == "width"
        assert first.reason == second.reason

    def test_first_violation_wins(self, image_request) -> None:
        """Fields are checked in a fixed order."""
        error = _error_for(image_request(positive_prompt="", width=100, steps=0))
        assert error.field == "positivePrompt"

    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"positive_prompt": ""}, "positivePrompt"),
            ({"model": ""}, "model"),
            ({"width": None}, "width"),
            ({"width": 64}, "width"),
            ({"width": 2112}, "width"),
            ({"height": 520}, "height"),
            ({"steps": 101}, "steps"),
            ({"cfg_scale": 50.5}, "CFGScale"),
            ({"cfg_scale": -1}, "CFGScale"),
            ({"clip_skip": 3}, "clipSkip"),
            ({"output_quality": 19}, "outputQuality"),
            ({"number_results": 21}, "numberResults"),
            ({"strength": 1.5}, "strength"),
        ],
    )
    def test_out_of_range_fields(self, image_request, overrides, field) -> None:
        """Each range rule names its field."""
        assert _error_for(image_request(**overrides)).field == field

    def test_bounds_are_inclusive(self, image_request) -> None:
        """Range limits themselves are valid."""
        _validate(
            image_request(
                width=128,
                height=2048,
                steps=1,
                cfg_scale=0,
                clip_skip=2,
                output_quality=99,
                number_results=20,
                strength=0,
            )
        )

    def test_explicit_zero_is_not_replaced_by_default(self, image_request) -> None:
        """steps=0 stays 0 after merging and fails validation."""
        error = _error_for(image_request(steps=0))
        assert error.field == "steps"
        assert error.reason == "must be in [1,100]"

    def test_clip_skip_absent_is_fine(self, image_request) -> None:
        """clipSkip is only checked when present."""
        _validate(image_request(clip_skip=None))

    def test_mask_requires_seed_image(self, image_request) -> None:
        """A mask without a base image is rejected."""
        error = _error_for(image_request(mask_image="mask-uuid"))
        assert error.field == "seedImage"

    def test_mask_with_seed_image(self, image_request) -> None:
        """A mask with a base image is fine."""
        _validate(image_request(mask_image="mask-uuid", seed_image="seed-uuid"))

    def test_mask_margin_range(self, image_request) -> None:
        """A non-zero mask margin must be in [32,128]."""
        error = _error_for(image_request(mask_margin=16))
        assert error.field == "maskMargin"
        _validate(image_request(mask_margin=0))
        _validate(image_request(mask_margin=64))


# =============================================================================
# Outpaint Validation Tests
# =============================================================================


class TestOutpaintValidation:
    """Tests for outpaint rules."""

    def test_outpaint_requires_seed_image(self, image_request) -> None:
        """Outpaint needs a base image."""
        error = _error_for(image_request(outpaint=Outpaint(top=64)))
        assert error.field == "seedImage"
        assert "outpaint" in error.reason

    def test_outpaint_margins_divisible_by_64(self, image_request) -> None:
        """Every margin must be a multiple of 64."""
        req = image_request(seed_image="seed", outpaint=Outpaint(top=64, left=30))
        assert _error_for(req).field == "outpaint"

    def test_outpaint_blur_range(self, image_request) -> None:
        """Blur must be in [0,32]."""
        req = image_request(seed_image="seed", outpaint=Outpaint(top=64, blur=40))
        error = _error_for(req)

        assert error.field == "outpaint.blur"
        assert error.bounds == (0, 32)

    def test_valid_outpaint(self, image_request) -> None:
        """A well-formed outpaint passes."""
        req = image_request(
            seed_image="seed",
            outpaint=Outpaint(top=64, right=128, bottom=0, left=192, blur=8),
        )
        _validate(req)


# =============================================================================
# Connect Validation Tests
# =============================================================================


class TestNewConnectValidation:
    """Tests for validate_new_connect."""

    def test_api_key_required(self) -> None:
        """A connect request without an API key is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate_new_connect(NewConnectRequest(task_type="ping"))

        assert exc_info.value.field == "apiKey"
        assert exc_info.value.reason == "required"

    def test_with_api_key(self) -> None:
        """An API key is all a connect request needs."""
        validate_new_connect(NewConnectRequest(api_key="key"))
