"""Request validation.

Validators are pure and check fields in a fixed order, raising
ValidationError on the first violation. The same invalid request therefore
always produces the same error. Field names in errors are wire names.
"""

from __future__ import annotations

from ..errors import ValidationError
from .types import ImageInferenceRequest, NewConnectRequest

REQUIRED = "required"


def _in_range(value: float | None, low: float, high: float) -> bool:
    return value is not None and low <= value <= high


def _check_range(field: str, value: float | None, low: float, high: float) -> None:
    if not _in_range(value, low, high):
        raise ValidationError(field, f"must be in [{_fmt(low)},{_fmt(high)}]", (low, high))


def _check_dimension(field: str, value: int | None) -> None:
    if value is None or not 128 <= value <= 2048 or value % 64 != 0:
        raise ValidationError(field, "must be divisible by 64, in [128,2048]", (128, 2048))


def _fmt(bound: float) -> str:
    return str(int(bound)) if float(bound).is_integer() else str(bound)


def validate_new_connect(req: NewConnectRequest) -> None:
    if not req.api_key:
        raise ValidationError("apiKey", REQUIRED)


def validate_image_inference(req: ImageInferenceRequest) -> None:
    """Validate a merged image-inference request.

    Raises:
        ValidationError: On the first invalid field
    """
    if not req.positive_prompt:
        raise ValidationError("positivePrompt", REQUIRED)
    if not req.model:
        raise ValidationError("model", REQUIRED)

    _check_dimension("width", req.width)
    _check_dimension("height", req.height)
    _check_range("steps", req.steps, 1, 100)
    _check_range("CFGScale", req.cfg_scale, 0, 50)
    if req.clip_skip is not None:
        _check_range("clipSkip", req.clip_skip, 0, 2)
    _check_range("outputQuality", req.output_quality, 20, 99)
    _check_range("numberResults", req.number_results, 1, 20)
    _check_range("strength", req.strength, 0, 1)

    # Workflow requirements
    if req.mask_image and not req.seed_image:
        raise ValidationError("seedImage", "required when maskImage is provided")
    if req.mask_margin:
        _check_range("maskMargin", req.mask_margin, 32, 128)

    if req.outpaint is not None:
        outpaint = req.outpaint
        if not req.seed_image:
            raise ValidationError("seedImage", "required when outpaint is provided")
        margins = (outpaint.top, outpaint.right, outpaint.bottom, outpaint.left)
        if any(m % 64 != 0 for m in margins):
            raise ValidationError("outpaint", "all values must be divisible by 64")
        if outpaint.blur is not None:
            _check_range("outpaint.blur", outpaint.blur, 0, 32)
