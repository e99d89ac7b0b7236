"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import pytest

from taskwire.config import ClientConfig
from taskwire.sdk.types import ImageInferenceRequest


@pytest.fixture
def fast_config() -> ClientConfig:
    """Config with a short request timeout so timeout tests stay quick."""
    return ClientConfig(api_key="test-key", request_timeout=0.2)


@pytest.fixture
def image_request():
    """Factory for a valid image-inference request."""

    def make(**overrides) -> ImageInferenceRequest:
        fields = {
            "positive_prompt": "x",
            "model": "m",
            "width": 512,
            "height": 512,
            "steps": 20,
            "cfg_scale": 7,
        }
        fields.update(overrides)
        return ImageInferenceRequest(**fields)

    return make
