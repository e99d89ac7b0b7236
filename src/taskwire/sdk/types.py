"""SDK type definitions.

Request and response values for each operation. Field names are snake_case
in Python and camelCase on the wire.

For every optional field `None` means "unset": defaults only fill `None`
fields, and `None` fields are left out of the serialized frame. An explicit
`0`, `0.0` or `False` is a real value and is kept.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models that travel on the wire with camelCase names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Nested image-inference settings


class ControlNet(WireModel):
    """ControlNet configuration for guided generation."""

    model: str
    guide_image: str
    weight: float | None = None
    start_step: int | None = None
    start_step_percentage: int | None = None
    end_step: int | None = None
    end_step_percentage: int | None = None
    control_mode: str | None = None


class Lora(WireModel):
    model: str
    weight: float | None = None


class Refiner(WireModel):
    """SDXL refiner for two-stage generation."""

    model: str
    start_step: int | None = None
    start_step_percentage: int | None = None


class Embedding(WireModel):
    model: str
    weight: float | None = None


class IPAdapter(WireModel):
    model: str
    guide_image: str
    weight: float | None = None


class Outpaint(WireModel):
    """Outpainting margins in pixels, plus edge blur."""

    top: int = 0
    right: int = 0
    bottom: int = 0
    left: int = 0
    blur: int | None = None


class AdvancedFeatures(WireModel):
    layer_diffuse: bool | None = None


class AcceleratorOptions(WireModel):
    """Caching options for faster generation."""

    tea_cache: bool | None = None
    tea_cache_distance: float | None = None
    deep_cache: bool | None = None
    deep_cache_interval: int | None = None
    deep_cache_branch_id: int | None = None


class PuLID(WireModel):
    """Identity customization."""

    input_images: list[str]
    id_weight: int | None = None
    true_cfg_scale: float | None = Field(default=None, alias="trueCFGScale")
    cfg_start_step: int | None = Field(default=None, alias="CFGStartStep")
    cfg_start_step_percentage: int | None = Field(default=None, alias="CFGStartStepPercentage")


class ACEPlusPlus(WireModel):
    """Character-consistent generation."""

    type: str | None = None
    input_images: list[str] | None = None
    input_masks: list[str] | None = None
    repainting_scale: float | None = None


class BFLSettings(WireModel):
    prompt_upsampling: bool | None = None
    safety_tolerance: int | None = None
    raw: bool | None = None


class ProviderSettings(WireModel):
    bfl: BFLSettings | None = None


# Connection


class NewConnectRequest(WireModel):
    """Open (or resume) a session on the shared connection."""

    api_key: str | None = None
    connection_session_uuid: str | None = Field(default=None, alias="connectionSessionUUID")
    task_type: str | None = None


class NewConnectResponse(WireModel):
    connection_session_uuid: str | None = Field(default=None, alias="connectionSessionUUID")
    timed_out: bool = False


# Image inference


class ImageInferenceRequest(WireModel):
    """Image generation request."""

    # Core task parameters
    task_type: str | None = None
    task_uuid: str | None = Field(default=None, alias="taskUUID")
    delivery_method: str | None = None
    webhook_url: str | None = Field(default=None, alias="webhookURL")
    upload_endpoint: str | None = None

    # Output configuration
    output_type: str | None = None
    output_format: str | None = None
    output_quality: int | None = None

    # Content and safety
    check_nsfw: bool | None = Field(default=None, alias="checkNSFW")
    include_cost: bool | None = None

    # Core generation parameters
    positive_prompt: str | None = None
    negative_prompt: str | None = None
    model: str | None = None
    width: int | None = None
    height: int | None = None

    # Image inputs for workflows
    seed_image: str | None = None
    mask_image: str | None = None
    mask_margin: int | None = None
    reference_images: list[str] | None = None
    strength: float | None = None

    # Generation control
    steps: int | None = None
    scheduler: str | None = None
    seed: int | None = None
    cfg_scale: float | None = Field(default=None, alias="CFGScale")
    clip_skip: int | None = None
    prompt_weighting: str | None = None
    number_results: int | None = None
    vae: str | None = None

    outpaint: Outpaint | None = None
    advanced_features: AdvancedFeatures | None = None
    accelerator_options: AcceleratorOptions | None = None
    pulid: PuLID | None = Field(default=None, alias="puLID")
    ace_plus_plus: ACEPlusPlus | None = None
    refiner: Refiner | None = None

    embeddings: list[Embedding] | None = None
    control_net: list[ControlNet] | None = None
    lora: list[Lora] | None = None
    ip_adapters: list[IPAdapter] | None = None

    provider_settings: ProviderSettings | None = None


class ImageInferenceResponse(WireModel):
    """One generated image."""

    task_type: str | None = None
    task_uuid: str | None = Field(default=None, alias="taskUUID")
    image_uuid: str | None = Field(default=None, alias="imageUUID")
    image_url: str | None = Field(default=None, alias="imageURL")
    image_base64_data: str | None = None
    image_data_uri: str | None = Field(default=None, alias="imageDataURI")
    seed: int | None = None
    nsfw_content: bool | None = Field(default=None, alias="NSFWContent")
    cost: float | None = None
    timed_out: bool = False
