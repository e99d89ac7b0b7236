"""taskwire SDK - client for the inference service.

Provides:
- TaskClient: one method per operation over a shared connection
- Dispatcher / PendingRequestTable: routing of answers to waiting requests
- Transports: websocket, and mock for testing
"""

from .client import (
    CONNECT_SESSION,
    IMAGE_INFERENCE,
    Operation,
    TaskClient,
    create_test_client,
    create_websocket_client,
)
from .defaults import (
    image_inference_defaults,
    merge_image_inference_defaults,
    merge_new_connect_defaults,
    new_connect_defaults,
)
from .dispatcher import Dispatcher
from .pending import PendingRequest, PendingRequestTable
from .transport import (
    BaseTransport,
    MockTransport,
    Transport,
    TransportState,
    WebSocketTransport,
    create_mock_transport,
    create_websocket_transport,
)
from .types import (
    ACEPlusPlus,
    AcceleratorOptions,
    AdvancedFeatures,
    BFLSettings,
    ControlNet,
    Embedding,
    ImageInferenceRequest,
    ImageInferenceResponse,
    IPAdapter,
    Lora,
    NewConnectRequest,
    NewConnectResponse,
    Outpaint,
    ProviderSettings,
    PuLID,
    Refiner,
)
from .validation import validate_image_inference, validate_new_connect

__all__ = [
    # Client
    "TaskClient",
    "Operation",
    "CONNECT_SESSION",
    "IMAGE_INFERENCE",
    "create_websocket_client",
    "create_test_client",
    # Routing
    "Dispatcher",
    "PendingRequest",
    "PendingRequestTable",
    # Transports
    "Transport",
    "BaseTransport",
    "TransportState",
    "WebSocketTransport",
    "MockTransport",
    "create_websocket_transport",
    "create_mock_transport",
    # Defaults & validation
    "new_connect_defaults",
    "merge_new_connect_defaults",
    "image_inference_defaults",
    "merge_image_inference_defaults",
    "validate_new_connect",
    "validate_image_inference",
    # Types
    "NewConnectRequest",
    "NewConnectResponse",
    "ImageInferenceRequest",
    "ImageInferenceResponse",
    "Outpaint",
    "ControlNet",
    "Lora",
    "Refiner",
    "Embedding",
    "IPAdapter",
    "AdvancedFeatures",
    "AcceleratorOptions",
    "PuLID",
    "ACEPlusPlus",
    "BFLSettings",
    "ProviderSettings",
]
