"""taskwire - request/response correlation over one duplex connection."""

from .config import ClientConfig, UnaddressedErrorPolicy
from .errors import (
    ConnectionClosedError,
    CredentialError,
    DecodeError,
    ProtocolError,
    RequestCancelledError,
    RequestTimeoutError,
    TaskwireError,
    ValidationError,
    classify_error,
    register_error_code,
)
from .sdk import (
    ImageInferenceRequest,
    ImageInferenceResponse,
    NewConnectRequest,
    NewConnectResponse,
    TaskClient,
    create_test_client,
    create_websocket_client,
)

__version__ = "0.1.0"

__all__ = [
    "ClientConfig",
    "UnaddressedErrorPolicy",
    "TaskClient",
    "create_websocket_client",
    "create_test_client",
    "NewConnectRequest",
    "NewConnectResponse",
    "ImageInferenceRequest",
    "ImageInferenceResponse",
    "TaskwireError",
    "CredentialError",
    "ProtocolError",
    "DecodeError",
    "RequestTimeoutError",
    "RequestCancelledError",
    "ValidationError",
    "ConnectionClosedError",
    "classify_error",
    "register_error_code",
]
