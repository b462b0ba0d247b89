"""
batchrelay - JSON-RPC 2.0 request batching with response correlation.
"""

__version__ = "0.1.0"
__logo__ = "⛓"

from batchrelay.batch import BatchRequest, BatchResponse, ResponseResult
from batchrelay.jsonrpc import (
    ErrorResponse,
    Notification,
    RawValue,
    Request,
    SuccessResponse,
    parse_batch_response,
    parse_response,
)
from batchrelay.middleware import BatchMiddleware
from batchrelay.relay import IdCounter, Relay
from batchrelay.transport import HttpTransport, Transport
from batchrelay.utils.exceptions import (
    BatchRelayError,
    BatchSubmittedError,
    DeserializationError,
    EmptyBatchError,
    MissingParametersError,
    ProtocolError,
    SerializationError,
    TransportError,
)

__all__ = [
    "BatchMiddleware",
    "BatchRelayError",
    "BatchRequest",
    "BatchResponse",
    "BatchSubmittedError",
    "DeserializationError",
    "EmptyBatchError",
    "ErrorResponse",
    "HttpTransport",
    "IdCounter",
    "MissingParametersError",
    "Notification",
    "ProtocolError",
    "RawValue",
    "Relay",
    "Request",
    "ResponseResult",
    "SerializationError",
    "SuccessResponse",
    "Transport",
    "TransportError",
    "parse_batch_response",
    "parse_response",
]
