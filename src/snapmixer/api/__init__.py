"""API layer for the Snapcast JSON-RPC control protocol over TCP."""

from snapmixer.api.client import ConnectionStatus, SnapcastConnection, parse_server_status
from snapmixer.api.protocol import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    MessageResult,
)

__all__ = [
    "ConnectionStatus",
    "SnapcastConnection",
    "parse_server_status",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcNotification",
    "JsonRpcError",
    "MessageResult",
]
