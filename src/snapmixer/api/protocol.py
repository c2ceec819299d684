"""JSON-RPC protocol types for Snapcast communication."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class JsonRpcRequest:
    """A JSON-RPC 2.0 request.

    Attributes:
        id: Request identifier.
        method: Method name to call.
        params: Method parameters (dict or list).
    """

    id: int
    method: str
    params: dict[str, Any] | list[Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, Any] = {
            "jsonrpc": "2.0",
            "id": self.id,
            "method": self.method,
        }
        if self.params is not None:
            result["params"] = self.params
        return result


@dataclass(frozen=True)
class JsonRpcError:
    """A JSON-RPC 2.0 error.

    Attributes:
        code: Error code.
        message: Error message.
        data: Additional error data.
    """

    code: int
    message: str
    data: Any = None

    def __str__(self) -> str:
        """Return error message representation."""
        if self.data:
            return f"[{self.code}] {self.message}: {self.data}"
        return f"[{self.code}] {self.message}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JsonRpcError":
        """Create error from the ``error`` member of a response."""
        return cls(
            code=data.get("code", -1),
            message=data.get("message", "Unknown error"),
            data=data.get("data"),
        )


@dataclass(frozen=True)
class JsonRpcResponse:
    """A JSON-RPC 2.0 response.

    Attributes:
        id: Request identifier matching the request.
        result: Result data (None if error).
        error: Error data (None if success).
    """

    id: int | str | None = None
    result: Any = None
    error: JsonRpcError | None = None

    @property
    def is_success(self) -> bool:
        """Return True if response indicates success."""
        return self.error is None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JsonRpcResponse":
        """Create response from JSON dict."""
        error_data = data.get("error")
        error: JsonRpcError | None = None
        if isinstance(error_data, dict):
            error = JsonRpcError.from_dict(error_data)
        elif error_data is not None:
            error = JsonRpcError(code=-1, message=str(error_data))
        return cls(
            id=data.get("id"),
            result=data.get("result"),
            error=error,
        )


@dataclass(frozen=True)
class JsonRpcNotification:
    """A JSON-RPC 2.0 notification (server-initiated message).

    Attributes:
        method: Notification method name.
        params: Notification parameters.
    """

    method: str
    params: dict[str, Any] | list[Any] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "JsonRpcNotification":
        """Create notification from JSON dict."""
        return cls(
            method=data.get("method", ""),
            params=data.get("params"),
        )


@dataclass(frozen=True)
class MessageResult:
    """Outcome of one inbound message, as delivered to the control loop.

    Attributes:
        method: Method of the notification or of the answered request.
        error: Human-readable error text, or None if the message applied.
    """

    method: str
    error: str | None = None

    @property
    def is_success(self) -> bool:
        """Return True if the message applied successfully."""
        return self.error is None
