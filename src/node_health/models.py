#!/usr/bin/env python3
"""Data models for the node health probe.

This module provides immutable data classes for the JSON-RPC messages
exchanged with the nodes and for the results of a health check.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


@dataclass(frozen=True, slots=True)
class RpcRequest:
    """A JSON-RPC 2.0 request without parameters.

    Attributes:
        method: Name of the RPC method to call
        id: Request identifier echoed back by the node
        jsonrpc: Protocol version
    """

    method: str
    id: int = 1
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "jsonrpc": self.jsonrpc,
            "method": self.method,
            "id": self.id
        }


@dataclass(frozen=True, slots=True)
class RpcResponse:
    """A JSON-RPC 2.0 response carrying a string result.

    Attributes:
        jsonrpc: Protocol version reported by the node
        result: The result string (block numbers are hex or decimal strings)
        id: Identifier of the request this answers
    """

    jsonrpc: str
    result: str
    id: int | None

    @classmethod
    def from_dict(cls, data: Any) -> "RpcResponse":
        """Build a response from a decoded JSON body.

        Raises:
            ValueError: If the body does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

        if (error := data.get("error")) is not None:
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ValueError(f"Node returned JSON-RPC error: {message}")

        result = data.get("result")
        if not isinstance(result, str):
            raise ValueError(f"Expected a string result, got {result!r}")

        return cls(
            jsonrpc=str(data.get("jsonrpc", "")),
            result=result,
            id=data.get("id")
        )


class QueryFailure(Enum):
    """Why a block number query did not produce a height."""

    TRANSPORT = "transport"
    HTTP_STATUS = "http_status"
    MALFORMED_RESPONSE = "malformed_response"
    INVALID_NUMBER = "invalid_number"


@dataclass(frozen=True, slots=True)
class BlockHeightResult:
    """Outcome of querying one node for its latest block number.

    A failed query keeps a height of 0 so it can still take part in the
    height comparison.

    Attributes:
        url: Node that was queried
        height: Reported block height, 0 when the query failed
        failure: Failure reason, None on success
        detail: Human-readable failure description
    """

    url: str
    height: int = 0
    failure: QueryFailure | None = None
    detail: str = ""

    @classmethod
    def success(cls, url: str, height: int) -> "BlockHeightResult":
        return cls(url=url, height=height)

    @classmethod
    def failed(cls, url: str, failure: QueryFailure, detail: str = "") -> "BlockHeightResult":
        return cls(url=url, height=0, failure=failure, detail=detail)

    @property
    def ok(self) -> bool:
        return self.failure is None

    def __str__(self) -> str:
        """Human-readable string representation."""
        if self.ok:
            return f"BlockHeightResult(url={self.url}, height={self.height})"
        return f"BlockHeightResult(url={self.url}, failure={self.failure.value})"


@dataclass(frozen=True, slots=True)
class HealthReport:
    """Result of comparing the target node against the reference node.

    Attributes:
        reference: Query result for the reference node
        target: Query result for the node under test
        difference: Absolute block height difference
        max_height_diff: Tolerance the difference was compared against
    """

    reference: BlockHeightResult
    target: BlockHeightResult
    difference: int
    max_height_diff: int

    @property
    def healthy(self) -> bool:
        return self.difference <= self.max_height_diff

    @property
    def verdict(self) -> str:
        """The word sent to probe clients."""
        return "up" if self.healthy else "down"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "healthy": self.healthy,
            "reference_height": self.reference.height,
            "target_height": self.target.height,
            "difference": self.difference,
            "max_height_diff": self.max_height_diff,
            "reference_failure": self.reference.failure.value if self.reference.failure else None,
            "target_failure": self.target.failure.value if self.target.failure else None
        }
