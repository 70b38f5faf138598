#!/usr/bin/env python3
"""Unit tests for the data models."""

import pytest

from node_health.models import (
    BlockHeightResult,
    HealthReport,
    QueryFailure,
    RpcRequest,
    RpcResponse
)


class TestRpcRequest:
    """Test suite for RpcRequest."""

    def test_block_number_request_body(self):
        """Test the serialized eth_blockNumber request."""
        request = RpcRequest(method="eth_blockNumber")

        assert request.to_dict() == {
            "jsonrpc": "2.0",
            "method": "eth_blockNumber",
            "id": 1
        }


class TestRpcResponse:
    """Test suite for RpcResponse."""

    def test_from_dict(self):
        """Test parsing a well-formed response."""
        response = RpcResponse.from_dict({"jsonrpc": "2.0", "result": "0x3e8", "id": 1})

        assert response.jsonrpc == "2.0"
        assert response.result == "0x3e8"
        assert response.id == 1

    def test_from_dict_not_an_object(self):
        """Test that a JSON array is rejected."""
        with pytest.raises(ValueError, match="Expected a JSON object"):
            RpcResponse.from_dict(["0x3e8"])

    def test_from_dict_missing_result(self):
        """Test that a response without result is rejected."""
        with pytest.raises(ValueError, match="Expected a string result"):
            RpcResponse.from_dict({"jsonrpc": "2.0", "id": 1})

    def test_from_dict_numeric_result(self):
        """Test that a numeric result is rejected."""
        with pytest.raises(ValueError, match="Expected a string result"):
            RpcResponse.from_dict({"jsonrpc": "2.0", "result": 1000, "id": 1})

    def test_from_dict_rpc_error(self):
        """Test that JSON-RPC errors are reported with their message."""
        with pytest.raises(ValueError, match="method not found"):
            RpcResponse.from_dict({
                "jsonrpc": "2.0",
                "error": {"code": -32601, "message": "method not found"},
                "id": 1
            })


class TestBlockHeightResult:
    """Test suite for BlockHeightResult."""

    def test_success(self):
        """Test a successful query result."""
        result = BlockHeightResult.success("http://node:8545", 1000)

        assert result.ok
        assert result.height == 1000
        assert result.failure is None
        assert "height=1000" in str(result)

    def test_failed_has_zero_height(self):
        """Test that failed queries count as height 0."""
        result = BlockHeightResult.failed(
            "http://node:8545", QueryFailure.HTTP_STATUS, "HTTP status 503"
        )

        assert not result.ok
        assert result.height == 0
        assert result.detail == "HTTP status 503"
        assert "failure=http_status" in str(result)


class TestHealthReport:
    """Test suite for HealthReport."""

    @staticmethod
    def _report(difference: int, max_height_diff: int = 100) -> HealthReport:
        return HealthReport(
            reference=BlockHeightResult.success("http://reference", 1000 + difference),
            target=BlockHeightResult.success("http://target", 1000),
            difference=difference,
            max_height_diff=max_height_diff
        )

    def test_within_tolerance_is_up(self):
        """Test that a small difference is healthy."""
        report = self._report(50)

        assert report.healthy
        assert report.verdict == "up"

    def test_boundary_is_up(self):
        """Test that a difference equal to the tolerance is healthy."""
        assert self._report(100).verdict == "up"

    def test_beyond_tolerance_is_down(self):
        """Test that a difference above the tolerance is unhealthy."""
        report = self._report(101)

        assert not report.healthy
        assert report.verdict == "down"

    def test_to_dict(self):
        """Test serialization of a report with a failed target query."""
        report = HealthReport(
            reference=BlockHeightResult.success("http://reference", 1000),
            target=BlockHeightResult.failed("http://target", QueryFailure.TRANSPORT),
            difference=1000,
            max_height_diff=100
        )

        assert report.to_dict() == {
            "healthy": False,
            "reference_height": 1000,
            "target_height": 0,
            "difference": 1000,
            "max_height_diff": 100,
            "reference_failure": None,
            "target_failure": "transport"
        }
