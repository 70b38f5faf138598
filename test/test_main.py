#!/usr/bin/env python3
"""Tests for the command line entry point."""

import asyncio
import logging
import os
import socket
import sys
from unittest.mock import AsyncMock, patch

import pytest

from main import main, run_once, setup_logging
from node_health.config import NodeConfig, ProbeConfig, ServerConfig
from node_health.models import BlockHeightResult, HealthReport


@pytest.fixture
def probe_config():
    """Create a configuration pointing at fake nodes."""
    return ProbeConfig(
        server=ServerConfig(),
        nodes=NodeConfig(reference_node_url="reference:8545", node_url="target:8545")
    )


def _report(difference: int) -> HealthReport:
    return HealthReport(
        reference=BlockHeightResult.success("http://reference:8545", 1000),
        target=BlockHeightResult.success("http://target:8545", 1000 - difference),
        difference=difference,
        max_height_diff=100
    )


@pytest.mark.asyncio
async def test_run_once_up(probe_config, capsys):
    """Test that a healthy node prints up and exits 0."""
    with patch("main.HealthChecker") as mock_checker_class:
        mock_checker_class.return_value.check = AsyncMock(return_value=_report(10))
        status = await run_once(probe_config)

    assert status == 0
    assert capsys.readouterr().out == "up\n"
    mock_checker_class.assert_called_once_with(probe_config.nodes)


@pytest.mark.asyncio
async def test_run_once_down(probe_config, capsys):
    """Test that an unhealthy node prints down and exits 1."""
    with patch("main.HealthChecker") as mock_checker_class:
        mock_checker_class.return_value.check = AsyncMock(return_value=_report(500))
        status = await run_once(probe_config)

    assert status == 1
    assert capsys.readouterr().out == "down\n"


def test_setup_logging_unknown_level_defaults_to_info():
    """Test that unknown level names fall back to INFO."""
    with patch("main.logging.basicConfig") as mock_basic_config:
        setup_logging("verbose")

    assert mock_basic_config.call_args.kwargs["level"] == logging.INFO


@pytest.fixture
def argv():
    """Run main() with the given command line and no .env file."""

    def _argv(*args: str):
        return patch.object(sys, "argv", ["main.py", *args])

    with patch("main.load_dotenv"):
        yield _argv


@pytest.mark.asyncio
async def test_main_config_error_exits_1(argv, caplog):
    """Test that an invalid port aborts startup with status 1."""
    env = {"PORT": "70000"}
    with patch.dict(os.environ, env, clear=True), argv(), pytest.raises(SystemExit) as exc_info:
        await main()

    assert exc_info.value.code == 1
    assert "Configuration Error" in caplog.text


@pytest.mark.asyncio
async def test_main_port_in_use_exits_1(argv, caplog):
    """Test that a port held by another socket aborts startup with status 1."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as occupied:
        occupied.bind(("127.0.0.1", 0))
        occupied.listen()
        port = occupied.getsockname()[1]

        env = {"HOST": "127.0.0.1", "PORT": str(port)}
        with patch.dict(os.environ, env, clear=True), argv(), pytest.raises(SystemExit) as exc_info:
            await main()

    assert exc_info.value.code == 1
    assert f"Cannot listen on 127.0.0.1:{port}" in caplog.text


@pytest.mark.asyncio
@pytest.mark.parametrize("difference, expected_status", [(10, 0), (500, 1)])
async def test_main_once_exit_status(argv, capsys, difference, expected_status):
    """Test that --once exits with the verdict as status."""
    with patch.dict(os.environ, {}, clear=True), \
            patch("main.HealthChecker") as mock_checker_class, argv("--once"):
        mock_checker_class.return_value.check = AsyncMock(return_value=_report(difference))
        with pytest.raises(SystemExit) as exc_info:
            await main()

    assert exc_info.value.code == expected_status
    assert capsys.readouterr().out == ("up\n" if expected_status == 0 else "down\n")


@pytest.mark.asyncio
async def test_main_interrupt_stops_server(argv, caplog):
    """Test that cancellation while serving shuts the listener down cleanly."""
    with patch.dict(os.environ, {}, clear=True), \
            patch("main.HealthProbeServer") as mock_server_class, argv():
        server = mock_server_class.return_value
        server.start = AsyncMock()
        server.run = AsyncMock(side_effect=asyncio.CancelledError)
        server.stop = AsyncMock()

        with caplog.at_level(logging.INFO):
            await main()

    server.start.assert_awaited_once()
    server.stop.assert_awaited_once()
    assert "shutting down gracefully" in caplog.text
