#!/usr/bin/env python3
"""Configuration management for the node health probe.

This module provides type-safe configuration dataclasses with validation
for the probe. Configuration is loaded from environment variables with
defaults for every setting, so the probe starts without any configuration.
"""

import logging
import os
from dataclasses import dataclass
from urllib.parse import urlparse

# Get logger for this module
logger = logging.getLogger(__name__)

DEFAULT_NODE_URL = "localhost:8545"


def normalize_node_url(url: str) -> str:
    """Return the node URL with an explicit scheme.

    Node URLs are commonly given as ``host:port``; those are treated as
    plain HTTP endpoints.

    Raises:
        ValueError: If the URL is empty or uses a scheme other than http(s)
    """
    url = url.strip()
    if not url:
        raise ValueError("Node URL must not be empty")

    if "://" not in url:
        url = f"http://{url}"

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        raise ValueError(
            f"Invalid node URL scheme: {parsed.scheme}. Expected http or https"
        )
    if not parsed.netloc:
        raise ValueError(f"Node URL has no host: {url}")
    return url


def _env_int(key: str, default: str) -> int:
    raw = os.environ.get(key, default)
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def _env_float(key: str, default: str) -> float:
    raw = os.environ.get(key, default)
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Configuration for the TCP listener.

    Attributes:
        host: Address to listen on
        port: Port to listen on (0 lets the OS pick one)
        read_timeout: Seconds to wait for the client's trigger line
        check_timeout: Seconds allowed for one complete health check
    """

    host: str = "localhost"
    port: int = 1337
    read_timeout: float = 30.0
    check_timeout: float = 30.0

    def __post_init__(self) -> None:
        """Validate listener configuration."""
        if not self.host:
            raise ValueError("Listen host is required (HOST)")

        if not 0 <= self.port <= 65535:
            raise ValueError(f"Port must be between 0 and 65535, got {self.port}")

        if self.read_timeout <= 0:
            raise ValueError(f"Read timeout must be positive, got {self.read_timeout}")
        if self.read_timeout > 300:
            raise ValueError(f"Read timeout too long (max 300s), got {self.read_timeout}")

        if self.check_timeout <= 0:
            raise ValueError(f"Check timeout must be positive, got {self.check_timeout}")
        if self.check_timeout > 300:
            raise ValueError(f"Check timeout too long (max 300s), got {self.check_timeout}")

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load listener configuration from HOST, PORT, READ_TIMEOUT and CHECK_TIMEOUT."""
        return cls(
            host=os.environ.get("HOST", "localhost"),
            port=_env_int("PORT", "1337"),
            read_timeout=_env_float("READ_TIMEOUT", "30"),
            check_timeout=_env_float("CHECK_TIMEOUT", "30"),
        )


@dataclass(frozen=True, slots=True)
class NodeConfig:
    """Configuration for the nodes being compared.

    Attributes:
        reference_node_url: JSON-RPC endpoint trusted as ground truth
        node_url: JSON-RPC endpoint under test
        max_height_diff: Largest tolerated block height difference
        request_timeout: HTTP timeout for each JSON-RPC request in seconds
    """

    reference_node_url: str = DEFAULT_NODE_URL
    node_url: str = DEFAULT_NODE_URL
    max_height_diff: int = 100
    request_timeout: float = 10.0

    def __post_init__(self) -> None:
        """Validate node configuration and normalize URLs."""
        # Use object.__setattr__ since dataclass is frozen
        object.__setattr__(
            self, "reference_node_url", normalize_node_url(self.reference_node_url)
        )
        object.__setattr__(self, "node_url", normalize_node_url(self.node_url))

        if self.max_height_diff < 0:
            raise ValueError(
                f"Max height difference must be non-negative, got {self.max_height_diff}"
            )

        if self.request_timeout <= 0:
            raise ValueError(f"Request timeout must be positive, got {self.request_timeout}")
        if self.request_timeout > 120:
            raise ValueError(f"Request timeout too long (max 120s), got {self.request_timeout}")

    @classmethod
    def from_env(cls) -> "NodeConfig":
        """Load node configuration from environment variables.

        Called for every health check, so changes to the environment of a
        running process are picked up without a restart.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        return cls(
            reference_node_url=os.environ.get("REFERENCE_NODE_URL", DEFAULT_NODE_URL),
            node_url=os.environ.get("NODE_URL", DEFAULT_NODE_URL),
            max_height_diff=_env_int("MAX_HEIGHT_DIFF", "100"),
            request_timeout=_env_float("REQUEST_TIMEOUT", "10"),
        )


@dataclass(frozen=True, slots=True)
class ProbeConfig:
    """Main configuration for the node health probe.

    Attributes:
        server: Configuration for the TCP listener
        nodes: Configuration for the compared nodes
    """

    server: ServerConfig
    nodes: NodeConfig

    @classmethod
    def from_env(cls) -> "ProbeConfig":
        """Load configuration from environment variables.

        Returns:
            ProbeConfig instance with loaded values

        Raises:
            ValueError: If an environment variable holds an invalid value
        """
        return cls(server=ServerConfig.from_env(), nodes=NodeConfig.from_env())

    def log_config(self) -> None:
        """Log the configuration in a readable format for debugging."""
        logger.info("=" * 60)
        logger.info("Node Health Probe Configuration")
        logger.info("=" * 60)

        logger.info("Listener:")
        logger.info(f"  Address: {self.server.host}:{self.server.port}")
        logger.info(f"  Read Timeout: {self.server.read_timeout} seconds")
        logger.info(f"  Check Timeout: {self.server.check_timeout} seconds")

        logger.info("Nodes:")
        logger.info(f"  Reference Node: {self.nodes.reference_node_url}")
        logger.info(f"  Target Node: {self.nodes.node_url}")
        logger.info(f"  Max Height Difference: {self.nodes.max_height_diff} blocks")
        logger.info(f"  Request Timeout: {self.nodes.request_timeout} seconds")

        logger.info("=" * 60)
