#!/usr/bin/env python3
"""Entry point for the node health probe.

This module starts the TCP listener that answers probe connections with
``up`` or ``down`` depending on how far the node under test lags behind
(or runs ahead of) the reference node.
"""

import argparse
import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

# Configure logging before any other imports create loggers
def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

# Get logger for this module
logger = logging.getLogger(__name__)

from node_health.config import ProbeConfig
from node_health.health_checker import HealthChecker
from node_health.server import HealthProbeServer


async def run_once(config: ProbeConfig) -> int:
    """Run a single health check and print the verdict.

    Returns:
        Process exit status: 0 when up, 1 when down
    """
    health_checker: HealthChecker = HealthChecker(config.nodes)
    report = await health_checker.check()
    print(report.verdict)
    return 0 if report.healthy else 1


async def main() -> None:
    """Main entry point for the node health probe.

    Parses startup arguments, loads configuration from environment,
    and serves probe connections until interrupted.

    Raises:
        SystemExit: On configuration or bind errors
    """
    # Existing environment variables win over .env entries
    load_dotenv()

    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Node Health Probe - Report whether a node keeps up with a reference node",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  HOST                 - Listen address (default: localhost)
  PORT                 - Listen port (default: 1337)
  MAX_HEIGHT_DIFF      - Max tolerated block height difference (default: 100)
  REFERENCE_NODE_URL   - JSON-RPC endpoint trusted as ground truth (default: localhost:8545)
  NODE_URL             - JSON-RPC endpoint under test (default: localhost:8545)
  REQUEST_TIMEOUT      - Seconds per JSON-RPC request (default: 10)
  READ_TIMEOUT         - Seconds to wait for the probe line (default: 30)
  CHECK_TIMEOUT        - Seconds allowed per health check (default: 30)
  LOG_LEVEL            - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "--once",
        action="store_true",
        default=False,
        help="Run a single health check, print up/down and exit (1 when down)"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    args: argparse.Namespace = parser.parse_args()

    setup_logging(args.log_level)

    try:
        config: ProbeConfig = ProbeConfig.from_env()
    except ValueError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your environment variables:")
        logger.error("  - HOST / PORT: listen address and port (0-65535)")
        logger.error("  - MAX_HEIGHT_DIFF: non-negative integer")
        logger.error("  - REFERENCE_NODE_URL / NODE_URL: http(s) JSON-RPC endpoints")
        logger.error("  - REQUEST_TIMEOUT / READ_TIMEOUT / CHECK_TIMEOUT: positive seconds")
        sys.exit(1)

    if args.once:
        sys.exit(await run_once(config))

    logger.info("=== Node Health Probe Starting ===")
    config.log_config()

    server: HealthProbeServer = HealthProbeServer(config.server, HealthChecker(config.nodes))
    try:
        await server.start()
    except OSError as e:
        logger.error(f"Cannot listen on {config.server.host}:{config.server.port}: {e}")
        sys.exit(1)

    try:
        await server.run()
    except asyncio.CancelledError:
        logger.info("Received interrupt signal, shutting down gracefully...")
    finally:
        await server.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        sys.exit(0)
