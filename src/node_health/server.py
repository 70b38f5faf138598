#!/usr/bin/env python3
"""TCP listener answering health probes.

Clients send any line terminated by a newline. The server answers with an
empty line followed by ``up`` or ``down`` and closes the connection.
"""

import asyncio
import logging

from .config import ServerConfig
from .health_checker import HealthChecker

logger = logging.getLogger(__name__)


class HealthProbeServer:
    """Accepts probe connections and answers each with a health verdict."""

    def __init__(self, config: ServerConfig, health_checker: HealthChecker) -> None:
        """
        Initialize the HealthProbeServer.

        Args:
            config: Listener configuration
            health_checker: Checker invoked once per probe connection
        """
        self.config: ServerConfig = config
        self.health_checker: HealthChecker = health_checker
        self._server: asyncio.Server | None = None

    @property
    def addresses(self) -> list[tuple[str, int]]:
        """Every (host, port) the listener is bound to.

        A host name such as ``localhost`` can resolve to several addresses,
        and with port 0 each of them gets its own ephemeral port.
        """
        if self._server is None:
            return []
        return [sock.getsockname()[:2] for sock in self._server.sockets]

    @property
    def port(self) -> int | None:
        """Port of the first bound socket, None before start()."""
        if addresses := self.addresses:
            return addresses[0][1]
        return None

    async def start(self) -> asyncio.Server:
        """Bind the listening socket.

        Each accepted connection is handled in its own task, so a slow
        health check never delays other clients.

        Raises:
            OSError: If the address cannot be bound
        """
        self._server = await asyncio.start_server(
            self.handle_connection,
            host=self.config.host,
            port=self.config.port
        )
        bound = ", ".join(f"{host}:{port}" for host, port in self.addresses)
        logger.info(f"Listening on {self.config.host} ({bound})")
        return self._server

    async def run(self) -> None:
        """Bind the listener and serve until cancelled.

        Accept errors are logged by the event loop and serving continues.
        """
        server = self._server or await self.start()
        async with server:
            await server.serve_forever()

    async def stop(self) -> None:
        """Close the listening socket."""
        if self._server is None:
            return
        logger.info("Shutting down listener...")
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Listener stopped")

    @staticmethod
    async def _read_trigger_line(reader: asyncio.StreamReader) -> None:
        """Consume input up to and including the first newline.

        Lines longer than the stream buffer limit are discarded chunk by
        chunk, so any line length is accepted.

        Raises:
            asyncio.IncompleteReadError: If the peer closes before a newline
        """
        while True:
            try:
                await reader.readuntil(b"\n")
                return
            except asyncio.LimitOverrunError as e:
                await reader.readexactly(e.consumed)

    async def _evaluate(self) -> str:
        try:
            report = await asyncio.wait_for(
                self.health_checker.check(),
                timeout=self.config.check_timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Health check exceeded {self.config.check_timeout} seconds")
            return "down"
        except Exception as e:
            logger.error(f"Health check failed: {e}", exc_info=True)
            return "down"
        return report.verdict

    async def handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter
    ) -> None:
        """Serve a single probe connection and close it.

        Args:
            reader: Stream for the client's trigger line
            writer: Stream the verdict is written to
        """
        peer = writer.get_extra_info("peername")
        try:
            try:
                await asyncio.wait_for(
                    self._read_trigger_line(reader),
                    timeout=self.config.read_timeout
                )
            except (
                asyncio.IncompleteReadError,
                asyncio.TimeoutError,
                ConnectionError
            ) as e:
                # No trigger line, nothing to answer
                logger.debug(f"Dropping connection from {peer}: {e!r}")
                return

            writer.write(b"\n")
            await writer.drain()

            verdict = await self._evaluate()
            logger.debug(f"Answering {peer} with {verdict}")
            writer.write(f"{verdict}\n".encode())
            await writer.drain()

        except ConnectionError as e:
            logger.warning(f"Lost connection to {peer}: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError as e:
                logger.debug(f"Error closing connection from {peer}: {e!r}")
