import logging
import re
from typing import Any

import httpx
from web3 import Web3

from ..models import BlockHeightResult, QueryFailure, RpcRequest, RpcResponse

logger = logging.getLogger(__name__)

MAX_BLOCK_NUMBER: int = 2**63 - 1

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")
_DECIMAL_DIGITS = re.compile(r"[+-]?[0-9]+")


def parse_block_number(result: str) -> int:
    """Parse a block number reported by a node.

    Results starting with ``0x`` are hexadecimal, anything else is decimal.

    Args:
        result: The ``result`` string of an ``eth_blockNumber`` response

    Returns:
        The block number

    Raises:
        ValueError: If the string is not a number or does not fit in 64 bits
    """
    if result.startswith("0x"):
        if not _HEX_DIGITS.fullmatch(result[2:]):
            raise ValueError(f"Invalid hexadecimal block number: {result!r}")
        value = Web3.to_int(hexstr=result)
    else:
        if not _DECIMAL_DIGITS.fullmatch(result):
            raise ValueError(f"Invalid decimal block number: {result!r}")
        value = int(result, 10)

    if not -MAX_BLOCK_NUMBER - 1 <= value <= MAX_BLOCK_NUMBER:
        raise ValueError(f"Block number out of range: {result!r}")
    return value


class RpcUtility:
    """Utility for querying Ethereum-style nodes over JSON-RPC.

    Every call opens its own HTTP client, so concurrent health checks
    share no connection state.
    """

    BLOCK_NUMBER_METHOD: str = "eth_blockNumber"

    def __init__(self, timeout: float = 10.0) -> None:
        """Initialize RPC utility.

        Args:
            timeout: Default HTTP timeout in seconds for each request
        """
        self.timeout: float = timeout

    async def _rpc_post(self, url: str, request: RpcRequest, timeout: float) -> httpx.Response:
        """Post a JSON-RPC request to a node.

        Args:
            url: Node JSON-RPC endpoint
            request: Request to serialize as the body
            timeout: HTTP timeout in seconds

        Returns:
            The raw HTTP response, whatever its status

        Raises:
            httpx.HTTPError: If the request could not be completed
        """
        payload: dict[str, Any] = request.to_dict()
        async with httpx.AsyncClient(timeout=timeout) as client:
            logger.debug(f"Posting to {url}: {payload}")
            return await client.post(url, json=payload)

    async def fetch_block_number(self, url: str, timeout: float | None = None) -> BlockHeightResult:
        """Fetch the latest block number of a node.

        Failures never raise. They are logged and reported through the
        returned result with a height of 0.

        Args:
            url: Node JSON-RPC endpoint
            timeout: Optional override of the default timeout

        Returns:
            The block height or the reason it could not be determined
        """
        request = RpcRequest(method=self.BLOCK_NUMBER_METHOD)

        try:
            response = await self._rpc_post(url, request, timeout or self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"Could not request latest block from node {url}: {e!r}")
            return BlockHeightResult.failed(url, QueryFailure.TRANSPORT, str(e) or type(e).__name__)

        if response.status_code != httpx.codes.OK:
            logger.error(f"Received HTTP status {response.status_code} from node {url}")
            return BlockHeightResult.failed(
                url, QueryFailure.HTTP_STATUS, f"HTTP status {response.status_code}"
            )

        try:
            rpc_response = RpcResponse.from_dict(response.json())
        except ValueError as e:
            # json.JSONDecodeError is a ValueError as well
            logger.error(f"Cannot decode JSON-RPC response from node {url}: {e}")
            return BlockHeightResult.failed(url, QueryFailure.MALFORMED_RESPONSE, str(e))

        try:
            height = parse_block_number(rpc_response.result)
        except ValueError as e:
            logger.warning(f"Node {url} returned an unparseable block number: {e}")
            return BlockHeightResult.failed(url, QueryFailure.INVALID_NUMBER, str(e))

        logger.debug(f"Node {url} is at block {height}")
        return BlockHeightResult.success(url, height)
