import asyncio
import logging
from collections.abc import Callable

from .config import NodeConfig
from .models import BlockHeightResult, HealthReport
from .utils.rpc_utility import RpcUtility

# Get logger for this module
logger = logging.getLogger(__name__)


def height_difference(reference_height: int, target_height: int) -> int:
    """Absolute distance between two block heights.

    Being ahead of the reference counts the same as being behind it.
    """
    return abs(reference_height - target_height)


class HealthChecker:
    """
    Compares the latest block height of a node against a reference node.
    """

    def __init__(
        self,
        fallback_config: NodeConfig,
        rpc_utility: RpcUtility | None = None,
        config_loader: Callable[[], NodeConfig] = NodeConfig.from_env
    ) -> None:
        """
        Initialize the HealthChecker.

        :param fallback_config: Validated configuration used when reloading fails
        :param rpc_utility: Utility used to query the nodes
        :param config_loader: Called before every check to read the current configuration
        """
        self.fallback_config = fallback_config
        self.rpc_utility = rpc_utility or RpcUtility(timeout=fallback_config.request_timeout)
        self.config_loader = config_loader

    def _load_config(self) -> NodeConfig:
        try:
            return self.config_loader()
        except ValueError as e:
            logger.error(f"Invalid node configuration, using startup values: {e}")
            return self.fallback_config

    async def check(self) -> HealthReport:
        """
        Query both nodes and compare their heights.

        A node that cannot be queried counts as height 0.

        :return: Report holding both query results and the verdict
        """
        config = self._load_config()

        reference: BlockHeightResult
        target: BlockHeightResult
        reference, target = await asyncio.gather(
            self.rpc_utility.fetch_block_number(config.reference_node_url, config.request_timeout),
            self.rpc_utility.fetch_block_number(config.node_url, config.request_timeout)
        )

        for result in (reference, target):
            if not result.ok:
                logger.warning(f"Counting {result} as height 0: {result.detail}")

        report = HealthReport(
            reference=reference,
            target=target,
            difference=height_difference(reference.height, target.height),
            max_height_diff=config.max_height_diff
        )

        logger.info(
            f"Health check {report.verdict}: reference={reference.height} "
            f"target={target.height} diff={report.difference} max={report.max_height_diff}"
        )
        logger.debug(f"Health report: {report.to_dict()}")
        return report
