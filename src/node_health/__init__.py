"""
Node health probe package.

TCP liveness probe comparing a blockchain node's block height against a reference node.
"""

from .config import NodeConfig, ProbeConfig, ServerConfig
from .health_checker import HealthChecker
from .models import BlockHeightResult, HealthReport, QueryFailure
from .server import HealthProbeServer

__all__ = [
    "ProbeConfig",
    "ServerConfig",
    "NodeConfig",
    "HealthChecker",
    "HealthProbeServer",
    "HealthReport",
    "BlockHeightResult",
    "QueryFailure",
]
__version__ = "0.1.0"
