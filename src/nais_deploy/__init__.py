"""nais-deploy package."""

from .config import ClusterContext, DeployerConfig  # noqa: F401
from .deployer import Deployer  # noqa: F401
from .request import DeploymentRequest  # noqa: F401

__all__ = ["ClusterContext", "DeployerConfig", "Deployer", "DeploymentRequest"]
