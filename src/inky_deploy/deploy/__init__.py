"""
Board deployment subsystem.

Public API:
    - SSHDeployer: kill/stage/transfer/gdbserver/run over ssh and scp
    - StepResult, DeploySummary: Result types
    - DeploymentError, InvalidOptionError: Exceptions
"""

from .base import StepResult, DeploySummary
from .exceptions import DeploymentError, InvalidOptionError
from .ssh_deployer import SSHDeployer

__all__ = [
    # Result types
    "StepResult",
    "DeploySummary",

    # Exceptions
    "DeploymentError",
    "InvalidOptionError",

    # Implementations
    "SSHDeployer",
]
