"""
appdeploy Domain Models

Dataclass-based models for parameters, results and pipeline state.
"""

from .parameters import DeploymentParameters
from .results import RemoteCommandResult, GitResult
from .deployment import (
    DockerConfig,
    DockerConfigKind,
    PipelineState,
    ProjectIdentity,
    ProjectWorkingCopy,
)

__all__ = [
    # Parameters
    "DeploymentParameters",
    # Results
    "RemoteCommandResult",
    "GitResult",
    # Deployment
    "DockerConfig",
    "DockerConfigKind",
    "PipelineState",
    "ProjectIdentity",
    "ProjectWorkingCopy",
]
