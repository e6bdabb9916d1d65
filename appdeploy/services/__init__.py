"""
appdeploy Services Layer

One service per pipeline stage, plus configuration and parameter input.
"""

from .ssh_service import RemoteExecutor
from .git_service import SourceSynchronizer
from .provisioner import EnvironmentProvisioner
from .app_deployer import ApplicationDeployer
from .proxy_service import ProxyConfigurator
from .deployment_validator import DeploymentValidator
from .cleanup_service import ResourceReclaimer
from .config_service import ConfigService
from .parameter_collector import ParameterCollector

__all__ = [
    "RemoteExecutor",
    "SourceSynchronizer",
    "EnvironmentProvisioner",
    "ApplicationDeployer",
    "ProxyConfigurator",
    "DeploymentValidator",
    "ResourceReclaimer",
    "ConfigService",
    "ParameterCollector",
]
