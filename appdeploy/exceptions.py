"""
appdeploy Exception Hierarchy

One exception per pipeline stage so callers and the CLI can report
exactly which stage failed.
"""

from typing import Optional


class AppDeployError(Exception):
    """Base exception for all appdeploy errors."""

    stage = "deployment"

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class InputValidationError(AppDeployError):
    """Raised when a deployment parameter is malformed."""

    stage = "parameter validation"


class ConnectivityError(AppDeployError):
    """Raised when an SSH session to the target cannot be established."""

    stage = "connectivity check"


class SourceSyncError(AppDeployError):
    """Raised when the repository cannot be cloned or updated."""

    stage = "source sync"


class ConfigurationDiscoveryError(AppDeployError):
    """Raised when no Dockerfile or compose file is found."""

    stage = "configuration discovery"


class ProvisioningError(AppDeployError):
    """Raised when remote dependencies fail to install or start."""

    stage = "environment provisioning"


class DeploymentError(AppDeployError):
    """Raised when build, container start or reachability fails."""

    stage = "application deployment"

    def __init__(
        self, message: str, context: Optional[str] = None, logs: Optional[str] = None
    ):
        self.logs = logs
        super().__init__(message, context)


class ProxyConfigurationError(AppDeployError):
    """Raised when the Nginx site definition cannot be installed."""

    stage = "proxy configuration"


class ValidationError(AppDeployError):
    """Raised when a post-deploy health check fails."""

    stage = "deployment validation"

    def __init__(self, check: str, context: Optional[str] = None):
        self.check = check
        super().__init__(f"Validation check failed: {check}", context)
