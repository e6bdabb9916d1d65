"""
Deployment Models

Derived project identity, working copy and pipeline state.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from urllib.parse import urlparse

from appdeploy.constants import (
    CONTAINER_NAME_FORMAT,
    IMAGE_NAME_FORMAT,
    REMOTE_PROJECT_DIR_FORMAT,
)
from appdeploy.exceptions import InputValidationError


class DockerConfigKind(Enum):
    """How the application is built and run."""

    DOCKERFILE = "dockerfile"
    COMPOSE = "compose"


class PipelineState(Enum):
    """States of the deploy and cleanup chains."""

    INIT = "init"
    PARAMS_READY = "params_ready"
    CONNECTED = "connected"
    SOURCE_SYNCED = "source_synced"
    CONFIG_DISCOVERED = "config_discovered"
    PROVISIONED = "provisioned"
    DEPLOYED = "deployed"
    PROXY_CONFIGURED = "proxy_configured"
    VALIDATED = "validated"
    CLEANED = "cleaned"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.VALIDATED, PipelineState.CLEANED, PipelineState.FAILED)


DEPLOY_CHAIN = [
    PipelineState.INIT,
    PipelineState.PARAMS_READY,
    PipelineState.CONNECTED,
    PipelineState.SOURCE_SYNCED,
    PipelineState.CONFIG_DISCOVERED,
    PipelineState.PROVISIONED,
    PipelineState.DEPLOYED,
    PipelineState.PROXY_CONFIGURED,
    PipelineState.VALIDATED,
]

CLEANUP_CHAIN = [
    PipelineState.INIT,
    PipelineState.PARAMS_READY,
    PipelineState.CONNECTED,
    PipelineState.CLEANED,
]


@dataclass(frozen=True)
class ProjectIdentity:
    """Short name that namespaces local dir, remote dir, image and container."""

    name: str

    @classmethod
    def from_repository_url(cls, url: str) -> "ProjectIdentity":
        """
        Derive identity from the repository URL base name.

        https://example.com/org/app.git -> app
        """
        path = urlparse(url).path.rstrip("/")
        name = path.rsplit("/", 1)[-1]
        if name.endswith(".git"):
            name = name[: -len(".git")]
        if not name or name in (".", ".."):
            raise InputValidationError(
                "Cannot derive project name from repository URL", context=url
            )
        return cls(name)

    @property
    def image_name(self) -> str:
        """Docker image tag (Docker requires lower case)."""
        return IMAGE_NAME_FORMAT.format(project=self.name).lower()

    @property
    def container_name(self) -> str:
        return CONTAINER_NAME_FORMAT.format(project=self.name).lower()

    def remote_dir(self, ssh_user: str) -> str:
        """Remote project directory for this identity."""
        return REMOTE_PROJECT_DIR_FORMAT.format(user=ssh_user, project=self.name)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class DockerConfig:
    """Discovered build descriptor."""

    kind: DockerConfigKind
    filename: str

    @property
    def is_compose(self) -> bool:
        return self.kind == DockerConfigKind.COMPOSE


@dataclass(frozen=True)
class ProjectWorkingCopy:
    """Local checkout produced by source sync."""

    path: Path
    identity: ProjectIdentity
    branch: str
    commit: str = ""

    @property
    def short_commit(self) -> str:
        return self.commit[:7]
