"""Docker configuration discovery for a synchronized working copy."""

from pathlib import Path

from appdeploy.constants import COMPOSE_FILE_NAMES, DOCKERFILE_NAME
from appdeploy.exceptions import ConfigurationDiscoveryError
from appdeploy.models.deployment import DockerConfig, DockerConfigKind


def discover_docker_config(working_copy: Path) -> DockerConfig:
    """
    Decide how the application is built.

    A compose file takes precedence over a Dockerfile when both exist;
    docker-compose.yml is preferred over docker-compose.yaml. Only the
    top level of the working copy is inspected.

    Raises:
        ConfigurationDiscoveryError: If no descriptor is present
    """
    working_copy = Path(working_copy)

    for name in COMPOSE_FILE_NAMES:
        if (working_copy / name).is_file():
            return DockerConfig(DockerConfigKind.COMPOSE, name)

    if (working_copy / DOCKERFILE_NAME).is_file():
        return DockerConfig(DockerConfigKind.DOCKERFILE, DOCKERFILE_NAME)

    searched = ", ".join([DOCKERFILE_NAME, *COMPOSE_FILE_NAMES])
    raise ConfigurationDiscoveryError(
        "No Dockerfile or docker-compose.yml found in repository",
        context=f"Searched {working_copy} for: {searched}",
    )
