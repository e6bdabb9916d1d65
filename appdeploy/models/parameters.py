"""
Deployment Parameter Models

Immutable, validated parameters for a single deployment run.
"""

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Union
from urllib.parse import urlparse

from appdeploy.constants import DEFAULT_APP_PORT, DEFAULT_BRANCH, DEFAULT_SSH_KEY_PATH
from appdeploy.exceptions import InputValidationError

_SSH_USER_PATTERN = re.compile(r"^[a-z_][a-z0-9_.-]*\$?$", re.IGNORECASE)
_BRANCH_FORBIDDEN = re.compile(r"(\.\.|[\s~^:?*\[\\]|@\{)")


def validate_repository_url(value: str) -> str:
    """
    Validate a Git repository URL.

    Args:
        value: URL entered by the user

    Returns:
        Stripped URL

    Raises:
        InputValidationError: If the URL is not an https URL with host and path
    """
    value = (value or "").strip()
    parsed = urlparse(value)
    if parsed.scheme != "https" or not parsed.hostname:
        raise InputValidationError(
            "Invalid Git repository URL format. Must start with https://",
            context=f"Got: {value or '<empty>'}",
        )
    if parsed.username or parsed.password:
        raise InputValidationError(
            "Repository URL must not embed credentials",
            context="Supply the access token separately",
        )
    if not parsed.path.strip("/"):
        raise InputValidationError(
            "Repository URL has no repository path", context=f"Got: {value}"
        )
    return value


def validate_access_token(value: str) -> str:
    """Validate the personal access token is not empty."""
    value = (value or "").strip()
    if not value:
        raise InputValidationError("Personal Access Token cannot be empty")
    return value


def validate_branch(value: str) -> str:
    """Validate a branch name (empty means the default branch)."""
    value = (value or "").strip() or DEFAULT_BRANCH
    if value.startswith("-") or value.endswith(("/", ".lock")) or _BRANCH_FORBIDDEN.search(value):
        raise InputValidationError(f"Invalid branch name: {value}")
    return value


def validate_ssh_user(value: str) -> str:
    """Validate an SSH user name."""
    value = (value or "").strip()
    if not value:
        raise InputValidationError("SSH username cannot be empty")
    if not _SSH_USER_PATTERN.match(value):
        raise InputValidationError(f"Invalid SSH username: {value}")
    return value


def validate_ipv4(value: str) -> str:
    """
    Validate a dotted-decimal IPv4 address.

    Four numeric octets, each in 0..255, without leading zeros (resolvers
    read those as octal). Hostnames, CIDR suffixes and IPv6 literals are
    rejected.
    """
    value = (value or "").strip()
    octets = value.split(".")
    if len(octets) != 4 or not all(o.isdigit() and o.isascii() for o in octets):
        raise InputValidationError("Invalid IP address format", context=f"Got: {value or '<empty>'}")
    if any(len(o) > 1 and o.startswith("0") for o in octets):
        raise InputValidationError(
            "Invalid IP address: octets must not have leading zeros", context=f"Got: {value}"
        )
    if any(int(o) > 255 for o in octets):
        raise InputValidationError("Invalid IP address: octet out of range", context=f"Got: {value}")
    return value


def validate_ssh_key(value: Union[str, Path]) -> Path:
    """Validate the SSH private key exists; returns the expanded absolute path."""
    raw = str(value).strip() if value else DEFAULT_SSH_KEY_PATH
    key_path = Path(raw).expanduser().resolve()
    if not key_path.is_file():
        raise InputValidationError(f"SSH key file not found: {key_path}")
    return key_path


def validate_port(value: Union[str, int]) -> int:
    """Validate a TCP port number (1-65535)."""
    text = str(value).strip() if value is not None else ""
    if not text.isdigit() or not 1 <= int(text) <= 65535:
        raise InputValidationError(f"Invalid port number: {text}. Must be between 1-65535")
    return int(text)


@dataclass(frozen=True)
class DeploymentParameters:
    """
    Parameters supplied once per invocation.

    Validation happens on construction; an instance that exists is valid.
    The access token is excluded from repr so it never lands in a log.
    """

    repository_url: str
    access_token: str = field(repr=False)
    ssh_user: str
    server_ip: str
    ssh_key_path: Path
    branch: str = DEFAULT_BRANCH
    app_port: int = DEFAULT_APP_PORT

    def __post_init__(self):
        object.__setattr__(self, "repository_url", validate_repository_url(self.repository_url))
        object.__setattr__(self, "branch", validate_branch(self.branch))
        object.__setattr__(self, "ssh_user", validate_ssh_user(self.ssh_user))
        object.__setattr__(self, "server_ip", validate_ipv4(self.server_ip))
        object.__setattr__(self, "ssh_key_path", validate_ssh_key(self.ssh_key_path))
        object.__setattr__(self, "app_port", validate_port(self.app_port))
        if self.access_token:
            object.__setattr__(self, "access_token", validate_access_token(self.access_token))

    @property
    def has_secret(self) -> bool:
        """Check if the access token is still held."""
        return bool(self.access_token)

    @property
    def ssh_target(self) -> str:
        """Get SSH connection string (user@host)."""
        return f"{self.ssh_user}@{self.server_ip}"

    @property
    def public_url(self) -> str:
        """URL the application is served on through the proxy."""
        return f"http://{self.server_ip}"

    def without_secret(self) -> "DeploymentParameters":
        """Return a copy with the access token dropped."""
        return replace(self, access_token="")
