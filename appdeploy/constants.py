"""
appdeploy Constants

Centralized constants for defaults, timeouts and remote layout.
"""

PROG_NAME = "appdeploy"

# Default Parameters
DEFAULT_BRANCH = "main"
DEFAULT_SSH_KEY_PATH = "~/.ssh/id_rsa"
DEFAULT_APP_PORT = 3000

# Git Authentication (placeholder user for token auth)
GIT_TOKEN_USER = "oauth2"
GIT_STASH_MESSAGE = "auto-stash-by-appdeploy"

# SSH Configuration
SSH_CONNECT_TIMEOUT = 10
SSH_COMMAND_TIMEOUT = 600
SSH_TIMEOUT_EXIT_STATUS = 124

# Long-running remote operations
PROVISION_TIMEOUT = 1800
BUILD_TIMEOUT = 1800

# Container start settle intervals (seconds)
COMPOSE_SETTLE_SECONDS = 15
DOCKERFILE_SETTLE_SECONDS = 10

# Reachability probe
PROBE_ATTEMPTS = 3
PROBE_DELAY_SECONDS = 5

# Docker Configuration
DOCKERFILE_NAME = "Dockerfile"
COMPOSE_FILE_NAMES = ["docker-compose.yml", "docker-compose.yaml"]
COMPOSE_BINARY = "docker-compose"
COMPOSE_BINARY_PATH = "/usr/local/bin/docker-compose"
COMPOSE_DOWNLOAD_URL = (
    "https://github.com/docker/compose/releases/latest/download/"
    "docker-compose-$(uname -s)-$(uname -m)"
)
DOCKER_INSTALL_SCRIPT_URL = "https://get.docker.com"
DOCKER_INSTALL_SCRIPT_PATH = "/tmp/get-docker.sh"
CONTAINER_LOG_TAIL = 200

# Image/Container Name Format
IMAGE_NAME_FORMAT = "{project}_image"
CONTAINER_NAME_FORMAT = "{project}_container"

# Remote Layout
REMOTE_PROJECT_DIR_FORMAT = "/home/{user}/{project}"
NGINX_SITE_NAME = "appdeploy"
NGINX_SITES_AVAILABLE = "/etc/nginx/sites-available"
NGINX_SITES_ENABLED = "/etc/nginx/sites-enabled"
NGINX_DEFAULT_SITE = "/etc/nginx/sites-enabled/default"
NGINX_BACKUP_SUFFIX = ".appdeploy.bak"

# Health Checks
HEALTH_CHECK_PATH = "/health"

# Log Configuration
LOG_FILENAME_FORMAT = "{operation}_{timestamp}.log"
LOG_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
LOG_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
MASKED_VALUE = "****"

# Configuration Sources
CONFIG_FILE_NAME = "appdeploy.yml"
DOTENV_FILE_NAME = ".env"
ENV_PREFIX = "APPDEPLOY_"
VERBOSE_ENV_VAR = "APPDEPLOY_VERBOSE"

# Environment variable -> parameter field
ENV_PARAMETER_MAP = {
    "APPDEPLOY_REPO_URL": "repository_url",
    "APPDEPLOY_GIT_TOKEN": "access_token",
    "APPDEPLOY_BRANCH": "branch",
    "APPDEPLOY_SSH_USER": "ssh_user",
    "APPDEPLOY_SERVER_IP": "server_ip",
    "APPDEPLOY_SSH_KEY": "ssh_key_path",
    "APPDEPLOY_APP_PORT": "app_port",
}

# Fields never read from the config file
SECRET_FIELDS = ["access_token"]

# Success Messages
SUCCESS_DEPLOYMENT = "=== DEPLOYMENT COMPLETED SUCCESSFULLY ==="
SUCCESS_CLEANUP = "Cleanup completed successfully"
