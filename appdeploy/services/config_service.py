"""Configuration presets for deployment parameters."""

import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import dotenv_values

from appdeploy.constants import (
    CONFIG_FILE_NAME,
    DOTENV_FILE_NAME,
    ENV_PARAMETER_MAP,
    SECRET_FIELDS,
)
from appdeploy.exceptions import InputValidationError

PARAMETER_FIELDS = list(ENV_PARAMETER_MAP.values())


class ConfigService:
    """
    Collects preset parameter values before prompting.

    Sources, lowest precedence first:
    - appdeploy.yml in the working directory (no secrets)
    - .env in the working directory
    - process environment (APPDEPLOY_*)
    """

    def __init__(self, base_dir: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize config service.

        Args:
            base_dir: Directory holding appdeploy.yml and .env (default: cwd)
            environ: Environment mapping (default: os.environ)
        """
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()
        self.environ = os.environ if environ is None else environ
        self.warnings: List[str] = []

    @property
    def config_file(self) -> Path:
        return self.base_dir / CONFIG_FILE_NAME

    @property
    def dotenv_file(self) -> Path:
        return self.base_dir / DOTENV_FILE_NAME

    def load_file_config(self) -> Dict[str, Any]:
        """
        Load appdeploy.yml.

        Raises:
            InputValidationError: If the file is not a YAML mapping
        """
        if not self.config_file.exists():
            return {}

        try:
            with open(self.config_file, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InputValidationError(f"Invalid {CONFIG_FILE_NAME}", context=str(e))

        if not isinstance(data, dict):
            raise InputValidationError(f"Invalid {CONFIG_FILE_NAME}", context="Expected a mapping of parameters")

        presets = {}
        for key, value in data.items():
            if key in SECRET_FIELDS:
                self.warnings.append(f"Ignoring '{key}' in {CONFIG_FILE_NAME}; supply it via environment or prompt")
            elif key in PARAMETER_FIELDS:
                if value is not None:
                    presets[key] = str(value)
            else:
                self.warnings.append(f"Unknown key '{key}' in {CONFIG_FILE_NAME}")
        return presets

    def load_env_config(self) -> Dict[str, str]:
        """Read APPDEPLOY_* values from .env, then the process environment."""
        merged: Dict[str, Optional[str]] = {}
        if self.dotenv_file.exists():
            merged.update(dotenv_values(self.dotenv_file))
        merged.update({k: v for k, v in self.environ.items() if k in ENV_PARAMETER_MAP})

        presets = {}
        for env_name, field_name in ENV_PARAMETER_MAP.items():
            value = merged.get(env_name)
            if value is not None and str(value).strip():
                presets[field_name] = str(value).strip()
        return presets

    def load_presets(self) -> Dict[str, str]:
        """All preset values, environment winning over the config file."""
        presets = self.load_file_config()
        presets.update(self.load_env_config())
        return presets
