"""
appdeploy Commands

Command classes behind the CLI's deploy and cleanup modes.
"""

from .base_command import BaseCommand
from .deploy import DeployCommand
from .cleanup import CleanupCommand

__all__ = [
    "BaseCommand",
    "DeployCommand",
    "CleanupCommand",
]
