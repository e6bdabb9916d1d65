"""
Result Models

Dataclass models for remote and local command outcomes.
"""

from dataclasses import dataclass


@dataclass
class RemoteCommandResult:
    """Result of one remote command or file copy."""

    exit_status: int
    output: str = ""
    command: str = ""
    duration_seconds: float = 0.0

    @property
    def is_success(self) -> bool:
        """Check if the remote command succeeded."""
        return self.exit_status == 0

    @property
    def is_failure(self) -> bool:
        """Check if the remote command failed."""
        return self.exit_status != 0

    def tail(self, lines: int = 20) -> str:
        """Last `lines` lines of output, for error context."""
        return "\n".join(self.output.strip().splitlines()[-lines:])

    def __repr__(self) -> str:
        return f"RemoteCommandResult(exit_status={self.exit_status}, duration={self.duration_seconds:.2f}s)"


@dataclass
class GitResult:
    """Result of a local git invocation."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def is_success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Get combined output (stdout + stderr)."""
        return f"{self.stdout}\n{self.stderr}".strip()
