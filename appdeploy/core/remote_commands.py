"""
Remote Command Builders

Structured descriptions of the shell work each stage asks the remote host
to do. Every user-supplied value goes through shlex quoting on render;
only constant snippets are emitted verbatim.
"""

import shlex
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple, Union

HEREDOC_DELIMITER = "APPDEPLOY_EOF"


@dataclass(frozen=True)
class Command:
    """A single program invocation."""

    argv: Tuple[str, ...]
    sudo: bool = False
    env: Optional[Dict[str, str]] = None
    quiet: bool = False

    def __init__(
        self,
        argv: Sequence[Union[str, int]],
        sudo: bool = False,
        env: Optional[Dict[str, str]] = None,
        quiet: bool = False,
    ):
        object.__setattr__(self, "argv", tuple(str(a) for a in argv))
        object.__setattr__(self, "sudo", sudo)
        object.__setattr__(self, "env", dict(env) if env else None)
        object.__setattr__(self, "quiet", quiet)

    def render(self) -> str:
        parts = []
        if self.sudo:
            parts.append("sudo")
        if self.env:
            parts.append("env")
            parts.extend(shlex.quote(f"{k}={v}") for k, v in self.env.items())
        parts.append(shlex.join(self.argv))
        text = " ".join(parts)
        if self.quiet:
            text += " >/dev/null 2>&1"
        return text


@dataclass(frozen=True)
class ShellSnippet:
    """Verbatim shell text. Constants only, never user input."""

    text: str

    def render(self) -> str:
        return self.text


@dataclass(frozen=True)
class Pipeline:
    """Commands joined with pipes."""

    commands: Tuple[Union[Command, ShellSnippet], ...]

    def __init__(self, *commands: Union[Command, ShellSnippet]):
        object.__setattr__(self, "commands", tuple(commands))

    def render(self) -> str:
        return " | ".join(c.render() for c in self.commands)


@dataclass(frozen=True)
class Echo:
    message: str

    def render(self) -> str:
        return shlex.join(["echo", self.message])


@dataclass(frozen=True)
class ChangeDirectory:
    path: str

    def render(self) -> str:
        return shlex.join(["cd", self.path])


@dataclass(frozen=True)
class WriteFile:
    """
    Write `content` to `path` through tee and a quoted heredoc.

    The quoted delimiter disables expansion, so nginx variables such as
    $host reach the file untouched.
    """

    path: str
    content: str
    sudo: bool = False

    def render(self) -> str:
        if HEREDOC_DELIMITER in self.content:
            raise ValueError("content contains the heredoc delimiter")
        tee = Command(["tee", self.path], sudo=self.sudo).render()
        body = self.content if self.content.endswith("\n") else self.content + "\n"
        return f"{tee} >/dev/null <<'{HEREDOC_DELIMITER}'\n{body}{HEREDOC_DELIMITER}"


@dataclass(frozen=True)
class Conditional:
    """if <test>; then <then>; else <otherwise>; fi"""

    test: Union[Command, Pipeline, ShellSnippet]
    then: Tuple["Step", ...] = field(default_factory=tuple)
    otherwise: Tuple["Step", ...] = field(default_factory=tuple)
    negate: bool = False

    def render(self) -> str:
        test = self.test.render()
        if self.negate:
            test = f"! {test}"
        lines = [f"if {test}; then"]
        lines.extend(_indent(step.render()) for step in self.then or (ShellSnippet(":"),))
        if self.otherwise:
            lines.append("else")
            lines.extend(_indent(step.render()) for step in self.otherwise)
        lines.append("fi")
        return "\n".join(lines)


Step = Union[Command, ShellSnippet, Pipeline, Echo, ChangeDirectory, WriteFile, Conditional]


@dataclass(frozen=True)
class RemoteScript:
    """An ordered bash program built from steps."""

    steps: Tuple[Step, ...]
    strict: bool = True

    def __init__(self, steps: Sequence[Step], strict: bool = True):
        object.__setattr__(self, "steps", tuple(steps))
        object.__setattr__(self, "strict", strict)

    def render(self) -> str:
        lines = ["set -euo pipefail"] if self.strict else []
        lines.extend(step.render() for step in self.steps)
        return "\n".join(lines) + "\n"


Renderable = Union[Step, RemoteScript]


def command_exists(binary: str) -> Command:
    """Test used to gate installs: `command -v <binary>`."""
    return Command(["command", "-v", binary], quiet=True)


def in_directory(path: str, *steps: Step) -> RemoteScript:
    """Run steps inside a remote directory."""
    return RemoteScript([ChangeDirectory(path), *steps])


def _indent(text: str) -> str:
    # heredoc bodies must keep column 0
    if "<<'" in text:
        return text
    return "\n".join(f"    {line}" for line in text.splitlines())
