"""Running git (and any other external command) as a subprocess.

Commands are passed as argument lists and never through a shell, so tag
names and commit messages need no quoting. Every call blocks until the
process exits; no timeout applies unless the caller passes one.
"""

import os
import re
import shlex
import subprocess
from pathlib import Path


class ShellError(Exception):
    """A command exited with a non-zero status.

    Attributes:
        cmd: The command line, shell-quoted for display
        returncode: Exit status of the process
        stdout: Captured standard output
        stderr: Captured standard error
    """

    def __init__(self, cmd: str, returncode: int, stdout: str, stderr: str) -> None:
        super().__init__(f"{cmd} exited with status {returncode}")
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

    def __str__(self) -> str:
        lines = [f"$ {self.cmd}", f"(exit status {self.returncode})"]
        for label, stream in (("stderr", self.stderr), ("stdout", self.stdout)):
            if stream:
                lines.append(f"{label}: {stream.rstrip()}")
        return "\n".join(lines)


# CSI sequences (colours, cursor movement), BEL-terminated OSC strings,
# and ST-terminated DCS/SOS/PM/APC strings
ESCAPE_SEQUENCE = re.compile(
    r"\x1b\[[0-9;]*[a-zA-Z]|\x1b\][^\x07]*\x07|\x1b[PX^_][^\x1b]*\x1b\\"
)

# C0 controls except tab, newline and carriage return
STRAY_CONTROL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def strip_ansi(text: str) -> str:
    """Remove terminal escape sequences and stray control characters.

    Tag names and commit ids read back from git are compared as plain
    strings, so nothing git's pager or colour settings add may survive.

    Examples:
        >>> strip_ansi("\\x1b[33mv1.3.0\\x1b[0m")
        'v1.3.0'
    """
    if not text:
        return ""
    return STRAY_CONTROL.sub("", ESCAPE_SEQUENCE.sub("", text))


def format_command(cmd: list[str]) -> str:
    """Render an argument list as a copy-pasteable shell command."""
    return shlex.join(cmd)


def run(
    cmd: str | list[str],
    cwd: Path | None = None,
    capture: bool = True,
    check: bool = True,
    timeout: float | None = None,
    env: dict[str, str] | None = None,
    strip_output: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run a command and wait for it to finish.

    Args:
        cmd: Argument list, or a string split with shlex
        cwd: Working directory (defaults to the current directory)
        capture: Capture stdout and stderr as text
        check: Raise ShellError on a non-zero exit status
        timeout: Seconds to wait before giving up; None waits indefinitely
        env: Variables added to the inherited environment
        strip_output: Remove escape sequences from captured output

    Returns:
        The completed process; ``stdout``/``stderr`` are "" when empty

    Raises:
        ShellError: If the command fails and ``check`` is set
        subprocess.TimeoutExpired: If ``timeout`` elapses
    """
    argv = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)

    result = subprocess.run(
        argv,
        cwd=cwd,
        capture_output=capture,
        text=True,
        timeout=timeout,
        env={**os.environ, **(env or {})},
    )

    if capture:
        result.stdout = result.stdout or ""
        result.stderr = result.stderr or ""
        if strip_output:
            result.stdout = strip_ansi(result.stdout)
            result.stderr = strip_ansi(result.stderr)

    if check and result.returncode != 0:
        raise ShellError(
            cmd=format_command(argv),
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    return result
