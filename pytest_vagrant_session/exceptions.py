from __future__ import annotations

from typing import Sequence


class VagrantError(Exception):
    """Base exception for vagrant errors."""


class VagrantLaunchError(VagrantError):
    """Vagrant executable could not be started."""


class VagrantCommandFailed(VagrantError):
    """Vagrant command exited with a non-zero status."""

    def __init__(
        self, args: Sequence[str], returncode: int, output: str = ""
    ) -> None:
        self.command = list(args)
        self.returncode = returncode
        self.output = output
        message = f"{self.command} exited with status {returncode}"
        if output:
            message = f"{message}: {output}"
        super().__init__(message)


class MachineReadableParseError(VagrantError):
    """Machine-readable output is not valid CSV."""


class VagrantNotFound(VagrantError):
    """Something expected to exist was not found."""


class FieldNotFound(VagrantNotFound):
    """Requested type is absent from machine-readable output."""


class VagrantfileNotFound(VagrantNotFound):
    """Vagrantfile not found."""


class UnrecognizedStatus(VagrantError):
    """Vagrant reported a machine state outside the known set."""

    def __init__(self, state: str) -> None:
        self.state = state
        super().__init__(f"Unknown state: {state!r}")


class StreamError(VagrantError):
    """Reading a line from a command output stream failed."""


class SSHConfigError(VagrantError):
    """Error parsing vagrant ssh-config output."""


class HostNotFound(VagrantError):
    """Requested host not found in vagrant environment."""
