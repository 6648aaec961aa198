from pytest_vagrant_session.command import Command, CommandOutput, OutputStream
from pytest_vagrant_session.exceptions import (
    FieldNotFound,
    HostNotFound,
    MachineReadableParseError,
    SSHConfigError,
    StreamError,
    UnrecognizedStatus,
    VagrantCommandFailed,
    VagrantError,
    VagrantfileNotFound,
    VagrantLaunchError,
    VagrantNotFound,
)
from pytest_vagrant_session.machine_readable import BoxSubcommand, Status
from pytest_vagrant_session.ssh import SSHConfig
from pytest_vagrant_session.vagrant import Vagrant

__all__ = [
    "BoxSubcommand",
    "Command",
    "CommandOutput",
    "FieldNotFound",
    "HostNotFound",
    "MachineReadableParseError",
    "OutputStream",
    "SSHConfig",
    "SSHConfigError",
    "Status",
    "StreamError",
    "UnrecognizedStatus",
    "Vagrant",
    "VagrantCommandFailed",
    "VagrantError",
    "VagrantLaunchError",
    "VagrantNotFound",
    "VagrantfileNotFound",
]
