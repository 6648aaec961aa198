from __future__ import annotations

import logging
import os
from typing import Callable

from testinfra import get_host
from testinfra.host import Host

from pytest_vagrant_session.command import Command, OutputStream
from pytest_vagrant_session.exceptions import VagrantfileNotFound
from pytest_vagrant_session.log import get_logger
from pytest_vagrant_session.machine_readable import (
    VARIABLE_FIELDS,
    BoxSubcommand,
    Status,
    parse_field,
    parse_records,
    to_status,
)
from pytest_vagrant_session.ssh import SSHConfig, parse_ssh_config, select_host
from pytest_vagrant_session.utilities import session_directory

logger = get_logger(__name__)

VAGRANTFILE = "Vagrantfile"


class Vagrant:
    """
    A vagrant environment bound to one working directory.

    Usage:

        vg = Vagrant.from_name("builder")
        for out in vg.up(vagrantfile_content):
            if out.error:
                raise out.error
            print(out.line)
        assert vg.status() is Status.RUNNING
    """

    def __init__(
        self,
        path: str,
        *,
        executable: str = "vagrant",
        log: logging.Logger | None = None,
        on_success: Callable[[], None] | None = None,
        on_failure: Callable[[BaseException], None] | None = None,
    ) -> None:
        path = os.path.abspath(path)
        if not os.path.isdir(path):
            raise NotADirectoryError(f"vagrant session path is not a directory: {path!r}")
        if not os.access(path, os.W_OK):
            raise PermissionError(f"vagrant session path is not writable: {path!r}")
        self.path = path
        self.executable = executable
        self.on_success = on_success
        self.on_failure = on_failure
        self._log = log

    @classmethod
    def from_name(
        cls, name: str, base_dir: str | None = None, **kwargs
    ) -> Vagrant:
        """Open the session called `name`, creating its directory if needed."""
        return cls(session_directory(name, base_dir), **kwargs)

    @property
    def vagrantfile(self) -> str:
        return os.path.join(self.path, VAGRANTFILE)

    def vagrantfile_exists(self) -> bool:
        return os.path.isfile(self.vagrantfile)

    def _require_vagrantfile(self) -> None:
        if not self.vagrantfile_exists():
            raise VagrantfileNotFound(f"Vagrantfile not found at: {self.vagrantfile!r}")

    def _command(self) -> Command:
        return Command(
            self.path,
            executable=self.executable,
            log=self._log,
            on_success=self.on_success,
            on_failure=self.on_failure,
        )

    def _run(self, *args: str) -> str:
        return self._command().run(*args, "--machine-readable")

    def version(self) -> str:
        records = parse_records(self._run("version"), VARIABLE_FIELDS)
        return parse_field(records, "version-installed")

    def box(self, subcommand: BoxSubcommand | str, *args: str) -> str:
        self._require_vagrantfile()
        sub = BoxSubcommand(subcommand)
        return self._run("box", sub.value, *args).strip()

    def status(self) -> Status:
        self._require_vagrantfile()
        records = parse_records(self._run("status"), VARIABLE_FIELDS)
        return to_status(parse_field(records, "state"))

    def create(self, vagrantfile: str) -> bool:
        """
        Write the Vagrantfile unless one already exists. An existing
        Vagrantfile is never overwritten. Returns True if the file was written.
        """
        if not vagrantfile:
            raise ValueError("Vagrantfile content is empty")
        if self.vagrantfile_exists():
            (self._log or logger).info("Using existing Vagrantfile at %s", self.path)
            return False
        with open(self.vagrantfile, "x") as f:
            f.write(vagrantfile)
        return True

    def up(self, vagrantfile: str) -> OutputStream:
        """
        Run `vagrant up` for the given Vagrantfile content. The returned
        stream carries the output; a failure is its last event.
        """
        self.create(vagrantfile)
        return self._command().start("up")

    def halt(self) -> OutputStream:
        self._require_vagrantfile()
        return self._command().start("halt")

    def destroy(self) -> OutputStream:
        self._require_vagrantfile()
        return self._command().start("destroy", "--force")

    def ssh_config(self) -> dict[str, SSHConfig]:
        self._require_vagrantfile()
        return parse_ssh_config(self._command().run("ssh-config"))

    def host(self, name: str | None = None) -> Host:
        cfg = select_host(self.ssh_config(), name)
        return get_host(
            f"ssh://{cfg['user']}@{cfg['hostname']}:{cfg['port']}",
            ssh_identity_file=cfg["identityfile"],
            ssh_extra_args="-o StrictHostKeyChecking=accept-new -o UserKnownHostsFile=/dev/null",
        )
