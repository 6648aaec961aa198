from __future__ import annotations

import re
from typing import TypedDict

from pytest_vagrant_session.exceptions import HostNotFound, SSHConfigError

# `Keyword value` lines as printed by `vagrant ssh-config`
_OPTION = re.compile(r"^\s*(\S+)\s+(.*?)\s*$")

# option keyword (lowercase) -> spelling used in error messages
_REQUIRED = {
    "hostname": "HostName",
    "user": "User",
    "port": "Port",
    "identityfile": "IdentityFile",
}


class SSHConfig(TypedDict):
    hostname: str
    port: int
    user: str
    identityfile: str


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def to_ssh_config(host: str, options: dict[str, str]) -> SSHConfig:
    """Build the SSHConfig of one machine from its lowercased ssh options."""
    missing = [name for key, name in _REQUIRED.items() if key not in options]
    if missing:
        raise SSHConfigError(
            f"ssh-config for host {host!r} missing: " + ", ".join(missing)
        )

    try:
        port = int(options["port"])
    except ValueError as e:
        raise SSHConfigError(
            f"ssh-config for host {host!r} has invalid Port: {options['port']!r}"
        ) from e

    return SSHConfig(
        hostname=options["hostname"],
        port=port,
        user=options["user"],
        identityfile=options["identityfile"],
    )


def parse_ssh_config(text: str) -> dict[str, SSHConfig]:
    """
    Parse `vagrant ssh-config` output into one SSHConfig per machine, keyed
    by the `Host` name vagrant prints (the machine name).

    Lines before the first `Host` are ignored; vagrant may print warnings
    there. Within a block the first value of an option wins, as in ssh.
    A block lacking a required option raises SSHConfigError.
    """
    blocks: dict[str, dict[str, str]] = {}
    options: dict[str, str] | None = None

    for raw in text.splitlines():
        m = _OPTION.match(raw)
        if not m:
            continue
        keyword, value = m.group(1).lower(), _unquote(m.group(2))
        if keyword == "host":
            options = blocks.setdefault(value, {})
        elif options is not None:
            options.setdefault(keyword, value)

    return {host: to_ssh_config(host, opts) for host, opts in blocks.items()}


def select_host(hosts: dict[str, SSHConfig], name: str | None = None) -> SSHConfig:
    if not hosts:
        raise SSHConfigError("ssh-config lists no machines")
    if name is None:
        return next(iter(hosts.values()))
    if name not in hosts:
        raise HostNotFound(f"Host {name!r} not found. Available: {list(hosts)}")
    return hosts[name]
