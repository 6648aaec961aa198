from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from typing import Generator

import pytest

from pytest_vagrant_session.command import OutputStream
from pytest_vagrant_session.log import get_logger
from pytest_vagrant_session.utilities import require_bins
from pytest_vagrant_session.vagrant import Vagrant

logger = get_logger(__name__)


class ShutdownMode(str, Enum):
    HALT = "halt"
    DESTROY = "destroy"
    NONE = "none"


@dataclass(frozen=True)
class _Option:
    """
    One plugin setting. The ini key and the CLI dest share `name`; the flag
    is `--vagrant-...`. A value is taken from the CLI, then ini, then the
    environment, then `default`; blank values fall through.
    """

    name: str
    env: str
    default: str
    help: str
    choices: tuple[str, ...] | None = None

    @property
    def flag(self) -> str:
        return "--" + self.name.replace("_", "-")

    def value(self, config: pytest.Config) -> str:
        candidates = (
            config.getoption(self.name, default=None),
            config.getini(self.name),
            os.getenv(self.env),
        )
        for raw in candidates:
            if isinstance(raw, str) and raw.strip():
                return raw.strip()
        return self.default


SHUTDOWN = _Option(
    "vagrant_shutdown",
    "VAGRANT_SHUTDOWN",
    ShutdownMode.DESTROY.value,
    "Shutdown behavior after tests: halt|destroy|none.",
    choices=tuple(m.value for m in ShutdownMode),
)
BINARY = _Option(
    "vagrant_binary",
    "VAGRANT_BINARY",
    "vagrant",
    "Vagrant executable to invoke.",
)
SESSION_DIR = _Option(
    "vagrant_session_dir",
    "VAGRANT_SESSION_DIR",
    "",
    "Working directory of the vagrant session; a fresh temporary directory per module if omitted.",
)
OPTIONS = (SHUTDOWN, BINARY, SESSION_DIR)


def pytest_addoption(parser: pytest.Parser) -> None:
    grp = parser.getgroup("vagrant")
    for opt in OPTIONS:
        parser.addini(opt.name, opt.help, default="")
        grp.addoption(
            opt.flag,
            action="store",
            dest=opt.name,
            choices=opt.choices,
            help=f"{opt.help} Overrides ini and ${opt.env}.",
        )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers", "integration: test drives a real vagrant installation"
    )


def _resolve_shutdown_mode(config: pytest.Config) -> ShutdownMode:
    raw = SHUTDOWN.value(config).lower()
    try:
        return ShutdownMode(raw)
    except ValueError as e:
        raise pytest.UsageError(
            f"Invalid {SHUTDOWN.name}={raw!r}. Must be one of: "
            + ", ".join(SHUTDOWN.choices or ())
        ) from e


def _resolve_session_dir(config: pytest.Config) -> str | None:
    raw = SESSION_DIR.value(config)
    if not raw:
        return None
    path = os.path.abspath(os.path.expanduser(raw))
    os.makedirs(path, exist_ok=True)
    return path


def drain(stream: OutputStream) -> BaseException | None:
    """Log every line of `stream` and return its error event, if any."""
    error: BaseException | None = None
    for out in stream:
        if out.error is not None:
            error = out.error
        else:
            logger.info("%s", out.line)
    return error


def shutdown(vagrant: Vagrant, mode: ShutdownMode) -> None:
    if mode is ShutdownMode.NONE or not vagrant.vagrantfile_exists():
        return
    stream = vagrant.halt() if mode is ShutdownMode.HALT else vagrant.destroy()
    error = drain(stream)
    if error is not None:
        logger.error("vagrant %s failed: %s", mode.value, error)


@pytest.fixture(scope="module")
def vagrant_session(
    request: pytest.FixtureRequest,
    tmp_path_factory: pytest.TempPathFactory,
) -> Generator[Vagrant, None, None]:
    """
    Vagrant session for the test module. Tests bring the machine up with
    `vagrant_session.up(content)`; at teardown it is halted or destroyed
    according to `vagrant_shutdown`.
    """
    config = request.config
    mode = _resolve_shutdown_mode(config)
    binary = BINARY.value(config)
    require_bins(binary)

    path = _resolve_session_dir(config) or str(tmp_path_factory.mktemp("vagrant"))
    session = Vagrant(path, executable=binary)
    try:
        yield session
    finally:
        shutdown(session, mode)
