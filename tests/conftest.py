"""Pytest configuration for pytest-vagrant-session tests."""

import stat
from pathlib import Path

import pytest

FAKE_VAGRANT = """#!/bin/sh
if [ -n "$FAKE_VAGRANT_LOG" ]; then
  echo "$(pwd) $*" >> "$FAKE_VAGRANT_LOG"
fi
case "$1" in
  version)
    echo "1700000000,,version-installed,2.4.1"
    echo "1700000000,,version-latest,2.4.3"
    ;;
  status)
    echo "1700000000,default,metadata,provider,virtualbox"
    echo "1700000000,default,provider-name,virtualbox"
    echo "1700000000,default,state,${FAKE_VAGRANT_STATE:-not_created}"
    echo "1700000000,default,state-human-short,whatever"
    ;;
  box)
    echo "1700000000,,box-name,ubuntu/jammy64"
    echo "1700000000,,box-provider,virtualbox"
    ;;
  up)
    echo "Bringing machine 'default' up with 'virtualbox' provider..."
    echo "==> default: Machine booted and ready!"
    echo "==> default: warning on stderr" >&2
    exit ${FAKE_VAGRANT_EXIT:-0}
    ;;
  halt|destroy)
    echo "==> default: $1"
    ;;
  ssh-config)
    echo "Host default"
    echo "  HostName 127.0.0.1"
    echo "  User vagrant"
    echo "  Port 2222"
    echo '  IdentityFile "/tmp/private_key"'
    ;;
  *)
    echo "unknown command $1" >&2
    exit 1
    ;;
esac
"""


@pytest.fixture
def fake_vagrant(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Write a fake vagrant executable; its invocations go to calls.log."""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    script = bin_dir / "vagrant"
    script.write_text(FAKE_VAGRANT)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    monkeypatch.setenv("FAKE_VAGRANT_LOG", str(tmp_path / "calls.log"))
    return script


@pytest.fixture
def calls(tmp_path: Path):
    """Read back the fake vagrant invocations as `cwd args` lines."""

    def _calls() -> list[str]:
        log = tmp_path / "calls.log"
        return log.read_text().splitlines() if log.exists() else []

    return _calls


@pytest.fixture
def session_dir(tmp_path: Path) -> Path:
    path = tmp_path / "session"
    path.mkdir()
    return path
