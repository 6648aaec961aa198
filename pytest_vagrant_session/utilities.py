from __future__ import annotations

import os
import shutil

DEFAULT_BASE_DIR = os.path.join("~", ".vagrant-sessions")


def require_bins(*bins: str) -> None:
    missing = [b for b in bins if shutil.which(b) is None]
    if missing:
        raise RuntimeError("Missing required binaries: " + ", ".join(missing))


def session_directory(name: str, base_dir: str | None = None) -> str:
    """
    Return the directory of the session called `name` under `base_dir`
    (default ~/.vagrant-sessions), creating it if missing.
    """
    if not name:
        raise ValueError("vagrant session name is empty")
    if os.sep in name or (os.altsep and os.altsep in name) or name in (".", ".."):
        raise ValueError(f"invalid vagrant session name: {name!r}")

    base = os.path.expanduser(base_dir or DEFAULT_BASE_DIR)
    path = os.path.abspath(os.path.join(base, name))
    os.makedirs(path, mode=0o755, exist_ok=True)
    return path
