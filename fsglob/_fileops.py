from __future__ import annotations

import os
import stat

from ._path import dir_name, to_native


def touch(*filenames: str) -> None:
    """Create each file, or update its modification time if it exists.

    Missing parent directories are created. Stops at the first failure and
    raises its OSError.
    """
    for filename in filenames:
        native = to_native(filename)
        os.makedirs(to_native(dir_name(filename)), exist_ok=True)
        with open(native, "ab"):
            pass
        os.utime(native)


def _mode(path: str) -> int | None:
    try:
        return os.stat(to_native(path)).st_mode
    except OSError:
        return None


def exists(path: str) -> bool:
    """Return True if a file or directory exists at *path*, following symlinks."""
    return _mode(path) is not None


def is_file(path: str) -> bool:
    """Return True if something other than a directory exists at *path*."""
    mode = _mode(path)
    return mode is not None and not stat.S_ISDIR(mode)


def is_dir(path: str) -> bool:
    mode = _mode(path)
    return mode is not None and stat.S_ISDIR(mode)
