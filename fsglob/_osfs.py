from __future__ import annotations

import os
import stat as _stat

from ._path import SEPARATOR, to_native, to_slash
from ._typing import StatResult


def _native(path: str) -> str:
    # "" and "./" both name the working directory
    if not path or path == "." + SEPARATOR:
        return "."
    if len(path) > 1 and path.endswith(SEPARATOR):
        path = path.rstrip(SEPARATOR) or SEPARATOR
    return to_native(path)


def _to_stat_result(st: os.stat_result) -> StatResult:
    return StatResult(
        size=st.st_size,
        modified_at=st.st_mtime,
        is_dir=_stat.S_ISDIR(st.st_mode),
        is_symlink=_stat.S_ISLNK(st.st_mode),
    )


class OSFileSystem:
    """The host filesystem, addressed with ``/``-separated paths."""

    def stat(self, path: str) -> StatResult:
        return _to_stat_result(os.stat(_native(path)))

    def lstat(self, path: str) -> StatResult:
        return _to_stat_result(os.lstat(_native(path)))

    def listdir(self, path: str) -> list[str]:
        with os.scandir(_native(path)) as it:
            return [entry.name for entry in it]

    def realpath(self, path: str) -> str:
        return to_slash(os.path.realpath(_native(path), strict=True))

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}()"
