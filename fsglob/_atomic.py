"""Atomic file replacement through a temporary sibling file.

:func:`write_file` writes the new content next to its destination, flushes it
to disk and only then renames it over the destination, so readers observe
either the old or the new content, never a partial write.
"""

from __future__ import annotations

import io
import os
import time
from collections.abc import Callable
from typing import IO, Any, TypeVar

from ._filename import rewrite_filename
from ._log import get_logger

log = get_logger(__name__)

_T = TypeVar("_T")


def open_temp(filename: str, suffix: str) -> io.BufferedRandom:
    """Create and open a file that did not exist, in the directory of *filename*.

    The new file is named after *filename* with ``-<suffix>-<hex>`` appended to
    its basename. The returned binary file is open for reading and writing;
    its ``name`` attribute holds the path.
    """
    while True:
        tmp = rewrite_filename(filename, suffix=f"-{suffix}-{time.time_ns() % 1_000_000_000:x}")
        try:
            return open(tmp, "x+b")
        except FileExistsError:
            continue


def write_file(
    filename: str,
    writer: Callable[[IO[Any]], object],
    *,
    encoding: str | None = None,
) -> None:
    """Create or atomically replace *filename* with what *writer* writes.

    *writer* receives a binary file object, or a text one when *encoding* is
    given. If it raises, the destination is left untouched and the exception
    propagates.
    """
    f = open_temp(filename, "atomic")
    tmp = f.name
    try:
        with f:
            if encoding is None:
                writer(f)
            else:
                text = io.TextIOWrapper(f, encoding=encoding, newline="")
                try:
                    writer(text)
                    text.flush()
                finally:
                    text.detach()
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, filename)
        log.debug("atomically replaced '%s'", filename)
    except BaseException:
        try:
            os.remove(tmp)
        except FileNotFoundError:
            pass
        raise


def read_file(
    filename: str,
    reader: Callable[[IO[Any]], _T],
    *,
    encoding: str | None = None,
) -> _T:
    """Open *filename* and hand it to *reader*; the file is closed on return.

    Returns whatever *reader* returns.
    """
    mode = "rb" if encoding is None else "r"
    with open(filename, mode, encoding=encoding) as f:
        return reader(f)
