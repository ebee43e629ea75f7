"""Lexical path manipulation using ``/`` as separator on every platform.

These helpers mirror :mod:`posixpath`, with one convention layered on top: a
trailing separator marks a directory and is preserved by every operation.
Native separators are only converted by :func:`to_slash` and
:func:`to_native`.
"""

from __future__ import annotations

import ntpath
import os
import posixpath

SEPARATOR = "/"
OS_SEPARATOR = os.sep


def is_path_separator(c: str) -> bool:
    return c == SEPARATOR or c == OS_SEPARATOR


def has_trailing_separator(path: str) -> bool:
    return len(path) > 0 and is_path_separator(path[-1])


def is_directory_name(path: str) -> bool:
    """Return True if *path* can only name a directory, judging by its text alone.

    This is the case for ``""``, ``"."``, ``".."``, paths ending with a
    separator and paths whose last segment is ``.`` or ``..``.
    """
    return (
        path in ("", ".", "..")
        or has_trailing_separator(path)
        or (path.endswith(".") and len(path) >= 2 and is_path_separator(path[-2]))
        or (path.endswith("..") and len(path) >= 3 and is_path_separator(path[-3]))
    )


def clean(path: str) -> str:
    """Lexically simplify *path*, appending ``/`` when it names a directory.

    ``clean("aaa/..") == "./"``, ``clean("") == "./"``, ``clean("//") == "/"``.
    """
    directory = is_directory_name(path)
    output = posixpath.normpath(path) if path else "."
    # normpath keeps exactly two leading slashes as POSIX allows
    if output.startswith("//"):
        output = SEPARATOR + output.lstrip(SEPARATOR)
    if directory and not output.endswith(SEPARATOR):
        output += SEPARATOR
    return output


def is_abs(path: str) -> bool:
    if posixpath.isabs(path):
        return True
    return os.name == "nt" and ntpath.isabs(path)


def join(*elems: str) -> str:
    """Join path elements with a single separator and clean the result.

    An absolute element discards everything accumulated before it. The result
    is a directory name iff the last element is one, so ``join("dst", "")``
    returns ``"dst/"``.
    """
    parts: list[str] = []
    for elem in elems:
        if not elem:
            continue
        if is_abs(elem):
            parts = [elem]
        else:
            parts.append(elem)
    if not parts:
        return ""
    joined = SEPARATOR.join(parts)
    if is_directory_name(elems[-1]) and not has_trailing_separator(joined):
        joined += SEPARATOR
    return clean(joined)


def split(path: str) -> tuple[str, str]:
    """Split *path* after its last separator.

    Unlike :func:`posixpath.split`, a trailing separator stays attached to the
    base: ``split("/foo/bar/") == ("/foo/", "bar/")``.
    """
    trimmed = path.rstrip(SEPARATOR)
    if not trimmed:
        return path[:1], ""
    i = trimmed.rfind(SEPARATOR)
    head, tail = trimmed[: i + 1], trimmed[i + 1 :]
    if is_directory_name(path):
        tail += SEPARATOR
    return head, tail


def base(path: str) -> str:
    cleaned = clean(path)
    _, tail = split(cleaned)
    return tail or cleaned


def dir_name(path: str) -> str:
    head, _ = split(clean(path))
    return clean(head)


def ext(path: str) -> str:
    for i in range(len(path) - 1, -1, -1):
        c = path[i]
        if is_path_separator(c):
            break
        if c == ".":
            return path[i:]
    return ""


def to_slash(path: str) -> str:
    if OS_SEPARATOR == SEPARATOR:
        return path
    return path.replace(OS_SEPARATOR, SEPARATOR)


def to_native(path: str) -> str:
    if OS_SEPARATOR == SEPARATOR:
        return path
    return path.replace(SEPARATOR, OS_SEPARATOR)


def volume_name(path: str) -> str:
    if os.name != "nt":
        return ""
    return ntpath.splitdrive(path)[0]


def split_list(path: str) -> list[str]:
    if not path:
        return []
    return path.split(os.pathsep)


def _segments(path: str) -> list[str]:
    return [s for s in path.split(SEPARATOR) if s and s != "."]


def rel(basepath: str, targpath: str) -> str:
    """Return *targpath* relative to *basepath*, lexically.

    Raises ValueError when no relative path exists, e.g. when only one of the
    two is absolute.
    """
    if is_abs(basepath) != is_abs(targpath):
        raise ValueError(f"Can't make '{targpath}' relative to '{basepath}'")
    base_segments = _segments(clean(basepath))
    targ_segments = _segments(clean(targpath))
    common = 0
    while (
        common < len(base_segments)
        and common < len(targ_segments)
        and base_segments[common] == targ_segments[common]
    ):
        common += 1
    if ".." in base_segments[common:]:
        raise ValueError(f"Can't make '{targpath}' relative to '{basepath}'")
    output = [".."] * (len(base_segments) - common) + targ_segments[common:]
    joined = SEPARATOR.join(output)
    if is_directory_name(targpath):
        joined += SEPARATOR
    return clean(joined)


def abs_path(path: str) -> str:
    output = to_slash(os.path.abspath(to_native(path or ".")))
    if is_directory_name(path):
        output += SEPARATOR
    return clean(output)
