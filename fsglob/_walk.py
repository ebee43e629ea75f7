"""Depth-first directory traversal with optional symlink following.

Both walkers report every entry below the walk root to a visitor, in sorted
name order, with paths relative to ``prefix`` and a trailing ``/`` on
directories. The visitor steers the traversal through its return value, see
:class:`~fsglob._typing.WalkAction` and :class:`~fsglob._typing.Abort`.
"""

from __future__ import annotations

import errno
from collections.abc import Iterator

from ._exceptions import RecursiveSymlinkError
from ._log import get_logger
from ._osfs import OSFileSystem
from ._path import SEPARATOR, clean, is_abs, join, rel
from ._typing import Abort, FileSystem, StatResult, Visitor, VisitResult, WalkAction

log = get_logger(__name__)

_default_fs = OSFileSystem()


def _dispatch(
    visitor: Visitor, path: str, entry: StatResult | None, error: OSError | None
) -> bool:
    """Call *visitor* and return True if the walk should not descend into *path*."""
    result = visitor(path, entry, error)
    if isinstance(result, Abort):
        raise result.cause
    return result is WalkAction.SKIP_SUBTREE


def walk_dir(
    prefix: str, root: str, visitor: Visitor, *, fs: FileSystem | None = None
) -> None:
    """Walk the tree at ``join(prefix, root)`` without following symlinks.

    Reported paths start with *root*. If *root* is absolute, *prefix* is
    ignored and reported paths are absolute. The walk root itself is only
    reported when it cannot be stat'ed, with ``entry=None``.
    """
    fs = fs or _default_fs
    if is_abs(root):
        walk_root = clean(root)
        display_root = walk_root
    else:
        walk_root = clean(join(prefix, root))
        display_root = root

    try:
        info = fs.stat(walk_root)
    except OSError as err:
        _dispatch(visitor, clean(display_root), None, err)
        return
    if not info["is_dir"]:
        return
    _walk_tree(fs, walk_root, display_root, visitor)


def _list_sorted(
    fs: FileSystem, fs_dir: str, display_dir: str, visitor: Visitor
) -> list[str] | None:
    try:
        return sorted(fs.listdir(fs_dir))
    except OSError as err:
        log.debug("cannot list directory '%s': %s", fs_dir, err)
        info = None
        try:
            info = fs.stat(fs_dir)
        except OSError:
            pass
        _dispatch(visitor, clean(join(display_dir, "")), info, err)
        return None


def _walk_tree(fs: FileSystem, fs_dir: str, display_dir: str, visitor: Visitor) -> None:
    names = _list_sorted(fs, fs_dir, display_dir, visitor)
    if names is None:
        return
    # open directories, innermost last
    stack: list[tuple[str, str, Iterator[str]]] = [(fs_dir, display_dir, iter(names))]
    while stack:
        parent_fs, parent_display, pending = stack[-1]
        name = next(pending, None)
        if name is None:
            stack.pop()
            continue

        fs_path = join(parent_fs, name)
        try:
            info = fs.lstat(fs_path)
        except OSError as err:
            _dispatch(visitor, join(parent_display, name), None, err)
            continue
        if info["is_dir"]:
            path = join(parent_display, name + SEPARATOR)
        else:
            path = join(parent_display, name)
        if _dispatch(visitor, path, info, None):
            continue
        if info["is_dir"]:
            children = _list_sorted(fs, fs_path, path, visitor)
            if children is not None:
                stack.append((fs_path, path, iter(children)))


def walk(
    prefix: str, root: str, visitor: Visitor, *, fs: FileSystem | None = None
) -> None:
    """Walk like :func:`walk_dir`, but follow symlinks safely.

    A symlink is reported with the metadata of its target. Symlinked
    directories are descended into, and their entries reported under the
    symlink's own path. A symlink that cannot be resolved is reported with the
    resolution error. A symlinked directory whose real path lies within one
    already followed on the current branch is reported with
    :class:`RecursiveSymlinkError` and not descended into.
    """
    fs = fs or _default_fs
    base = "" if is_abs(root) else prefix
    walk_dir(prefix, root, _make_symlink_visitor(fs, (), base, "", visitor), fs=fs)


def _is_within(path: str, ancestor: str) -> bool:
    ancestor = ancestor.rstrip(SEPARATOR)
    return path == ancestor or path.startswith(ancestor + SEPARATOR)


def _make_symlink_visitor(
    fs: FileSystem,
    visited: tuple[str, ...],
    basepath: str,
    client_prefix: str,
    client: Visitor,
) -> Visitor:
    def visit(path: str, entry: StatResult | None, error: OSError | None) -> VisitResult:
        client_path = join(client_prefix, path)
        if error is not None or entry is None or not entry["is_symlink"]:
            return client(client_path, entry, error)

        link_path = join(basepath, path)
        try:
            realpath = fs.realpath(link_path)
            info = fs.lstat(realpath)
        except OSError as err:
            log.debug("cannot resolve symlink '%s': %s", link_path, err)
            return client(client_path, entry, err)

        if not info["is_dir"]:
            return client(client_path, info, None)

        client_path = join(client_path, "")
        for v in visited:
            if _is_within(realpath, v):
                log.debug("recursive symlink '%s' -> '%s'", link_path, realpath)
                return client(client_path, info, RecursiveSymlinkError(client_path, realpath))

        result = client(client_path, info, None)
        if isinstance(result, Abort) or result is WalkAction.SKIP_SUBTREE:
            return result

        walk_dir(
            realpath,
            "",
            _make_symlink_visitor(fs, visited + (realpath,), realpath, client_path, client),
            fs=fs,
        )
        return WalkAction.CONTINUE

    return visit


def make_relative_visitor(basepath: str, visitor: Visitor) -> Visitor:
    """Wrap *visitor* so that it receives paths relative to *basepath*.

    *basepath* itself is not forwarded. A path that cannot be made relative is
    forwarded unchanged, with the :func:`~fsglob._path.rel` failure as error
    unless the entry already carries one.
    """

    def visit(path: str, entry: StatResult | None, error: OSError | None) -> VisitResult:
        if path == basepath:
            return None
        try:
            relpath = rel(basepath, path)
        except ValueError as err:
            relpath = path
            if error is None:
                error = OSError(errno.EINVAL, str(err), path)
        return visitor(relpath, entry, error)

    return visit
