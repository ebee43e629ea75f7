from __future__ import annotations

import errno
import threading
import time
from collections import deque

from ._path import SEPARATOR
from ._typing import StatResult

# ---------------------------------------------------------------------------
#  Node Layer
# ---------------------------------------------------------------------------


class DirNode:
    __slots__ = ("children", "created_at", "modified_at")

    def __init__(self) -> None:
        self.children: dict[str, Node] = {}
        now = time.time()
        self.created_at: float = now
        self.modified_at: float = now


class FileNode:
    __slots__ = ("data", "created_at", "modified_at")

    def __init__(self, data: bytes = b"") -> None:
        self.data: bytes = data
        now = time.time()
        self.created_at: float = now
        self.modified_at: float = now


class SymlinkNode:
    __slots__ = ("target", "created_at", "modified_at")

    def __init__(self, target: str) -> None:
        self.target: str = target
        now = time.time()
        self.created_at: float = now
        self.modified_at: float = now


Node = DirNode | FileNode | SymlinkNode


def _stat_node(node: Node) -> StatResult:
    if isinstance(node, DirNode):
        size = 0
    elif isinstance(node, FileNode):
        size = len(node.data)
    else:
        size = len(node.target)
    return StatResult(
        size=size,
        modified_at=node.modified_at,
        is_dir=isinstance(node, DirNode),
        is_symlink=isinstance(node, SymlinkNode),
    )


# ---------------------------------------------------------------------------
#  MemoryFileSystem
# ---------------------------------------------------------------------------


class MemoryFileSystem:
    """In-memory directory tree with POSIX-like symlinks.

    Paths are ``/``-separated; relative paths are resolved from the root.
    Symlink targets are stored verbatim and resolved on access, relative
    targets against the directory holding the link, so ``..`` is applied
    after symlink resolution as on a real filesystem.
    """

    def __init__(self, max_symlink_hops: int = 40) -> None:
        if max_symlink_hops < 1:
            raise ValueError(
                f"Invalid max_symlink_hops value: {max_symlink_hops!r}. "
                "Expected a positive integer."
            )
        self._max_symlink_hops = max_symlink_hops
        self._global_lock = threading.RLock()
        self._root = DirNode()

    # -- path helpers --

    def _lookup(self, path: str, follow_last: bool = True) -> tuple[Node, str]:
        """Return the node at *path* and its symlink-free absolute path."""
        pending = deque(path.split(SEPARATOR))
        chain: list[tuple[str, Node]] = []
        node: Node = self._root
        hops = 0
        while pending:
            name = pending.popleft()
            if name in ("", "."):
                continue
            if name == "..":
                if chain:
                    chain.pop()
                node = chain[-1][1] if chain else self._root
                continue
            if not isinstance(node, DirNode):
                raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
            child = node.children.get(name)
            if child is None:
                raise FileNotFoundError(errno.ENOENT, "No such file or directory", path)
            if isinstance(child, SymlinkNode) and (pending or follow_last):
                hops += 1
                if hops > self._max_symlink_hops:
                    raise OSError(errno.ELOOP, "Too many levels of symbolic links", path)
                if child.target.startswith(SEPARATOR):
                    chain.clear()
                    node = self._root
                pending.extendleft(reversed(child.target.split(SEPARATOR)))
                continue
            chain.append((name, child))
            node = child
        return node, SEPARATOR + SEPARATOR.join(name for name, _ in chain)

    def _lookup_parent(self, path: str) -> tuple[DirNode, str]:
        stripped = path.rstrip(SEPARATOR)
        head, _, name = stripped.rpartition(SEPARATOR)
        if name in ("", ".", ".."):
            raise ValueError(f"Invalid entry name in path: '{path}'")
        parent, _ = self._lookup(head or SEPARATOR)
        if not isinstance(parent, DirNode):
            raise NotADirectoryError(errno.ENOTDIR, "Not a directory", head)
        return parent, name

    def _attach(self, parent: DirNode, name: str, node: Node) -> None:
        parent.children[name] = node
        parent.modified_at = time.time()

    # -- capability set used by the walker --

    def stat(self, path: str) -> StatResult:
        with self._global_lock:
            node, _ = self._lookup(path)
            return _stat_node(node)

    def lstat(self, path: str) -> StatResult:
        with self._global_lock:
            node, _ = self._lookup(path, follow_last=False)
            return _stat_node(node)

    def listdir(self, path: str) -> list[str]:
        with self._global_lock:
            node, _ = self._lookup(path)
            if not isinstance(node, DirNode):
                raise NotADirectoryError(errno.ENOTDIR, "Not a directory", path)
            return list(node.children.keys())

    def realpath(self, path: str) -> str:
        with self._global_lock:
            _, real = self._lookup(path)
            return real

    # -- public API --

    def mkdir(self, path: str, exist_ok: bool = False) -> None:
        """Create a directory, including any missing parents."""
        with self._global_lock:
            try:
                node, _ = self._lookup(path)
            except FileNotFoundError:
                self._makedirs(path)
                return
            if not isinstance(node, DirNode):
                raise FileExistsError(errno.EEXIST, "File exists at path", path)
            if not exist_ok:
                raise FileExistsError(errno.EEXIST, "Directory exists", path)

    def _makedirs(self, path: str) -> None:
        parts = [p for p in path.split(SEPARATOR) if p]
        current = ""
        for part in parts:
            current = current + SEPARATOR + part
            try:
                node, _ = self._lookup(current)
            except FileNotFoundError:
                parent, name = self._lookup_parent(current)
                self._attach(parent, name, DirNode())
                continue
            if not isinstance(node, DirNode):
                raise FileExistsError(
                    errno.EEXIST, "A file exists at path component", current
                )

    def write_bytes(self, path: str, data: bytes) -> None:
        with self._global_lock:
            try:
                node, _ = self._lookup(path)
            except FileNotFoundError:
                parent, name = self._lookup_parent(path)
                if name in parent.children:
                    # dangling symlink
                    raise
                self._attach(parent, name, FileNode(bytes(data)))
                return
            if isinstance(node, DirNode):
                raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
            assert isinstance(node, FileNode)
            node.data = bytes(data)
            node.modified_at = time.time()

    def read_bytes(self, path: str) -> bytes:
        with self._global_lock:
            node, _ = self._lookup(path)
            if isinstance(node, DirNode):
                raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
            assert isinstance(node, FileNode)
            return node.data

    def symlink(self, target: str, path: str) -> None:
        """Create a symlink at *path* pointing to *target* (argument order of os.symlink)."""
        with self._global_lock:
            parent, name = self._lookup_parent(path)
            if name in parent.children:
                raise FileExistsError(errno.EEXIST, "File exists", path)
            self._attach(parent, name, SymlinkNode(target))

    def readlink(self, path: str) -> str:
        with self._global_lock:
            node, _ = self._lookup(path, follow_last=False)
            if not isinstance(node, SymlinkNode):
                raise OSError(errno.EINVAL, "Not a symbolic link", path)
            return node.target

    def remove(self, path: str) -> None:
        with self._global_lock:
            node, _ = self._lookup(path, follow_last=False)
            if isinstance(node, DirNode):
                raise IsADirectoryError(errno.EISDIR, "Is a directory", path)
            parent, name = self._lookup_parent(path)
            del parent.children[name]
            parent.modified_at = time.time()

    def exists(self, path: str) -> bool:
        try:
            self.stat(path)
        except OSError:
            return False
        return True

    def is_dir(self, path: str) -> bool:
        try:
            return self.stat(path)["is_dir"]
        except OSError:
            return False

    def is_file(self, path: str) -> bool:
        with self._global_lock:
            try:
                node, _ = self._lookup(path)
            except OSError:
                return False
            return isinstance(node, FileNode)

    def import_tree(self, tree: dict[str, bytes]) -> None:
        """Create every file in *tree*, making parent directories as needed."""
        with self._global_lock:
            for path, data in tree.items():
                parent_path = path.rstrip(SEPARATOR).rpartition(SEPARATOR)[0]
                if parent_path:
                    self.mkdir(parent_path, exist_ok=True)
                self.write_bytes(path, data)

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(max_symlink_hops={self._max_symlink_hops})"
