import errno
import os
import sys

import pytest

from fsglob import (
    Abort,
    MemoryFileSystem,
    RecursiveSymlinkError,
    WalkAction,
    make_relative_visitor,
    walk,
    walk_dir,
)
from tests.helpers.trees import requires_symlinks, source_files
from tests.helpers.asserts import record_errors, record_paths


@pytest.fixture
def linked_mfs(memory_source_tree):
    fs = memory_source_tree
    fs.symlink("src", "/dst")
    return fs


# ---------------------------------------------------------------------------
#  walk_dir
# ---------------------------------------------------------------------------


def test_walk_dir_reports_paths_relative_to_prefix(memory_source_tree):
    records = []
    walk_dir("/src", "", record_paths(records), fs=memory_source_tree)
    assert records[:4] == ["aaa/", "aaa/aaa.cpp", "aaa/aaa.h", "aaa/aaa_test.cpp"]
    assert len(records) == 16


def test_walk_dir_reports_paths_starting_with_root(memory_source_tree):
    records = []
    walk_dir("/", "src/foo", record_paths(records), fs=memory_source_tree)
    assert records == ["src/foo/foo.cpp", "src/foo/foo.h", "src/foo/foo_test.cpp"]


def test_walk_dir_from_absolute_root_ignores_prefix(memory_source_tree):
    records = []
    walk_dir("/elsewhere", "/src/foo/", record_paths(records), fs=memory_source_tree)
    assert records == ["/src/foo/foo.cpp", "/src/foo/foo.h", "/src/foo/foo_test.cpp"]


def test_walk_dir_does_not_report_its_root(memory_source_tree):
    records = []
    walk_dir("", "", record_paths(records), fs=memory_source_tree)
    assert "./" not in records
    assert "" not in records
    assert records[0] == "src/"


def test_walk_dir_reports_missing_root(mfs):
    records = []
    walk_dir("/", "missing/", record_errors(records), fs=mfs)
    assert len(records) == 1
    path, error = records[0]
    assert path == "missing/"
    assert isinstance(error, FileNotFoundError)


def test_walk_dir_does_not_follow_symlinks(linked_mfs):
    records = []
    entries = {}

    def visit(path, entry, error):
        records.append(path)
        entries[path] = entry

    walk_dir("/", "", visit, fs=linked_mfs)
    assert "dst" in records
    assert entries["dst"]["is_symlink"]
    assert not any(p.startswith("dst/") for p in records)


def test_skip_subtree(memory_source_tree):
    records = []

    def visit(path, entry, error):
        records.append(path)
        if path == "src/bar/":
            return WalkAction.SKIP_SUBTREE
        return None

    walk_dir("/", "", visit, fs=memory_source_tree)
    assert "src/bar/" in records
    assert not any(p.startswith("src/bar/") and p != "src/bar/" for p in records)
    assert "src/foo/foo.h" in records


def test_skip_subtree_on_file_is_ignored(memory_source_tree):
    records = []

    def visit(path, entry, error):
        records.append(path)
        return WalkAction.SKIP_SUBTREE if not path.endswith("/") else None

    walk_dir("/", "src", visit, fs=memory_source_tree)
    assert len(records) == 16


def test_abort_raises_cause(memory_source_tree):
    records = []

    class Found(Exception):
        pass

    def visit(path, entry, error):
        records.append(path)
        if path.endswith(".h"):
            return Abort(Found(path))
        return None

    with pytest.raises(Found, match="src/aaa/aaa.h"):
        walk_dir("/", "", visit, fs=memory_source_tree)
    assert records[-1] == "src/aaa/aaa.h"


def test_visitor_exception_propagates(memory_source_tree):
    def visit(path, entry, error):
        raise KeyError(path)

    with pytest.raises(KeyError):
        walk_dir("/", "", visit, fs=memory_source_tree)


def test_unreadable_directory_is_reported_with_error():
    class FailingListdir(MemoryFileSystem):
        def listdir(self, path):
            if path.rstrip("/").endswith("bar"):
                raise PermissionError(errno.EACCES, "Permission denied", path)
            return super().listdir(path)

    fs = FailingListdir()
    fs.import_tree({"/" + f: b"" for f in source_files()})
    records = []
    errors = []
    walk_dir("/", "src", record_paths(records), fs=fs)
    walk_dir("/", "src", record_errors(errors), fs=fs)

    assert "src/bar/" in records
    assert [(p, type(e)) for p, e in errors] == [("src/bar/", PermissionError)]


@pytest.mark.parametrize("walker", [walk_dir, walk])
def test_walk_tree_deeper_than_recursion_limit(mfs, walker):
    depth = sys.getrecursionlimit() + 100
    mfs.mkdir("/" + "/".join(["d"] * depth) + "/")
    mfs.write_bytes("/" + "/".join(["d"] * depth) + "/leaf.txt", b"")

    records = []
    walker("/", "", record_paths(records), fs=mfs)

    assert len(records) == depth + 1
    assert records[-1] == "d/" * depth + "leaf.txt"


# ---------------------------------------------------------------------------
#  walk (symlink-aware), in memory
# ---------------------------------------------------------------------------


def test_walk_follows_symlinked_directories(linked_mfs):
    records = []
    walk("/", "", record_paths(records), fs=linked_mfs)
    assert "dst/" in records
    assert "dst/foo/foo.cpp" in records
    assert "src/foo/foo.cpp" in records
    assert len(records) == 2 * 17


def test_walk_reports_resolved_metadata(linked_mfs):
    entries = {}

    def visit(path, entry, error):
        entries[path] = entry

    linked_mfs.symlink("foo/foo.h", "/src/header")
    walk("/", "src", visit, fs=linked_mfs)
    assert entries["src/header"]["is_symlink"] is False
    assert entries["src/header"]["is_dir"] is False


def test_walk_skip_on_symlinked_directory(linked_mfs):
    records = []

    def visit(path, entry, error):
        records.append(path)
        return WalkAction.SKIP_SUBTREE if path == "dst/" else None

    walk("/", "", visit, fs=linked_mfs)
    assert "dst/" in records
    assert not any(p.startswith("dst/") and p != "dst/" for p in records)


def test_walk_abort_inside_symlinked_directory(linked_mfs):
    def visit(path, entry, error):
        if path == "dst/bar/":
            return Abort(LookupError(path))
        return None

    with pytest.raises(LookupError, match="dst/bar/"):
        walk("/", "", visit, fs=linked_mfs)


def test_walk_detects_recursive_symlinks(linked_mfs):
    linked_mfs.symlink("../src", "/src/src")
    errors = []
    walk("/", "", record_errors(errors), fs=linked_mfs)
    assert {p for p, _ in errors} == {"dst/src/", "src/src/src/"}
    for _, error in errors:
        assert isinstance(error, RecursiveSymlinkError)
        assert error.errno == errno.ELOOP
        assert error.target == "/src"


def test_walk_reports_broken_symlinks(linked_mfs):
    linked_mfs.symlink("../src2", "/src/src3")
    errors = []
    walk("/", "", record_errors(errors), fs=linked_mfs)
    assert {p for p, _ in errors} == {"src/src3", "dst/src3"}
    for _, error in errors:
        assert isinstance(error, FileNotFoundError)


def test_walk_visited_set_is_per_branch(mfs):
    # two links to the same directory on sibling branches are both followed
    mfs.import_tree({"/data/x.txt": b""})
    mfs.mkdir("/a")
    mfs.mkdir("/b")
    mfs.symlink("/data", "/a/link")
    mfs.symlink("/data", "/b/link")
    records = []
    walk("/", "", record_paths(records), fs=mfs)
    assert "a/link/x.txt" in records
    assert "b/link/x.txt" in records


def test_walk_link_to_sibling_with_common_name_prefix_is_not_recursive(mfs):
    mfs.import_tree({"/src/a.c": b"", "/src2/b.c": b""})
    mfs.symlink("/src", "/link")
    mfs.symlink("/src2", "/src/other")
    errors = []
    records = []
    walk("/", "", record_errors(errors), fs=mfs)
    walk("/", "", record_paths(records), fs=mfs)
    assert errors == []
    assert "link/other/b.c" in records


# ---------------------------------------------------------------------------
#  walk on the host filesystem
# ---------------------------------------------------------------------------


def test_walk_host_tree_with_prefix(source_tree):
    records = []
    walk(source_tree, "", record_paths(records))
    assert sorted(records) == sorted(
        ["src/"] + [f"src/{n}/" for n in ("foo", "bar", "aaa", "bbb")] + source_files()
    )


def test_walk_host_tree_with_root(source_tree):
    records = []
    walk(os.path.dirname(source_tree), os.path.basename(source_tree), record_paths(records))
    name = os.path.basename(source_tree)
    assert f"{name}/src/" in records
    assert f"{name}/src/foo/foo.h" in records


@requires_symlinks
def test_walk_host_symlinks(symlink_tree):
    records = []
    walk(symlink_tree, "", record_paths(records))
    assert any(p.startswith("src/foo/") for p in records)
    assert any(p.startswith("dst/foo/") for p in records)
    assert any(p.startswith("dst/bar/") for p in records)


@requires_symlinks
def test_walk_host_recursive_and_broken_symlinks(symlink_tree):
    errors = []
    walk(symlink_tree, "", record_errors(errors))
    recursive = {p for p, e in errors if isinstance(e, RecursiveSymlinkError)}
    broken = {p for p, e in errors if isinstance(e, FileNotFoundError)}
    assert recursive == {"dst/src/", "src/src/src/"}
    assert broken == {"src/src3", "dst/src3"}


@requires_symlinks
def test_walk_dir_host_reports_symlinks_unresolved(symlink_tree):
    records = []
    errors = []
    walk_dir(symlink_tree, "", record_paths(records))
    walk_dir(symlink_tree, "", record_errors(errors))
    assert "dst" in records
    assert "src/src" in records
    assert errors == []


# ---------------------------------------------------------------------------
#  make_relative_visitor
# ---------------------------------------------------------------------------


def _recorder(calls):
    def visit(path, entry, error):
        calls.append((path, error))

    return visit


def test_make_relative_visitor():
    calls = []
    visit = make_relative_visitor("aaa/bbb", _recorder(calls))
    visit("aaa/bbb", None, None)
    visit("aaa/bbb/ccc/ddd", None, None)
    assert calls == [("ccc/ddd", None)]


def test_make_relative_visitor_keeps_entry_error():
    calls = []
    error = OSError(errno.EIO, "test error")
    make_relative_visitor("aaa/bbb", _recorder(calls))("aaa/bbb/ccc/ddd", None, error)
    assert calls == [("ccc/ddd", error)]


def test_make_relative_visitor_reports_unrelatable_path():
    calls = []
    make_relative_visitor("aaa/bbb", _recorder(calls))("/aaa/bbb/ccc/ddd", None, None)
    path, error = calls[0]
    assert path == "/aaa/bbb/ccc/ddd"
    assert error.errno == errno.EINVAL


def test_make_relative_visitor_prefers_existing_error():
    calls = []
    error = OSError(errno.EIO, "test error")
    make_relative_visitor("aaa/bbb", _recorder(calls))("/aaa/bbb/ccc/ddd", None, error)
    assert calls == [("/aaa/bbb/ccc/ddd", error)]
