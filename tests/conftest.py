import os

import pytest

from fsglob import MemoryFileSystem, touch
from tests.helpers.trees import source_files


@pytest.fixture
def source_tree(tmp_path):
    """A real directory holding the reference source tree; returns its path."""
    touch(*source_files(str(tmp_path)))
    return str(tmp_path)


@pytest.fixture
def symlink_tree(source_tree):
    """Reference tree plus ``dst -> src``, ``src/src -> ../src`` and a dangling ``src/src3``."""
    os.symlink("src", os.path.join(source_tree, "dst"))
    os.symlink("../src", os.path.join(source_tree, "dst", "src"))
    os.symlink("../src2", os.path.join(source_tree, "dst", "src3"))
    return source_tree


@pytest.fixture
def memory_source_tree() -> MemoryFileSystem:
    """The reference source tree in memory, rooted at ``/``."""
    fs = MemoryFileSystem()
    fs.import_tree({"/" + f: b"" for f in source_files()})
    return fs
