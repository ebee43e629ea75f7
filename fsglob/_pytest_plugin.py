"""pytest fixture plugin.

Usage::

    # conftest.py
    pytest_plugins = ["fsglob._pytest_plugin"]

This makes the ``mfs`` fixture automatically available::

    def test_something(mfs):
        mfs.import_tree({"/src/main.c": b""})
        assert fsglob.glob("/src/*.c", fs=mfs) == ["/src/main.c"]
"""

import pytest

from ._fs import MemoryFileSystem


@pytest.fixture
def mfs() -> MemoryFileSystem:
    """An empty :class:`MemoryFileSystem`, independent per test (function scope)."""
    return MemoryFileSystem()
