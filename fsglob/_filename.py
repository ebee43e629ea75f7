from __future__ import annotations

import os

from ._path import abs_path, ext, is_abs, join, split


def rewrite_filename(
    input: str,
    *,
    dirname: str = "",
    extname: str = "",
    prefix: str = "",
    suffix: str = "",
) -> str:
    """Derive a new filename from *input*.

    *prefix* and *suffix* are added around the basename, *extname* replaces
    the extension (with or without its leading dot) and *dirname* replaces
    the directory part::

        >>> rewrite_filename("path/to/file.txt", dirname="out", suffix="-1", extname="csv")
        'out/file-1.csv'
    """
    head, filename = split(input)
    extension = ext(filename)
    basename = filename[: len(filename) - len(extension)]

    basename = prefix + basename + suffix
    if extname:
        extension = extname if extname.startswith(".") else "." + extname
    if dirname:
        head = dirname
    return join(head, basename + extension)


def expand_path(input: str) -> str:
    """Like :func:`expand_path_relative`, relative to the working directory."""
    return expand_path_relative(input, "")


def expand_path_relative(input: str, basepath: str) -> str:
    """Return the absolute path for *input*.

    ``$VAR`` and ``${VAR}`` references are expanded, as is a leading ``~``
    naming the current user's home directory. A path still relative after
    expansion is taken relative to *basepath*, then to the working directory.

    Raises OSError when the home directory cannot be determined.
    """
    if input in ("~", "~/"):
        return _home_dir(input)

    output = input
    if input.startswith("~/"):
        output = join(_home_dir(input), input[2:])

    output = os.path.expandvars(output)
    if not is_abs(output):
        output = join(basepath, output)
    return abs_path(output)


def _home_dir(input: str) -> str:
    home = os.path.expanduser("~")
    if home == "~":
        raise OSError(f"failed to expand path '{input}': home directory is not defined")
    return home
