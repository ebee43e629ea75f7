from ._atomic import open_temp, read_file, write_file
from ._exceptions import (
    CommandError,
    CommandTimeoutError,
    GlobPatternError,
    RecursiveSymlinkError,
)
from ._fileops import exists, is_dir, is_file, touch
from ._filename import expand_path, expand_path_relative, rewrite_filename
from ._fs import MemoryFileSystem
from ._glob import (
    GlobFragment,
    GlobMatcher,
    glob,
    glob_from,
    glob_fragment_to_regexp,
    scan,
    scan_from,
)
from ._log import configure_logging, get_logger
from ._osfs import OSFileSystem
from ._path import (
    OS_SEPARATOR,
    SEPARATOR,
    abs_path,
    base,
    clean,
    dir_name,
    ext,
    has_trailing_separator,
    is_abs,
    is_directory_name,
    is_path_separator,
    join,
    rel,
    split,
    split_list,
    to_native,
    to_slash,
    volume_name,
)
from ._popen import Command, CommandResult
from ._typing import Abort, FileSystem, StatResult, Visitor, VisitResult, WalkAction
from ._walk import make_relative_visitor, walk, walk_dir

__all__ = [
    # paths
    "SEPARATOR",
    "OS_SEPARATOR",
    "abs_path",
    "base",
    "clean",
    "dir_name",
    "ext",
    "has_trailing_separator",
    "is_abs",
    "is_directory_name",
    "is_path_separator",
    "join",
    "rel",
    "split",
    "split_list",
    "to_native",
    "to_slash",
    "volume_name",
    # glob
    "GlobFragment",
    "GlobMatcher",
    "glob",
    "glob_from",
    "glob_fragment_to_regexp",
    "scan",
    "scan_from",
    # walk
    "walk",
    "walk_dir",
    "make_relative_visitor",
    "Abort",
    "WalkAction",
    "Visitor",
    "VisitResult",
    "StatResult",
    "FileSystem",
    "OSFileSystem",
    "MemoryFileSystem",
    # files
    "open_temp",
    "read_file",
    "write_file",
    "touch",
    "exists",
    "is_file",
    "is_dir",
    "rewrite_filename",
    "expand_path",
    "expand_path_relative",
    # processes
    "Command",
    "CommandResult",
    # errors
    "GlobPatternError",
    "RecursiveSymlinkError",
    "CommandError",
    "CommandTimeoutError",
    # logging
    "configure_logging",
    "get_logger",
]
__version__ = "0.1.0"
