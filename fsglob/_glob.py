"""Extended glob patterns: compilation, matching and filesystem scanning.

Patterns always use ``/`` as separator and ``\\`` as escape character,
regardless of the host platform. A pattern is a sequence of path fragments,
each matched either literally or as a glob:

- ``*`` matches any run of characters within a fragment,
- ``?`` matches exactly one character within a fragment,
- ``[...]`` matches one character of a class,
- ``{foo,bar}`` matches either alternative, and alternatives nest,
- ``**/`` lets the following fragment match at any depth.
"""

from __future__ import annotations

import re

from ._exceptions import GlobPatternError
from ._log import get_logger
from ._path import SEPARATOR, clean, has_trailing_separator, join
from ._typing import FileSystem, StatResult, Visitor, VisitResult, WalkAction
from ._walk import _default_fs, _dispatch, walk, walk_dir

log = get_logger(__name__)

_GLOB_CHARS = frozenset("?*{[")


# ---------------------------------------------------------------------------
#  Parsing helpers
# ---------------------------------------------------------------------------


def split_first(path: str) -> tuple[str, str]:
    """Split *path* after its first separator: ``"aaa/bbb"`` -> ``("aaa/", "bbb")``."""
    i = path.find(SEPARATOR)
    if i < 0:
        return path, ""
    return path[: i + 1], path[i + 1 :]


def clean_fragment(s: str) -> str:
    if len(s) > 1 and s.endswith(SEPARATOR):
        return s[:-1]
    return s


def is_subdirectory_glob(fragment: str) -> bool:
    return clean(fragment).rstrip(SEPARATOR) == "**"


def is_glob_fragment(fragment: str) -> bool:
    return any(c in _GLOB_CHARS for c in fragment)


def glob_fragment_to_regexp(glob: str) -> re.Pattern[str]:
    """Translate a single-fragment glob into an anchored regular expression.

    >>> glob_fragment_to_regexp("*_test.{c,cc}").pattern
    '^.*_test\\\\.(?:(?:c)|(?:cc))$'
    """
    out = ["^"]
    escape = False
    alt = 0
    for c in glob:
        if escape:
            escape = False
            if c == ".":
                out.append("\\.")
            elif c == "{":
                out.append("\\{")
            else:
                out.append(c)
        elif c == "{":
            alt += 1
            out.append("(?:(?:")
        elif c == "}":
            if alt > 0:
                alt -= 1
                out.append("))")
            else:
                out.append(c)
        elif c == ",":
            if alt > 0:
                out.append(")|(?:")
            else:
                out.append(c)
        elif c == "\\":
            escape = True
        elif c == "*":
            out.append(".*")
        elif c == "?":
            out.append(".")
        elif c == ".":
            out.append("\\.")
        else:
            out.append(c)
    out.append("$")

    try:
        return re.compile("".join(out))
    except re.error as e:
        raise GlobPatternError(glob, str(e)) from e


# ---------------------------------------------------------------------------
#  GlobFragment
# ---------------------------------------------------------------------------


class GlobFragment:
    """Matching rule for one path segment.

    A ``subdir`` fragment may match a segment at any depth below the current
    position instead of only the next one.
    """

    __slots__ = ("subdir", "literal", "regex")

    def __init__(
        self,
        literal: str = "",
        regex: re.Pattern[str] | None = None,
        subdir: bool = False,
    ) -> None:
        self.subdir = subdir
        self.literal = literal
        self.regex = regex

    def match(self, fragment: str) -> bool:
        fragment = clean(fragment)
        if has_trailing_separator(fragment):
            fragment = fragment[:-1]
        if self.regex is not None:
            return self.regex.fullmatch(fragment) is not None
        return fragment == self.literal

    def match_start(self, path: str) -> list[str]:
        """Match against the start of *path* and return every possible remainder.

        A match of the last segment yields a single empty remainder; no match
        yields an empty list.
        """
        remainders: list[str] = []
        if self.subdir:
            fragments = path
            while fragments:
                fragment, fragments = split_first(fragments)
                if self.match(fragment):
                    remainders.append(fragments)
        elif path:
            fragment, fragments = split_first(path)
            if self.match(fragment):
                remainders.append(fragments)
        return remainders

    def prefix_match_start(self, path: str) -> list[str]:
        """Like :meth:`match_start` for a path that may be a prefix of a match.

        A subdir fragment can absorb all of *path*, which shows up as an empty
        remainder.
        """
        if not self.subdir:
            return self.match_start(path)

        remainders = [""]
        fragments = path
        while fragments:
            fragment, fragments = split_first(fragments)
            if self.match(fragment) and fragments:
                remainders.append(fragments)
        return remainders

    def __repr__(self) -> str:
        rule = self.regex.pattern if self.regex is not None else self.literal
        return f"{type(self).__qualname__}({rule!r}, subdir={self.subdir})"


def _match_fragments(r: str, fragments: tuple[GlobFragment, ...]) -> bool:
    if not fragments:
        return r == ""
    head, rest = fragments[0], fragments[1:]
    return any(_match_fragments(remainder, rest) for remainder in head.match_start(r))


def _prefix_match_fragments(r: str, fragments: tuple[GlobFragment, ...]) -> bool:
    if r == "":
        return True
    if not fragments:
        return False
    head, rest = fragments[0], fragments[1:]
    return any(
        _prefix_match_fragments(remainder, rest)
        for remainder in head.prefix_match_start(r)
    )


# ---------------------------------------------------------------------------
#  GlobMatcher
# ---------------------------------------------------------------------------


class GlobMatcher:
    """A compiled extended glob pattern.

    Instances are immutable once built and can be shared between threads.
    """

    def __init__(self, pattern: str) -> None:
        fragments: list[GlobFragment] = []
        prefix = ""
        in_prefix = True
        subdir = False

        remaining = pattern
        while remaining:
            fragment, remaining = split_first(remaining)
            if fragment == SEPARATOR and (prefix or not in_prefix):
                # repeated separator
                continue
            if is_subdirectory_glob(fragment):
                in_prefix = False
                subdir = True
            elif is_glob_fragment(fragment):
                in_prefix = False
                regex = glob_fragment_to_regexp(clean_fragment(fragment))
                fragments.append(GlobFragment(regex=regex, subdir=subdir))
                subdir = False
            elif in_prefix:
                prefix = join(prefix, fragment)
            else:
                fragments.append(GlobFragment(literal=clean_fragment(fragment), subdir=subdir))
                subdir = False

        if prefix == "." + SEPARATOR:
            prefix = ""
        if prefix and not prefix.endswith(SEPARATOR):
            prefix += SEPARATOR

        self._pattern = pattern
        self._prefix = prefix
        self._fragments = tuple(fragments)
        log.debug(
            "compiled glob '%s': prefix=%r, %d fragment(s)",
            pattern, prefix, len(self._fragments),
        )

    @property
    def pattern(self) -> str:
        return self._pattern

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def fragments(self) -> tuple[GlobFragment, ...]:
        return self._fragments

    def match(self, filename: str) -> bool:
        """Return True if *filename* matches the whole pattern."""
        if not self._fragments:
            # the prefix is always /-terminated, even when it names a file
            return clean(filename).rstrip(SEPARATOR) == clean(self._prefix).rstrip(SEPARATOR)
        if not filename.startswith(self._prefix):
            return False
        return _match_fragments(filename[len(self._prefix):], self._fragments)

    def prefix_match(self, filename: str) -> bool:
        """Return True if *filename* could be a leading part of a matching path.

        Scans use it on directories to skip subtrees that cannot contain a
        match.
        """
        if filename == clean_fragment(self._prefix):
            return True
        if not filename.startswith(self._prefix):
            # directories above the prefix lead to it, so ancestors match too
            return self._prefix.startswith(join(filename, ""))
        return _prefix_match_fragments(filename[len(self._prefix):], self._fragments)

    # -- filesystem scanning --

    def glob(self, *, follow_symlinks: bool = True, fs: FileSystem | None = None) -> list[str]:
        return self.glob_from("", follow_symlinks=follow_symlinks, fs=fs)

    def glob_from(
        self,
        basepath: str,
        *,
        follow_symlinks: bool = True,
        fs: FileSystem | None = None,
    ) -> list[str]:
        """Return the matching paths below *basepath*, in walk order.

        Entries reported with an error are left out.
        """
        matches: list[str] = []

        def collect(path: str, entry: StatResult | None, error: OSError | None) -> VisitResult:
            if error is None:
                matches.append(path)
            return WalkAction.CONTINUE

        self.scan_from(basepath, collect, follow_symlinks=follow_symlinks, fs=fs)
        return matches

    def scan(
        self, visitor: Visitor, *, follow_symlinks: bool = True, fs: FileSystem | None = None
    ) -> None:
        self.scan_from("", visitor, follow_symlinks=follow_symlinks, fs=fs)

    def scan_from(
        self,
        basepath: str,
        visitor: Visitor,
        *,
        follow_symlinks: bool = True,
        fs: FileSystem | None = None,
    ) -> None:
        """Walk the tree below *basepath* and call *visitor* for every match.

        Reported paths are relative to *basepath*, unless the pattern is
        absolute. Directories that cannot lead to a match are not entered,
        and neither are directories that fully match.
        """
        if not self._fragments:
            self._scan_exact(basepath, visitor, fs or _default_fs)
            return

        def filter_matches(
            path: str, entry: StatResult | None, error: OSError | None
        ) -> VisitResult:
            is_dir = entry is not None and entry["is_dir"]
            if is_dir and not self.prefix_match(path):
                return WalkAction.SKIP_SUBTREE
            if not self.match(path):
                return WalkAction.CONTINUE
            result = visitor(path, entry, error)
            if is_dir and (result is None or result is WalkAction.CONTINUE):
                return WalkAction.SKIP_SUBTREE
            return result

        walker = walk if follow_symlinks else walk_dir
        walker(basepath, self._prefix, filter_matches, fs=fs)

    def _scan_exact(self, basepath: str, visitor: Visitor, fs: FileSystem) -> None:
        if not self._prefix:
            # the scan root itself is never reported
            return
        try:
            info = fs.stat(join(basepath, self._prefix))
        except FileNotFoundError:
            return
        except OSError as err:
            _dispatch(visitor, clean_fragment(self._prefix), None, err)
            return
        path = self._prefix if info["is_dir"] else self._prefix.rstrip(SEPARATOR)
        _dispatch(visitor, path, info, None)

    def __repr__(self) -> str:
        return f"{type(self).__qualname__}(pattern={self._pattern!r})"


# ---------------------------------------------------------------------------
#  Module-level shortcuts
# ---------------------------------------------------------------------------


def glob(pattern: str, *, follow_symlinks: bool = True, fs: FileSystem | None = None) -> list[str]:
    """Return the paths matching *pattern*, relative to the working directory."""
    return GlobMatcher(pattern).glob(follow_symlinks=follow_symlinks, fs=fs)


def glob_from(
    basepath: str, pattern: str, *, follow_symlinks: bool = True, fs: FileSystem | None = None
) -> list[str]:
    """Return the paths below *basepath* matching *pattern*.

    An absolute pattern ignores *basepath* and yields absolute paths.
    """
    return GlobMatcher(pattern).glob_from(basepath, follow_symlinks=follow_symlinks, fs=fs)


def scan(
    pattern: str, visitor: Visitor, *, follow_symlinks: bool = True, fs: FileSystem | None = None
) -> None:
    GlobMatcher(pattern).scan(visitor, follow_symlinks=follow_symlinks, fs=fs)


def scan_from(
    basepath: str,
    pattern: str,
    visitor: Visitor,
    *,
    follow_symlinks: bool = True,
    fs: FileSystem | None = None,
) -> None:
    GlobMatcher(pattern).scan_from(basepath, visitor, follow_symlinks=follow_symlinks, fs=fs)
