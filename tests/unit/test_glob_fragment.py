import re

import pytest

from fsglob._exceptions import GlobPatternError
from fsglob._glob import (
    GlobFragment,
    clean_fragment,
    glob_fragment_to_regexp,
    is_glob_fragment,
    is_subdirectory_glob,
    split_first,
)


# ---------------------------------------------------------------------------
#  GlobFragment.match
# ---------------------------------------------------------------------------


def test_literal_fragment_match():
    f = GlobFragment(literal="src")
    assert f.match("src")
    assert f.match("src/")
    assert not f.match("not-src")
    assert not f.match("not-src/")


def test_regex_fragment_match():
    f = GlobFragment(regex=re.compile(".*src.*"))
    assert f.match("src")
    assert f.match("src/")
    assert f.match("not-src")
    assert f.match("not-src/")
    assert not f.match("dst")
    assert not f.match("dst/")


def test_regex_fragment_match_is_case_sensitive():
    f = GlobFragment(regex=glob_fragment_to_regexp("*.cpp"))
    assert f.match("main.cpp")
    assert not f.match("MAIN.CPP")


def test_dotfiles_are_not_special():
    f = GlobFragment(regex=glob_fragment_to_regexp("*"))
    assert f.match(".hidden")


# ---------------------------------------------------------------------------
#  GlobFragment.match_start / prefix_match_start
# ---------------------------------------------------------------------------


def test_match_start():
    f = GlobFragment(literal="src")
    assert f.match_start("src/aaa/bbb") == ["aaa/bbb"]
    assert f.match_start("aaa/src/bbb") == []


def test_match_start_of_last_segment_leaves_empty_remainder():
    f = GlobFragment(literal="src")
    assert f.match_start("src") == [""]
    assert f.match_start("src/") == [""]


def test_match_start_on_empty_path():
    assert GlobFragment(literal="src").match_start("") == []
    assert GlobFragment(literal="src", subdir=True).match_start("") == []


def test_subdir_match_start():
    f = GlobFragment(literal="src", subdir=True)
    assert f.match_start("src/aaa/bbb") == ["aaa/bbb"]
    assert f.match_start("aaa/src/bbb") == ["bbb"]
    assert f.match_start("aaa/src/bbb/src/ccc/ddd") == ["bbb/src/ccc/ddd", "ccc/ddd"]


def test_prefix_match_start():
    f = GlobFragment(literal="src")
    assert f.prefix_match_start("src/aaa/bbb") == ["aaa/bbb"]
    assert f.prefix_match_start("aaa/src/bbb") == []


def test_subdir_prefix_match_start():
    f = GlobFragment(literal="src", subdir=True)
    assert f.prefix_match_start("src/aaa/bbb") == ["", "aaa/bbb"]
    assert f.prefix_match_start("aaa/src/bbb") == ["", "bbb"]
    assert f.prefix_match_start("aaa/src/bbb/src/ccc/ddd") == ["", "bbb/src/ccc/ddd", "ccc/ddd"]


# ---------------------------------------------------------------------------
#  Parsing helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "path, head, tail",
    [
        ("aaa/bbb/ccc", "aaa/", "bbb/ccc"),
        ("/aaa/bbb/ccc", "/", "aaa/bbb/ccc"),
        ("aaa", "aaa", ""),
        ("", "", ""),
    ],
)
def test_split_first(path, head, tail):
    assert split_first(path) == (head, tail)


@pytest.mark.parametrize(
    "fragment, expected",
    [
        ("/", "/"),
        ("aaa/bbb/", "aaa/bbb"),
        ("aaa/bbb", "aaa/bbb"),
        ("/aaa/bbb/", "/aaa/bbb"),
        ("/aaa/bbb", "/aaa/bbb"),
    ],
)
def test_clean_fragment(fragment, expected):
    assert clean_fragment(fragment) == expected


def test_is_subdirectory_glob():
    assert is_subdirectory_glob("**")
    assert is_subdirectory_glob("**/")
    assert not is_subdirectory_glob("*")
    assert not is_subdirectory_glob("a**")


def test_is_glob_fragment():
    for fragment in ("*.c", "?", "[ab]", "{a,b}"):
        assert is_glob_fragment(fragment)
    assert not is_glob_fragment("src/")


# ---------------------------------------------------------------------------
#  glob_fragment_to_regexp
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "glob, expected",
    [
        ("aaa.cpp", r"^aaa\.cpp$"),
        ("*.cpp", r"^.*\.cpp$"),
        ("[a-z]*.cpp", r"^[a-z].*\.cpp$"),
        ("{a,b}", r"^(?:(?:a)|(?:b))$"),
        (r"\{a,b}", r"^\{a,b}$"),
        ("*_test.{c,cc,cpp}", r"^.*_test\.(?:(?:c)|(?:cc)|(?:cpp))$"),
        (r"\a\b\c\{\.", r"^abc\{\.$"),
        ("{,*_}main.cpp", r"^(?:(?:)|(?:.*_))main\.cpp$"),
        ("file?.txt", r"^file.\.txt$"),
        ("{a,{b,c}}", r"^(?:(?:a)|(?:(?:(?:b)|(?:c))))$"),
    ],
)
def test_glob_fragment_to_regexp(glob, expected):
    assert glob_fragment_to_regexp(glob).pattern == expected


def test_glob_fragment_to_regexp_alternative_with_empty_branch():
    regex = glob_fragment_to_regexp("{,*_}main.cpp")
    assert regex.fullmatch("main.cpp")
    assert regex.fullmatch("unit_main.cpp")
    assert not regex.fullmatch("unitmain.cpp")


def test_glob_fragment_to_regexp_unterminated_alternative_raises():
    with pytest.raises(GlobPatternError, match=r"\*\.\{a,b") as excinfo:
        glob_fragment_to_regexp("*.{a,b")
    assert isinstance(excinfo.value, ValueError)
    assert isinstance(excinfo.value.__cause__, re.error)
    assert excinfo.value.pattern == "*.{a,b"
