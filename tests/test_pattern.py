"""Tests for listing patterns."""

import re

import pytest

from sftppy import Glob, Regex, ValidationError
from sftppy.pattern import matcher

NAMES = [
    "dir1",
    "dir2",
    "empty",
    "file1.html",
    "file2.md",
    "test-file1.txt",
    "test-file2.txt.gz",
]


def select(pattern):
    selected = matcher(pattern)
    return [name for name in NAMES if selected(name)]


def test_none_matches_everything():
    assert select(None) == NAMES


def test_star_matches_everything():
    assert select("*") == NAMES


@pytest.mark.parametrize(
    "glob, regex",
    [
        ("dir*", r"dir.*"),
        ("*txt", r".*txt"),
        ("*", r".*"),
    ],
)
def test_glob_and_regex_agree(glob, regex):
    assert select(glob) == select(re.compile(regex))


def test_glob_is_not_anchored():
    assert select("*txt") == ["test-file1.txt", "test-file2.txt.gz"]
    assert select("file") == ["file1.html", "file2.md", "test-file1.txt", "test-file2.txt.gz"]


def test_consecutive_stars_collapse():
    assert Glob("a**b").compile().pattern == "a.*b"


def test_tagged_values_are_accepted():
    assert select(Regex(re.compile(r"^dir"))) == ["dir1", "dir2"]
    assert select(Glob("dir*")) == ["dir1", "dir2"]


def test_wrong_type_is_rejected():
    with pytest.raises(ValidationError, match="Pattern must be"):
        matcher(42)


def test_broken_pattern_is_rejected():
    with pytest.raises(ValidationError, match="Invalid pattern"):
        matcher("[unclosed")
