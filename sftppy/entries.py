"""Immutable snapshots of remote directory entries and file attributes."""

import stat
from dataclasses import dataclass
from typing import Optional

import asyncssh


@dataclass(frozen=True)
class Rights:
    """Permission triad with the `-` placeholders removed, e.g. "rw", "r", ""."""

    user: str
    group: str
    other: str


@dataclass(frozen=True)
class Entry:
    """
    One row of a remote directory listing.

    Attributes:
        type: Single character as in `ls -l`: "d" directory, "-" file, "l" link, ...
        name: Entry name without its directory
        size: Size in bytes
        modify_time: Modification time in epoch milliseconds
        access_time: Access time in epoch milliseconds
        rights: User, group and other permissions
        owner: Numeric user id
        group: Numeric group id
    """

    type: str
    name: str
    size: int
    modify_time: int
    access_time: int
    rights: Rights
    owner: Optional[int]
    group: Optional[int]

    @classmethod
    def from_name(cls, name: asyncssh.SFTPName) -> "Entry":
        """Build an entry from an asyncssh readdir result."""
        attrs = name.attrs
        mode = _mode_string(name)
        return cls(
            type=mode[0],
            name=_text(name.filename),
            size=attrs.size or 0,
            modify_time=_millis(attrs.mtime),
            access_time=_millis(attrs.atime),
            rights=Rights(
                user=mode[1:4].replace("-", ""),
                group=mode[4:7].replace("-", ""),
                other=mode[7:10].replace("-", ""),
            ),
            owner=attrs.uid,
            group=attrs.gid,
        )


@dataclass(frozen=True)
class Stat:
    """File attributes returned by `SftpClient.stat`.

    Times are epoch milliseconds; the `is_*` flags classify the file type.
    """

    mode: int
    uid: Optional[int]
    gid: Optional[int]
    size: int
    access_time: int
    modify_time: int
    is_directory: bool
    is_file: bool
    is_block_device: bool
    is_character_device: bool
    is_symbolic_link: bool
    is_fifo: bool
    is_socket: bool

    @classmethod
    def from_attrs(cls, attrs: asyncssh.SFTPAttrs) -> "Stat":
        mode = attrs.permissions or 0
        return cls(
            mode=mode,
            uid=attrs.uid,
            gid=attrs.gid,
            size=attrs.size or 0,
            access_time=_millis(attrs.atime),
            modify_time=_millis(attrs.mtime),
            is_directory=stat.S_ISDIR(mode),
            is_file=stat.S_ISREG(mode),
            is_block_device=stat.S_ISBLK(mode),
            is_character_device=stat.S_ISCHR(mode),
            is_symbolic_link=stat.S_ISLNK(mode),
            is_fifo=stat.S_ISFIFO(mode),
            is_socket=stat.S_ISSOCK(mode),
        )


def kind(attrs: asyncssh.SFTPAttrs) -> str:
    """Type character ("d", "-", "l", ...) of a file described by `attrs`."""
    return stat.filemode(attrs.permissions or 0)[0]


def _mode_string(name: asyncssh.SFTPName) -> str:
    # SFTPv3 servers send an `ls -l` style longname; newer protocol
    # versions leave it empty, so fall back to the permission bits.
    longname = _text(name.longname)
    if len(longname) >= 10:
        return longname[:10]
    return stat.filemode(name.attrs.permissions or 0)


def _text(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value or ""


def _millis(seconds) -> int:
    return int((seconds or 0) * 1000)
