"""Shared fixtures: an in-memory SFTP server and a client already connected to it."""

import posixpath
import stat
from typing import Dict, List, Tuple
from unittest.mock import MagicMock

import asyncssh
import pytest

from sftppy import SftpClient

EPOCH = 1700000000


def _clean(path) -> str:
    return posixpath.normpath(posixpath.join("/", str(path)))


class FakeFile:
    """Remote file handle supporting `async with` and async read/write."""

    def __init__(self, server: "FakeSftp", path: str, mode: str) -> None:
        self.server = server
        self.path = path
        self.mode = mode
        self.offset = 0

    async def __aenter__(self) -> "FakeFile":
        server = self.server
        if "r" in self.mode:
            if self.path not in server.files:
                raise asyncssh.SFTPNoSuchFile("No such file")
        else:
            if posixpath.dirname(self.path) not in server.dirs:
                raise asyncssh.SFTPNoSuchFile("No such file")
            if self.path in server.dirs:
                raise asyncssh.SFTPFailure("Is a directory")
            if "w" in self.mode or self.path not in server.files:
                server.files[self.path] = bytearray()
        return self

    async def __aexit__(self, *args) -> None:
        return None

    async def read(self, size: int = -1) -> bytes:
        data = self.server.files[self.path]
        if size is None or size < 0:
            chunk = bytes(data[self.offset:])
        else:
            chunk = bytes(data[self.offset:self.offset + size])
        self.offset += len(chunk)
        return chunk

    async def write(self, data: bytes) -> int:
        self.server.files[self.path].extend(data)
        return len(data)


class FakeSftp:
    """
    Just enough of asyncssh.SFTPClient, backed by dictionaries.

    Paths are resolved against "/". Every call is recorded in `calls`
    as (method, path) so tests can check ordering.
    """

    def __init__(self) -> None:
        self.dirs: Dict[str, int] = {"/": 0o755}
        self.files: Dict[str, bytearray] = {}
        self.modes: Dict[str, int] = {}
        self.calls: List[Tuple[str, str]] = []

    # helpers for arranging fixtures

    def add_dir(self, path) -> None:
        path = _clean(path)
        parent = posixpath.dirname(path)
        if parent not in self.dirs:
            self.add_dir(parent)
        self.dirs.setdefault(path, 0o755)

    def add_file(self, path, data: bytes = b"", mode: int = 0o644) -> None:
        path = _clean(path)
        self.add_dir(posixpath.dirname(path))
        self.files[path] = bytearray(data)
        self.modes[path] = mode

    def attrs(self, path: str) -> asyncssh.SFTPAttrs:
        if path in self.dirs:
            permissions = stat.S_IFDIR | self.dirs[path]
            size = 4096
        else:
            permissions = stat.S_IFREG | self.modes.get(path, 0o644)
            size = len(self.files[path])
        return asyncssh.SFTPAttrs(
            permissions=permissions,
            size=size,
            uid=1000,
            gid=1000,
            atime=EPOCH,
            mtime=EPOCH,
        )

    def name(self, path: str, filename: str) -> asyncssh.SFTPName:
        attrs = self.attrs(path)
        longname = (
            f"{stat.filemode(attrs.permissions)} 1 user group "
            f"{attrs.size} Nov 14 22:13 {filename}"
        )
        return asyncssh.SFTPName(filename=filename, longname=longname, attrs=attrs)

    def children(self, path: str) -> List[str]:
        names = [p for p in self.dirs if p != "/" and posixpath.dirname(p) == path]
        names += [p for p in self.files if posixpath.dirname(p) == path]
        return names

    def _exists(self, path: str) -> bool:
        return path in self.dirs or path in self.files

    # asyncssh.SFTPClient surface

    async def readdir(self, path="."):
        path = _clean(path)
        self.calls.append(("readdir", path))
        if path not in self.dirs:
            raise asyncssh.SFTPNoSuchFile("No such file")
        names = [self.name(path, "."), self.name(posixpath.dirname(path), "..")]
        names += [self.name(child, posixpath.basename(child)) for child in self.children(path)]
        return names

    async def stat(self, path):
        path = _clean(path)
        self.calls.append(("stat", path))
        if not self._exists(path):
            raise asyncssh.SFTPNoSuchFile("No such file")
        return self.attrs(path)

    async def lstat(self, path):
        path = _clean(path)
        self.calls.append(("lstat", path))
        if not self._exists(path):
            raise asyncssh.SFTPNoSuchFile("No such file")
        return self.attrs(path)

    async def mkdir(self, path, attrs=None):
        path = _clean(path)
        self.calls.append(("mkdir", path))
        if self._exists(path):
            raise asyncssh.SFTPFailure("Failure")
        if posixpath.dirname(path) not in self.dirs:
            raise asyncssh.SFTPNoSuchFile("No such file")
        self.dirs[path] = 0o755

    async def rmdir(self, path):
        path = _clean(path)
        self.calls.append(("rmdir", path))
        if path not in self.dirs:
            raise asyncssh.SFTPNoSuchFile("No such file")
        if self.children(path):
            raise asyncssh.SFTPFailure("Failure")
        del self.dirs[path]

    async def remove(self, path):
        path = _clean(path)
        self.calls.append(("remove", path))
        if path in self.dirs:
            raise asyncssh.SFTPFailure("Failure")
        if path not in self.files:
            raise asyncssh.SFTPNoSuchFile("No such file")
        del self.files[path]
        self.modes.pop(path, None)

    async def rename(self, oldpath, newpath):
        oldpath, newpath = _clean(oldpath), _clean(newpath)
        self.calls.append(("rename", oldpath))
        if oldpath not in self.files:
            raise asyncssh.SFTPNoSuchFile("No such file")
        if self._exists(newpath):
            raise asyncssh.SFTPFailure("Failure")
        self.files[newpath] = self.files.pop(oldpath)

    async def chmod(self, path, mode):
        path = _clean(path)
        self.calls.append(("chmod", path))
        if path in self.files:
            self.modes[path] = mode
        elif path in self.dirs:
            self.dirs[path] = mode
        else:
            raise asyncssh.SFTPNoSuchFile("No such file")

    def open(self, path, mode="r", **options):
        path = _clean(path)
        self.calls.append(("open", path))
        return FakeFile(self, path, mode)

    async def get(self, remotepaths, localpath=None, **options):
        path = _clean(remotepaths)
        self.calls.append(("get", path))
        if path not in self.files:
            raise asyncssh.SFTPNoSuchFile("No such file")
        with open(localpath, "wb") as local:
            local.write(bytes(self.files[path]))

    async def put(self, localpaths, remotepath=None, **options):
        path = _clean(remotepath)
        self.calls.append(("put", path))
        with open(localpaths, "rb") as local:
            self.add_file(path, local.read())


@pytest.fixture
def server() -> FakeSftp:
    return FakeSftp()


@pytest.fixture
def client(server: FakeSftp) -> SftpClient:
    """A client whose session is already READY against the fake server."""
    client = SftpClient(host="sftp.example.com", username="user", password="secret-pass")
    client.session.open(MagicMock(), server)
    return client


@pytest.fixture
def listing(server: FakeSftp) -> FakeSftp:
    """The directory layout used by the listing tests."""
    server.add_dir("/mocha-list/dir1")
    server.add_dir("/mocha-list/dir2")
    server.add_dir("/mocha-list/empty")
    server.add_file("/mocha-list/file1.html", b"hello world")
    server.add_file("/mocha-list/file2.md", b"# heading 1")
    server.add_file("/mocha-list/test-file1.txt", b"x" * 6973)
    server.add_file("/mocha-list/test-file2.txt.gz", b"z" * 5703)
    return server
