import asyncio
import inspect
import logging
import os
import warnings
from pathlib import PurePosixPath
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

import asyncssh

from .config import Retry
from .entries import Entry, Stat, kind
from .errors import (
    ConnectError,
    NoConnectionError,
    NotFoundError,
    OperationError,
    SftpError,
    ValidationError,
    normalize,
)
from .events import Completion, Emitter, Handler, Listeners
from .pattern import PatternType, matcher
from .session import Session, State
from .transport import Transport

logger = logging.getLogger(__name__)

T = TypeVar("T")
Primitive = Callable[[asyncssh.SFTPClient], Awaitable[T]]
LocalPath = Union[str, "os.PathLike[str]"]
Source = Union[bytes, bytearray, memoryview, LocalPath, Any]

# Chunk size used when copying between local streams and remote files
CHUNK = 32768

# Handshake failures that no amount of retrying will fix
FATAL = (asyncssh.PermissionDenied, asyncssh.HostKeyNotVerifiable)

# Handshake failures worth another attempt
TRANSIENT = (OSError, asyncssh.Error, asyncio.TimeoutError)


class SftpClient:
    """
    Async SFTP client that keeps exactly one session to one server.

    Every remote operation is a coroutine that either returns its result or
    raises an SftpError. Connecting retries with exponential backoff;
    everything after that is issued once. Directory trees are created and
    removed one remote call at a time so the session never has more than a
    single command outstanding for a tree walk.

    Example:
        >>> async with SftpClient(host="example.com", username="me", password="...") as sftp:
        ...     await sftp.mkdir("/upload/2024/01", recursive=True)
        ...     await sftp.put(b"hello", "/upload/2024/01/hello.txt")
    """

    def __init__(
        self,
        retry: Optional[Retry] = None,
        hooks: Optional[Dict[str, Handler]] = None,
        **config: Any,
    ) -> None:
        """Set up the client without connecting.

        Args:
            retry: Backoff policy used by connect() when no retry options are given
            hooks: Listeners to register for transport events (ready, error, end, close)
            **config: Default connection options for connect(): host, port, credentials
                and any other asyncssh.create_connection option
        """
        self.config: Dict[str, Any] = config
        self.retry: Retry = retry or Retry()
        self.hooks: Dict[str, Handler] = hooks or {}

        # Session state management
        self.events = Emitter()
        self.session = Session()
        self.transport: Optional[Transport] = None
        self.listeners: Optional[Listeners] = None

    async def __aenter__(self) -> "SftpClient":
        await self.connect()
        return self

    async def __aexit__(self, type, value, trace) -> None:
        await self.end()

    def on(self, event: str, handler: Handler) -> "SftpClient":
        """Listen for a transport event: ready, error, end or close.

        It is up to the caller to remove listeners it no longer needs.
        Registering an `error` listener also stops unexpected transport
        errors from being reported to the event loop's exception handler.
        """
        self.events.on(event, handler)
        return self

    def remove_listener(self, event: str, handler: Handler) -> "SftpClient":
        self.events.off(event, handler)
        return self

    async def connect(self, **config: Any) -> asyncssh.SFTPClient:
        """Open the SSH transport and the SFTP sub-channel, retrying on failure.

        Keyword arguments override the options given to the constructor. The
        retry options are consumed here; everything else goes to
        asyncssh.create_connection unchanged.

        Args:
            host: Remote host name or address
            port: Remote SSH port (22 when omitted)
            retries: Retries after the first attempt (default 2)
            retry_factor: Backoff multiplier (default 2)
            retry_min_timeout: Delay before the first retry, in milliseconds (default 2000)
            **config: Credentials and other asyncssh connection options

        Returns:
            asyncssh.SFTPClient: The live SFTP handle

        Raises:
            ConnectError: If the server cannot be reached, rejects the login,
                or every attempt failed; the message says how many attempts were made
        """
        name = "sftp.connect"
        if self.session.ready:
            raise ConnectError(
                f"{name}: An existing SFTP connection is already defined",
                operation=name,
            )

        options = {**self.config, **config}
        retry = Retry(
            retries=_pick(options.pop("retries", None), self.retry.retries),
            factor=_pick(options.pop("retry_factor", None), self.retry.factor),
            minimum=_pick(options.pop("retry_min_timeout", None), self.retry.minimum),
        )
        host = options.get("host")
        port = options.get("port") or 22

        # Hooks survive end(), which drops every other listener
        for event, hook in self.hooks.items():
            if hook not in self.events.listeners.get(event, ()):
                self.events.on(event, hook)

        self.session.establish()
        attempt = 0

        while True:
            attempt += 1
            logger.info(
                "Connecting to %s:%s (attempt %d of %d)",
                host,
                port,
                attempt,
                retry.attempts,
            )

            transport = Transport(self.events)
            handshake = Listeners(self.events).on("ready", self._authenticated)
            handshake.on("error", self._interrupted)

            try:
                connection, sftp = await self._establish(transport, options)
            except FATAL as error:
                handshake.release()
                transport.detach()
                self.session.clear()
                raise _unreachable(error, name, host=host, port=port) from error
            except TRANSIENT as error:
                handshake.release()
                transport.detach()

                if not retry.should_retry(attempt):
                    self.session.clear()
                    raise _unreachable(error, name, attempt, host, port) from error

                delay = retry.delay_for(attempt)
                logger.warning(
                    "Connection attempt %d to %s failed: %s; retrying in %.1fs",
                    attempt,
                    host,
                    error,
                    delay,
                )
                await asyncio.sleep(delay)
                continue
            except Exception as error:
                handshake.release()
                transport.detach()
                self.session.clear()
                raise _unreachable(error, name, host=host, port=port) from error

            handshake.release()
            break

        # Replace the listeners of any previous session with durable ones
        if self.listeners:
            self.listeners.release()
        self.listeners = (
            Listeners(self.events)
            .on("end", self._ended)
            .on("error", self._fault)
            .on("close", self._closed)
        )

        self.transport = transport
        self.session.open(connection, sftp)
        logger.info("SFTP session to %s:%s is ready", host, port)
        return sftp

    async def _establish(
        self, transport: Transport, options: Dict[str, Any]
    ) -> Tuple[asyncssh.SSHClientConnection, asyncssh.SFTPClient]:
        connection, _ = await asyncssh.create_connection(lambda: transport, **options)
        try:
            sftp = await connection.start_sftp_client()
        except BaseException:
            connection.close()
            raise
        return connection, sftp

    def _authenticated(self) -> None:
        logger.debug("Transport ready, requesting SFTP sub-channel")

    def _interrupted(self, error: Exception) -> None:
        # The same failure reaches connect() through create_connection
        logger.debug("Transport error during handshake: %s", error)

    def _ended(self) -> None:
        if self.session.state is State.READY:
            logger.info("SFTP session ended by the remote side")
        self.session.clear()

    def _fault(self, error: Exception) -> None:
        """Surface a transport error that happened outside any operation."""
        fault = _unreachable(error, "sftp.client")
        if self.events.count("error") > 1:
            return  # somebody else is listening
        asyncio.get_running_loop().call_exception_handler(
            {"message": str(fault), "exception": fault}
        )

    def _closed(self, failed: bool) -> None:
        if failed:
            logger.error("SFTP client closed due to errors")

    async def end(self) -> bool:
        """Close the session and drop every listener.

        Safe to call more than once and after the remote side already hung up.

        Returns:
            bool: Always True

        Raises:
            ConnectError: If closing the transport itself fails
        """
        connection = self.session.connection

        self.events.clear()
        self.listeners = None
        if self.transport:
            self.transport.detach()
            self.transport = None
        self.session.close()

        if connection is not None:
            try:
                connection.close()
                await connection.wait_closed()
            except (OSError, asyncssh.Error) as error:
                raise _unreachable(error, "sftp.end") from error

        logger.info("SFTP session closed")
        return True

    def _require(self, name: str) -> asyncssh.SFTPClient:
        if not self.session.ready:
            raise NoConnectionError(
                f"{name}: No SFTP connection available", operation=name
            )
        return self.session.sftp

    async def _call(self, name: str, primitive: Primitive) -> T:
        """Run a single-round-trip primitive against the live session."""
        sftp = self._require(name)
        logger.debug("Issuing %s", name)
        try:
            return await primitive(sftp)
        except SftpError:
            raise
        except Exception as error:
            raise normalize(error, name) from error

    async def _transfer(self, name: str, primitive: Primitive) -> T:
        """Run a streaming primitive that must also fail if the transport goes away.

        The transfer and the transport's `error`/`end` events race to settle
        one Completion. Whichever comes first wins, and the event listeners
        are released exactly once either way.
        """
        sftp = self._require(name)
        completion = Completion(Listeners(self.events))

        def interrupted(error: Optional[BaseException] = None) -> None:
            if error is None:
                error = ConnectError(
                    f"{name}: Connection ended before the transfer completed",
                    operation=name,
                )
            completion.reject(_classify(error, name))

        def finished(task: "asyncio.Future[T]") -> None:
            if task.cancelled():
                completion.reject(
                    ConnectError(f"{name}: Transfer was cancelled", operation=name)
                )
                return
            error = task.exception()
            if error is None:
                completion.resolve(task.result())
            else:
                completion.reject(_classify(error, name))

        completion.listeners.on("error", interrupted).on("end", interrupted)
        logger.debug("Starting %s", name)

        try:
            task = asyncio.ensure_future(primitive(sftp))
        except Exception as error:
            completion.reject(_classify(error, name))
        else:
            task.add_done_callback(finished)

        try:
            return await completion
        finally:
            completion.listeners.release()

    async def list(self, path: str, pattern: PatternType = None) -> List[Entry]:
        """Get the entries of a remote directory.

        Args:
            path: Remote directory to list
            pattern: Compiled regex, or a glob string where `*` matches any run
                of characters. Both match anywhere in the name. None selects all.

        Returns:
            List[Entry]: Entries in the order the server sent them, without `.` and `..`

        Raises:
            NotFoundError: If the directory does not exist
            ValidationError: If the pattern is unusable
        """
        selected = matcher(pattern)
        names = await self._call("sftp.list", lambda sftp: sftp.readdir(path))
        entries = [
            Entry.from_name(name)
            for name in names
            if name.filename not in (".", "..", b".", b"..")
        ]
        return [entry for entry in entries if selected(entry.name)]

    async def aux_list(self, path: str, pattern: PatternType = "*") -> List[Entry]:
        """Deprecated alias of list()."""
        warnings.warn(
            "aux_list is deprecated and will be removed. Please use list() instead",
            DeprecationWarning,
            stacklevel=2,
        )
        return await self.list(path, pattern)

    async def exists(self, path: str) -> Union[str, bool]:
        """Check whether a remote path exists.

        Args:
            path: Remote path to check

        Returns:
            The type character of the path ("d", "-", "l", ...), or False if it does not exist

        Raises:
            OperationError: If the server fails for any reason other than "not found"
        """
        self._require("sftp.exists")
        target = PurePosixPath(path)
        if str(target) in (".", "/"):
            return "d"

        try:
            attrs = await self._call("sftp.exists", lambda sftp: sftp.lstat(str(target)))
        except NotFoundError:
            return False
        return kind(attrs)

    async def stat(self, path: str) -> Stat:
        attrs = await self._call("sftp.stat", lambda sftp: sftp.stat(path))
        return Stat.from_attrs(attrs)

    async def get(
        self,
        path: str,
        destination: Union[None, LocalPath, Any] = None,
        **options: Any,
    ) -> Any:
        """Download a remote file.

        Args:
            path: Remote file to read
            destination: None to get the content back as bytes, a local path to
                write it to, or any object with a (sync or async) `write` method
            **options: Extra arguments for asyncssh.SFTPClient.open

        Returns:
            The content as bytes, the local path, or the sink itself

        Raises:
            ValidationError: If `destination` is of an unsupported kind
        """
        name = "sftp.get"
        local = isinstance(destination, (str, os.PathLike))
        if not (destination is None or local or _writable(destination)):
            raise ValidationError(
                f"{name}: Destination must be a path or a writable object",
                operation=name,
            )

        async def download(sftp: asyncssh.SFTPClient) -> Any:
            async with sftp.open(path, "rb", **options) as source:
                if destination is None:
                    return await source.read()
                if local:
                    with open(destination, "wb") as sink:
                        await _pump(source, sink)
                else:
                    await _pump(source, destination)
            return destination

        return await self._transfer(name, download)

    async def fast_get(self, remote: str, local: LocalPath, **options: Any) -> str:
        """Download with asyncssh's parallel block reads.

        Args:
            remote: Remote file to read
            local: Local path to write
            **options: block_size, max_requests, progress_handler and other
                asyncssh.SFTPClient.get options
        """
        await self._transfer(
            "sftp.fast_get", lambda sftp: sftp.get(remote, local, **options)
        )
        return f"{remote} was successfully downloaded to {local}!"

    async def fast_put(self, local: LocalPath, remote: str, **options: Any) -> str:
        """Upload with asyncssh's parallel block writes."""
        await self._transfer(
            "sftp.fast_put", lambda sftp: sftp.put(local, remote, **options)
        )
        return f"{local} was successfully uploaded to {remote}!"

    async def put(self, source: Source, path: str, **options: Any) -> str:
        """Create or overwrite a remote file.

        Args:
            source: Bytes, a local file path, or any object with a (sync or async) `read`
            path: Remote file to write
            **options: Extra arguments for asyncssh.SFTPClient.open

        Returns:
            str: Confirmation message
        """
        upload = _upload("sftp.put", source, path, "wb", options)
        await self._transfer("sftp.put", upload)
        return f"Uploaded data stream to {path}"

    async def append(self, source: Source, path: str, **options: Any) -> str:
        """Append to a remote file.

        Same as put(), except that a local path is refused: appending one whole
        file to another is not what this call is for.

        Raises:
            ValidationError: If `source` is a local path
        """
        name = "sftp.append"
        if isinstance(source, (str, os.PathLike)):
            raise ValidationError(
                f"{name}: Cannot append one file to another", operation=name
            )
        upload = _upload(name, source, path, "ab", options)
        await self._transfer(name, upload)
        return f"Appended data stream to {path}"

    async def delete(self, path: str) -> str:
        await self._call("sftp.delete", lambda sftp: sftp.remove(path))
        return "Successfully deleted file"

    async def rename(self, source: str, target: str) -> str:
        await self._call("sftp.rename", lambda sftp: sftp.rename(source, target))
        return f"Successfully renamed {source} to {target}"

    async def chmod(self, path: str, mode: int) -> str:
        await self._call("sftp.chmod", lambda sftp: sftp.chmod(path, mode))
        return "Successfully changed file mode"

    async def mkdir(self, path: str, recursive: bool = False) -> str:
        """Create a remote directory.

        With recursive=True every missing ancestor is created first, one at a
        time from the top down, and a directory that already exists is not
        an error.

        Args:
            path: Remote directory to create
            recursive: Create missing parent directories as well

        Returns:
            str: Confirmation message

        Raises:
            ValidationError: If an ancestor exists but is not a directory
            OperationError: If the server refuses to create a directory
        """
        name = "sftp.mkdir"
        self._require(name)
        target = PurePosixPath(path)

        if recursive:
            parent = target.parent
            found = await self.exists(str(parent))
            if not found:
                await self.mkdir(str(parent), True)
            elif found != "d":
                raise ValidationError(
                    f"{name}: Bad directory path {parent}", operation=name
                )

        try:
            await self._call(name, lambda sftp: sftp.mkdir(str(target)))
        except OperationError:
            if not recursive or await self.exists(str(target)) != "d":
                raise
            logger.debug("Directory %s already exists", target)
            return f"{target} directory already exists"

        return f"{target} directory created"

    async def rmdir(self, path: str, recursive: bool = False) -> str:
        """Remove a remote directory.

        With recursive=True the whole tree below it goes first: files of a
        directory before its subdirectories, children before parents. The
        first failure stops the walk and is raised as is.

        Args:
            path: Remote directory to remove
            recursive: Remove everything inside it as well

        Returns:
            str: Confirmation message
        """
        name = "sftp.rmdir"
        self._require(name)

        if recursive:
            await self._prune(PurePosixPath(path), await self.list(path))

        await self._call(name, lambda sftp: sftp.rmdir(path))
        return "Successfully removed directory"

    async def _prune(self, directory: PurePosixPath, entries: List[Entry]) -> None:
        for entry in entries:
            if entry.type != "d":
                await self.delete(str(directory / entry.name))
        for entry in entries:
            if entry.type == "d":
                await self.rmdir(str(directory / entry.name), True)


def _pick(value: Any, default: Any) -> Any:
    return default if value is None else value


def _unreachable(
    error: BaseException,
    name: str,
    attempts: Optional[int] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> SftpError:
    # Anything going wrong with the transport itself is a connection failure
    failure = normalize(error, name, attempts, host, port)
    if isinstance(failure, ConnectError) or failure is error:
        return failure
    return ConnectError(str(failure), operation=name, attempts=attempts)


def _classify(error: BaseException, name: str) -> SftpError:
    failure = normalize(error, name)
    if failure is not error:
        failure.__cause__ = error
    return failure


def _writable(sink: Any) -> bool:
    return callable(getattr(sink, "write", None))


def _readable(source: Any) -> bool:
    return callable(getattr(source, "read", None))


def _upload(
    name: str, source: Source, path: str, mode: str, options: Dict[str, Any]
) -> Primitive:
    """Build the primitive that writes `source` to the remote `path`."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)

        async def upload(sftp: asyncssh.SFTPClient) -> None:
            async with sftp.open(path, mode, **options) as target:
                await target.write(data)

    elif isinstance(source, (str, os.PathLike)):

        async def upload(sftp: asyncssh.SFTPClient) -> None:
            # Local file first, so a missing one leaves the remote untouched
            with open(source, "rb") as local:
                async with sftp.open(path, mode, **options) as target:
                    await _pump(local, target)

    elif _readable(source):

        async def upload(sftp: asyncssh.SFTPClient) -> None:
            async with sftp.open(path, mode, **options) as target:
                await _pump(source, target)

    else:
        raise ValidationError(
            f"{name}: Source must be bytes, a path or a readable object",
            operation=name,
        )

    return upload


async def _pump(source: Any, sink: Any, size: int = CHUNK) -> int:
    """Copy `source` into `sink` chunk by chunk; either side may be sync or async."""
    total = 0
    while True:
        chunk = source.read(size)
        if inspect.isawaitable(chunk):
            chunk = await chunk
        if not chunk:
            break
        written = sink.write(chunk)
        if inspect.isawaitable(written):
            await written
        total += len(chunk)
    return total
