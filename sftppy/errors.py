"""Error taxonomy and the normalizer that turns raw transport failures into it."""

import asyncio
import socket
from typing import Optional, Union

import asyncssh


class SftpError(Exception):
    """Base class for every error raised by SftpPy.

    Attributes:
        operation: Name of the call that failed, e.g. ``sftp.list``
        attempts: Number of connection attempts made, when retry was involved
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        attempts: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.attempts = attempts


class ConnectError(SftpError, ConnectionError):
    """The transport could not be established or was lost."""


class OperationError(SftpError):
    """The server rejected a remote call."""


class NotFoundError(OperationError, FileNotFoundError):
    """The remote (or local) path does not exist."""


class ValidationError(SftpError, ValueError):
    """The caller passed something unusable; nothing was sent to the server."""


class NoConnectionError(SftpError, RuntimeError):
    """An operation was attempted without a live session."""


def normalize(
    error: Union[BaseException, str],
    name: str = "sftppy",
    attempts: Optional[int] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
) -> SftpError:
    """Classify a raw failure and give it a message that says where it came from.

    Errors that are already an SftpError are returned untouched so a failure
    deep inside a tree walk keeps the name of the call that actually failed.

    Args:
        error: Exception raised by asyncssh, the OS, or a plain message
        name: Operation name used as the message prefix
        attempts: Connection attempts made before giving up, if any
        host: Remote host, used for lookup and refusal messages
        port: Remote port, used for refusal messages

    Returns:
        SftpError: The classified error, ready to be raised
    """
    if isinstance(error, SftpError):
        return error

    kind = OperationError

    if isinstance(error, str):
        message = f"{name}: {error}"
    elif isinstance(error, socket.gaierror):
        kind = ConnectError
        message = f"{name}: Address lookup failed for host {host or 'unknown'}"
    elif isinstance(error, ConnectionRefusedError):
        kind = ConnectError
        address = f"{host}:{port}" if port else (host or "unknown")
        message = f"{name}: Remote host at {address} refused connection"
    elif isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        kind = ConnectError
        message = f"{name}: Timed out connecting to {host or 'remote host'}"
    elif isinstance(error, (asyncssh.SFTPNoSuchFile, FileNotFoundError)):
        kind = NotFoundError
        message = f"{name}: {_reason(error)}"
    elif isinstance(error, asyncssh.SFTPError):
        message = f"{name}: {_reason(error)}"
    elif isinstance(error, (asyncssh.Error, ConnectionError)):
        kind = ConnectError
        message = f"{name}: {_reason(error)}"
    else:
        message = f"{name}: {_reason(error)}"

    if attempts:
        message += f" after {attempts} attempts"

    return kind(message, operation=name, attempts=attempts)


def _reason(error: BaseException) -> str:
    # asyncssh errors carry the server text in `reason`
    reason = getattr(error, "reason", None)
    if reason:
        return str(reason)
    if isinstance(error, OSError) and error.strerror:
        return f"{error.strerror}: {error.filename}" if error.filename else error.strerror
    return str(error) or type(error).__name__
