import enum
from dataclasses import dataclass
from typing import Optional

import asyncssh


class State(enum.Enum):
    ABSENT = "absent"
    ESTABLISHING = "establishing"
    READY = "ready"
    CLOSED = "closed"


@dataclass
class Session:
    """
    The one SFTP session a client owns.

    Only the connection manager moves a session between states; operations
    just read `sftp` once `ready` is true.

    Attributes:
        state: Where the session is in its lifecycle
        connection: Underlying SSH connection while one exists
        sftp: SFTP sub-channel, set only in the READY state
    """

    state: State = State.ABSENT
    connection: Optional[asyncssh.SSHClientConnection] = None
    sftp: Optional[asyncssh.SFTPClient] = None

    @property
    def ready(self) -> bool:
        return self.state is State.READY and self.sftp is not None

    def establish(self) -> None:
        self.state = State.ESTABLISHING
        self.connection = None
        self.sftp = None

    def open(
        self, connection: asyncssh.SSHClientConnection, sftp: asyncssh.SFTPClient
    ) -> None:
        self.state = State.READY
        self.connection = connection
        self.sftp = sftp

    def clear(self) -> None:
        """Forget the session after the transport went away or a connect failed."""
        self.state = State.ABSENT
        self.connection = None
        self.sftp = None

    def close(self) -> None:
        self.state = State.CLOSED
        self.connection = None
        self.sftp = None
