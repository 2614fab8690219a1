"""asyncssh client callbacks republished as emitter events."""

import logging
from typing import Any, Optional

import asyncssh

from .events import Emitter

logger = logging.getLogger(__name__)


class Transport(asyncssh.SSHClient):
    """
    SSH client protocol that reports its lifecycle on an Emitter.

    Events:
        ready: authentication finished, the connection can open channels
        error(exc): the connection was lost because of `exc`
        end: the connection is gone, cleanly or not
        close(had_error): final notification, after `end`

    A detached transport stays silent, so a connection abandoned by a failed
    attempt or an explicit close cannot disturb the session that follows it.
    """

    def __init__(self, events: Emitter) -> None:
        self.events: Optional[Emitter] = events
        self.connection: Optional[asyncssh.SSHClientConnection] = None

    def detach(self) -> None:
        self.events = None

    def emit(self, event: str, *args: Any) -> bool:
        if self.events is None:
            return False
        return self.events.emit(event, *args)

    def connection_made(self, conn: asyncssh.SSHClientConnection) -> None:
        self.connection = conn
        logger.debug("SSH transport connected")

    def auth_completed(self) -> None:
        logger.debug("SSH authentication completed")
        self.emit("ready")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        if exc is not None:
            logger.debug("SSH transport lost: %s", exc)
            self.emit("error", exc)
        self.emit("end")
        self.emit("close", exc is not None)
        self.connection = None
