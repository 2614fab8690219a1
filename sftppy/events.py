"""Listener bookkeeping for transport events and one-shot completions."""

import asyncio
import inspect
import warnings
from typing import Any, Callable, Dict, List, Optional, Tuple

Handler = Callable[..., Any]


class Emitter:
    """
    Registry of named event listeners for one client.

    Listeners may be plain callables or coroutine functions; coroutines are
    scheduled as tasks on the running loop. A listener that raises never
    stops the remaining listeners from running, it only produces a warning.
    """

    def __init__(self) -> None:
        self.listeners: Dict[str, List[Handler]] = {}

    def on(self, event: str, handler: Handler) -> "Emitter":
        """Register `handler` for `event`."""
        self.listeners.setdefault(event, []).append(handler)
        return self

    def off(self, event: str, handler: Handler) -> "Emitter":
        """Remove one registration of `handler` for `event`, if present."""
        handlers = self.listeners.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)
            if not handlers:
                del self.listeners[event]
        return self

    def clear(self, event: Optional[str] = None) -> None:
        """Remove every listener, or every listener of one event."""
        if event is None:
            self.listeners.clear()
        else:
            self.listeners.pop(event, None)

    def count(self, event: str) -> int:
        return len(self.listeners.get(event, ()))

    def names(self) -> List[str]:
        return list(self.listeners)

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener of `event` with `args`.

        Returns:
            bool: True if at least one listener was registered
        """
        handlers = list(self.listeners.get(event, ()))
        for handler in handlers:
            try:
                result = handler(*args)
            except Exception as error:
                warnings.warn(f"Listener for '{event}' failed: {error}")
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                task.add_done_callback(lambda done, name=event: _reap(name, done))
        return bool(handlers)


def _reap(event: str, task: "asyncio.Future[Any]") -> None:
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        warnings.warn(f"Listener for '{event}' failed: {error}")


class Listeners:
    """A group of registrations on one emitter, released together exactly once."""

    def __init__(self, emitter: Emitter) -> None:
        self.emitter = emitter
        self.handlers: List[Tuple[str, Handler]] = []

    def on(self, event: str, handler: Handler) -> "Listeners":
        self.emitter.on(event, handler)
        self.handlers.append((event, handler))
        return self

    def release(self) -> None:
        while self.handlers:
            event, handler = self.handlers.pop()
            self.emitter.off(event, handler)


class Completion:
    """
    One-shot result slot for a transport primitive.

    Starts pending and settles on the first call to `resolve` or `reject`;
    later calls are ignored. Settling releases the attached listeners, so a
    primitive that also watches transport events never leaves them behind.

    Awaiting the completion returns the value or raises the error.
    """

    def __init__(self, listeners: Listeners) -> None:
        self.future: "asyncio.Future[Any]" = asyncio.get_running_loop().create_future()
        self.listeners = listeners

    @property
    def settled(self) -> bool:
        return self.future.done()

    def resolve(self, value: Any) -> bool:
        if self.settled:
            return False
        self.future.set_result(value)
        self.listeners.release()
        return True

    def reject(self, error: BaseException) -> bool:
        if self.settled:
            return False
        self.future.set_exception(error)
        self.listeners.release()
        return True

    def __await__(self):
        return self.future.__await__()
