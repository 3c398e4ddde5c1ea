"""Status channel: a single-slot, best-effort broadcast of job events.

At most one observer is attached at a time. Attaching a new observer
replaces the current one; sending with no observer attached does nothing.
Sends are handed to one background sender thread, so events keep their
order and a slow or failing observer never blocks or raises into the job
that produced the event. Sends are never retried.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Optional, Protocol

from rich.console import Console
from rich.markup import escape

from .logging_config import get_logger
from .models import StatusEvent

logger = get_logger("channel")


class Observer(Protocol):
    """Anything that can receive serialized events, e.g. a socket connection."""

    def send(self, message: str) -> None:
        ...


class StatusChannel:
    """Holds the current observer and forwards events to it."""

    def __init__(self):
        self._lock = threading.Lock()
        self._observer: Optional[Observer] = None
        self._sender = ThreadPoolExecutor(max_workers=1, thread_name_prefix="status-channel")
        self._last_send: Optional[Future] = None
        self._closed = False

    @property
    def observer(self) -> Optional[Observer]:
        with self._lock:
            return self._observer

    @property
    def attached(self) -> bool:
        return self.observer is not None

    def attach(self, observer: Observer) -> None:
        """Make observer the current one, superseding any previous observer."""
        with self._lock:
            replaced = self._observer
            self._observer = observer
        if replaced is not None and replaced is not observer:
            logger.debug("Observer %r replaced by %r", replaced, observer)

    def detach(self, observer: Optional[Observer] = None) -> None:
        """Remove the current observer.

        Args:
            observer: If given, only detach when it is still the current
                observer, so a stale disconnect cannot remove its successor
        """
        with self._lock:
            if observer is None or self._observer is observer:
                self._observer = None

    def send(self, event: StatusEvent) -> bool:
        """Queue an event for the current observer, if any.

        The event goes to the observer that is current now, even if another
        one is attached before it is delivered.

        Returns:
            True if the event was queued, False if there was no observer or
            the channel is closed
        """
        message = event.to_json()
        with self._lock:
            observer = self._observer
            if observer is None or self._closed:
                return False
            self._last_send = self._sender.submit(self._deliver, observer, event.job_id, message)
        return True

    def flush(self, timeout: Optional[float] = None) -> None:
        """Wait until every event queued so far has been delivered or dropped."""
        with self._lock:
            last_send = self._last_send
        if last_send is not None:
            wait([last_send], timeout=timeout)

    def close(self) -> None:
        """Deliver queued events, then stop the sender thread.

        Events sent after closing are dropped.
        """
        with self._lock:
            self._closed = True
        self._sender.shutdown(wait=True)

    def _deliver(self, observer: Observer, job_id: str, message: str) -> bool:
        try:
            observer.send(message)
        except Exception as e:
            logger.warning("Status send error for job %s: %s", job_id, e)
            return False
        return True


class NullChannel(StatusChannel):
    """Channel used when no realtime transport is configured."""

    def attach(self, observer: Observer) -> None:
        logger.debug("Ignoring observer %r: status channel disabled", observer)

    def send(self, event: StatusEvent) -> bool:
        return False


class ConsoleObserver:
    """Prints serialized events to a Rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    def send(self, message: str) -> None:
        self.console.print(f"[dim]event[/dim] {escape(message)}", highlight=False)
