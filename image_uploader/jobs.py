"""Job records correlating a caller's file id with its status events.

A Job has exactly one terminal outcome (result or error) and zero or more
progress events before it. Every event is delivered twice, independently:
to the shared StatusChannel and to the job's own event stream, and the
terminal outcome also goes to the caller's callback.
"""

import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Iterator, Optional

from .channel import StatusChannel
from .errors import UploaderError
from .logging_config import get_logger
from .models import StatusEvent

logger = get_logger("jobs")

SuccessCallback = Callable[[Any], None]
ErrorCallback = Callable[[str], None]


class Job:
    """One resize, upload or delete request.

    Attributes:
        job_id: Caller-supplied correlation id
        future: Resolves to the success value or raises the job's error
    """

    def __init__(
        self,
        job_id: str,
        channel: StatusChannel,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.job_id = job_id
        self.channel = channel
        self.future: Future = Future()
        self._on_success = on_success
        self._on_error = on_error
        self._events: queue.Queue[StatusEvent] = queue.Queue()
        self._lock = threading.Lock()
        self._finished = False
        self._progress_amount = -1

    def __repr__(self) -> str:
        return f"Job({self.job_id!r}, done={self.done})"

    @property
    def done(self) -> bool:
        return self._finished

    def progress(self, amount: int, total: int) -> None:
        """Publish a progress event.

        Ignored once the job has finished, and when amount is behind the
        last published amount.
        """
        with self._lock:
            if self._finished or amount < self._progress_amount:
                return
            self._progress_amount = amount
            event = StatusEvent.progress(self.job_id, amount, total)
            self._events.put(event)
            self.channel.send(event)

    def succeed(self, value: Any, **payload: Any) -> None:
        """Finish the job successfully.

        Args:
            value: Value the future resolves to and the success callback gets
            payload: Fields of the result event
        """
        event = StatusEvent.result(self.job_id, **payload)
        if not self._finish(event):
            return
        self.channel.send(event)
        self.future.set_result(value)
        self._call(self._on_success, value)

    def fail(self, error: UploaderError) -> None:
        """Finish the job with an error.

        Only error.message is published; any diagnostic detail stays local.
        """
        event = StatusEvent.error(self.job_id, error.message)
        if not self._finish(event):
            return
        self.channel.send(event)
        self.future.set_exception(error)
        self._call(self._on_error, error.message)

    def result(self, timeout: Optional[float] = None) -> Any:
        """Block until the job finishes.

        Returns:
            The success value

        Raises:
            UploaderError: The job's error
        """
        return self.future.result(timeout)

    def events(self, timeout: Optional[float] = None) -> Iterator[StatusEvent]:
        """Yield this job's events in order, ending with the terminal one.

        Args:
            timeout: Seconds to wait for each next event

        Raises:
            queue.Empty: If no event arrives within timeout
        """
        while True:
            event = self._events.get(timeout=timeout)
            yield event
            if event.is_terminal:
                return

    def _finish(self, event: StatusEvent) -> bool:
        with self._lock:
            if self._finished:
                logger.warning("Job %s already finished; dropping %s", self.job_id, event.kind.value)
                return False
            self._finished = True
            self._events.put(event)
        return True

    def _call(self, callback: Optional[Callable[[Any], None]], arg: Any) -> None:
        if callback is None:
            return
        try:
            callback(arg)
        except Exception:
            logger.exception("Callback for job %s raised", self.job_id)
