"""Interactive turn driver: streaming, keypress cancellation, approval pauses.

The driver runs one agent turn on a worker thread and polls, every
``poll_interval`` seconds, for two signals:

- the user pressed the cancellation key: the stream is disposed and an
  interruption notice is recorded in the session history
- the session's ApprovalStation entered PENDING: the wait ends without
  cancelling anything, the turn is suspended rather than aborted

Neither signal is waited on indefinitely. Tool side effects committed before
a cancellation are not rolled back.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as wait_futures
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from poolbox.models import PendingApproval, ToolResponse
from poolbox.runtime.dispatcher import ToolDispatcher

logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = "[Task interrupted by user]"

# (session_id, prompt) -> chunks; prompt is None when continuing a suspended turn
StreamFactory = Callable[[str, Optional[str]], Iterable[Any]]


class TurnOutcome(Enum):
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    PENDING_APPROVAL = "pending_approval"
    FAILED = "failed"


class CancellableTask:
    """A future paired with a cancellation flag.

    The wrapped function receives the flag (a threading.Event) and is expected
    to check it between units of work.

    Example:
        >>> task = CancellableTask(lambda cancel: consume(stream, cancel), executor)
        >>> task.cancel()
        >>> task.wait(1.0)
    """

    def __init__(self, fn: Callable[[threading.Event], Any], executor: ThreadPoolExecutor):
        self._cancel = threading.Event()
        self._future: Future = executor.submit(fn, self._cancel)

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        """Ask the task to stop; a task that has not started yet never runs."""
        self._cancel.set()
        self._future.cancel()

    def done(self) -> bool:
        return self._future.done()

    def wait(self, timeout: float | None = None) -> bool:
        """Wait up to timeout seconds; True if the task has finished."""
        finished, _ = wait_futures([self._future], timeout=timeout)
        return bool(finished)

    def exception(self) -> BaseException | None:
        """The error the task raised, if it finished with one."""
        if not self._future.done() or self._future.cancelled():
            return None
        return self._future.exception()


class InteractiveDriver:
    """Drives agent turns for an interactive frontend.

    Args:
        dispatcher: Dispatcher whose boxes hold the approval stations
        stream_factory: Opens the agent's output stream for a turn
        key_pressed: Returns True when the user asked to cancel
        on_chunk: Receives each streamed chunk
        history: session id -> recorded messages
        poll_interval: Seconds between signal checks
        on_resume: Receives the response of a resumed tool call

    Example:
        >>> driver = InteractiveDriver(dispatcher, agent.stream, keyboard.enter_pressed)
        >>> driver.perform("cli", "refactor utils.py", decide=ask_user)
        <TurnOutcome.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        dispatcher: ToolDispatcher,
        stream_factory: StreamFactory,
        key_pressed: Callable[[], bool],
        on_chunk: Callable[[Any], None] | None = None,
        history: dict[str, list[str]] | None = None,
        poll_interval: float = 0.03,
        on_resume: Callable[[str, ToolResponse], None] | None = None,
    ):
        self.dispatcher = dispatcher
        self.stream_factory = stream_factory
        self.key_pressed = key_pressed
        self.on_chunk = on_chunk or (lambda chunk: None)
        self.history = history if history is not None else {}
        self.poll_interval = poll_interval
        self.on_resume = on_resume
        self.last_error: BaseException | None = None
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="poolbox-turn")

    def run_turn(self, session_id: str, prompt: str | None) -> TurnOutcome:
        """Stream one turn until it finishes, is cancelled or needs approval."""
        station = self.dispatcher.manager.get_box(session_id).station
        if prompt is not None:
            self.history.setdefault(session_id, []).append(prompt)

        task = CancellableTask(lambda cancel: self._consume(session_id, prompt, cancel), self._executor)
        while not task.wait(self.poll_interval):
            if self.key_pressed():
                task.cancel()
                self.history.setdefault(session_id, []).append(INTERRUPTED_MESSAGE)
                logger.info("Session %s: turn interrupted by user", session_id)
                return TurnOutcome.CANCELLED
            if station.is_pending():
                logger.debug("Session %s: turn suspended for approval", session_id)
                return TurnOutcome.PENDING_APPROVAL

        if station.is_pending():
            return TurnOutcome.PENDING_APPROVAL
        error = task.exception()
        if error is not None:
            self.last_error = error
            logger.error("Session %s: turn failed: %s", session_id, error)
            return TurnOutcome.FAILED
        return TurnOutcome.COMPLETED

    def perform(
        self,
        session_id: str,
        prompt: str,
        decide: Callable[[PendingApproval], bool],
    ) -> TurnOutcome:
        """Run a turn to the end, asking ``decide`` whenever approval is needed.

        After each decision the parked call is resumed through the dispatcher
        and the turn continues with input None.
        """
        current: str | None = prompt
        while True:
            outcome = self.run_turn(session_id, current)
            if outcome is not TurnOutcome.PENDING_APPROVAL:
                return outcome

            station = self.dispatcher.manager.get_box(session_id).station
            approval = station.pending
            if decide(approval):
                station.approve()
            else:
                station.reject()
            response = self.dispatcher.resume(session_id)
            if self.on_resume is not None:
                self.on_resume(session_id, response)
            current = None

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _consume(self, session_id: str, prompt: str | None, cancel: threading.Event) -> None:
        stream = self.stream_factory(session_id, prompt)
        try:
            for chunk in stream:
                if cancel.is_set():
                    break
                self.on_chunk(chunk)
        finally:
            close = getattr(stream, "close", None)
            if close is not None:
                close()
