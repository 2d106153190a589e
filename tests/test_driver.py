"""Tests for InteractiveDriver cancellation and approval pauses."""

import threading
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest

from poolbox.agent.driver import INTERRUPTED_MESSAGE, CancellableTask, InteractiveDriver, TurnOutcome
from poolbox.approval.gate import CommandGate
from poolbox.runtime.dispatcher import ToolDispatcher


@pytest.fixture
def dispatcher(manager):
    return ToolDispatcher(manager, gate=CommandGate())


@pytest.fixture
def release():
    """Unblocks streams that wait inside a turn."""
    event = threading.Event()
    yield event
    event.set()


def make_driver(dispatcher, stream_factory, key_pressed=lambda: False, **kwargs):
    return InteractiveDriver(dispatcher, stream_factory, key_pressed, poll_interval=0.01, **kwargs)


class TestRunTurn:

    def test_completes(self, dispatcher):
        chunks = []
        driver = make_driver(dispatcher, lambda session, prompt: iter(["a", "b"]), on_chunk=chunks.append)

        outcome = driver.run_turn("s1", "hello")

        assert outcome is TurnOutcome.COMPLETED
        assert chunks == ["a", "b"]
        assert driver.history == {"s1": ["hello"]}

    def test_keypress_cancels(self, dispatcher, release):
        chunks = []
        closed = threading.Event()

        def stream(session, prompt):
            try:
                yield "start"
                release.wait(5)
                yield "late"
            finally:
                closed.set()

        driver = make_driver(dispatcher, stream, Mock(side_effect=[False, True]), on_chunk=chunks.append)

        outcome = driver.run_turn("s1", "long task")
        release.set()

        assert outcome is TurnOutcome.CANCELLED
        assert driver.history["s1"] == ["long task", INTERRUPTED_MESSAGE]
        assert closed.wait(2)
        assert "late" not in chunks

    def test_suspends_on_pending_approval(self, dispatcher, release, provider):
        def stream(session, prompt):
            yield dispatcher.call(session, "bash", {"command": "git push"})
            release.wait(5)

        driver = make_driver(dispatcher, stream)

        outcome = driver.run_turn("s1", "deploy")

        assert outcome is TurnOutcome.PENDING_APPROVAL
        assert dispatcher.pending("s1").args == {"command": "git push"}
        assert provider.calls == []

    def test_pending_after_stream_ended(self, dispatcher):
        def stream(session, prompt):
            yield dispatcher.call(session, "bash", {"command": "git push"})

        driver = make_driver(dispatcher, stream)

        assert driver.run_turn("s1", "deploy") is TurnOutcome.PENDING_APPROVAL

    def test_failure_is_reported(self, dispatcher):
        def stream(session, prompt):
            yield "partial"
            raise RuntimeError("model unavailable")

        driver = make_driver(dispatcher, stream)

        assert driver.run_turn("s1", "hi") is TurnOutcome.FAILED
        assert str(driver.last_error) == "model unavailable"

    def test_continuation_is_not_recorded(self, dispatcher):
        driver = make_driver(dispatcher, lambda session, prompt: iter([]))

        driver.run_turn("s1", None)

        assert driver.history == {}


class TestPerform:

    def continuing_stream(self, dispatcher, prompts):
        def stream(session, prompt):
            prompts.append(prompt)
            if prompt is not None:
                yield dispatcher.call(session, "bash", {"command": "git push"})
            else:
                yield "continued"
        return stream

    def test_approved_call_runs_and_turn_continues(self, dispatcher, provider):
        prompts, resumed = [], []
        decide = Mock(return_value=True)
        driver = make_driver(
            dispatcher,
            self.continuing_stream(dispatcher, prompts),
            on_resume=lambda session, response: resumed.append(response),
        )

        outcome = driver.perform("s1", "deploy", decide)

        assert outcome is TurnOutcome.COMPLETED
        assert prompts == ["deploy", None]
        assert decide.call_args.args[0].args == {"command": "git push"}
        assert [c["command"] for c in provider.calls] == ["git push"]
        assert resumed[0].type == "result"
        assert dispatcher.pending("s1") is None

    def test_rejected_call_never_runs(self, dispatcher, provider):
        prompts, resumed = [], []
        driver = make_driver(
            dispatcher,
            self.continuing_stream(dispatcher, prompts),
            on_resume=lambda session, response: resumed.append(response),
        )

        outcome = driver.perform("s1", "deploy", lambda approval: False)

        assert outcome is TurnOutcome.COMPLETED
        assert prompts == ["deploy", None]
        assert resumed[0].type == "rejected"
        assert provider.calls == []

    def test_cancel_ends_perform(self, dispatcher, release):
        def stream(session, prompt):
            release.wait(5)
            yield "late"

        driver = make_driver(dispatcher, stream, lambda: True)

        assert driver.perform("s1", "x", Mock()) is TurnOutcome.CANCELLED


class TestCancellableTask:

    def test_cancel_sets_flag(self):
        with ThreadPoolExecutor(max_workers=1) as executor:
            task = CancellableTask(lambda cancel: cancel.wait(5), executor)

            task.cancel()

            assert task.wait(2)
            assert task.cancelled
            assert task.exception() is None

    def test_exception(self):
        def fail(cancel):
            raise ValueError("bad")

        with ThreadPoolExecutor(max_workers=1) as executor:
            task = CancellableTask(fail, executor)
            task.wait(2)

            assert isinstance(task.exception(), ValueError)
            assert task.done()
