"""Unit tests for tool response helper functions."""

import pytest
from pydantic import BaseModel, ConfigDict, ValidationError

from poolbox.adapters.tool_response import (
    build_approval_response,
    build_error_response,
    build_rejected_response,
    build_text_response,
    safe_tool_call,
)
from poolbox.exceptions import AmbiguousMatchError, PatchMismatchError, PathEscapeError
from poolbox.models import ApprovalState, PendingApproval, ToolResponse


class StrictArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")
    path: str


def approval(**kwargs) -> PendingApproval:
    return PendingApproval(
        session_id="s1",
        tool_name="bash",
        args={"command": "git push"},
        reason="Package manager or environment-modifying operation detected.",
        **kwargs,
    )


class TestBuildTextResponse:

    def test_result(self):
        response = build_text_response("read", "content", path="a.txt")

        assert response == ToolResponse(ok=True, type="result", tool="read", content="content", path="a.txt")

    def test_round_trip(self):
        response = build_text_response("ls", "[FILE] a.txt", meta={"count": 1})

        assert ToolResponse.from_dict(response.to_dict()) == response


class TestBuildErrorResponse:

    def test_poolbox_error(self):
        response = build_error_response("read", PathEscapeError("path escape: ../x"), path="../x")

        assert not response.ok
        assert response.type == "error"
        assert response.content == "PathEscapeError: path escape: ../x"
        assert response.path == "../x"
        assert response.meta == {"error_type": "PathEscapeError"}

    def test_error_details(self):
        response = build_error_response("edit", AmbiguousMatchError("old_str appears 2 times", 2))

        assert response.meta["error_details"] == {"occurrences": 2}

    def test_mismatch_details(self):
        response = build_error_response("apply_patch", PatchMismatchError("SEARCH block mismatch", "b.txt", 1))

        assert response.content == "PatchMismatchError: SEARCH block mismatch in b.txt (chunk 1)"
        assert response.meta["error_details"] == {"path": "b.txt", "chunk": 1}

    def test_os_error_uses_strerror(self):
        response = build_error_response("write", PermissionError(13, "Permission denied", "/x"))

        assert response.content == "PermissionError: Permission denied"

    def test_validation_error(self):
        with pytest.raises(ValidationError) as exc_info:
            StrictArgs.model_validate({"bogus": 1})

        response = build_error_response("read", exc_info.value)

        assert response.content.startswith("ValidationError: ")
        assert "path: Field required" in response.content
        assert "bogus: Extra inputs are not permitted" in response.content

    def test_traceback(self):
        try:
            raise PathEscapeError("nope")
        except PathEscapeError as e:
            response = build_error_response("read", e, include_traceback=True)

        assert "Traceback" in response.meta["traceback"]


class TestApprovalResponses:

    def test_approval_required(self):
        response = build_approval_response(approval())

        assert (response.ok, response.type, response.tool) == (False, "approval_required", "bash")
        assert response.content.startswith("Approval required: Package manager")
        assert response.meta["approval"]["decision"] == "pending"

    def test_rejected_with_note(self):
        response = build_rejected_response(approval(decision=ApprovalState.REJECTED, note="not now"))

        assert response.type == "rejected"
        assert response.content == (
            "The user rejected this command; choose a different approach. Reason: not now"
        )

    def test_rejected_without_note(self):
        response = build_rejected_response(approval(decision=ApprovalState.REJECTED))

        assert response.content.endswith("different approach.")


class TestSafeToolCall:

    def test_success(self):
        response = safe_tool_call("ls", lambda: build_text_response("ls", "ok"))

        assert response.ok

    def test_tool_error_converted(self):
        def fail():
            raise PathEscapeError("nope")

        response = safe_tool_call("read", fail, path="../x")

        assert response.content == "PathEscapeError: nope"
        assert response.path == "../x"

    def test_bug_propagates(self):
        def fail():
            raise KeyError("bug")

        with pytest.raises(KeyError):
            safe_tool_call("read", fail)
