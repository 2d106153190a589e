"""Helper functions for building ToolResponse objects.

Every tool call ends in one of four response types:
- "result": the tool ran and produced text
- "error": the tool failed; content is "<ErrorType>: <message>"
- "approval_required": the call is parked until a human decides
- "rejected": a human declined the parked call
"""

import traceback
from typing import Any, Callable

from pydantic import ValidationError

from poolbox.exceptions import PoolboxError
from poolbox.models import PendingApproval, ToolResponse

# Exceptions converted into error responses at the tool boundary
TOOL_ERRORS = (PoolboxError, OSError, ValidationError)


def build_text_response(
    tool: str,
    content: str,
    path: str | None = None,
    meta: dict | None = None,
) -> ToolResponse:
    """Build a success response carrying tool output text.

    Args:
        tool: Tool name
        content: Output text
        path: Optional logical path the call acted on
        meta: Optional metadata dictionary

    Returns:
        ToolResponse with type="result"
    """
    return ToolResponse(
        ok=True,
        type="result",
        tool=tool,
        content=content,
        path=path,
        meta=meta or {},
    )


def build_error_response(
    tool: str,
    error: Exception,
    path: str | None = None,
    include_traceback: bool = False,
) -> ToolResponse:
    """Build an error response from an exception.

    Args:
        tool: Tool name
        error: The exception that occurred
        path: Optional path related to the error
        include_traceback: Whether to include full traceback in meta

    Returns:
        ToolResponse with ok=False and type="error"
    """
    error_type = type(error).__name__
    if isinstance(error, ValidationError):
        message = "; ".join(
            f"{'.'.join(str(p) for p in e['loc']) or 'args'}: {e['msg']}" for e in error.errors()
        )
    elif isinstance(error, OSError) and error.strerror:
        message = error.strerror
    else:
        message = str(error)

    meta: dict[str, Any] = {"error_type": error_type}

    details = {
        k: v for k, v in vars(error).items()
        if not k.startswith("_") and k not in ("args", "summary") and isinstance(v, (str, int, float, bool))
    } if hasattr(error, "__dict__") else {}
    if details:
        meta["error_details"] = details

    if include_traceback:
        meta["traceback"] = traceback.format_exc()

    return ToolResponse(
        ok=False,
        type="error",
        tool=tool,
        content=f"{error_type}: {message}",
        path=path,
        meta=meta,
    )


def build_approval_response(approval: PendingApproval) -> ToolResponse:
    """Build the response returned while a call waits for a human decision."""
    return ToolResponse(
        ok=False,
        type="approval_required",
        tool=approval.tool_name,
        content=f"Approval required: {approval.reason}",
        meta={"approval": approval.to_dict()},
    )


def build_rejected_response(approval: PendingApproval) -> ToolResponse:
    """Build the response returned to the agent when a human declines a call."""
    note = f" Reason: {approval.note}" if approval.note else ""
    return ToolResponse(
        ok=False,
        type="rejected",
        tool=approval.tool_name,
        content=f"The user rejected this command; choose a different approach.{note}",
        meta={"approval": approval.to_dict()},
    )


def safe_tool_call(
    tool: str,
    operation: Callable[[], ToolResponse],
    path: str | None = None,
    include_traceback: bool = False,
) -> ToolResponse:
    """Execute a tool operation and convert tool errors to error responses.

    Only poolbox errors, OS errors and argument validation errors are
    converted; anything else is a bug and propagates.

    Example:
        >>> response = safe_tool_call("read", lambda: build_text_response("read", box.surface.read("a.txt")))
    """
    try:
        return operation()
    except TOOL_ERRORS as e:
        return build_error_response(
            tool=tool,
            error=e,
            path=path,
            include_traceback=include_traceback,
        )
