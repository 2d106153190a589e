"""Adapters module for tool responses and framework integrations."""

from poolbox.adapters.tool_response import (
    build_approval_response,
    build_error_response,
    build_rejected_response,
    build_text_response,
    safe_tool_call,
)

__all__ = [
    "build_approval_response",
    "build_error_response",
    "build_rejected_response",
    "build_text_response",
    "safe_tool_call",
]
