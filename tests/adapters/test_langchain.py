"""Unit tests for LangChain adapter.

These tests verify that the LangChain tools route through the
ToolDispatcher and return JSON-encoded ToolResponse objects.
"""

import json
from unittest.mock import Mock

import pytest

# Skip all tests if langchain-core is not installed
pytest.importorskip("langchain_core")

from poolbox.adapters.langchain import BoxTool, build_langchain_tools
from poolbox.approval.gate import CommandGate
from poolbox.models import ToolResponse
from poolbox.runtime.dispatcher import ToolDispatcher
from poolbox.runtime.registry import build_default_registry


@pytest.fixture
def dispatcher(manager):
    return ToolDispatcher(manager, gate=CommandGate())


class TestBoxTool:
    """Tests for BoxTool."""

    def test_tool_properties(self):
        spec = build_default_registry().get("read")
        tool = BoxTool(Mock(), spec, session_id="s1")

        assert tool.name == "read"
        assert tool.description == spec.description
        assert tool.args_schema is spec.args_schema
        assert tool.session_id == "s1"

    def test_run_forwards_to_dispatcher(self):
        dispatcher = Mock()
        dispatcher.call.return_value = ToolResponse(ok=True, type="result", tool="read", content="x")
        tool = BoxTool(dispatcher, build_default_registry().get("read"), session_id="s1")

        result = json.loads(tool._run(path="a.txt", start_line=None, end_line=None))

        dispatcher.call.assert_called_once_with("s1", "read", {"path": "a.txt"})
        assert result["content"] == "x"

    def test_invoke_reads_file(self, dispatcher, box_root):
        (box_root / "a.txt").write_text("hello\n")
        tool = BoxTool(dispatcher, dispatcher.registry.get("read"))

        response = json.loads(tool.invoke({"path": "a.txt"}))

        assert response["ok"] is True
        assert response["type"] == "result"
        assert "hello" in response["content"]

    def test_error_is_returned_not_raised(self, dispatcher):
        tool = BoxTool(dispatcher, dispatcher.registry.get("read"))

        response = json.loads(tool.invoke({"path": "../outside.txt"}))

        assert response["ok"] is False
        assert response["meta"]["error_type"] == "PathEscapeError"

    def test_flagged_command_needs_approval(self, dispatcher, provider):
        tool = BoxTool(dispatcher, dispatcher.registry.get("bash"), session_id="s1")

        response = json.loads(tool.invoke({"command": "git push"}))

        assert response["type"] == "approval_required"
        assert provider.calls == []
        assert dispatcher.pending("s1") is not None


class TestBuildLangchainTools:
    """Tests for build_langchain_tools."""

    def test_without_pools(self, dispatcher):
        names = [t.name for t in build_langchain_tools(dispatcher, "s1")]

        assert names == [
            "ls", "read", "write", "edit", "undo", "grep", "glob", "bash", "apply_patch",
            "todoread", "todowrite", "code_init",
        ]

    def test_discovery_tools_follow_tier(self, dispatcher, pool_root):
        dispatcher.manager.get_box("s1").register_pool("@shared", pool_root)

        names = [t.name for t in build_langchain_tools(dispatcher, "s1")]

        assert "refresh_skills" in names
        assert "explain_skill" not in names
        assert "search_skills" not in names
        assert "list_skills" not in names

    def test_tools_are_bound_to_session(self, dispatcher):
        tools = build_langchain_tools(dispatcher, "s7")

        assert all(t.session_id == "s7" for t in tools)
        assert all(isinstance(t, BoxTool) for t in tools)
