"""Tests for ToolRegistry."""

import pytest

from poolbox.exceptions import ToolNotFoundError
from poolbox.runtime.registry import NoArgs, ToolRegistry, ToolSpec, build_default_registry


@pytest.fixture
def registry():
    return build_default_registry()


class TestToolRegistry:

    def test_default_tools(self, registry):
        assert registry.names() == [
            "ls", "read", "write", "edit", "undo", "grep", "glob", "bash", "apply_patch",
            "todoread", "todowrite", "code_init",
            "explain_skill", "search_skills", "refresh_skills", "list_skills",
        ]

    def test_only_bash_is_gated(self, registry):
        assert [name for name in registry.names() if registry.get(name).gated] == ["bash"]

    def test_unknown_tool(self, registry):
        with pytest.raises(ToolNotFoundError, match="Unknown tool: nope"):
            registry.get("nope")

    def test_duplicate_registration(self):
        spec = ToolSpec("x", "X", NoArgs, lambda box, a: "x")

        with pytest.raises(ValueError, match="already registered"):
            ToolRegistry([spec, spec])

    def test_custom_tool(self, box):
        registry = ToolRegistry([ToolSpec("whoami", "Box id", NoArgs, lambda b, a: b.session_id)])

        assert registry.invoke(box, "whoami", {}).content == "test"

    def test_validate(self, registry):
        args = registry.validate("ls", {"path": "src"})

        assert (args.path, args.recursive, args.show_hidden) == ("src", False, False)

    @pytest.mark.parametrize("args", [{}, {"path": "a", "start_line": 0}, {"path": "a", "extra": True}])
    def test_invalid_arguments_become_errors(self, registry, box, args):
        response = registry.invoke(box, "read", args)

        assert not response.ok
        assert response.meta["error_type"] == "ValidationError"


class TestInvoke:
    """Every built-in tool through the registry."""

    def test_file_tools(self, registry, box, box_root):
        assert registry.invoke(box, "write", {"path": "a.txt", "content": "x = 1\n"}).ok
        assert registry.invoke(box, "edit", {"path": "a.txt", "old_str": "1", "new_str": "2"}).ok
        assert registry.invoke(box, "grep", {"query": "x = 2"}).content == "a.txt:1: x = 2"
        assert registry.invoke(box, "glob", {"pattern": "*.txt"}).content == "[FILE] a.txt"
        assert registry.invoke(box, "undo", {"path": "a.txt"}).ok
        assert (box_root / "a.txt").read_text() == "x = 1\n"

    def test_errors_are_responses(self, registry, box):
        response = registry.invoke(box, "edit", {"path": "missing.txt", "old_str": "a", "new_str": "b"})

        assert response.type == "error"
        assert response.meta["error_type"] == "PathNotFoundError"
        assert response.path == "missing.txt"

    def test_discovery_tools(self, registry, box, pool_root):
        box.register_pool("@shared", pool_root)

        assert "@shared/video" in registry.invoke(box, "list_skills", {}).content
        assert "Use ffmpeg." in registry.invoke(box, "explain_skill", {"path": "@shared/video"}).content
        assert "@shared/pdf" in registry.invoke(box, "search_skills", {"query": "pdf"}).content
        assert registry.invoke(box, "refresh_skills", {}).content == "Capability library refreshed: 2 available."

    def test_visible_tools_without_pools(self, registry, box):
        assert "refresh_skills" not in [s.name for s in registry.visible_tools(box)]

    def test_bash_runs_through_provider(self, registry, box, provider):
        response = registry.invoke(box, "bash", {"command": "echo hi"})

        assert response.content == "ok\n[exit code: 0]"
        assert provider.calls[0]["command"] == "echo hi"

    def test_project_note_tools(self, registry, box, box_root):
        assert registry.invoke(box, "todowrite", {"todos": "- [/] step one (in_progress)"}).ok
        assert registry.invoke(box, "todoread", {}).content == "# TODO\n\n- [/] step one (in_progress)\n"
        assert registry.invoke(box, "code_init", {}).content.startswith("Initialized CLAUDE.md")
        assert (box_root / "CLAUDE.md").is_file()
