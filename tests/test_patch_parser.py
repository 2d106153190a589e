"""Unit tests for PatchParser."""

import re

import pytest

from poolbox.exceptions import EmptyPatchError, PatchParseError
from poolbox.models import HunkKind
from poolbox.patch.parser import PatchParser


def parse(text: str):
    return PatchParser().parse(text)


class TestPatchParser:
    """Grammar of Add/Update/Delete sections."""

    def test_full_patch(self):
        hunks = parse(
            "*** Begin Patch\n"
            "*** Add File: notes/todo.txt\n"
            "+first\n"
            "+second\n"
            "*** Update File: src/app.py\n"
            "*** Move to: src/main.py\n"
            "<<<<<<< SEARCH\n"
            "print('a')\n"
            "=======\n"
            "print('b')\n"
            ">>>>>>> REPLACE\n"
            "*** Delete File: old.txt\n"
            "*** End Patch\n"
        )

        assert [(h.kind, h.path) for h in hunks] == [
            (HunkKind.ADD, "notes/todo.txt"),
            (HunkKind.UPDATE, "src/app.py"),
            (HunkKind.DELETE, "old.txt"),
        ]
        assert hunks[0].new_content == "first\nsecond\n"
        assert hunks[1].move_path == "src/main.py"
        assert hunks[1].chunks[0].search == "print('a')"
        assert hunks[1].chunks[0].replace == "print('b')"

    def test_add_keeps_bare_blank_lines(self):
        hunks = parse(
            "*** Add File: funcs.py\n"
            "+def f():\n"
            "+    return 1\n"
            "\n"
            "\n"
            "+def g():\n"
            "+    return 2\n"
        )

        assert hunks[0].new_content == "def f():\n    return 1\n\n\ndef g():\n    return 2\n"

    def test_add_drops_trailing_bare_blank_lines(self):
        hunks = parse("*** Add File: a.txt\n+x\n\n\n*** Delete File: b.txt\n")

        assert hunks[0].new_content == "x\n"

    def test_begin_end_optional(self):
        hunks = parse("*** Delete File: a.txt")

        assert hunks[0].kind is HunkKind.DELETE

    def test_multiline_chunks_keep_indentation(self):
        hunks = parse(
            "*** Update File: a.py\n"
            "<<<<<<< SEARCH\n"
            "def f():\n"
            "    return 1\n"
            "=======\n"
            "def f():\n"
            "    return 2\n"
            ">>>>>>> REPLACE\n"
            "@@ second block\n"
            "<<<<<<< SEARCH\n"
            "=======\n"
            "# appended\n"
            ">>>>>>> REPLACE\n"
        )

        chunks = hunks[0].chunks
        assert len(chunks) == 2
        assert chunks[0].search == "def f():\n    return 1"
        assert chunks[1].search == ""
        assert chunks[1].replace == "# appended"

    def test_crlf_markers(self):
        hunks = parse(
            "*** Update File: a.txt\r\n<<<<<<< SEARCH\r\nx\r\n=======\r\ny\r\n>>>>>>> REPLACE\r\n"
        )

        assert hunks[0].chunks[0].search == "x"

    def test_empty_add_file(self):
        assert parse("*** Add File: empty.txt\n")[0].new_content == ""

    def test_move_only_update(self):
        hunk = parse("*** Update File: a.txt\n*** Move to: b.txt\n")[0]

        assert hunk.move_path == "b.txt"
        assert hunk.chunks == []

    @pytest.mark.parametrize("text", ["", "   \n\n", None])
    def test_blank_patch(self, text):
        with pytest.raises(EmptyPatchError, match="patch text is required"):
            parse(text)

    def test_no_sections(self):
        with pytest.raises(EmptyPatchError, match="no hunks"):
            parse("*** Begin Patch\n*** End Patch\n")

    @pytest.mark.parametrize("text,message", [
        ("stray text\n*** Add File: a.txt\n+x\n", "line 1: content outside of a file section"),
        ("*** Add File: a.txt\nno plus\n", "line 2: Add File lines must start with '+'"),
        ("*** Delete File: a.txt\ncontent\n", "Delete File sections take no content"),
        ("*** Update File: a.txt\nloose line\n", "expected '<<<<<<< SEARCH'"),
        ("*** Update File: a.txt\n", "has no SEARCH/REPLACE blocks"),
        ("*** Update File: a.txt\n<<<<<<< SEARCH\nx\n", "line 2: unterminated"),
        ("*** Update File: a.txt\n<<<<<<< SEARCH\nx\n>>>>>>> REPLACE\n", "expected '======='"),
        ("*** Update File: a.txt\n<<<<<<< SEARCH\nx\n=======\n<<<<<<< SEARCH\n", "expected '>>>>>>> REPLACE'"),
        ("*** Add File:   \n+x\n", "file section without a path"),
        ("*** Add File: a.txt\n*** Move to: b.txt\n", "'Move to' must directly follow"),
    ])
    def test_grammar_errors(self, text, message):
        with pytest.raises(PatchParseError, match=re.escape(message)):
            parse(text)

    def test_error_carries_line_number(self):
        with pytest.raises(PatchParseError) as exc_info:
            parse("*** Add File: a.txt\n+ok\nbad\n")

        assert exc_info.value.line_no == 3
