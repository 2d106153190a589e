"""Unit tests for DirectoryLister and atomic writes."""

import os
import stat
from unittest.mock import patch

import pytest

from poolbox.exceptions import PathNotFoundError
from poolbox.resources.listing import DirectoryLister, format_size
from poolbox.resources.writer import atomic_write_bytes, atomic_write_text


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "project"
    (root / "src" / "pkg" / "deep" / "deeper").mkdir(parents=True)
    (root / "src" / "pkg" / "deep" / "deeper" / "leaf.py").write_text("x")
    (root / "src" / "app.py").write_text("print(1)\n")
    (root / "video").mkdir()
    (root / "video" / "skill.md").write_text("# Video\n")
    (root / ".env").write_text("SECRET=1\n")
    (root / "node_modules").mkdir()
    (root / "README.md").write_text("a" * 2048)
    return root


class TestFormatSize:

    @pytest.mark.parametrize("size,expected", [
        (0, "0 B"),
        (1023, "1023 B"),
        (2048, "2.0 KB"),
        (3 * 1024 * 1024, "3.0 MB"),
    ])
    def test_units(self, size, expected):
        assert format_size(size) == expected


class TestFlatListing:

    def test_entries_and_markers(self, project):
        out = DirectoryLister().render(project, ".")

        assert out.splitlines() == [
            "[FILE] README.md (2.0 KB)",
            "[DIR]  src/",
            "[DIR]  video/ [SKILL]",
        ]

    def test_show_hidden(self, project):
        out = DirectoryLister().render(project, ".", show_hidden=True)

        assert "[FILE] .env (9 B)" in out
        assert "node_modules" not in out

    def test_single_file(self, project):
        assert DirectoryLister().render(project / "README.md", "README.md") == "[FILE] README.md (2.0 KB)"

    def test_empty_directory(self, tmp_path):
        assert DirectoryLister().render(tmp_path, ".") == "(empty directory)"

    def test_missing(self, tmp_path):
        with pytest.raises(PathNotFoundError):
            DirectoryLister().render(tmp_path / "missing", "missing")


class TestTreeListing:

    def test_tree_is_depth_capped(self, project):
        out = DirectoryLister(tree_depth=3).render(project, "project", recursive=True)
        lines = out.splitlines()

        assert lines[0] == "project/"
        assert "├── src/" in lines
        assert "│   ├── pkg/" in lines
        assert "│   │   └── deep/" in lines
        assert "│   └── app.py" in lines
        assert "├── video/ [SKILL]" in lines
        assert "└── README.md" in lines
        assert "deeper" not in out

    def test_directories_first(self, project):
        lines = DirectoryLister().render(project, ".", recursive=True).splitlines()

        assert lines.index("├── src/") < lines.index("└── README.md")


class TestAtomicWrite:

    def test_creates_parents(self, tmp_path):
        target = tmp_path / "a" / "b" / "c.txt"

        atomic_write_text(target, "hello\r\nworld\n")

        assert target.read_bytes() == b"hello\r\nworld\n"

    def test_no_temp_files_left(self, tmp_path):
        target = tmp_path / "c.txt"
        atomic_write_bytes(target, b"1")
        atomic_write_bytes(target, b"2")

        assert target.read_bytes() == b"2"
        assert os.listdir(tmp_path) == ["c.txt"]

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_preserves_mode(self, tmp_path):
        target = tmp_path / "run.sh"
        target.write_text("echo 1\n")
        target.chmod(0o755)

        atomic_write_text(target, "echo 2\n")

        assert stat.S_IMODE(target.stat().st_mode) == 0o755

    def test_failure_keeps_original_and_cleans_up(self, tmp_path):
        target = tmp_path / "c.txt"
        target.write_text("original")

        with patch("poolbox.resources.writer.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                atomic_write_text(target, "new")

        assert target.read_text() == "original"
        assert os.listdir(tmp_path) == ["c.txt"]
