"""Unit tests for FrontmatterParser."""

import logging

import pytest

from poolbox.exceptions import PathNotFoundError
from poolbox.parsing.frontmatter import FrontmatterParser


class TestFrontmatterParser:
    """Test front matter splitting and its fallbacks."""

    def test_parse_valid_front_matter(self):
        meta, body = FrontmatterParser().parse_text(
            "---\nname: video\ndescription: Cut clips\n---\n# Video\n"
        )

        assert meta == {"name": "video", "description": "Cut clips"}
        assert body == "# Video\n"

    def test_no_front_matter(self):
        text = "# Title\n\nBody\n"

        assert FrontmatterParser().parse_text(text) == ({}, text)

    def test_unterminated_block_is_body(self):
        text = "---\ndescription: never closed\n# Title\n"

        assert FrontmatterParser().parse_text(text) == ({}, text)

    def test_bom_is_ignored(self):
        meta, body = FrontmatterParser().parse_text("\ufeff---\ndescription: x\n---\nbody")

        assert meta == {"description": "x"}
        assert body == "body"

    def test_empty_block(self):
        assert FrontmatterParser().parse_text("---\n---\nbody\n") == ({}, "body\n")

    def test_invalid_yaml_falls_back_to_line_scan(self, caplog):
        text = '---\ndescription: "Use: ffmpeg [fast\nname: video\n  nested: skipped\n---\nbody\n'

        with caplog.at_level(logging.WARNING, logger="poolbox.parsing.frontmatter"):
            meta, body = FrontmatterParser().parse_text(text)

        assert meta == {"description": "Use: ffmpeg [fast", "name": "video"}
        assert body == "body\n"
        assert "Invalid YAML" in caplog.text

    def test_non_mapping_front_matter_ignored(self):
        meta, body = FrontmatterParser().parse_text("---\n- a\n- b\n---\nbody")

        assert meta == {}
        assert body == "body"

    def test_parse_file(self, tmp_path):
        f = tmp_path / "SKILL.md"
        f.write_text("---\ndescription: From file\n---\nText\n", encoding="utf-8")

        meta, body = FrontmatterParser().parse(f)

        assert meta["description"] == "From file"
        assert body == "Text\n"

    def test_parse_missing_file(self, tmp_path):
        with pytest.raises(PathNotFoundError):
            FrontmatterParser().parse(tmp_path / "SKILL.md")
