"""Front matter parsing for capability manifests."""

import logging
from pathlib import Path

import yaml

from poolbox.exceptions import PathNotFoundError

logger = logging.getLogger(__name__)

DELIMITER = "---"


class FrontmatterParser:
    """Splits an optional YAML front matter block from a manifest body.

    Front matter is optional for manifests. A block that is not valid YAML
    degrades to a plain "key: value" line scan instead of failing discovery.
    """

    def parse(self, manifest_file: Path) -> tuple[dict, str]:
        """Parse a manifest file.

        Args:
            manifest_file: Path to the SKILL.md file

        Returns:
            Tuple of (metadata dict, markdown body)

        Raises:
            PathNotFoundError: If the file does not exist
        """
        if not manifest_file.is_file():
            raise PathNotFoundError(f"Manifest not found: {manifest_file.name}")
        text = manifest_file.read_text(encoding="utf-8", errors="replace")
        return self.parse_text(text, source=str(manifest_file))

    def parse_text(self, text: str, source: str = "<text>") -> tuple[dict, str]:
        """Parse manifest text.

        Args:
            text: Full manifest content
            source: Name used in log messages

        Returns:
            Tuple of (metadata dict, markdown body). Text without a front
            matter block yields ({}, text).
        """
        lines = text.lstrip("\ufeff").splitlines(keepends=True)
        if not lines or lines[0].strip() != DELIMITER:
            return {}, text

        for index in range(1, len(lines)):
            if lines[index].strip() == DELIMITER:
                block = "".join(lines[1:index])
                body = "".join(lines[index + 1:])
                return self._load(block, source), body

        # unterminated block: treat the whole file as body
        return {}, text

    def _load(self, block: str, source: str) -> dict:
        try:
            metadata = yaml.safe_load(block)
        except yaml.YAMLError as e:
            logger.warning("Invalid YAML front matter in %s, using line scan: %s", source, e)
            return self._scan_lines(block)

        if metadata is None:
            return {}
        if not isinstance(metadata, dict):
            logger.warning(
                "Front matter in %s is a %s, not a mapping; ignoring",
                source, type(metadata).__name__,
            )
            return {}
        return metadata

    def _scan_lines(self, block: str) -> dict:
        metadata = {}
        for line in block.splitlines():
            key, sep, value = line.partition(":")
            if not sep or line[:1].isspace():
                continue
            metadata[key.strip()] = value.strip().strip("\"'")
        return metadata
