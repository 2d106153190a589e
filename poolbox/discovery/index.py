"""Builds CapabilityManifest snapshots for scanned directories."""

import logging
from pathlib import Path

from poolbox.discovery.scanner import find_manifest_file
from poolbox.models import CapabilityManifest, Pool
from poolbox.parsing.frontmatter import FrontmatterParser
from poolbox.parsing.markdown import extract_description
from poolbox.exceptions import PathNotFoundError

logger = logging.getLogger(__name__)


class ManifestIndexer:
    """Creates CapabilityManifest objects from discovered directories.

    Unreadable manifests are logged and skipped so one broken entry does not
    hide the rest of the pool.
    """

    def __init__(self, description_max_chars: int = 150):
        """Initialize the indexer.

        Args:
            description_max_chars: Truncation length for descriptions
        """
        self.parser = FrontmatterParser()
        self.description_max_chars = description_max_chars

    def index(self, pool: Pool, directories: list[Path]) -> list[CapabilityManifest]:
        """Describe each capability directory of a pool.

        Args:
            pool: Pool the directories were found in
            directories: Directories returned by ManifestScanner

        Returns:
            Manifests keyed by alias-qualified path, in input order
        """
        manifests = []
        for directory in directories:
            try:
                manifests.append(self._create_manifest(pool, directory))
            except (OSError, PathNotFoundError) as e:
                logger.warning("Failed to index manifest in %s: %s", directory, e)
        return manifests

    def _create_manifest(self, pool: Pool, directory: Path) -> CapabilityManifest:
        manifest_file = find_manifest_file(directory)
        if manifest_file is None:
            raise PathNotFoundError(f"Manifest disappeared from {directory}")

        metadata, body = self.parser.parse(manifest_file)
        rel = directory.relative_to(pool.root).as_posix()
        alias_path = pool.alias if rel == "." else f"{pool.alias}/{rel}"

        return CapabilityManifest(
            alias_path=alias_path,
            path=directory,
            manifest_file=manifest_file,
            description=extract_description(metadata, body, self.description_max_chars),
        )

