"""Adaptive disclosure of the capability library.

How much of the library the agent sees depends only on how many manifests
are known:

- up to ``dynamic_threshold``: every manifest is inlined into the instructions
- up to ``search_threshold``: a name/description index plus ``explain_skill``
- beyond that: instructions only, plus ``search_skills`` and ``explain_skill``
"""

import logging
import os
from pathlib import Path

from poolbox.discovery.pools import PoolRegistry
from poolbox.discovery.scanner import MANIFEST_NAME, find_manifest_file
from poolbox.exceptions import ManifestNotFoundError, ToolInputError
from poolbox.models import CapabilityManifest, DisclosureTier
from poolbox.prompt.claude_xml import ManifestXMLRenderer
from poolbox.resources.resolver import PathSandbox, is_hidden, is_ignored

logger = logging.getLogger(__name__)

EXPLAIN_TOOL = "explain_skill"
SEARCH_TOOL = "search_skills"
REFRESH_TOOL = "refresh_skills"

_TIER_TOOLS = {
    DisclosureTier.INLINE: (),
    DisclosureTier.INDEX: (EXPLAIN_TOOL,),
    DisclosureTier.SEARCH: (SEARCH_TOOL, EXPLAIN_TOOL),
}


class CapabilityDiscovery:
    """Chooses the disclosure tier and serves the discovery tools of a box."""

    def __init__(
        self,
        registry: PoolRegistry,
        sandbox: PathSandbox,
        dynamic_threshold: int = 8,
        search_threshold: int = 80,
        search_limit: int = 15,
        sample_files: int = 10,
    ):
        """Initialize discovery over a registry.

        Args:
            registry: The box's pool registry
            sandbox: Resolver used by explain() for paths not in the cache
            dynamic_threshold: Largest count that is fully inlined
            search_threshold: Largest count that gets an index
            search_limit: Maximum search results
            sample_files: Maximum files listed by explain()
        """
        if dynamic_threshold > search_threshold:
            raise ValueError("dynamic_threshold must not exceed search_threshold")
        self.registry = registry
        self.sandbox = sandbox
        self.dynamic_threshold = dynamic_threshold
        self.search_threshold = search_threshold
        self.search_limit = search_limit
        self.sample_files = sample_files
        self.renderer = ManifestXMLRenderer()

    def tier_for(self, count: int) -> DisclosureTier:
        """Tier for a given number of manifests."""
        if count <= self.dynamic_threshold:
            return DisclosureTier.INLINE
        if count <= self.search_threshold:
            return DisclosureTier.INDEX
        return DisclosureTier.SEARCH

    @property
    def tier(self) -> DisclosureTier:
        """Tier for the registry's current manifest count."""
        return self.tier_for(len(self.registry.manifests()))

    def exposed_tools(self) -> tuple[str, ...]:
        """Names of the discovery tools the agent should see right now."""
        tools = _TIER_TOOLS[self.tier]
        if self.registry.pools():
            tools = tools + (REFRESH_TOOL,)
        return tools

    def render_instructions(self) -> str:
        """Render the capability section of the agent's instructions.

        Returns:
            Instruction text, or "" when no manifests are known
        """
        manifests = self.registry.manifests()
        if not manifests:
            return ""

        tier = self.tier_for(len(manifests))
        lines = [f"## Capability library ({len(manifests)} available)"]

        if tier is DisclosureTier.INLINE:
            lines.append("The following capabilities are loaded. Follow them when a task falls in their area:")
            for manifest in manifests:
                lines.append(self._render_manifest(manifest, include_files=False))
        elif tier is DisclosureTier.INDEX:
            lines.append(
                f"Before acting in one of these areas, call `{EXPLAIN_TOOL}` "
                "with the capability name to load its instructions:"
            )
            lines.append(self.renderer.render_index(manifests))
        else:
            lines.extend([
                "The capability library is large. Before working with a specific tool or stack:",
                f"1. Call `{SEARCH_TOOL}` with a few keywords to find matching capabilities.",
                f"2. Call `{EXPLAIN_TOOL}` to load the instructions of the one you pick.",
                "3. Do not fall back to generic commands before checking for a capability.",
            ])
        return "\n".join(lines)

    def list_capabilities(self) -> str:
        """Plain list of every known capability."""
        manifests = self.registry.manifests()
        if not manifests:
            return "No capabilities available."
        return "\n".join(f"- {m.alias_path}: {m.description}" for m in manifests)

    def search(self, query: str) -> str:
        """Keyword search over alias paths and descriptions.

        A manifest matches when any whitespace-separated keyword occurs in its
        alias path or description, case-insensitively.

        Raises:
            ToolInputError: If the query has no keywords
        """
        keys = query.lower().split()
        if not keys:
            raise ToolInputError("query must contain at least one keyword")

        matches = [
            m for m in self.registry.manifests()
            if any(k in m.alias_path.lower() or k in m.description.lower() for k in keys)
        ][: self.search_limit]

        if not matches:
            return "No matching capabilities found."
        return self.renderer.render_search_results(matches)

    def explain(self, path: str) -> str:
        """Full manifest text and a file sample for one capability.

        Args:
            path: Alias path from the index (e.g. "@shared/video") or any
                  logical path to a capability directory

        Raises:
            ManifestNotFoundError: If the path is not a capability directory
            SecurityViolation: If the path cannot be resolved
        """
        manifest = self.registry.manifest(path)
        if manifest is not None:
            return self._render_manifest(manifest, include_files=True)

        directory = self.sandbox.resolve(path)
        manifest_file = find_manifest_file(directory) if directory.is_dir() else None
        if manifest_file is None:
            raise ManifestNotFoundError(f"{path} is not a capability directory (no SKILL.md)")

        alias_path = self.sandbox.to_logical(directory)
        return self._render(alias_path, directory, manifest_file, include_files=True)

    def refresh(self) -> str:
        """Rescan every pool."""
        count = self.registry.refresh()
        logger.info("Capability library refreshed: %d manifests", count)
        return f"Capability library refreshed: {count} available."

    def _render_manifest(self, manifest: CapabilityManifest, include_files: bool) -> str:
        return self._render(manifest.alias_path, manifest.path, manifest.manifest_file, include_files)

    def _render(self, alias_path: str, directory: Path, manifest_file: Path, include_files: bool) -> str:
        content = manifest_file.read_text(encoding="utf-8", errors="replace")
        files = self._sample_files(directory) if include_files else None
        return self.renderer.render_content(alias_path, content, files)

    def _sample_files(self, directory: Path) -> list[str]:
        sample: list[str] = []
        for dirpath, dirnames, filenames in os.walk(directory):
            current = Path(dirpath)
            dirnames[:] = sorted(
                d for d in dirnames if not is_hidden(d) and not is_ignored(d)
            )
            if current != directory:
                # one level below the capability directory at most
                dirnames[:] = []
            for name in sorted(filenames):
                if current == directory and name.lower() == MANIFEST_NAME:
                    continue
                if is_hidden(name):
                    continue
                sample.append((current / name).relative_to(directory).as_posix())
                if len(sample) >= self.sample_files:
                    return sample
        return sample
