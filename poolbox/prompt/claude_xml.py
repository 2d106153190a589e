"""Claude XML rendering of capability manifests."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from poolbox.models import CapabilityManifest


class ManifestXMLRenderer:
    """Renders capability manifests in Claude XML format.

    Index form:
    <available_skills>
      <skill name="@shared/video">Cut and merge clips.</skill>
    </available_skills>

    Content form:
    <skill_content name="@shared/video">
    ...manifest text...

    Base Directory: @shared/video
    <skill_files>
      <file>scripts/cut.sh</file>
    </skill_files>
    </skill_content>
    """

    def render_index(self, manifests: list["CapabilityManifest"]) -> str:
        """Render a compact name/description index.

        Example:
            >>> renderer = ManifestXMLRenderer()
            >>> print(renderer.render_index([manifest]))
            <available_skills>
              <skill name="@shared/video">Cut and merge clips.</skill>
            </available_skills>
        """
        lines = ["<available_skills>"]
        for manifest in manifests:
            name = self._escape_xml_attr(manifest.alias_path)
            description = self._escape_xml_text(manifest.description)
            lines.append(f'  <skill name="{name}">{description}</skill>')
        lines.append("</available_skills>")
        return "\n".join(lines)

    def render_content(
        self,
        alias_path: str,
        content: str,
        files: list[str] | None = None,
    ) -> str:
        """Render the full text of one manifest.

        Args:
            alias_path: Logical path of the capability directory
            content: Manifest file text
            files: Optional sample of files inside the directory

        Returns:
            <skill_content> block
        """
        name = self._escape_xml_attr(alias_path)
        lines = [
            f'<skill_content name="{name}">',
            content.strip(),
            "",
            f"Base Directory: {alias_path}",
        ]
        if files is not None:
            lines.append("<skill_files>")
            lines.extend(f"  <file>{self._escape_xml_text(f)}</file>" for f in files)
            lines.append("</skill_files>")
        lines.append("</skill_content>")
        return "\n".join(lines)

    def render_search_results(self, manifests: list["CapabilityManifest"]) -> str:
        """Render keyword search hits."""
        lines = ["<search_results>"]
        for manifest in manifests:
            path = self._escape_xml_attr(manifest.alias_path)
            description = self._escape_xml_text(manifest.description)
            lines.append(f'  <skill path="{path}">{description}</skill>')
        lines.append("</search_results>")
        return "\n".join(lines)

    def _escape_xml_text(self, text: str) -> str:
        return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")

    def _escape_xml_attr(self, text: str) -> str:
        """Escape XML special characters for use in attributes.

        Args:
            text: Text to escape

        Returns:
            Escaped text safe for XML attributes
        """
        replacements = {
            "&": "&amp;",
            "<": "&lt;",
            ">": "&gt;",
            '"': "&quot;",
            "'": "&apos;",
        }

        for char, escape in replacements.items():
            text = text.replace(char, escape)

        return text
