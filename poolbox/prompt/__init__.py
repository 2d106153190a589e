"""Prompt rendering for capability listings."""

from poolbox.prompt.claude_xml import ManifestXMLRenderer

__all__ = ["ManifestXMLRenderer"]
