"""Parsing module for manifest front matter and descriptions."""

from poolbox.parsing.frontmatter import FrontmatterParser
from poolbox.parsing.markdown import extract_description

__all__ = ["FrontmatterParser", "extract_description"]
