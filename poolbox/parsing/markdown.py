"""One-line description extraction from manifest markdown."""

DEFAULT_DESCRIPTION = "No description provided."

_SKIP_AFTER_HEADING = ("#", "`", ">")
_BULLETS = ("-", "* ", "+ ")


def truncate(text: str, max_chars: int = 150) -> str:
    """Truncate text to max_chars, ending with '...' when cut."""
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 3] + "..."


def extract_description(metadata: dict, body: str, max_chars: int = 150) -> str:
    """Pick a one-line description for a manifest.

    Priority:
    1. The front matter ``description`` field
    2. The first plain line after the first top-level ``# `` heading
    3. The first non-empty line that is neither a heading nor a bullet

    Args:
        metadata: Parsed front matter (may be empty)
        body: Markdown body after the front matter
        max_chars: Maximum description length

    Returns:
        Description truncated to max_chars

    Example:
        >>> extract_description({}, "# Video\\n\\nCut and merge clips.\\n")
        'Cut and merge clips.'
    """
    description = metadata.get("description")
    if isinstance(description, str) and description.strip():
        return truncate(" ".join(description.split()), max_chars)

    lines = [line.strip() for line in body.splitlines()]

    seen_heading = False
    for line in lines:
        if not seen_heading:
            seen_heading = line.startswith("# ")
            continue
        if line and not line.startswith(_SKIP_AFTER_HEADING):
            return truncate(line, max_chars)

    for line in lines:
        if line and not line.startswith("#") and not line.startswith(_BULLETS):
            return truncate(line, max_chars)

    return DEFAULT_DESCRIPTION
