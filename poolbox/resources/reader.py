"""Windowed file reading and content/name search under a box."""

import logging
import os
import re
from pathlib import Path
from typing import Iterator, TypedDict

from poolbox.exceptions import LineRangeError, PathNotFoundError
from poolbox.resources.resolver import is_ignored

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


class SearchHit(TypedDict):
    """Type definition for grep hits."""
    path: Path
    line_num: int
    content: str


def split_lines(text: str) -> list[str]:
    """Split on any line ending; a trailing newline does not add an empty line."""
    lines = _LINE_BREAK.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def walk_files(root: Path) -> Iterator[Path]:
    """Yield files under root in sorted order, pruning ignored directories."""
    if root.is_file():
        yield root
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not is_ignored(d))
        for name in sorted(filenames):
            if not is_ignored(name):
                yield Path(dirpath) / name


class WindowedReader:
    """Reads a bounded window of numbered lines from a text file.

    Output looks like:

        [File: src/app.py (lines 1-3 of 3, Size: 0.05 KB)]
        ----------------------------------------
             1 | import os
             2 |
             3 | print(os.getcwd())
    """

    def __init__(self, window: int = 500):
        """Initialize with the default number of lines per read.

        Args:
            window: Lines returned when no end line is given
        """
        self.window = window

    def read(
        self,
        path: Path,
        display: str,
        start_line: int | None = None,
        end_line: int | None = None,
    ) -> str:
        """Read lines [start_line, end_line] (1-indexed, inclusive).

        Args:
            path: Physical file path
            display: Logical path shown in the header
            start_line: First line to return (default 1)
            end_line: Last line to return (default start_line + window - 1)

        Returns:
            Header plus numbered lines, or "(empty file)" for a zero-byte file

        Raises:
            PathNotFoundError: If path is not an existing file
            LineRangeError: If start_line is past the end or the range is inverted
        """
        if not path.is_file():
            raise PathNotFoundError(f"File not found: {display}")

        raw = path.read_bytes()
        if not raw:
            return "(empty file)"

        lines = split_lines(raw.decode("utf-8", errors="replace"))
        total = len(lines)

        start = 1 if start_line is None else start_line
        if start < 1:
            raise LineRangeError(f"start_line must be >= 1, got {start}")
        if start > total:
            raise LineRangeError(
                f"start_line {start} is out of range: {display} has {total} lines"
            )
        if end_line is not None and end_line < start:
            raise LineRangeError(f"end_line {end_line} is before start_line {start}")

        end = start + self.window - 1 if end_line is None else end_line
        end = min(end, total)

        out = [
            f"[File: {display} (lines {start}-{end} of {total}, Size: {len(raw) / 1024:.2f} KB)]",
            "-" * 40,
        ]
        out.extend(f"{n:6d} | {lines[n - 1]}" for n in range(start, end + 1))
        if end < total:
            out.append(f"... {total - end} more lines. Use start_line={end + 1} to continue.")
        return "\n".join(out)


class ContentSearcher:
    """Literal substring search across the text files under a directory."""

    def __init__(self, max_chars: int = 8000):
        """Initialize with the output budget.

        Args:
            max_chars: Approximate number of output characters before the
                search stops
        """
        self.max_chars = max_chars

    def search(self, root: Path, query: str) -> tuple[list[SearchHit], bool]:
        """Search every non-ignored file under root for query.

        Args:
            root: Directory (or single file) to search
            query: Literal, case-sensitive substring

        Returns:
            Tuple of (hits, truncated). Files that are not UTF-8 text are skipped.
        """
        hits: list[SearchHit] = []
        used = 0

        for file_path in walk_files(root):
            try:
                raw = file_path.read_bytes()
            except OSError as e:
                logger.debug("Skipping unreadable file %s: %s", file_path, e)
                continue
            if b"\0" in raw[:8192]:
                continue
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError:
                logger.debug("Skipping non UTF-8 file %s", file_path)
                continue

            for line_num, line in enumerate(split_lines(text), start=1):
                if query not in line:
                    continue
                hit: SearchHit = {"path": file_path, "line_num": line_num, "content": line.strip()}
                hits.append(hit)
                used += len(line) + 32
                if used > self.max_chars:
                    return hits, True

        return hits, False


def glob_to_regex(pattern: str) -> re.Pattern:
    """Translate a glob pattern into a regex over '/'-separated paths.

    Supports '*', '?', '**', '[...]' (with '!' negation) and '{a,b}'.

    Example:
        >>> bool(glob_to_regex("src/**/*.py").match("src/a/b/c.py"))
        True
    """
    out = []
    i = 0
    depth = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            if pattern.startswith("**/", i):
                out.append("(?:.*/)?")
                i += 3
                continue
            if pattern.startswith("**", i):
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "[":
            close = pattern.find("]", i + 1)
            if close == -1:
                out.append(re.escape(c))
            else:
                body = pattern[i + 1:close]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = close + 1
                continue
        elif c == "{":
            out.append("(?:")
            depth += 1
        elif c == "}" and depth:
            out.append(")")
            depth -= 1
        elif c == "," and depth:
            out.append("|")
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out) + r"\Z")


class GlobSearcher:
    """Finds files whose root-relative path matches a glob pattern."""

    def __init__(self, max_results: int = 500):
        self.max_results = max_results

    def glob(self, root: Path, pattern: str) -> tuple[list[Path], bool]:
        """Match pattern against paths relative to root.

        A pattern without '/' only matches files directly under root; use
        '**/' to match at any depth.

        Returns:
            Tuple of (sorted matches, truncated)
        """
        normalized = pattern.replace("\\", "/")
        while normalized.startswith("./"):
            normalized = normalized[2:]
        regex = glob_to_regex(normalized)
        matches: list[Path] = []
        truncated = False

        for file_path in walk_files(root):
            rel = file_path.relative_to(root).as_posix()
            if regex.match(rel):
                if len(matches) >= self.max_results:
                    truncated = True
                    break
                matches.append(file_path)

        return sorted(matches), truncated

