"""Parser for the multi-file SEARCH/REPLACE patch format.

Example patch:

    *** Begin Patch
    *** Add File: notes/todo.txt
    +first line
    +second line
    *** Update File: src/app.py
    *** Move to: src/main.py
    <<<<<<< SEARCH
    print("hello")
    =======
    print("hello, world")
    >>>>>>> REPLACE
    *** Delete File: old.txt
    *** End Patch
"""

from enum import Enum

from poolbox.exceptions import EmptyPatchError, PatchParseError
from poolbox.models import HunkKind, PatchHunk, SearchReplaceChunk

BEGIN_PATCH = "*** Begin Patch"
END_PATCH = "*** End Patch"
ADD_FILE = "*** Add File:"
UPDATE_FILE = "*** Update File:"
DELETE_FILE = "*** Delete File:"
MOVE_TO = "*** Move to:"
SEARCH_MARKER = "<<<<<<< SEARCH"
DIVIDER_MARKER = "======="
REPLACE_MARKER = ">>>>>>> REPLACE"


class _State(Enum):
    OUTSIDE = "outside"
    IN_SEARCH = "in_search"
    IN_REPLACE = "in_replace"


class PatchParser:
    """Parses patch text into PatchHunk objects in a single pass.

    Marker lines are recognized after trailing whitespace is stripped, so
    patches that went through CRLF conversion still parse. Content lines
    are kept verbatim.
    """

    def parse(self, text: str) -> list[PatchHunk]:
        """Parse patch text.

        Args:
            text: Full patch text

        Returns:
            Hunks in the order they appear

        Raises:
            EmptyPatchError: If the text is blank or contains no file sections
            PatchParseError: If the text does not follow the grammar
        """
        if text is None or not text.strip():
            raise EmptyPatchError("patch text is required")

        hunks: list[PatchHunk] = []
        current: PatchHunk | None = None
        state = _State.OUTSIDE
        search: list[str] = []
        replace: list[str] = []
        add_lines: list[str] = []
        add_blanks = 0
        chunk_start = 0

        def close_section() -> None:
            if current is not None and current.kind is HunkKind.ADD:
                current.new_content = "\n".join(add_lines) + "\n" if add_lines else ""
            if current is not None and current.kind is HunkKind.UPDATE and not current.chunks and current.move_path is None:
                raise PatchParseError(f"Update File section for {current.path} has no SEARCH/REPLACE blocks")

        for line_no, raw in enumerate(text.splitlines(), start=1):
            marker = raw.rstrip()

            if state is _State.IN_SEARCH:
                if marker == DIVIDER_MARKER:
                    state = _State.IN_REPLACE
                elif marker in (SEARCH_MARKER, REPLACE_MARKER):
                    raise PatchParseError(f"expected '{DIVIDER_MARKER}' before '{marker}'", line_no)
                else:
                    search.append(raw)
                continue

            if state is _State.IN_REPLACE:
                if marker == REPLACE_MARKER:
                    current.chunks.append(SearchReplaceChunk(
                        search="\n".join(search),
                        replace="\n".join(replace),
                    ))
                    search, replace = [], []
                    state = _State.OUTSIDE
                elif marker in (SEARCH_MARKER, DIVIDER_MARKER):
                    raise PatchParseError(f"expected '{REPLACE_MARKER}' before '{marker}'", line_no)
                else:
                    replace.append(raw)
                continue

            if marker in (BEGIN_PATCH, END_PATCH):
                continue

            header = self._header(marker)
            if header is not None:
                kind, path = header
                if not path:
                    raise PatchParseError("file section without a path", line_no)
                close_section()
                current = PatchHunk(kind=kind, path=path)
                hunks.append(current)
                add_lines = []
                add_blanks = 0
                continue

            if marker.startswith(MOVE_TO):
                if current is None or current.kind is not HunkKind.UPDATE or current.chunks:
                    raise PatchParseError("'Move to' must directly follow an Update File header", line_no)
                current.move_path = marker[len(MOVE_TO):].strip()
                continue

            if current is None:
                if marker:
                    raise PatchParseError(f"content outside of a file section: {marker[:40]!r}", line_no)
                continue

            if current.kind is HunkKind.ADD:
                # bare blank lines count only when more content follows
                if raw.startswith("+"):
                    add_lines.extend([""] * add_blanks)
                    add_lines.append(raw[1:])
                    add_blanks = 0
                elif not marker:
                    add_blanks += 1
                else:
                    raise PatchParseError("Add File lines must start with '+'", line_no)
                continue

            if current.kind is HunkKind.DELETE:
                if marker:
                    raise PatchParseError("Delete File sections take no content", line_no)
                continue

            # update section, between blocks
            if marker == SEARCH_MARKER:
                state = _State.IN_SEARCH
                chunk_start = line_no
            elif marker and not marker.startswith("@@"):
                raise PatchParseError(
                    f"expected '{SEARCH_MARKER}' in Update File section, got {marker[:40]!r}",
                    line_no,
                )

        if state is not _State.OUTSIDE:
            raise PatchParseError("unterminated SEARCH/REPLACE block", chunk_start)
        close_section()

        if not hunks:
            raise EmptyPatchError("no hunks found in patch")
        return hunks

    def _header(self, marker: str) -> tuple[HunkKind, str] | None:
        for prefix, kind in (
            (ADD_FILE, HunkKind.ADD),
            (UPDATE_FILE, HunkKind.UPDATE),
            (DELETE_FILE, HunkKind.DELETE),
        ):
            if marker.startswith(prefix):
                return kind, marker[len(prefix):].strip()
        return None
