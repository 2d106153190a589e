"""Exception classes for poolbox."""


class PoolboxError(Exception):
    """Base exception for all poolbox errors."""
    pass


class SecurityViolation(PoolboxError):
    """Raised when an operation would leave the sandbox or break pool policy."""
    pass


class PathEscapeError(SecurityViolation):
    """Raised when a path normalizes outside its root."""
    pass


class ReadOnlyPoolError(SecurityViolation):
    """Raised when write intent targets a read-only pool."""
    pass


class UnknownPoolError(SecurityViolation):
    """Raised when a path references an alias that is not registered."""
    pass


class PathNotFoundError(PoolboxError):
    """Raised when a file or directory does not exist."""
    pass


class ManifestNotFoundError(PathNotFoundError):
    """Raised when a directory holds no capability manifest."""
    pass


class LineRangeError(PoolboxError):
    """Raised when a requested line window lies outside the file."""
    pass


class EditError(PoolboxError):
    """Base class for edit failures."""
    pass


class TextNotFoundError(EditError):
    """Raised when the text to replace does not occur in the file."""
    pass


class AmbiguousMatchError(EditError):
    """Raised when the text to replace occurs more than once."""

    def __init__(self, message: str, occurrences: int):
        super().__init__(message)
        self.occurrences = occurrences


class LineEndingMismatchError(EditError):
    """Raised when the text matches only if line endings are ignored."""
    pass


class UndoUnavailableError(PoolboxError):
    """Raised when no undo record exists for a path."""
    pass


class PatchError(PoolboxError):
    """Base class for patch failures."""
    pass


class PatchParseError(PatchError):
    """Raised when patch text does not follow the patch grammar."""

    def __init__(self, message: str, line_no: int | None = None):
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)
        self.line_no = line_no


class EmptyPatchError(PatchError):
    """Raised when a patch is blank or contains no file sections."""
    pass


class PatchMismatchError(PatchError):
    """Raised when a SEARCH block cannot be located in the target file."""

    def __init__(self, message: str, path: str, chunk: int | None = None):
        super().__init__(f"{message} in {path}" + (f" (chunk {chunk})" if chunk else ""))
        self.path = path
        self.chunk = chunk


class PartialPatchFailure(PatchError):
    """Raised at the tool boundary when a patch was only partly written."""

    def __init__(self, message: str, summary=None):
        super().__init__(message)
        self.summary = summary


class DuplicatePoolError(PoolboxError):
    """Raised when registering an alias that is already taken."""
    pass


class ApprovalStateError(PoolboxError):
    """Raised when an approval transition is attempted from the wrong state."""
    pass


class CommandTimeoutError(PoolboxError):
    """Raised when a shell command exceeds its timeout."""
    pass


class ToolNotFoundError(PoolboxError):
    """Raised when a tool name is not registered."""
    pass


class ToolInputError(PoolboxError):
    """Raised when tool arguments fail validation."""
    pass
