from typing import Optional


class TailInputError(Exception):
    pass


class ConfigError(TailInputError, ValueError):
    pass


class LifecycleError(TailInputError, RuntimeError):
    pass


class TailOpenError(TailInputError):
    """
    Opening or positioning the target file failed.

    The underlying OSError (if any) is kept as __cause__.
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{reason}: {path}")
        self.path = path
        self.reason = reason


class FileShrunkError(TailOpenError):
    def __init__(self, path: str, offset: int, size: int) -> None:
        super().__init__(path, f"file_shrunk offset={offset} size={size}")
        self.offset = int(offset)
        self.size = int(size)


class TailReadError(TailInputError):
    def __init__(self, path: str, offset: int) -> None:
        super().__init__(f"read_failed at offset {offset}: {path}")
        self.path = path
        self.offset = int(offset)


class LineCallbackError(TailInputError):
    """
    Raised by drain when the downstream callback failed for a line.

    The line is considered delivered; anything still buffered is kept for the
    next drain call.
    """

    def __init__(self, line: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"on_line failed: {cause!r}")
        self.line = line
