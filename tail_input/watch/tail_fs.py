import os
from typing import BinaryIO, Optional, Protocol


class TailStream(Protocol):
    def seek(self, offset: int) -> None:
        ...

    def read_line(self) -> Optional[str]:
        ...

    def position(self) -> int:
        ...

    def size(self) -> int:
        ...

    def close(self) -> None:
        ...


class TailFileSystem(Protocol):
    def open(self, path: str) -> TailStream:
        ...

    def close(self) -> None:
        ...


class LocalTailStream:
    """
    Line reader over a local file opened in binary mode.

    - read_line() returns one decoded line without its trailing newline, or None
      at end of stream.
    - A trailing fragment without "\\n" is not consumed: the position is moved
      back so the writer can finish the line and the next read returns it whole.
    - position() is a byte offset (what the reader persists across reopens).
    """

    def __init__(self, f: BinaryIO, *, encoding: str = "utf-8") -> None:
        self._f = f
        self._encoding = encoding
        self._closed = False

    def seek(self, offset: int) -> None:
        self._f.seek(int(offset), os.SEEK_SET)

    def read_line(self) -> Optional[str]:
        start = self._f.tell()
        bline = self._f.readline()
        if not bline:
            return None
        if not bline.endswith(b"\n"):
            self._f.seek(start, os.SEEK_SET)
            return None
        bline = bline[:-1]
        if bline.endswith(b"\r"):
            bline = bline[:-1]
        return bline.decode(self._encoding, errors="replace")

    def position(self) -> int:
        return int(self._f.tell())

    def size(self) -> int:
        return int(os.fstat(self._f.fileno()).st_size)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._f.close()

    @property
    def closed(self) -> bool:
        return self._closed


class LocalFileSystem:
    def __init__(self, *, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self.closed = False

    def open(self, path: str) -> LocalTailStream:
        f = open(os.path.expanduser(str(path)), "rb")
        return LocalTailStream(f, encoding=self._encoding)

    def close(self) -> None:
        # Nothing is pooled for local files; kept for the teardown() contract.
        self.closed = True
