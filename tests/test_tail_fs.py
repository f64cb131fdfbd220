import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from tail_input.watch.tail_fs import LocalFileSystem


class TestLocalTailStream(unittest.TestCase):
    def test_read_lines_positions_and_eof(self) -> None:
        with TemporaryDirectory() as td:
            p = Path(td) / "x.log"
            p.write_bytes(b"a\r\nbb\n")
            fs = LocalFileSystem()
            s = fs.open(str(p))
            try:
                self.assertEqual(s.read_line(), "a")
                self.assertEqual(s.position(), 3)
                self.assertEqual(s.read_line(), "bb")
                self.assertEqual(s.position(), 6)
                self.assertIsNone(s.read_line())
                self.assertEqual(s.size(), 6)
            finally:
                s.close()

    def test_partial_line_is_not_consumed(self) -> None:
        with TemporaryDirectory() as td:
            p = Path(td) / "x.log"
            p.write_bytes(b"done\npart")
            s = LocalFileSystem().open(str(p))
            try:
                self.assertEqual(s.read_line(), "done")
                self.assertIsNone(s.read_line())
                self.assertEqual(s.position(), 5)
                with p.open("ab") as f:
                    f.write(b"ial\n")
                self.assertEqual(s.read_line(), "partial")
            finally:
                s.close()

    def test_seek_and_undecodable_bytes(self) -> None:
        with TemporaryDirectory() as td:
            p = Path(td) / "x.log"
            p.write_bytes(b"skip\n\xff\xfeok\n")
            s = LocalFileSystem().open(str(p))
            try:
                s.seek(5)
                self.assertEqual(s.read_line(), "\ufffd\ufffdok")
            finally:
                s.close()

    def test_close_is_idempotent(self) -> None:
        with TemporaryDirectory() as td:
            p = Path(td) / "x.log"
            p.write_bytes(b"")
            s = LocalFileSystem().open(str(p))
            s.close()
            s.close()
            self.assertTrue(s.closed)

    def test_open_missing_raises_oserror(self) -> None:
        with TemporaryDirectory() as td:
            with self.assertRaises(OSError):
                LocalFileSystem().open(str(Path(td) / "missing.log"))


if __name__ == "__main__":
    unittest.main()
