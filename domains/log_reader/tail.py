"""Incremental reader for a growing collector log."""

from pathlib import Path

from loguru import logger


class LogTail:
    """
    Returns the text appended to a file since the previous read.

    If the file shrinks (truncated or replaced), reading starts over from the
    beginning. A trailing line without its newline is held back until the
    rest of it is written.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.offset = 0
        self._partial = b""

    def read_new(self) -> str:
        """
        Read complete lines appended since the last call.

        Returns:
            New text ending on a line boundary, or "" when nothing new
        """
        if not self.path.exists():
            return ""

        size = self.path.stat().st_size
        if size == self.offset:
            return ""

        if size < self.offset:
            logger.info(f"Log shrank, re-reading from start: {self.path}")
            self.offset = 0
            self._partial = b""

        with self.path.open("rb") as f:
            f.seek(self.offset)
            data = f.read(size - self.offset)
        self.offset += len(data)

        # Split on raw bytes so a multi-byte character cut by a read stays intact
        buffered = self._partial + data
        complete, sep, rest = buffered.rpartition(b"\n")
        if not sep:
            self._partial = buffered
            return ""

        self._partial = rest
        return (complete + sep).decode("utf-8", errors="replace")
