"""
Read handle over a downloaded temp file that deletes the file on close.

The handle owns the local file for its whole life: reads go straight to the
underlying file object, and close() releases the descriptor and removes the
file from disk. Deleting a file that is already gone counts as success, so
closing twice (or after someone else removed the file) never raises.
"""

import io
import logging
from pathlib import Path
from typing import BinaryIO, Optional

from archive_core.download.models import FetchResult

logger = logging.getLogger(__name__)


class SelfCleaningFile(io.RawIOBase):
    """
    Read-only binary stream whose close() also deletes its backing file.

    Usage:
        with fetcher.fetch("gs://bucket/path/archive.tar.gz") as archive:
            with tarfile.open(fileobj=archive, mode="r:gz") as tar:
                tar.extractall(dest)
        # archive.tar.gz is gone from the temp directory here
    """

    def __init__(
        self,
        file: BinaryIO,
        path: Path,
        result: Optional[FetchResult] = None,
    ):
        """
        Take ownership of an open file.

        Args:
            file: Open binary file positioned where reading should start
            path: Location of the file on disk (deleted on close)
            result: Optional metadata about the fetch that produced the file
        """
        super().__init__()
        self._file = file
        self._path = Path(path)
        self.result = result

    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return str(self._path)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        self._check_open()
        return self._file.read(size)

    def readall(self) -> bytes:
        self._check_open()
        return self._file.read()

    def readinto(self, buffer) -> int:
        self._check_open()
        return self._file.readinto(buffer)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_open()
        return self._file.seek(offset, whence)

    def tell(self) -> int:
        self._check_open()
        return self._file.tell()

    def fileno(self) -> int:
        self._check_open()
        return self._file.fileno()

    def close(self) -> None:
        """
        Close the file handle, then delete the file.

        Errors closing the handle are logged and suppressed; deletion takes
        priority. A missing file is not an error. Any other deletion error
        propagates to the caller.
        """
        try:
            if not self._file.closed:
                try:
                    self._file.close()
                except OSError as e:
                    logger.warning(
                        "Error closing temp file handle",
                        extra={"destination_path": str(self._path), "error": str(e)},
                    )
            try:
                self._path.unlink()
                logger.debug(
                    "Removed temp file",
                    extra={"destination_path": str(self._path)},
                )
            except FileNotFoundError:
                pass
        finally:
            super().close()

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed file")

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<SelfCleaningFile path={str(self._path)!r} {state}>"


__all__ = ["SelfCleaningFile"]
