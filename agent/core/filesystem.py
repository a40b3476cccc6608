# Local file system operations exposed to the controller
import base64
import logging
import math
import os
from typing import List

from shared.models import (
    DeleteFileMessage,
    DownloadFilePartMessage,
    FileMeta,
    NavigateToFolderMessage,
)

logger = logging.getLogger(__name__)

# Size of one DownloadFilePart chunk
DEFAULT_PART_SIZE = 64 * 1024


class FileSystem:
    """
    File system collaborator used by the navigation, deletion and download handlers.

    Each operation returns the protocol message to forward to the controller and
    raises ``OSError`` or ``ValueError`` on failure; the caller is responsible
    for turning errors into status reports.
    """

    def __init__(self, part_size: int = DEFAULT_PART_SIZE):
        if part_size <= 0:
            raise ValueError("part_size must be positive")
        self.part_size = part_size

    def navigate(self, path: str) -> NavigateToFolderMessage:
        """
        List the content of a folder.

        Entries that vanish or cannot be stat'ed while listing are skipped.
        Directories come first, each group sorted by name.
        """
        folder = os.path.abspath(os.path.expanduser(path))
        files: List[FileMeta] = []

        with os.scandir(folder) as entries:
            for entry in entries:
                try:
                    is_directory = entry.is_dir()
                    size = 0 if is_directory else entry.stat().st_size
                except OSError as e:
                    logger.debug(f"Skipping {entry.path}: {e}")
                    continue
                files.append(
                    FileMeta(name=entry.name, path=entry.path, is_directory=is_directory, size=size)
                )

        files.sort(key=lambda meta: (not meta.is_directory, meta.name.lower()))
        return NavigateToFolderMessage(path=folder, files=files)

    def delete_file(self, path: str) -> DeleteFileMessage:
        file_path = os.path.abspath(os.path.expanduser(path))
        if os.path.isdir(file_path):
            raise IsADirectoryError(f"Not a file: {file_path}")
        os.remove(file_path)
        logger.info(f"Deleted {file_path}")
        return DeleteFileMessage(file_path=file_path)

    def total_parts(self, size: int) -> int:
        return max(1, math.ceil(size / self.part_size))

    def download_part(self, operation_id: int, part: int, path: str) -> DownloadFilePartMessage:
        """
        Read one chunk of a file.

        Args:
            operation_id: Correlation id of the transfer
            part: 1-based index of the requested chunk
            path: File to read

        Returns:
            DownloadFilePartMessage: The chunk, base64-encoded, with the part count

        Raises:
            ValueError: If ``part`` is outside ``1..total_part``
        """
        file_path = os.path.abspath(os.path.expanduser(path))
        size = os.path.getsize(file_path)
        total_part = self.total_parts(size)

        if part < 1 or part > total_part:
            raise ValueError(f"Part {part} out of range 1..{total_part} for {file_path}")

        with open(file_path, "rb") as f:
            f.seek((part - 1) * self.part_size)
            chunk = f.read(self.part_size)

        return DownloadFilePartMessage(
            operation_id=operation_id,
            path=file_path,
            current_part=part,
            total_part=total_part,
            data=base64.b64encode(chunk).decode("ascii"),
        )
