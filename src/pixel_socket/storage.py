"""
Image Storage
=============

Writes decoded images under the configured save directory.

Naming:
    - The server-provided filename (basename only) when present and usable
    - Otherwise image_<UTC timestamp><ext>, with the extension taken from
      the format or MIME type (".bin" when neither is known)
    - Existing files are never overwritten; a numeric suffix is added
"""

import logging
from pathlib import Path
from typing import Union

from pixel_socket.models.metadata import DecodedImage
from pixel_socket.stream.sniffing import extension_for


logger = logging.getLogger(__name__)


class ImageSaver:
    """
    Persists DecodedImage payloads to disk.

    Example:
        saver = ImageSaver("./received_images")
        path = saver.save(image)
    """

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory)
        self._saved_count: int = 0

    @property
    def saved_count(self) -> int:
        """Number of files written by this saver."""
        return self._saved_count

    def filename_for(self, image: DecodedImage) -> str:
        """Choose a file name for an image, without collision handling."""
        metadata = image.metadata
        if metadata.filename:
            name = Path(metadata.filename).name
            if name and name not in (".", "..") and "\x00" not in name:
                return name

        stamp = metadata.timestamp.strftime("%Y%m%d_%H%M%S_%f")
        return f"image_{stamp}{extension_for(metadata.format, metadata.mime_type)}"

    def save(self, image: DecodedImage) -> Path:
        """
        Write an image to the save directory.

        Returns:
            Path of the written file

        Raises:
            OSError: If the directory or file cannot be written
        """
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._unique_path(self.directory / self.filename_for(image))
        path.write_bytes(image.data)
        self._saved_count += 1
        logger.debug(f"Saved {len(image.data)} bytes to {path}")
        return path

    @staticmethod
    def _unique_path(path: Path) -> Path:
        if not path.exists():
            return path
        counter = 1
        while True:
            candidate = path.with_name(f"{path.stem}_{counter}{path.suffix}")
            if not candidate.exists():
                return candidate
            counter += 1
