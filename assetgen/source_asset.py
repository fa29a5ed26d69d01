"""
SourceAsset - A raster source file and the paths derived from its basename.
"""

import os
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional


JPG_EXTENSION = '.jpg'
PNG_EXTENSION = '.png'
WEBP_EXTENSION = '.webp'

SUPPORTED_EXTENSIONS = (JPG_EXTENSION, PNG_EXTENSION)


@dataclass
class SourceAsset:
    """
    A source image keyed by (basename, extension).

    A `.png` is a transient upload waiting to be promoted; a `.jpg` is the
    durable master that WEBP derivatives are generated from.

    Attributes:
        source_dir: Directory holding the source images
        filename: File name as listed (e.g., 'photo.png')
        basename: File name without extension
        extension: '.jpg' or '.png'
        modified: Modification time (epoch seconds) at scan time
        size: Size in bytes at scan time
    """
    source_dir: str
    filename: str
    basename: str
    extension: str
    modified: float = 0.0
    size: int = 0

    @classmethod
    def from_path(cls, path: str) -> 'SourceAsset':
        """Build a record from an existing file on disk."""
        source_dir, filename = os.path.split(path)
        basename, extension = os.path.splitext(filename)
        st = os.stat(path)
        return cls(
            source_dir=source_dir,
            filename=filename,
            basename=basename,
            extension=extension,
            modified=st.st_mtime,
            size=st.st_size,
        )

    @property
    def path(self) -> str:
        return os.path.join(self.source_dir, self.filename)

    @property
    def jpg_path(self) -> str:
        """Path of the JPEG master for this basename."""
        return os.path.join(self.source_dir, self.basename + JPG_EXTENSION)

    @property
    def png_path(self) -> str:
        """Path of a pending PNG upload for this basename."""
        return os.path.join(self.source_dir, self.basename + PNG_EXTENSION)

    def webp_path(self, derivative_dir: str) -> str:
        """Path of the WEBP derivative inside derivative_dir."""
        return os.path.join(derivative_dir, self.basename + WEBP_EXTENSION)

    @property
    def is_master(self) -> bool:
        return self.extension == JPG_EXTENSION

    @property
    def is_upload(self) -> bool:
        return self.extension == PNG_EXTENSION

    @property
    def modified_iso(self) -> Optional[str]:
        if not self.modified:
            return None
        return datetime.fromtimestamp(self.modified).isoformat(timespec='seconds')

    def to_dict(self) -> dict:
        return asdict(self)
