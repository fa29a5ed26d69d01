"""
Scanner - Enumerates a source directory and keeps the supported raster files.
"""

import logging
import os
from typing import List, Optional

from .source_asset import SourceAsset, SUPPORTED_EXTENSIONS


class Scanner:
    """
    Lists candidate source images in a single directory (no recursion).

    Only the canonical lower-case extensions are recognised; sibling lookups
    (`photo.png` -> `photo.jpg`) are built from those names.
    """

    def __init__(
        self,
        source_dir: str,
        extensions=SUPPORTED_EXTENSIONS,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize scanner.

        Args:
            source_dir: Directory containing uploaded and master images
            extensions: Extensions to keep (default: .jpg and .png)
            logger: Optional logger instance
        """
        self.source_dir = source_dir
        self.extensions = tuple(extensions)
        self.logger = logger or logging.getLogger(__name__)

    def scan(self) -> List[SourceAsset]:
        """
        Scan the source directory.

        Returns:
            SourceAsset records sorted by file name

        Raises:
            OSError: if the directory cannot be listed
        """
        assets = []
        ignored = 0

        for filename in sorted(os.listdir(self.source_dir)):
            path = os.path.join(self.source_dir, filename)
            ext = os.path.splitext(filename)[1]

            if ext not in self.extensions:
                ignored += 1
                continue

            try:
                if not os.path.isfile(path):
                    ignored += 1
                    continue
                assets.append(SourceAsset.from_path(path))
            except FileNotFoundError:
                # Removed between listing and stat (e.g. a PNG just promoted).
                self.logger.debug(f"Vanished during scan: {filename}")

        self.logger.debug(
            f"Scanned {self.source_dir}: {len(assets)} candidates, {ignored} ignored"
        )
        return assets
