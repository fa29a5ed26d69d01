"""
ImageConverter - Promotes PNG uploads to JPEG masters and renders WEBP derivatives.
"""

import logging
import os
import tempfile
from typing import Optional

from PIL import Image

from .conversion_stats import ConversionOutcome
from .source_asset import SourceAsset


class ImageConverter:
    """
    Converts one source file per call using Pillow.

    PNG uploads become progressive 4:4:4 JPEG masters and the PNG is removed.
    JPEG masters get a WEBP derivative whenever the derivative is missing or
    older than the master. Freshness is decided by modification time only.
    """

    def __init__(
        self,
        jpeg_quality: int = 95,
        webp_quality: int = 80,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize converter.

        Args:
            jpeg_quality: Quality for promoted JPEG masters (default: 95)
            webp_quality: Quality for WEBP derivatives (default: 80)
            logger: Optional logger instance
        """
        self.jpeg_quality = jpeg_quality
        self.webp_quality = webp_quality
        self.logger = logger or logging.getLogger(__name__)

    def convert(self, asset: SourceAsset, derivative_dir: str) -> ConversionOutcome:
        """
        Convert a single source file.

        Never raises: any I/O or codec error is logged and reported as FAILED.
        """
        try:
            if asset.is_master:
                return self._convert_master(asset, derivative_dir)
            return self._convert_upload(asset)
        except Exception as e:
            self.logger.error(f"Error converting {asset.filename}: {e}")
            return ConversionOutcome.FAILED

    def _convert_master(self, asset: SourceAsset, derivative_dir: str) -> ConversionOutcome:
        # A pending PNG upload wins over the current master.
        if os.path.exists(asset.png_path):
            return ConversionOutcome.SKIPPED

        webp_path = asset.webp_path(derivative_dir)
        if not self.needs_update(asset.jpg_path, webp_path):
            return ConversionOutcome.SKIPPED

        self.generate_webp(asset.jpg_path, webp_path)
        self.logger.debug(f"Generated derivative: {webp_path}")
        return ConversionOutcome.PROCESSED

    def _convert_upload(self, asset: SourceAsset) -> ConversionOutcome:
        if not self.needs_update(asset.png_path, asset.jpg_path):
            return ConversionOutcome.SKIPPED

        self.promote_png(asset.png_path, asset.jpg_path)
        os.remove(asset.png_path)
        self.logger.debug(f"Promoted {asset.filename} -> {os.path.basename(asset.jpg_path)}")
        return ConversionOutcome.PROCESSED

    @staticmethod
    def needs_update(src: str, dest: str) -> bool:
        """True when dest is missing or older than src (or either cannot be read)."""
        try:
            return os.stat(dest).st_mtime < os.stat(src).st_mtime
        except OSError:
            return True

    def promote_png(self, png_path: str, jpg_path: str) -> None:
        """Encode a PNG upload as a high-quality JPEG master, keeping metadata."""
        with Image.open(png_path) as img:
            img.load()
            options = self._metadata_options(img)
            rgb = self._convert_color_mode(img)
            self._atomic_save(
                rgb, jpg_path, 'JPEG',
                quality=self.jpeg_quality,
                progressive=True,
                subsampling=0,
                optimize=True,
                **options
            )

    def generate_webp(self, jpg_path: str, webp_path: str) -> None:
        """Render the WEBP delivery derivative of a JPEG master."""
        with Image.open(jpg_path) as img:
            img.load()
            options = self._metadata_options(img)
            rgb = self._convert_color_mode(img)
            self._atomic_save(rgb, webp_path, 'WEBP', quality=self.webp_quality, **options)

    def _atomic_save(self, img: Image.Image, dest: str, image_format: str, **save_args) -> None:
        """Write to a temp file beside dest, then rename over it."""
        dest_dir = os.path.dirname(dest) or '.'
        fd, tmp_path = tempfile.mkstemp(
            dir=dest_dir, prefix='.' + os.path.basename(dest), suffix='.part'
        )
        os.close(fd)
        try:
            img.save(tmp_path, format=image_format, **save_args)
            os.replace(tmp_path, dest)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    @staticmethod
    def _metadata_options(img: Image.Image) -> dict:
        """Collect EXIF and ICC data to carry into the encoded output."""
        options = {}
        exif = img.getexif()
        if exif:
            options['exif'] = exif.tobytes()
        icc_profile = img.info.get('icc_profile')
        if icc_profile:
            options['icc_profile'] = icc_profile
        return options

    @staticmethod
    def _convert_color_mode(img: Image.Image) -> Image.Image:
        """Flatten transparency onto white and normalise to RGB."""
        if img.mode in ('RGBA', 'LA'):
            background = Image.new('RGB', img.size, (255, 255, 255))
            if img.mode == 'LA':
                img = img.convert('RGBA')
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode == 'P':
            img = img.convert('RGBA')
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode != 'RGB':
            return img.convert('RGB')
        return img
