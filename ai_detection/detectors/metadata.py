"""
Camera metadata inspection.

Checks EXIF for the camera Make / Model fields. Their presence is
reported as ``cameraInfoPresent``. This stage is best effort: anything
that goes wrong while parsing is logged and treated as "no camera info".
"""

import logging
from typing import Optional

try:
    import exif
    HAS_EXIF = True
except ImportError:
    HAS_EXIF = False

from lib.utils import str2image, to_unicode


logger = logging.getLogger(__name__)

# EXIF tag ids (IFD0).
TAG_MAKE = 271
TAG_MODEL = 272


def _clean(value) -> Optional[str]:
    """Normalize an EXIF value to a stripped string, or None if empty."""
    if value is None:
        return None
    text = to_unicode(value).strip().strip("\x00").strip()
    return text or None


class MetadataInspector:
    """
    Detect camera make/model metadata in the encoded image bytes.

    Uses the ``exif`` library when it is installed and falls back to
    Pillow's EXIF reader.
    """

    name = "Metadata Inspector"

    def check_deps(self) -> bool:
        """Check if exif library is available."""
        if not HAS_EXIF:
            logger.warning("'exif' library not available, using Pillow EXIF only")
        return HAS_EXIF

    def camera_info(self, data: bytes) -> dict:
        """
        Extract camera make/model.

        Returns:
            dict with 'make' and 'model' keys (None when absent)
        """
        info = {'make': None, 'model': None}
        if not data:
            return info

        if HAS_EXIF:
            try:
                info = self._read_with_exif(data)
            except Exception as e:
                logger.debug(f"exif metadata check failed: {e}")

        if not (info['make'] or info['model']):
            try:
                info = self._read_with_pil(data)
            except Exception as e:
                logger.debug(f"PIL metadata check failed: {e}")

        return info

    def camera_info_present(self, data: Optional[bytes]) -> bool:
        """True iff a non-empty Make or Model field is present."""
        try:
            info = self.camera_info(data)
        except Exception as e:
            logger.debug(f"Metadata inspection failed: {e}")
            return False
        return bool(info['make'] or info['model'])

    def _read_with_exif(self, data: bytes) -> dict:
        """Read Make/Model using the exif library."""
        img = exif.Image(data)
        if not img.has_exif:
            return {'make': None, 'model': None}
        return {
            'make': _clean(img.get('make')),
            'model': _clean(img.get('model')),
        }

    def _read_with_pil(self, data: bytes) -> dict:
        """Read Make/Model using PIL (EXIF only)."""
        img = str2image(data)
        exif_data = img.getexif()
        if not exif_data:
            return {'make': None, 'model': None}
        return {
            'make': _clean(exif_data.get(TAG_MAKE)),
            'model': _clean(exif_data.get(TAG_MODEL)),
        }
