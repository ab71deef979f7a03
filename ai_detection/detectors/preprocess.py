"""
Pixel preprocessing.

Turns a request payload into an RGBA ImageSample, then derives the two
views the later stages need: a full resolution grayscale buffer for the
heuristics and a small normalized grid for the classifier.
"""

import logging
from dataclasses import dataclass
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

try:
    import pillow_heif
    pillow_heif.register_heif_opener()
except ImportError:
    pillow_heif = None

from lib.exceptions import ImageDecodeError, ImageTooSmallError
from lib.forensics.filters import get_intensity
from lib.utils import payload2bytes, str2image
from synthscan import settings


logger = logging.getLogger(__name__)

# The heuristics use 3x3 kernels and need at least one interior pixel.
MIN_SIDE = 3

RESAMPLE_FILTERS = {
    'nearest': Image.Resampling.NEAREST,
    'box': Image.Resampling.BOX,
    'bilinear': Image.Resampling.BILINEAR,
    'bicubic': Image.Resampling.BICUBIC,
    'lanczos': Image.Resampling.LANCZOS,
}

# Single channel modes wider than 8 bits. convert() clamps these to 255
# instead of rescaling, so they are brought down to "L" first.
WIDE_MODES = ("I;16", "I;16L", "I;16B", "I;16N", "I", "F")


@dataclass(frozen=True)
class ImageSample:
    """Decoded raster: RGBA uint8 pixels shaped (height, width, 4)."""
    width: int
    height: int
    pixels: np.ndarray

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> 'ImageSample':
        """Build a sample from an (H, W, 4) or (H, W, 3) uint8 array."""
        arr = np.asarray(pixels)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ImageDecodeError(f"Expected an (H, W, 3|4) array, got shape {arr.shape}")
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr.astype(np.uint8), alpha], axis=2)
        arr = np.array(arr, dtype=np.uint8, copy=True)
        arr.setflags(write=False)
        return cls(width=arr.shape[1], height=arr.shape[0], pixels=arr)

    def to_image(self) -> Image.Image:
        return Image.fromarray(np.ascontiguousarray(self.pixels))


@dataclass(frozen=True)
class GrayscaleBuffer:
    """Flat float32 luminance values in [0, 255], row-major."""
    width: int
    height: int
    values: np.ndarray

    def __len__(self) -> int:
        return self.values.size

    def as_2d(self) -> np.ndarray:
        return self.values.reshape(self.height, self.width)


@dataclass(frozen=True)
class EncodedBytes:
    """An encoded image file (JPEG, PNG, ...) not yet decoded."""
    data: bytes


@dataclass(frozen=True)
class DecodedRaster:
    """An image that is already decoded. Carries no metadata."""
    sample: ImageSample


DecodableSource = Union[EncodedBytes, DecodedRaster]


def as_source(payload) -> DecodableSource:
    """
    Coerce a request payload into a DecodableSource.

    Args:
        payload: bytes, bytearray, data URI string, EncodedBytes,
                 DecodedRaster or ImageSample

    Raises:
        ImageDecodeError: unsupported payload or malformed data URI
    """
    if isinstance(payload, (EncodedBytes, DecodedRaster)):
        return payload
    if isinstance(payload, ImageSample):
        return DecodedRaster(payload)
    return EncodedBytes(payload2bytes(payload))


def to_8bit(img: Image.Image) -> Image.Image:
    """Scale a 16-bit (or wider) single channel image down to mode "L".

    Values are read on a 0..65535 scale and divided by 256.
    """
    values = np.asarray(img, dtype=np.float64)
    scaled = np.clip(np.floor(values / 256), 0, 255).astype(np.uint8)
    return Image.fromarray(scaled)


def decode_image(data: bytes) -> ImageSample:
    """Decode encoded image bytes into an RGBA ImageSample."""
    if not data:
        raise ImageDecodeError("Empty image payload")

    try:
        img = str2image(data)
        fmt = img.format
        if img.width * img.height > settings.MAX_IMAGE_PIXELS:
            raise ImageDecodeError(
                f"Image is {img.width}x{img.height}, more than "
                f"{settings.MAX_IMAGE_PIXELS} pixels"
            )
        img.load()
        if img.mode in WIDE_MODES:
            img = to_8bit(img)
        rgba = img.convert('RGBA')
    except (UnidentifiedImageError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}")
    except (OSError, ValueError, SyntaxError) as e:
        # Truncated or corrupt streams surface as OSError from the codecs.
        raise ImageDecodeError(f"Could not decode image: {e}")

    logger.debug("Decoded %s image %dx%d", fmt, rgba.width, rgba.height)
    return ImageSample.from_array(np.asarray(rgba))


def load_sample(source: DecodableSource) -> ImageSample:
    """Return the ImageSample behind a DecodableSource, decoding if needed."""
    if isinstance(source, DecodedRaster):
        return source.sample
    if isinstance(source, EncodedBytes):
        return decode_image(source.data)
    raise ImageDecodeError(f"Unsupported image source: {type(source).__name__}")


def check_dimensions(sample: ImageSample) -> None:
    """Reject images the 3x3 heuristics cannot score."""
    if sample.width < MIN_SIDE or sample.height < MIN_SIDE:
        raise ImageTooSmallError(
            f"Image is {sample.width}x{sample.height}, "
            f"minimum is {MIN_SIDE}x{MIN_SIDE}"
        )


def to_grayscale(sample: ImageSample) -> GrayscaleBuffer:
    """Full resolution RGB-mean luminance buffer (alpha ignored)."""
    gray = get_intensity(sample.pixels).ravel()
    gray.setflags(write=False)
    return GrayscaleBuffer(width=sample.width, height=sample.height, values=gray)


def classifier_grid(sample: ImageSample, size: int = None, resample: str = None) -> np.ndarray:
    """
    Resample to a square grayscale grid normalized to [0, 1].

    Args:
        sample: decoded image
        size: grid side, defaults to settings.GRID_SIZE
        resample: Pillow filter name, defaults to settings.GRID_RESAMPLE

    Returns:
        float32 array shaped (1, 1, size, size)
    """
    size = size or settings.GRID_SIZE
    resample = (resample or settings.GRID_RESAMPLE).lower()
    if resample not in RESAMPLE_FILTERS:
        raise ValueError(f"Unknown resample filter '{resample}', "
                         f"must be one of {sorted(RESAMPLE_FILTERS)}")

    if (sample.width, sample.height) == (size, size):
        pixels = sample.pixels
    else:
        small = sample.to_image().resize((size, size), RESAMPLE_FILTERS[resample])
        pixels = np.asarray(small)

    grid = get_intensity(pixels) / np.float32(255)
    return grid.astype(np.float32).reshape(1, 1, size, size)
