from __future__ import annotations

import math
import struct

import numpy as np

from lenticular.core.raster import Raster

# Field types
SHORT = 3
LONG = 4
RATIONAL = 5

# Tags, ascending
IMAGE_WIDTH = 256
IMAGE_LENGTH = 257
BITS_PER_SAMPLE = 258
COMPRESSION = 259
PHOTOMETRIC = 262
STRIP_OFFSETS = 273
SAMPLES_PER_PIXEL = 277
ROWS_PER_STRIP = 278
STRIP_BYTE_COUNTS = 279
X_RESOLUTION = 282
Y_RESOLUTION = 283
RESOLUTION_UNIT = 296

HEADER_SIZE = 8
EXTRA_VALUES_SIZE = 8 + 8 + 6
TAG_COUNT = 12
IFD_SIZE = 2 + TAG_COUNT * 12 + 4
RESOLUTION_DENOMINATOR = 100

_UINT32_MAX = 0xFFFFFFFF


class TiffEncodingError(ValueError):
    pass


def _resolution_numerator(ppi: float, axis: str) -> int:
    ppi = float(ppi)
    if not math.isfinite(ppi) or ppi <= 0:
        raise TiffEncodingError(f"{axis} resolution must be a positive finite number, got {ppi}")
    num = int(math.floor(ppi * RESOLUTION_DENOMINATOR + 0.5))
    if num < 1 or num > _UINT32_MAX:
        raise TiffEncodingError(f"{axis} resolution {ppi} does not fit a 32-bit rational")
    return num


def _rgb_bytes(pixels: np.ndarray) -> bytes:
    if pixels.dtype != np.uint8 or pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise TiffEncodingError(f"Expected an (H,W,4) or (H,W,3) uint8 raster, got {pixels.dtype} {pixels.shape}")
    return np.ascontiguousarray(pixels[:, :, :3]).tobytes()


def tiff_layout(width: int, height: int) -> dict[str, int]:
    """Byte offsets of every section for a width x height image."""
    rgb_size = width * height * 3
    pixel_offset = HEADER_SIZE
    x_res_offset = pixel_offset + rgb_size
    y_res_offset = x_res_offset + 8
    bits_offset = y_res_offset + 8
    ifd_offset = bits_offset + 6
    return {
        "rgb_size": rgb_size,
        "pixel_offset": pixel_offset,
        "x_res_offset": x_res_offset,
        "y_res_offset": y_res_offset,
        "bits_offset": bits_offset,
        "ifd_offset": ifd_offset,
        "file_size": ifd_offset + IFD_SIZE,
    }


def encode_tiff(pixels: np.ndarray | Raster, hppi: float, vppi: float) -> bytes:
    """
    Serialize an RGBA (or RGB) raster as an uncompressed little-endian baseline TIFF.

    Layout: header | RGB strip (alpha dropped) | XResolution | YResolution |
    BitsPerSample | IFD (12 entries) | next-IFD = 0. Everything is validated
    before the buffer is assembled.
    """
    if isinstance(pixels, Raster):
        pixels = pixels.pixels
    pixels = np.asarray(pixels)
    if pixels.ndim != 3:
        raise TiffEncodingError(f"Expected an (H,W,C) raster, got shape {pixels.shape}")
    height, width = int(pixels.shape[0]), int(pixels.shape[1])
    if width <= 0 or height <= 0:
        raise TiffEncodingError(f"Cannot encode an empty {width}x{height} raster")

    layout = tiff_layout(width, height)
    if layout["file_size"] > _UINT32_MAX:
        raise TiffEncodingError(f"{width}x{height} RGB image exceeds the 4 GiB classic TIFF limit")

    x_num = _resolution_numerator(hppi, "Horizontal")
    y_num = _resolution_numerator(vppi, "Vertical")
    rgb = _rgb_bytes(pixels)

    out = bytearray()
    out += struct.pack("<2sHI", b"II", 42, layout["ifd_offset"])
    out += rgb
    out += struct.pack("<II", x_num, RESOLUTION_DENOMINATOR)
    out += struct.pack("<II", y_num, RESOLUTION_DENOMINATOR)
    out += struct.pack("<HHH", 8, 8, 8)

    entries = [
        (IMAGE_WIDTH, LONG, 1, width),
        (IMAGE_LENGTH, LONG, 1, height),
        (BITS_PER_SAMPLE, SHORT, 3, layout["bits_offset"]),
        (COMPRESSION, SHORT, 1, 1),
        (PHOTOMETRIC, SHORT, 1, 2),
        (STRIP_OFFSETS, LONG, 1, layout["pixel_offset"]),
        (SAMPLES_PER_PIXEL, SHORT, 1, 3),
        (ROWS_PER_STRIP, LONG, 1, height),
        (STRIP_BYTE_COUNTS, LONG, 1, layout["rgb_size"]),
        (X_RESOLUTION, RATIONAL, 1, layout["x_res_offset"]),
        (Y_RESOLUTION, RATIONAL, 1, layout["y_res_offset"]),
        (RESOLUTION_UNIT, SHORT, 1, 2),
    ]
    out += struct.pack("<H", len(entries))
    for tag, field_type, count, value in entries:
        # Inline SHORTs are left-justified in the 4-byte value field.
        out += struct.pack("<HHII", tag, field_type, count, value)
    out += struct.pack("<I", 0)

    if len(out) != layout["file_size"]:
        raise TiffEncodingError(f"Encoded {len(out)} bytes, expected {layout['file_size']}")
    return bytes(out)
