from __future__ import annotations

from dataclasses import dataclass, field

import cv2
import numpy as np

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)

_INTERPOLATIONS = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "lanczos4": cv2.INTER_LANCZOS4,
    "area": cv2.INTER_AREA,
}


class FrameInputError(ValueError):
    pass


@dataclass(frozen=True)
class Frame:
    """A decoded source frame. `pixels` is borrowed from the caller and never written."""

    frame_id: str
    pixels: np.ndarray
    x_offset: int = 0
    y_offset: int = 0
    name: str = ""

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass
class Raster:
    """
    Mutable RGBA drawing surface (H,W,4) uint8.

    A surface is passed explicitly to every generator; at most one writer may use
    it at a time.
    """

    pixels: np.ndarray = field(default_factory=lambda: np.zeros((0, 0, 4), dtype=np.uint8))

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def ensure_size(self, width: int, height: int) -> bool:
        """
        Reallocate the pixel store if (width,height) differs from the current size.
        Returns True when a new buffer was allocated. The new store is allocated
        before it replaces the old one, so a failed allocation leaves the surface as it was.
        """
        width = int(width)
        height = int(height)
        if width <= 0 or height <= 0:
            raise ValueError(f"Surface size must be positive, got {width}x{height}")
        if (self.width, self.height) == (width, height):
            return False
        new_pixels = np.zeros((height, width, 4), dtype=np.uint8)
        self.pixels = new_pixels
        return True

    def fill(self, color: tuple[int, int, int, int]) -> None:
        self.pixels[...] = np.asarray(color, dtype=np.uint8)


def as_rgba_u8(img: np.ndarray | None, what: str = "raster") -> np.ndarray:
    """Validate a decoded raster and return it as (H,W,4) uint8 (gray and RGB are promoted)."""
    if img is None:
        raise FrameInputError(f"{what} has no decoded pixels")
    arr = np.asarray(img)
    if arr.dtype != np.uint8:
        raise FrameInputError(f"{what} must be uint8, got {arr.dtype}")
    if arr.ndim == 2:
        arr = np.repeat(arr[:, :, None], 3, axis=2)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise FrameInputError(f"{what} must be shaped (H,W), (H,W,3) or (H,W,4), got {arr.shape}")
    if arr.shape[0] == 0 or arr.shape[1] == 0:
        raise FrameInputError(f"{what} is empty")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=2)
    return arr


def resize_rgba(img_u8: np.ndarray, width: int, height: int, interp: str = "linear") -> np.ndarray:
    interp = str(interp)
    if interp not in _INTERPOLATIONS:
        raise ValueError("interpolation must be " + "|".join(_INTERPOLATIONS))
    if img_u8.shape[1] == width and img_u8.shape[0] == height:
        return img_u8
    return cv2.resize(img_u8, (int(width), int(height)), interpolation=_INTERPOLATIONS[interp])


def round_half_up(x: np.ndarray | float) -> np.ndarray:
    """Round half up (toward +inf), the rounding used for pixel snapping throughout."""
    return np.floor(np.asarray(x, dtype=np.float64) + 0.5)


def fill_rect(
    pixels: np.ndarray,
    x: float,
    y: float,
    w: float,
    h: float,
    color: tuple[int, int, int, int],
) -> None:
    """Fill the pixel-snapped rectangle [x, x+w) x [y, y+h), clipped to the surface."""
    H, W = pixels.shape[:2]
    x0 = int(np.clip(round_half_up(x), 0, W))
    x1 = int(np.clip(round_half_up(x + w), 0, W))
    y0 = int(np.clip(round_half_up(y), 0, H))
    y1 = int(np.clip(round_half_up(y + h), 0, H))
    if x1 <= x0 or y1 <= y0:
        return
    pixels[y0:y1, x0:x1] = np.asarray(color, dtype=np.uint8)
