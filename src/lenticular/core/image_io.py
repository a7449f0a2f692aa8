from __future__ import annotations

import io
from pathlib import Path

import numpy as np
from PIL import Image

from lenticular.core.raster import Frame, Raster, as_rgba_u8


def load_rgba_u8(path: str | Path) -> np.ndarray:
    """
    Decode an image file into an (H,W,4) uint8 RGBA array.

    Decoding happens outside the compositing core; generators only ever see the
    resulting arrays.
    """
    p = Path(path)
    with Image.open(p) as im:
        im = im.convert("RGBA")
        arr = np.asarray(im, dtype=np.uint8).copy()
    return arr


def load_frame(path: str | Path, frame_id: str | None = None, x_offset: int = 0, y_offset: int = 0) -> Frame:
    p = Path(path)
    return Frame(
        frame_id=frame_id if frame_id is not None else p.stem,
        pixels=load_rgba_u8(p),
        x_offset=int(x_offset),
        y_offset=int(y_offset),
        name=p.name,
    )


def encode_png(pixels: np.ndarray | Raster, dpi: tuple[float, float] | None = None) -> bytes:
    """PNG bytes of an RGBA/RGB raster, optionally tagged with (horizontal, vertical) DPI."""
    if isinstance(pixels, Raster):
        pixels = pixels.pixels
    arr = as_rgba_u8(pixels)
    img = Image.fromarray(arr)
    buf = io.BytesIO()
    if dpi is not None:
        img.save(buf, format="PNG", dpi=(float(dpi[0]), float(dpi[1])))
    else:
        img.save(buf, format="PNG")
    return buf.getvalue()
