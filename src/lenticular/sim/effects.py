from __future__ import annotations

import numpy as np

SCANLINE_EVEN = 0.95
SCANLINE_ODD = 0.85
RED_SHIFT_PX = -2
BLUE_SHIFT_PX = 2

# (position in [0,1] between inner and outer radius, darkening alpha)
VIGNETTE_STOPS = ((0.0, 0.0), (0.8, 0.2), (1.0, 0.8))

POSTPROCESS_MAX_PIXELS = 2_000_000


def _shifted_channel(channel: np.ndarray, shift: int) -> np.ndarray:
    """out[:, x] = channel[:, x + shift] where that column exists, else channel[:, x]. Never wraps across rows."""
    out = channel.copy()
    w = channel.shape[1]
    if shift < 0:
        out[:, -shift:] = channel[:, : w + shift]
    elif shift > 0:
        out[:, : w - shift] = channel[:, shift:]
    return out


def scanline_factors(height: int) -> np.ndarray:
    f = np.full((height,), SCANLINE_EVEN, dtype=np.float32)
    f[1::2] = SCANLINE_ODD
    return f


def scanlines_and_aberration(img_u8: np.ndarray) -> np.ndarray:
    """
    Returns a new (H,W,4) uint8 image: red sampled RED_SHIFT_PX columns away, blue
    BLUE_SHIFT_PX columns away (clamped per row), every channel except alpha
    multiplied by the alternating scanline factor.
    """
    src = img_u8.astype(np.float32)
    rgb = np.empty(src.shape[:2] + (3,), dtype=np.float32)
    rgb[:, :, 0] = _shifted_channel(src[:, :, 0], RED_SHIFT_PX)
    rgb[:, :, 1] = src[:, :, 1]
    rgb[:, :, 2] = _shifted_channel(src[:, :, 2], BLUE_SHIFT_PX)
    rgb *= scanline_factors(src.shape[0])[:, None, None]

    out = img_u8.copy()
    out[:, :, :3] = np.clip(np.rint(rgb), 0.0, 255.0).astype(np.uint8)
    return out


def vignette_alpha(h: int, w: int) -> np.ndarray:
    """
    (H,W) float32 darkening weight of a radial gradient centred on the canvas:
    0 inside radius h/2.5, ramping through the stops to 0.8 at radius h and beyond.
    """
    yy, xx = np.meshgrid(np.arange(h, dtype=np.float32), np.arange(w, dtype=np.float32), indexing="ij")
    cx = w * 0.5
    cy = h * 0.5
    # Gradients are evaluated at pixel centres.
    r = np.sqrt((xx + 0.5 - cx) ** 2 + (yy + 0.5 - cy) ** 2)
    r0 = h / 2.5
    r1 = float(h)
    t = np.clip((r - r0) / max(1e-6, r1 - r0), 0.0, 1.0)
    pos, alpha = zip(*VIGNETTE_STOPS)
    return np.interp(t, pos, alpha).astype(np.float32)


def apply_vignette(img_u8: np.ndarray) -> np.ndarray:
    """Multiply-composite black through `vignette_alpha`; alpha channel untouched."""
    a = vignette_alpha(img_u8.shape[0], img_u8.shape[1])
    out = img_u8.copy()
    rgb = img_u8[:, :, :3].astype(np.float32) * (1.0 - a)[:, :, None]
    out[:, :, :3] = np.clip(np.rint(rgb), 0.0, 255.0).astype(np.uint8)
    return out


def lens_postprocess(img_u8: np.ndarray) -> np.ndarray:
    """
    Scanlines, chromatic aberration and vignette as one pure transform.
    Images of POSTPROCESS_MAX_PIXELS or more are returned unchanged (as a copy).
    """
    h, w = img_u8.shape[:2]
    if h * w >= POSTPROCESS_MAX_PIXELS:
        return img_u8.copy()
    return apply_vignette(scanlines_and_aberration(img_u8))
