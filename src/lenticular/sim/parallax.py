from __future__ import annotations

import logging
import math
from typing import Sequence

import cv2
import numpy as np

from lenticular.core.geometry import fov_for
from lenticular.core.raster import BLACK, Frame, Raster, as_rgba_u8, resize_rgba, round_half_up
from lenticular.settings import JobSettings, PhysicsSettings
from lenticular.sim.effects import lens_postprocess

logger = logging.getLogger(__name__)

COLUMN_STEP_PX = 2
EYE_TRAVEL_MM = 600.0
BLEND_THRESHOLD = 0.05
ERROR_COLOR = (255, 68, 68, 255)


def frame_positions(
    draw_width_px: int,
    job: JobSettings,
    physics: PhysicsSettings,
    sim_x: float,
    fov_deg: float,
    frame_count: int,
    step: int = COLUMN_STEP_PX,
) -> np.ndarray:
    """
    Fractional frame index seen through each column block of the print.

    Block starts x = 0, step, 2*step, ... are mapped to the print plane, the ray
    from the eye (displaced by (sim_x-0.5)*EYE_TRAVEL_MM) gives a viewing angle,
    and the angle normalised by the FOV selects a position in [0, frame_count-1].
    """
    xs = np.arange(0, draw_width_px, step, dtype=np.float64)
    u = xs / float(draw_width_px)
    phys_x_mm = (u - 0.5) * job.width_mm
    eye_x_mm = (float(sim_x) - 0.5) * EYE_TRAVEL_MM
    angle = np.arctan2(phys_x_mm - eye_x_mm, abs(physics.viewing_distance_mm))

    t = angle / math.radians(fov_deg) + 0.5
    if job.direction == "RL":
        t = 1.0 - t
    t = t - np.floor(t)
    return t * (frame_count - 1)


def _draw_error(surface: Raster, text: str) -> None:
    font = cv2.FONT_HERSHEY_SIMPLEX
    (tw, th), _baseline = cv2.getTextSize(text, font, 0.5, 2)
    org = (int((surface.width - tw) // 2), int((surface.height + th) // 2))
    cv2.putText(surface.pixels, text, org, font, 0.5, ERROR_COLOR, 2, cv2.LINE_AA)


def _fit_box(frame_w: int, frame_h: int, width: int, height: int) -> tuple[int, int, int, int]:
    # Contain the frame aspect inside (width, height), centred.
    aspect = frame_w / frame_h
    draw_w = float(width)
    draw_h = width / aspect
    if draw_h > height:
        draw_h = float(height)
        draw_w = height * aspect
    off_x = int(math.floor((width - draw_w) / 2.0))
    off_y = int(math.floor((height - draw_h) / 2.0))
    dw = int(np.clip(round_half_up(draw_w), 1, width - off_x))
    dh = int(np.clip(round_half_up(draw_h), 1, height - off_y))
    return off_x, off_y, dw, dh


def render_simulation_frame(
    surface: Raster,
    width: int,
    height: int,
    frames: Sequence[np.ndarray | Frame],
    job: JobSettings,
    physics: PhysicsSettings,
    sim_x: float,
) -> float:
    """
    Draw what an eye at horizontal position `sim_x` (0..1) sees through the lens.

    Returns the lens FOV in degrees. When it is 0 (invalid optics) or no frames are
    given, an error caption is drawn instead of the frames.
    """
    rasters = [
        as_rgba_u8(f.pixels if isinstance(f, Frame) else f, what=f"Frame #{i}") for i, f in enumerate(frames)
    ]
    surface.ensure_size(width, height)
    surface.fill(BLACK)

    fov_deg = fov_for(job, physics)
    if not rasters:
        logger.warning("Simulation skipped: no frames")
        _draw_error(surface, "NO FRAMES")
        return fov_deg
    if fov_deg <= 0:
        logger.warning(
            "Simulation skipped: invalid physics (lpi=%g, r=%gum, t=%gum, n=%g)",
            job.lpi,
            physics.radius_microns,
            physics.thickness_microns,
            physics.refractive_index,
        )
        _draw_error(surface, "INVALID PHYSICS PARAMETERS")
        return fov_deg

    n = len(rasters)
    off_x, off_y, dw, dh = _fit_box(rasters[0].shape[1], rasters[0].shape[0], width, height)
    stack = np.stack([resize_rgba(r, dw, dh) for r in rasters])

    pos = frame_positions(dw, job, physics, sim_x, fov_deg, n)
    idx = np.minimum(np.floor(pos).astype(np.int64), n - 1)
    nxt = np.minimum(idx + 1, n - 1)
    mix = (pos - idx).astype(np.float32)

    cols = np.arange(dw)
    block = cols // COLUMN_STEP_PX
    rows = np.arange(dh)[:, None]
    view = stack[idx[block][None, :], rows, cols[None, :]].astype(np.float32)

    col_mix = np.where(mix[block] > BLEND_THRESHOLD, mix[block], 0.0).astype(np.float32)
    blended_cols = np.nonzero(col_mix)[0]
    if blended_cols.size:
        nxt_view = stack[nxt[block][blended_cols][None, :], rows, blended_cols[None, :]].astype(np.float32)
        m = col_mix[blended_cols][None, :, None]
        view[:, blended_cols] = view[:, blended_cols] * (1.0 - m) + nxt_view * m

    # Frames are drawn over the black background.
    rgb = view[:, :, :3] * (view[:, :, 3:4] / 255.0)
    region = surface.pixels[off_y : off_y + dh, off_x : off_x + dw]
    region[:, :, :3] = np.clip(np.rint(rgb), 0.0, 255.0).astype(np.uint8)

    surface.pixels[...] = lens_postprocess(surface.pixels)
    logger.debug("Simulation frame at sim_x=%.3f, fov=%.2f deg", sim_x, fov_deg)
    return fov_deg
