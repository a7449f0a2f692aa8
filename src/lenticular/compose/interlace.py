from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from lenticular.compose.marks import draw_alignment_marks, draw_crop_marks
from lenticular.core.geometry import mm_to_px, pixels_per_pitch
from lenticular.core.raster import WHITE, Frame, FrameInputError, Raster, as_rgba_u8, resize_rgba
from lenticular.settings import JobSettings

logger = logging.getLogger(__name__)

_COVERAGE_EPS = 1e-9


@dataclass(frozen=True)
class PrintLayout:
    content_width_px: int
    content_height_px: int
    margin_top_px: int
    margin_bottom_px: int
    margin_left_px: int
    margin_right_px: int

    @property
    def total_width_px(self) -> int:
        return self.content_width_px + self.margin_left_px + self.margin_right_px

    @property
    def total_height_px(self) -> int:
        return self.content_height_px + self.margin_top_px + self.margin_bottom_px


def compute_print_layout(job: JobSettings) -> PrintLayout:
    return PrintLayout(
        content_width_px=mm_to_px(job.width_mm, job.hppi),
        content_height_px=mm_to_px(job.height_mm, job.vppi),
        margin_top_px=mm_to_px(job.margin_top_mm, job.vppi),
        margin_bottom_px=mm_to_px(job.margin_bottom_mm, job.vppi),
        margin_left_px=mm_to_px(job.margin_left_mm, job.hppi),
        margin_right_px=mm_to_px(job.margin_right_mm, job.hppi),
    )


def _covered_length(x: np.ndarray, pitch_px: float, strip_px: float, index: int) -> np.ndarray:
    # Length of [0, x) covered by the strips of frame `index`.
    lens = np.floor(x / pitch_px)
    local = x - lens * pitch_px
    return lens * strip_px + np.clip(local - index * strip_px, 0.0, strip_px)


def strip_coverage(content_width_px: int, pitch_px: float, strip_px: float, index: int) -> np.ndarray:
    """
    Fraction of each content column covered by the strips of the `index`-th frame.

    Strips are [l*pitch + index*strip, l*pitch + (index+1)*strip) for every lens l,
    so sub-pixel strip widths give fractional weights on boundary columns.
    """
    edges = np.arange(content_width_px + 1, dtype=np.float64)
    cov = np.diff(_covered_length(edges, pitch_px, strip_px, index))
    cov[cov < _COVERAGE_EPS] = 0.0
    cov[cov > 1.0 - _COVERAGE_EPS] = 1.0
    return cov


def _check_frames(frames: Sequence[Frame]) -> list[np.ndarray]:
    if len(frames) == 0:
        raise FrameInputError("At least one frame is required to generate a print image.")
    out = []
    for i, frame in enumerate(frames):
        if frame is None:
            raise FrameInputError(f"Frame #{i} is missing")
        out.append(as_rgba_u8(frame.pixels, what=f"Frame #{i} ({frame.frame_id})"))
    return out


def _accumulate_strips(
    acc_rgb: np.ndarray,
    acc_a: np.ndarray,
    scaled: np.ndarray,
    x_offset: int,
    y_offset: int,
    coverage: np.ndarray,
) -> None:
    """Add `scaled`, translated by the frame offset and weighted by coverage * alpha, to the accumulators."""
    ch, cw = acc_a.shape[:2]
    cols = np.nonzero(coverage)[0]
    src_cols = cols - x_offset
    keep = (src_cols >= 0) & (src_cols < cw)
    cols = cols[keep]
    src_cols = src_cols[keep]

    y0 = max(0, y_offset)
    y1 = min(ch, ch + y_offset)
    if cols.size == 0 or y1 <= y0:
        return

    src = scaled[y0 - y_offset : y1 - y_offset][:, src_cols].astype(np.float64)
    a = coverage[cols][None, :, None] * (src[:, :, 3:4] / 255.0)
    acc_rgb[y0:y1, cols] += src[:, :, :3] * a
    acc_a[y0:y1, cols] += a


def _composite_over(content: np.ndarray, acc_rgb: np.ndarray, acc_a: np.ndarray) -> None:
    # The strips of one column partition it, so acc_a <= 1 and the background only shows where it is < 1.
    bg = content[:, :, :3].astype(np.float64)
    rgb = acc_rgb + bg * (1.0 - np.clip(acc_a, 0.0, 1.0))
    content[:, :, :3] = np.clip(np.floor(rgb + 0.5), 0.0, 255.0).astype(np.uint8)


def generate_lenticular_image(
    frames: Sequence[Frame],
    job: JobSettings,
    surface: Raster,
    interpolation: str = "linear",
) -> Raster:
    """
    Interlace `frames` into `surface` following the lens pitch of `job`.

    Each frame is scaled to fill the content box, shifted by its pixel offset and
    cut into strips of width (hppi/lpi)/n; strip k of every lens shows frame k
    (the sequence is reversed first for right-to-left jobs). Margins receive
    alignment and crop marks. The surface is resized as needed and returned.
    """
    rasters = _check_frames(frames)
    if job.lpi <= 0:
        raise ValueError("lpi must be > 0")

    logger.info("Job started: %d frames", len(rasters))
    logger.info("Settings: %gh x %gv PPI, %g LPI", job.hppi, job.vppi, job.lpi)
    logger.info("Physical size: %gmm x %gmm", job.width_mm, job.height_mm)

    layout = compute_print_layout(job)
    if surface.ensure_size(layout.total_width_px, layout.total_height_px):
        logger.debug("Surface resized to %dx%d", layout.total_width_px, layout.total_height_px)
    surface.fill(WHITE)

    sequence = list(zip(frames, rasters))
    if job.direction == "RL":
        sequence.reverse()

    pitch_px = pixels_per_pitch(job.hppi, job.lpi)
    strip_px = pitch_px / len(sequence)
    cw = layout.content_width_px
    ch = layout.content_height_px
    content = surface.pixels[
        layout.margin_top_px : layout.margin_top_px + ch,
        layout.margin_left_px : layout.margin_left_px + cw,
    ]

    acc_rgb = np.zeros((ch, cw, 3), dtype=np.float64)
    acc_a = np.zeros((ch, cw, 1), dtype=np.float64)
    for index, (frame, raster) in enumerate(sequence):
        coverage = strip_coverage(cw, pitch_px, strip_px, index)
        scaled = resize_rgba(raster, cw, ch, interpolation)
        _accumulate_strips(acc_rgb, acc_a, scaled, int(frame.x_offset), int(frame.y_offset), coverage)
    _composite_over(content, acc_rgb, acc_a)

    if layout.margin_top_px > 0 or layout.margin_bottom_px > 0:
        draw_alignment_marks(surface, layout, pitch_px, job.alignment_pos)
        draw_crop_marks(surface, layout)

    logger.info("Processing complete: %dx%d px", surface.width, surface.height)
    return surface
