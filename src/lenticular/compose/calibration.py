from __future__ import annotations

import logging
import math

import cv2
import numpy as np

from lenticular.core.geometry import mm_to_px, pixels_per_pitch
from lenticular.core.raster import BLACK, WHITE, Raster, fill_rect, round_half_up
from lenticular.settings import CalibrationSettings, JobSettings

logger = logging.getLogger(__name__)

LABEL_COLOR = (255, 0, 0, 255)
LABEL_FONT = cv2.FONT_HERSHEY_SIMPLEX
LABEL_SCALE = 0.5
LABEL_THICKNESS = 2
LABEL_X = 10
LABEL_PAD = 5
CAPTION_SCALE = 0.4
CAPTION_THICKNESS = 1
CAPTION_MARGIN = 10


def band_lpi(calibration: CalibrationSettings, index: int) -> float:
    return calibration.center_lpi + (index - calibration.strip_count // 2) * calibration.step_lpi


def calibration_lpi_values(calibration: CalibrationSettings) -> list[float]:
    """LPI of every band, top to bottom."""
    return [band_lpi(calibration, i) for i in range(calibration.strip_count)]


def chart_lpi_at(y_px: float, height_px: float, calibration: CalibrationSettings) -> float:
    """LPI of the band containing chart row `y_px` (rows outside the chart snap to the nearest band)."""
    band_h = float(height_px) / calibration.strip_count
    index = int(math.floor(float(y_px) / band_h))
    index = min(max(index, 0), calibration.strip_count - 1)
    return band_lpi(calibration, index)


def line_positions(width_px: int, ppi: float, lpi: float) -> np.ndarray:
    """Columns of the 1 px pitch lines of one band (rounded independently per band)."""
    pitch_px = pixels_per_pitch(ppi, lpi)
    count = int(math.ceil(width_px / pitch_px))
    xs = round_half_up(np.arange(count, dtype=np.float64) * pitch_px).astype(np.int64)
    return xs[(xs >= 0) & (xs < width_px)]


def _draw_label(surface: Raster, text: str, y_mid: float) -> None:
    (tw, th), baseline = cv2.getTextSize(text, LABEL_FONT, LABEL_SCALE, LABEL_THICKNESS)
    top = y_mid - th / 2.0 - LABEL_PAD
    fill_rect(surface.pixels, LABEL_X, top, tw + 2 * LABEL_PAD, th + baseline + 2 * LABEL_PAD, WHITE)
    org = (LABEL_X + LABEL_PAD, int(round_half_up(y_mid + th / 2.0)))
    cv2.putText(surface.pixels, text, org, LABEL_FONT, LABEL_SCALE, LABEL_COLOR, LABEL_THICKNESS, cv2.LINE_AA)


def _draw_caption(surface: Raster, text: str) -> None:
    (tw, _th), _baseline = cv2.getTextSize(text, LABEL_FONT, CAPTION_SCALE, CAPTION_THICKNESS)
    org = (surface.width - tw - CAPTION_MARGIN, surface.height - CAPTION_MARGIN)
    cv2.putText(surface.pixels, text, org, LABEL_FONT, CAPTION_SCALE, BLACK, CAPTION_THICKNESS, cv2.LINE_AA)


def chart_caption(job: JobSettings, calibration: CalibrationSettings) -> str:
    values = calibration_lpi_values(calibration)
    return f"Calibration Chart | {job.hppi:g} PPI | Range: {values[0]:.2f} - {values[-1]:.2f} LPI"


def generate_calibration_chart(job: JobSettings, calibration: CalibrationSettings, surface: Raster) -> Raster:
    """
    Render an LPI test chart: `strip_count` horizontal bands, each ruled with
    vertical 1 px lines at the pitch of its own LPI. Printed under the lens, the
    band that shows the least moire names the lens's true LPI.
    """
    if calibration.strip_count < 1:
        raise ValueError("strip_count must be >= 1")
    values = calibration_lpi_values(calibration)
    for i, lpi in enumerate(values):
        if lpi <= 0:
            raise ValueError(f"Band {i} has non-positive lpi {lpi:.3f}")

    logger.info("Calibration started: %d strips around %g LPI", calibration.strip_count, calibration.center_lpi)
    logger.info("Resolution: %g PPI", job.hppi)

    width_px = mm_to_px(job.width_mm, job.hppi)
    height_px = mm_to_px(job.height_mm, job.vppi)
    surface.ensure_size(width_px, height_px)
    surface.fill(WHITE)

    band_h = height_px / calibration.strip_count
    black = np.asarray(BLACK, dtype=np.uint8)
    for i, lpi in enumerate(values):
        y0 = int(round_half_up(i * band_h))
        y1 = int(round_half_up((i + 1) * band_h))
        xs = line_positions(width_px, job.hppi, lpi)
        surface.pixels[y0:y1, xs] = black
        _draw_label(surface, f"{lpi:.2f} LPI", i * band_h + band_h / 2.0)

    _draw_caption(surface, chart_caption(job, calibration))
    logger.info("Calibration chart complete: %dx%d px", width_px, height_px)
    return surface
