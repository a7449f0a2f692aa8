from __future__ import annotations

import numpy as np
import pytest

from lenticular.compose.calibration import (
    calibration_lpi_values,
    chart_caption,
    chart_lpi_at,
    generate_calibration_chart,
    line_positions,
)
from lenticular.core.raster import Raster
from lenticular.settings import CalibrationSettings, JobSettings


def _job() -> JobSettings:
    # 600 x 110 px chart: 11 bands of 10 rows.
    return JobSettings(width_mm=25.4, height_mm=25.4, hppi=600.0, vppi=110.0, lpi=60.0)


def _cal() -> CalibrationSettings:
    return CalibrationSettings(center_lpi=60.0, strip_count=11, step_lpi=0.1)


def test_band_lpi_values() -> None:
    values = calibration_lpi_values(_cal())
    expected = [59.5, 59.6, 59.7, 59.8, 59.9, 60.0, 60.1, 60.2, 60.3, 60.4, 60.5]
    assert values == pytest.approx(expected)


def test_single_strip_is_the_center_lpi() -> None:
    assert calibration_lpi_values(CalibrationSettings(center_lpi=42.0, strip_count=1, step_lpi=1.0)) == [42.0]


def test_chart_size_and_center_band_lines() -> None:
    chart = generate_calibration_chart(_job(), _cal(), Raster()).pixels
    assert chart.shape == (110, 600, 4)

    # Band 5 (rows 50..59) is exactly 60 LPI: a line every 10 px. Columns right of the label.
    for y in (50, 52, 59):
        row = chart[y]
        assert np.all(row[300:600:10, :3] == 0)
        assert np.all(row[305, :3] == 255)
        assert np.all(row[301:310, :3] == 255)


def test_lines_cover_the_full_band_height() -> None:
    chart = generate_calibration_chart(_job(), _cal(), Raster()).pixels
    cols = line_positions(600, 600.0, 59.5)
    band0 = chart[0:10, 300:]
    rel = cols[cols >= 300] - 300
    assert np.all(band0[:, rel, :3] == 0)


def test_line_positions_are_rounded_per_band() -> None:
    xs = line_positions(600, 600.0, 59.5)
    pitch = 600.0 / 59.5
    assert xs[0] == 0
    assert xs.size == 60
    assert np.all(np.abs(xs - np.arange(60) * pitch) <= 0.5)


def test_labels_are_drawn_in_red() -> None:
    chart = generate_calibration_chart(_job(), _cal(), Raster()).pixels
    label_area = chart[:, :200]
    red = (label_area[:, :, 0] > 200) & (label_area[:, :, 1] < 100) & (label_area[:, :, 2] < 100)
    assert np.any(red)


def test_caption_reports_ppi_and_range() -> None:
    assert chart_caption(_job(), _cal()) == "Calibration Chart | 600 PPI | Range: 59.50 - 60.50 LPI"


def test_chart_lpi_at_picks_band() -> None:
    cal = _cal()
    assert chart_lpi_at(0, 110, cal) == pytest.approx(59.5)
    assert chart_lpi_at(55, 110, cal) == pytest.approx(60.0)
    assert chart_lpi_at(109.9, 110, cal) == pytest.approx(60.5)
    assert chart_lpi_at(500, 110, cal) == pytest.approx(60.5)
    assert chart_lpi_at(-3, 110, cal) == pytest.approx(59.5)


def test_chart_is_repeatable() -> None:
    a = generate_calibration_chart(_job(), _cal(), Raster()).pixels
    b = generate_calibration_chart(_job(), _cal(), Raster()).pixels
    assert a.tobytes() == b.tobytes()


def test_non_positive_band_leaves_surface_untouched() -> None:
    surface = Raster(np.full((110, 600, 4), 7, dtype=np.uint8))
    bad = CalibrationSettings(center_lpi=1.0, strip_count=11, step_lpi=-0.5)
    with pytest.raises(ValueError):
        generate_calibration_chart(_job(), bad, surface)
    assert np.all(surface.pixels == 7)
