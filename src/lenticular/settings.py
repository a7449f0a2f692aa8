from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

MM_PER_INCH = 25.4

UNITS = ("mm", "cm", "in")
ALIGNMENT_POSITIONS = ("external", "internal", "edge-centered")
DIRECTIONS = ("LR", "RL")

_MM_PER_UNIT = {"mm": 1.0, "cm": 10.0, "in": MM_PER_INCH}


class SettingsValidationError(ValueError):
    pass


@dataclass(frozen=True)
class JobSettings:
    width_mm: float
    height_mm: float
    hppi: float
    vppi: float
    lpi: float
    margin_top_mm: float = 0.0
    margin_bottom_mm: float = 0.0
    margin_left_mm: float = 0.0
    margin_right_mm: float = 0.0
    alignment_pos: str = "external"
    direction: str = "LR"
    unit: str = "mm"

    def with_lpi(self, lpi: float) -> "JobSettings":
        _require(lpi > 0.0, "lpi must be > 0")
        return replace(self, lpi=float(lpi))


@dataclass(frozen=True)
class CalibrationSettings:
    center_lpi: float = 60.0
    strip_count: int = 11
    step_lpi: float = 0.1


@dataclass(frozen=True)
class PhysicsSettings:
    radius_microns: float
    thickness_microns: float
    refractive_index: float
    viewing_distance_mm: float


@dataclass(frozen=True)
class Preset:
    preset_id: str
    name: str
    job: JobSettings
    physics: PhysicsSettings


DEFAULT_PRESETS: dict[str, Preset] = {
    "60lpi-inkjet": Preset(
        preset_id="60lpi-inkjet",
        name="60 LPI Inkjet (600 DPI)",
        job=JobSettings(
            width_mm=152.4,
            height_mm=101.6,
            hppi=600.0,
            vppi=600.0,
            lpi=60.0,
            margin_top_mm=5.0,
            margin_bottom_mm=5.0,
            margin_left_mm=0.0,
            margin_right_mm=0.0,
            alignment_pos="external",
            direction="LR",
            unit="mm",
        ),
        physics=PhysicsSettings(
            radius_microns=254.0,
            thickness_microns=457.0,
            refractive_index=1.56,
            viewing_distance_mm=600.0,
        ),
    ),
}

DEFAULT_PRESET_ID = "60lpi-inkjet"


def get_preset(preset_id: str = DEFAULT_PRESET_ID) -> Preset:
    try:
        return DEFAULT_PRESETS[preset_id]
    except KeyError as e:
        known = ", ".join(sorted(DEFAULT_PRESETS))
        raise SettingsValidationError(f"Unknown preset {preset_id!r} (known: {known})") from e


def convert_length(value: float, from_unit: str, to_unit: str) -> float:
    """Convert a length between the supported display units (mm, cm, in)."""
    _require(from_unit in _MM_PER_UNIT, f"unit must be one of {UNITS}")
    _require(to_unit in _MM_PER_UNIT, f"unit must be one of {UNITS}")
    return float(value) * _MM_PER_UNIT[from_unit] / _MM_PER_UNIT[to_unit]


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise SettingsValidationError(msg)


def _positive(data: dict[str, Any], key: str, default: Any = None) -> float:
    raw = data.get(key, default)
    _require(raw is not None, f"{key} is required")
    value = float(raw)
    _require(value > 0.0, f"{key} must be > 0")
    return value


def _non_negative(data: dict[str, Any], key: str) -> float:
    value = float(data.get(key, 0.0))
    _require(value >= 0.0, f"{key} must be >= 0")
    return value


def parse_job_settings(data: dict[str, Any]) -> JobSettings:
    width_mm = _positive(data, "width_mm")
    height_mm = _positive(data, "height_mm")
    hppi = _positive(data, "hppi")
    vppi = _positive(data, "vppi", data.get("hppi"))
    lpi = _positive(data, "lpi")

    alignment_pos = str(data.get("alignment_pos", "external"))
    _require(alignment_pos in ALIGNMENT_POSITIONS, f"alignment_pos must be one of {ALIGNMENT_POSITIONS}")
    direction = str(data.get("direction", "LR"))
    _require(direction in DIRECTIONS, f"direction must be one of {DIRECTIONS}")
    unit = str(data.get("unit", "mm"))
    _require(unit in UNITS, f"unit must be one of {UNITS}")

    return JobSettings(
        width_mm=width_mm,
        height_mm=height_mm,
        hppi=hppi,
        vppi=vppi,
        lpi=lpi,
        margin_top_mm=_non_negative(data, "margin_top_mm"),
        margin_bottom_mm=_non_negative(data, "margin_bottom_mm"),
        margin_left_mm=_non_negative(data, "margin_left_mm"),
        margin_right_mm=_non_negative(data, "margin_right_mm"),
        alignment_pos=alignment_pos,
        direction=direction,
        unit=unit,
    )


def parse_calibration_settings(data: dict[str, Any]) -> CalibrationSettings:
    center_lpi = _positive(data, "center_lpi", 60.0)

    count_raw = data.get("strip_count", 11)
    _require(float(count_raw) == int(count_raw), "strip_count must be an integer")
    strip_count = int(count_raw)
    _require(strip_count >= 1, "strip_count must be >= 1")

    step_lpi = float(data.get("step_lpi", 0.1))
    # Every band must still describe a real lens.
    lowest = center_lpi - (strip_count // 2) * abs(step_lpi)
    _require(lowest > 0.0, f"lowest chart lpi must be > 0 (got {lowest:.3f})")

    return CalibrationSettings(center_lpi=center_lpi, strip_count=strip_count, step_lpi=step_lpi)


def parse_physics_settings(data: dict[str, Any]) -> PhysicsSettings:
    return PhysicsSettings(
        radius_microns=_positive(data, "radius_microns"),
        thickness_microns=_positive(data, "thickness_microns"),
        refractive_index=_positive(data, "refractive_index"),
        viewing_distance_mm=_positive(data, "viewing_distance_mm"),
    )


def load_settings_file(path: Path) -> dict[str, Any]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    _require(isinstance(data, dict), f"{path} must contain a JSON object")
    return data

