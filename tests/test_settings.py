from pathlib import Path

import pytest

from lenticular.settings import (
    CalibrationSettings,
    SettingsValidationError,
    convert_length,
    get_preset,
    load_settings_file,
    parse_calibration_settings,
    parse_job_settings,
    parse_physics_settings,
)


def _job_dict(**kw):
    d = {"width_mm": 100.0, "height_mm": 50.0, "hppi": 720, "vppi": 360, "lpi": 75.0}
    d.update(kw)
    return d


def test_parse_job_settings_ok() -> None:
    job = parse_job_settings(_job_dict(margin_top_mm=3, direction="RL", alignment_pos="edge-centered"))
    assert job.hppi == 720.0
    assert job.vppi == 360.0
    assert job.margin_top_mm == 3.0
    assert job.margin_left_mm == 0.0
    assert job.direction == "RL"
    assert job.alignment_pos == "edge-centered"


def test_vppi_defaults_to_hppi() -> None:
    d = _job_dict()
    del d["vppi"]
    assert parse_job_settings(d).vppi == 720.0


@pytest.mark.parametrize(
    "bad",
    [
        {"lpi": 0},
        {"lpi": None},
        {"width_mm": -1},
        {"margin_left_mm": -0.5},
        {"direction": "UP"},
        {"alignment_pos": "outside"},
        {"unit": "px"},
    ],
)
def test_parse_job_settings_rejects(bad: dict) -> None:
    with pytest.raises(SettingsValidationError):
        parse_job_settings(_job_dict(**bad))


def test_parse_calibration_settings() -> None:
    cal = parse_calibration_settings({"center_lpi": 40, "strip_count": 5, "step_lpi": 0.5})
    assert cal == CalibrationSettings(center_lpi=40.0, strip_count=5, step_lpi=0.5)
    assert parse_calibration_settings({}) == CalibrationSettings()


@pytest.mark.parametrize(
    "bad",
    [
        {"strip_count": 0},
        {"strip_count": 2.5},
        {"center_lpi": 0},
        {"center_lpi": 1.0, "strip_count": 11, "step_lpi": 0.5},
    ],
)
def test_parse_calibration_settings_rejects(bad: dict) -> None:
    with pytest.raises(SettingsValidationError):
        parse_calibration_settings(bad)


def test_parse_physics_settings_requires_all_fields() -> None:
    ok = {"radius_microns": 254, "thickness_microns": 457, "refractive_index": 1.56, "viewing_distance_mm": 600}
    assert parse_physics_settings(ok).radius_microns == 254.0
    with pytest.raises(SettingsValidationError):
        parse_physics_settings({k: v for k, v in ok.items() if k != "radius_microns"})


def test_preset_and_lpi_adoption() -> None:
    preset = get_preset("60lpi-inkjet")
    assert preset.job.lpi == 60.0
    adopted = preset.job.with_lpi(59.8)
    assert adopted.lpi == 59.8
    assert preset.job.lpi == 60.0
    with pytest.raises(SettingsValidationError):
        get_preset("nope")


def test_convert_length() -> None:
    assert convert_length(1.0, "in", "mm") == pytest.approx(25.4)
    assert convert_length(15.0, "mm", "cm") == pytest.approx(1.5)
    with pytest.raises(SettingsValidationError):
        convert_length(1.0, "ft", "mm")


def test_load_settings_file(tmp_path: Path) -> None:
    p = tmp_path / "job.json"
    p.write_text('{"width_mm": 10, "height_mm": 10, "hppi": 300, "lpi": 40}', encoding="utf-8")
    job = parse_job_settings(load_settings_file(p))
    assert job.vppi == 300.0

    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(SettingsValidationError):
        load_settings_file(p)
