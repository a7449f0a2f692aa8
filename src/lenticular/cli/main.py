from __future__ import annotations

import argparse
import logging
from dataclasses import asdict
from pathlib import Path

from lenticular.compose.calibration import generate_calibration_chart
from lenticular.compose.interlace import generate_lenticular_image
from lenticular.core.geometry import fov_for
from lenticular.core.image_io import encode_png, load_frame, load_rgba_u8
from lenticular.core.raster import Raster
from lenticular.export.tiff import encode_tiff
from lenticular.logging_config import setup_logging
from lenticular.settings import (
    DEFAULT_PRESET_ID,
    DEFAULT_PRESETS,
    CalibrationSettings,
    JobSettings,
    PhysicsSettings,
    load_settings_file,
    parse_calibration_settings,
    parse_job_settings,
    parse_physics_settings,
)
from lenticular.sim.parallax import render_simulation_frame


def _add_job_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--preset", default=DEFAULT_PRESET_ID, choices=sorted(DEFAULT_PRESETS), help="Base settings preset.")
    p.add_argument("--job", type=Path, default=None, help="JSON file with job settings (overrides the preset).")
    p.add_argument("--lpi", type=float, default=None, help="Override lens LPI.")
    p.add_argument("--hppi", type=float, default=None, help="Override horizontal PPI.")
    p.add_argument("--vppi", type=float, default=None, help="Override vertical PPI.")
    p.add_argument("--width-mm", type=float, default=None, help="Override print width (mm).")
    p.add_argument("--height-mm", type=float, default=None, help="Override print height (mm).")
    p.add_argument("--direction", type=str, default=None, choices=["LR", "RL"])


def _add_physics_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--physics", type=Path, default=None, help="JSON file with lens physics settings.")
    p.add_argument("--radius-um", type=float, default=None, help="Override lens radius (µm).")
    p.add_argument("--thickness-um", type=float, default=None, help="Override lens thickness (µm).")
    p.add_argument("--refractive-index", type=float, default=None)
    p.add_argument("--viewing-distance-mm", type=float, default=None)


def _job_from_args(args: argparse.Namespace) -> JobSettings:
    data = asdict(DEFAULT_PRESETS[args.preset].job)
    if args.job is not None:
        data.update(load_settings_file(args.job))
    overrides = {
        "lpi": args.lpi,
        "hppi": args.hppi,
        "vppi": args.vppi,
        "width_mm": args.width_mm,
        "height_mm": args.height_mm,
        "direction": args.direction,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    return parse_job_settings(data)


def _physics_from_args(args: argparse.Namespace) -> PhysicsSettings:
    data = asdict(DEFAULT_PRESETS[args.preset].physics)
    if args.physics is not None:
        data.update(load_settings_file(args.physics))
    overrides = {
        "radius_microns": args.radius_um,
        "thickness_microns": args.thickness_um,
        "refractive_index": args.refractive_index,
        "viewing_distance_mm": args.viewing_distance_mm,
    }
    data.update({k: v for k, v in overrides.items() if v is not None})
    return parse_physics_settings(data)


def _calibration_from_args(args: argparse.Namespace) -> CalibrationSettings:
    data = asdict(CalibrationSettings())
    if args.calibration is not None:
        data.update(load_settings_file(args.calibration))
    overrides = {"center_lpi": args.center_lpi, "strip_count": args.strips, "step_lpi": args.step_lpi}
    data.update({k: v for k, v in overrides.items() if v is not None})
    return parse_calibration_settings(data)


def _parse_offset(text: str) -> tuple[int, int]:
    try:
        dx, dy = (int(v) for v in text.split(","))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"offset must be 'dx,dy' integers, got {text!r}") from e
    return dx, dy


def write_raster(surface: Raster, out: Path, hppi: float, vppi: float) -> None:
    suffix = out.suffix.lower()
    if suffix in (".tif", ".tiff"):
        data = encode_tiff(surface, hppi, vppi)
    elif suffix == ".png":
        data = encode_png(surface, dpi=(hppi, vppi))
    else:
        raise ValueError(f"Unsupported output format {out.suffix!r} (use .tif, .tiff or .png)")
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="lenticular")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    parser.add_argument("--log-file", type=str, default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    fov = sub.add_parser("fov", help="Print the lens field of view (degrees) for the given settings.")
    _add_job_args(fov)
    _add_physics_args(fov)

    inter = sub.add_parser("interlace", help="Interlace frames into a print-ready image.")
    inter.add_argument("frames", type=Path, nargs="+", help="Frame images, in sequence order.")
    inter.add_argument("--out", type=Path, required=True, help="Output .tif/.tiff/.png")
    inter.add_argument(
        "--offset",
        type=_parse_offset,
        action="append",
        default=None,
        help="Per-frame pixel offset 'dx,dy' (repeat once per frame, in order).",
    )
    inter.add_argument(
        "--interp",
        type=str,
        default="linear",
        choices=["nearest", "linear", "cubic", "lanczos4", "area"],
        help="Resampling used to fit frames to the print size.",
    )
    inter.add_argument("--alignment", type=str, default=None, choices=["external", "internal", "edge-centered"])
    _add_job_args(inter)

    cal = sub.add_parser("calibrate", help="Generate an LPI calibration chart.")
    cal.add_argument("--out", type=Path, required=True, help="Output .tif/.tiff/.png")
    cal.add_argument("--calibration", type=Path, default=None, help="JSON file with calibration settings.")
    cal.add_argument("--center-lpi", type=float, default=None)
    cal.add_argument("--strips", type=int, default=None)
    cal.add_argument("--step-lpi", type=float, default=None)
    _add_job_args(cal)

    sim = sub.add_parser("simulate", help="Render the simulated view from one eye position.")
    sim.add_argument("frames", type=Path, nargs="+")
    sim.add_argument("--out", type=Path, required=True, help="Output .png")
    sim.add_argument("--sim-x", type=float, default=0.5, help="Eye position across the travel range (0..1).")
    sim.add_argument("--width", type=int, default=800)
    sim.add_argument("--height", type=int, default=600)
    _add_job_args(sim)
    _add_physics_args(sim)

    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    if args.cmd == "fov":
        job = _job_from_args(args)
        physics = _physics_from_args(args)
        value = fov_for(job, physics)
        if value <= 0:
            print("FOV: invalid lens geometry")
            return 1
        print(f"FOV: {value:.2f} deg")
        return 0

    if args.cmd == "interlace":
        job = _job_from_args(args)
        if args.alignment is not None:
            job = parse_job_settings({**asdict(job), "alignment_pos": args.alignment})
        offsets = args.offset or [(0, 0)] * len(args.frames)
        if len(offsets) != len(args.frames):
            parser.error(f"got {len(offsets)} --offset values for {len(args.frames)} frames")
        frames = [load_frame(p, x_offset=dx, y_offset=dy) for p, (dx, dy) in zip(args.frames, offsets)]
        surface = generate_lenticular_image(frames, job, Raster(), interpolation=args.interp)
        write_raster(surface, args.out, job.hppi, job.vppi)
        print(f"Wrote {args.out}")
        return 0

    if args.cmd == "calibrate":
        job = _job_from_args(args)
        calibration = _calibration_from_args(args)
        surface = generate_calibration_chart(job, calibration, Raster())
        write_raster(surface, args.out, job.hppi, job.vppi)
        print(f"Wrote {args.out}")
        return 0

    if args.cmd == "simulate":
        job = _job_from_args(args)
        physics = _physics_from_args(args)
        rasters = [load_rgba_u8(p) for p in args.frames]
        surface = Raster()
        render_simulation_frame(surface, args.width, args.height, rasters, job, physics, args.sim_x)
        args.out.parent.mkdir(parents=True, exist_ok=True)
        args.out.write_bytes(encode_png(surface))
        print(f"Wrote {args.out}")
        return 0

    raise AssertionError(f"Unhandled cmd: {args.cmd}")


if __name__ == "__main__":
    raise SystemExit(main())
