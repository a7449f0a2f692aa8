from __future__ import annotations

import math

from lenticular.settings import MM_PER_INCH, JobSettings, PhysicsSettings

MICRONS_PER_INCH = 25400.0
N_AIR = 1.0003


def lens_pitch_um(lpi: float) -> float:
    """Center-to-center ridge spacing in µm for a lens of `lpi` lines per inch."""
    if lpi <= 0:
        return 0.0
    return MICRONS_PER_INCH / float(lpi)


def pixels_per_pitch(ppi: float, lpi: float) -> float:
    return float(ppi) / float(lpi)


def mm_to_px(mm: float, ppi: float) -> int:
    """Physical length -> whole output pixels (always rounded up)."""
    return int(math.ceil((float(mm) / MM_PER_INCH) * float(ppi)))


def calculate_fov(lpi: float, radius_microns: float, thickness_microns: float, refractive_index: float) -> float:
    """
    Full viewing cone of a lenticular lens, in degrees.

    The lens is modelled as a circular arc of radius `radius_microns` spanning one
    pitch, sitting on a substrate of total thickness `thickness_microns`. The ray
    from the pitch edge through the arc is refracted into air (n=1.0003) with
    Snell's law.

    Degenerate geometries (pitch wider than the lens diameter, substrate thinner
    than the sagitta, total internal reflection, inverted cone) return 0.0.
    Callers must treat 0.0 as "invalid configuration", not as a zero-degree cone.
    """
    p = lens_pitch_um(lpi)
    r = float(radius_microns)
    e = float(thickness_microns)
    n = float(refractive_index)

    if r <= 0.0 or p <= 0.0:
        return 0.0
    if p > 2.0 * r:
        return 0.0

    a_rad = math.asin(p / (2.0 * r))
    sagitta = r - math.sqrt(r * r - (p / 2.0) * (p / 2.0))
    h = e - sagitta
    if h <= 0.0:
        return 0.0

    r_rad = a_rad - math.atan(p / h)
    sin_i = (n * math.sin(r_rad)) / N_AIR
    if abs(sin_i) > 1.0:
        return 0.0

    i_rad = math.asin(sin_i)
    fov_deg = math.degrees(2.0 * (a_rad - i_rad))
    if fov_deg <= 0.0:
        return 0.0
    return min(fov_deg, 180.0)


def fov_for(job: JobSettings, physics: PhysicsSettings) -> float:
    return calculate_fov(job.lpi, physics.radius_microns, physics.thickness_microns, physics.refractive_index)
