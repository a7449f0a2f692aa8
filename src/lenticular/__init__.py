from lenticular import settings
from lenticular.compose import generate_calibration_chart, generate_lenticular_image
from lenticular.core import Frame, FrameInputError, Raster, calculate_fov
from lenticular.export import TiffEncodingError, encode_tiff
from lenticular.sim import render_simulation_frame

__all__ = [
    "settings",
    "Frame",
    "FrameInputError",
    "Raster",
    "calculate_fov",
    "generate_lenticular_image",
    "generate_calibration_chart",
    "render_simulation_frame",
    "encode_tiff",
    "TiffEncodingError",
]
