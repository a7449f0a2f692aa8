from lenticular.core.geometry import calculate_fov, fov_for, mm_to_px
from lenticular.core.raster import Frame, FrameInputError, Raster

__all__ = ["calculate_fov", "fov_for", "mm_to_px", "Frame", "FrameInputError", "Raster"]
