from lenticular.compose.calibration import calibration_lpi_values, chart_lpi_at, generate_calibration_chart
from lenticular.compose.interlace import PrintLayout, compute_print_layout, generate_lenticular_image

__all__ = [
    "calibration_lpi_values",
    "chart_lpi_at",
    "generate_calibration_chart",
    "PrintLayout",
    "compute_print_layout",
    "generate_lenticular_image",
]
