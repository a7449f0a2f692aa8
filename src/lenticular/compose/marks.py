from __future__ import annotations

from typing import TYPE_CHECKING

from lenticular.core.raster import BLACK, Raster, fill_rect

if TYPE_CHECKING:
    from lenticular.compose.interlace import PrintLayout

MARK_BACKGROUND = (238, 238, 238, 255)
TICK_WIDTH_PX = 2
CROP_BRACKET_PX = 20
CROP_LINE_PX = 1


def _draw_pattern(surface: Raster, center_x: float, y_start: int, height: int, pitch_px: float) -> None:
    # Light patch 4 pitches wide, ticks at the center and +-1, +-2 pitches.
    w = pitch_px * 4.0
    fill_rect(surface.pixels, center_x - w / 2.0, y_start, w, height, MARK_BACKGROUND)
    for k in (-2, -1, 0, 1, 2):
        x = center_x + k * pitch_px
        fill_rect(surface.pixels, x - TICK_WIDTH_PX / 2.0, y_start, TICK_WIDTH_PX, height, BLACK)


def alignment_mark_centers(layout: "PrintLayout", pitch_px: float, alignment_pos: str) -> list[float]:
    """Horizontal centers (surface pixels) of the registration patterns."""
    left = layout.margin_left_px
    cw = layout.content_width_px
    centers = [left + cw / 2.0]
    if alignment_pos != "internal":
        centers.append(left + pitch_px * 2.0)
        centers.append(left + cw - pitch_px * 2.0)
    return centers


def draw_alignment_marks(surface: Raster, layout: "PrintLayout", pitch_px: float, alignment_pos: str) -> None:
    centers = alignment_mark_centers(layout, pitch_px, alignment_pos)
    if layout.margin_top_px > 0:
        for cx in centers:
            _draw_pattern(surface, cx, 0, layout.margin_top_px, pitch_px)
    if layout.margin_bottom_px > 0:
        y = layout.total_height_px - layout.margin_bottom_px
        for cx in centers:
            _draw_pattern(surface, cx, y, layout.margin_bottom_px, pitch_px)


def draw_crop_marks(surface: Raster, layout: "PrintLayout") -> None:
    """
    Right-angle brackets at the four content corners.

    Each bracket lies entirely outside the content box: the vertical arm runs along
    the content edge column into the top/bottom margin, the horizontal arm runs
    along the content edge row into the left/right margin.
    """
    n = CROP_BRACKET_PX
    t = CROP_LINE_PX
    left = layout.margin_left_px
    top = layout.margin_top_px
    right = left + layout.content_width_px
    bottom = top + layout.content_height_px
    px = surface.pixels

    # top-left
    fill_rect(px, left, top - n, t, n, BLACK)
    fill_rect(px, left - n, top, n, t, BLACK)
    # top-right
    fill_rect(px, right - t, top - n, t, n, BLACK)
    fill_rect(px, right, top, n, t, BLACK)
    # bottom-left
    fill_rect(px, left, bottom, t, n, BLACK)
    fill_rect(px, left - n, bottom - t, n, t, BLACK)
    # bottom-right
    fill_rect(px, right - t, bottom, t, n, BLACK)
    fill_rect(px, right, bottom - t, n, t, BLACK)
