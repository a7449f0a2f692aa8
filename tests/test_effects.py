import numpy as np

from lenticular.sim.effects import (
    POSTPROCESS_MAX_PIXELS,
    apply_vignette,
    lens_postprocess,
    scanlines_and_aberration,
    vignette_alpha,
)


def test_scanlines_alternate_row_brightness() -> None:
    img = np.full((4, 6, 4), 100, dtype=np.uint8)
    img[:, :, 3] = 255
    out = scanlines_and_aberration(img)
    assert np.all(out[0::2, :, 1] == 95)
    assert np.all(out[1::2, :, 1] == 85)
    assert np.all(out[:, :, 3] == 255)


def test_chromatic_aberration_shifts_red_and_blue_within_rows() -> None:
    h, w = 3, 8
    img = np.zeros((h, w, 4), dtype=np.uint8)
    ramp = (np.arange(w) * 10 + np.arange(h)[:, None] * 100).astype(np.uint8)
    img[:, :, 0] = ramp
    img[:, :, 2] = ramp
    img[:, :, 3] = 255
    out = scanlines_and_aberration(img)

    factor = np.array([0.95, 0.85, 0.95], dtype=np.float32)[:, None]
    src = ramp.astype(np.float32)
    exp_r = src.copy()
    exp_r[:, 2:] = src[:, :-2]
    exp_b = src.copy()
    exp_b[:, :-2] = src[:, 2:]
    assert np.array_equal(out[:, :, 0], np.rint(exp_r * factor).astype(np.uint8))
    assert np.array_equal(out[:, :, 2], np.rint(exp_b * factor).astype(np.uint8))


def test_vignette_darkens_edges_only() -> None:
    a = vignette_alpha(100, 160)
    assert a[50, 80] == 0.0
    assert a[0, 0] > 0.0
    assert a.max() <= 0.8 + 1e-6
    assert a[0, 0] > a[25, 40]


def test_vignette_is_pure() -> None:
    img = np.full((50, 50, 4), 200, dtype=np.uint8)
    before = img.copy()
    out = apply_vignette(img)
    assert np.array_equal(img, before)
    assert out[0, 0, 0] < 200
    assert out[25, 25, 0] == 200
    assert np.all(out[:, :, 3] == 200)


def test_postprocess_skipped_above_pixel_budget() -> None:
    h = 1000
    w = POSTPROCESS_MAX_PIXELS // h
    img = np.full((h, w, 4), 77, dtype=np.uint8)
    out = lens_postprocess(img)
    assert out is not img
    assert np.array_equal(out, img)


def test_postprocess_below_budget_changes_pixels() -> None:
    img = np.full((20, 30, 4), 120, dtype=np.uint8)
    out = lens_postprocess(img)
    assert not np.array_equal(out, img)
    assert np.array_equal(img, np.full((20, 30, 4), 120, dtype=np.uint8))
