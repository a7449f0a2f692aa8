from __future__ import annotations

import io
import struct

import numpy as np
import pytest
from PIL import Image

from lenticular.core.raster import Raster
from lenticular.export.tiff import TiffEncodingError, encode_tiff


def _known_2x2() -> np.ndarray:
    return np.arange(1, 17, dtype=np.uint8).reshape(2, 2, 4)


def _parse_ifd(data: bytes) -> tuple[list[int], dict[int, tuple[int, int, int]]]:
    (ifd_offset,) = struct.unpack_from("<I", data, 4)
    (count,) = struct.unpack_from("<H", data, ifd_offset)
    order = []
    entries = {}
    for i in range(count):
        tag, typ, n, value = struct.unpack_from("<HHII", data, ifd_offset + 2 + 12 * i)
        order.append(tag)
        entries[tag] = (typ, n, value)
    (next_ifd,) = struct.unpack_from("<I", data, ifd_offset + 2 + 12 * count)
    assert next_ifd == 0
    return order, entries


def test_header_and_tags_of_known_raster() -> None:
    data = encode_tiff(_known_2x2(), 300.0, 300.0)
    assert data[:2] == b"II"
    assert struct.unpack_from("<H", data, 2)[0] == 42
    assert len(data) == 8 + 12 + 22 + 150

    order, tags = _parse_ifd(data)
    assert order == [256, 257, 258, 259, 262, 273, 277, 278, 279, 282, 283, 296]
    assert tags[256] == (4, 1, 2)
    assert tags[257] == (4, 1, 2)
    assert tags[259][2] == 1
    assert tags[262][2] == 2
    assert tags[277][2] == 3
    assert tags[278][2] == 2
    assert tags[279][2] == 12
    assert tags[296][2] == 2

    assert struct.unpack_from("<II", data, tags[282][2]) == (30000, 100)
    assert struct.unpack_from("<II", data, tags[283][2]) == (30000, 100)
    assert struct.unpack_from("<HHH", data, tags[258][2]) == (8, 8, 8)

    start = tags[273][2]
    assert start == 8
    assert data[start : start + 12] == bytes([1, 2, 3, 5, 6, 7, 9, 10, 11, 13, 14, 15])


def test_independent_horizontal_and_vertical_density() -> None:
    data = encode_tiff(_known_2x2(), 72.5, 600.0)
    _order, tags = _parse_ifd(data)
    assert struct.unpack_from("<II", data, tags[282][2]) == (7250, 100)
    assert struct.unpack_from("<II", data, tags[283][2]) == (60000, 100)


def test_pillow_reads_the_file() -> None:
    px = np.zeros((4, 6, 4), dtype=np.uint8)
    px[..., 0] = 10
    px[..., 1] = np.arange(6, dtype=np.uint8) * 40
    px[..., 2] = 200
    px[..., 3] = 17  # dropped
    with Image.open(io.BytesIO(encode_tiff(Raster(px), 300.0, 300.0))) as im:
        assert im.size == (6, 4)
        assert im.mode == "RGB"
        assert np.array_equal(np.asarray(im), px[..., :3])
        assert im.info["dpi"][0] == pytest.approx(300.0)


def test_encoding_is_repeatable() -> None:
    rng = np.random.default_rng(3)
    px = rng.integers(0, 256, size=(5, 7, 4), dtype=np.uint8)
    assert encode_tiff(px, 600.0, 600.0) == encode_tiff(px.copy(), 600.0, 600.0)


def test_rgb_input_is_accepted() -> None:
    rgb = _known_2x2()[..., :3].copy()
    assert encode_tiff(rgb, 300.0, 300.0) == encode_tiff(_known_2x2(), 300.0, 300.0)


@pytest.mark.parametrize("hppi", [0.0, -1.0, float("nan"), float("inf"), 5e7])
def test_bad_density_is_rejected(hppi: float) -> None:
    with pytest.raises(TiffEncodingError):
        encode_tiff(_known_2x2(), hppi, 300.0)


def test_empty_and_wrong_dtype_rejected() -> None:
    with pytest.raises(TiffEncodingError):
        encode_tiff(np.zeros((0, 0, 4), dtype=np.uint8), 300.0, 300.0)
    with pytest.raises(TiffEncodingError):
        encode_tiff(np.zeros((2, 2, 4), dtype=np.float32), 300.0, 300.0)


def test_oversized_image_rejected_before_encoding() -> None:
    # Zero-stride view: 40000 x 40000 RGB needs 4.8 GB, more than 32-bit offsets allow.
    huge = np.broadcast_to(np.zeros((1, 1, 4), dtype=np.uint8), (40000, 40000, 4))
    with pytest.raises(TiffEncodingError):
        encode_tiff(huge, 300.0, 300.0)
