import numpy as np
import pytest

from mediahash.core.errors import InvalidInputError
from mediahash.models import ChannelLayout, HashMethod, PixelBuffer
from mediahash.services.blockmean import blockhash, blockhash_quick, translate_blocks_to_bits
from mediahash.services.pipelines import compute_image_hash

from .conftest import noise_rgb, solid

SIZES = [(1, 1), (3, 5), (16, 16), (37, 23), (100, 61), (64, 48)]


@pytest.mark.parametrize("fn", [blockhash, blockhash_quick])
@pytest.mark.parametrize("bits", [4, 8, 16])
@pytest.mark.parametrize("width,height", SIZES)
@pytest.mark.parametrize("level", [0, 40, 128, 200, 255])
def test_uniform_field_gives_uniform_bits(fn, bits, width, height, level):
    h = fn(solid(width, height, (level, level, level, 255)), bits)
    assert len(h) == bits * bits
    assert len(set(h.values.tolist())) == 1


@pytest.mark.parametrize("width,height", [(16, 16), (37, 23), (100, 61)])
def test_uniform_bright_and_dark(width, height):
    assert set(blockhash(solid(width, height, (220, 220, 220, 255)), 4).values) == {1}
    assert set(blockhash(solid(width, height, (30, 30, 30, 255)), 4).values) == {0}


def test_transparent_pixels_count_as_white():
    clear = solid(20, 12, (0, 0, 0, 0))
    white = solid(20, 12, (255, 255, 255, 255))
    assert blockhash(clear, 4) == blockhash(white, 4)


@pytest.mark.parametrize("fn", [blockhash, blockhash_quick])
@pytest.mark.parametrize("width,height", [(0, 0), (0, 7), (9, 0)])
def test_zero_area_gives_zero_hash(fn, width, height):
    h = fn(solid(width, height), 8)
    assert len(h) == 64
    assert not h.values.any()


@pytest.mark.parametrize("width", [32, 30, 33])
def test_left_dark_right_bright(width):
    data = np.zeros((width, width, 4), dtype=np.uint8)
    data[:, :, 3] = 255
    data[:, width // 2 :, :3] = 255
    if width % 2:
        data[:, width // 2, :3] = 128
    buf = PixelBuffer(width, width, ChannelLayout.RGBA, data)
    h = blockhash(buf, 4)
    assert h.values.reshape(4, 4).tolist() == [[0, 0, 1, 1]] * 4
    assert h.to_hex() == "3333"


def test_standard_matches_quick_on_divisible_sizes():
    rgb = noise_rgb(64, 32, seed=3)
    rgba = compute_image_hash(rgb, 8, HashMethod.BLOCKHASH)
    quick = compute_image_hash(rgb, 8, HashMethod.BLOCKHASH_QUICK)
    np.testing.assert_array_equal(rgba.values, quick.values)


def test_quick_ignores_remainder():
    base = noise_rgb(32, 32, seed=5)
    grown = np.zeros((35, 34, 3), dtype=np.uint8)
    grown[:32, :32] = base.data
    grown[32:, :] = 255
    grown[:, 32:] = 255
    bigger = PixelBuffer(34, 35, ChannelLayout.RGB, grown)
    a = compute_image_hash(base, 8, HashMethod.BLOCKHASH_QUICK)
    b = compute_image_hash(bigger, 8, HashMethod.BLOCKHASH_QUICK)
    assert a == b


def test_compute_leaves_caller_buffer_untouched():
    buf = noise_rgb(40, 30, seed=7)
    before = buf.data.copy()
    compute_image_hash(buf, 8, HashMethod.BLOCKHASH)
    np.testing.assert_array_equal(buf.data, before)


def test_translate_blocks_to_bits_per_band():
    # 4 bands of 4 cells; each band thresholded against its own median
    blocks = np.array(
        [
            [1, 2, 3, 4],
            [10, 20, 30, 40],
            [5, 5, 5, 5],
            [0, 100, 0, 100],
        ],
        dtype=np.float64,
    )
    # half range is 384, far above every median: no near-median cell turns on
    bits = translate_blocks_to_bits(blocks, pixels_per_block=1.0)
    assert bits.reshape(4, 4).tolist() == [
        [0, 0, 1, 1],
        [0, 0, 1, 1],
        [0, 0, 0, 0],
        [0, 1, 0, 1],
    ]


def test_near_median_cells_turn_on_above_half_range():
    blocks = np.array(
        [
            [1, 2, 3, 4],
            [10, 20, 30, 40],
            [5, 5, 5, 5],
            [0, 100, 0, 100],
        ],
        dtype=np.float64,
    )
    # half range 0.384: cells within 1 of a median above it become 1
    bits = translate_blocks_to_bits(blocks, pixels_per_block=0.001)
    assert bits.reshape(4, 4).tolist() == [
        [0, 1, 1, 1],
        [0, 0, 1, 1],
        [1, 1, 1, 1],
        [0, 1, 0, 1],
    ]


def test_ties_stay_low_below_half_range():
    blocks = np.full(16, 5.0)
    assert not translate_blocks_to_bits(blocks, pixels_per_block=1.0).any()


@pytest.mark.parametrize("bits", [0, -4, 3])
def test_bad_grid_size(bits):
    with pytest.raises(InvalidInputError):
        blockhash(solid(8, 8), bits)


def test_row_chunking_does_not_change_result(monkeypatch):
    from mediahash.services.blockmean import hashing

    rgb = noise_rgb(45, 613, seed=9)
    monkeypatch.setattr(hashing, "ROW_CHUNK", 10**6)
    whole = compute_image_hash(rgb, 8, HashMethod.BLOCKHASH)
    monkeypatch.setattr(hashing, "ROW_CHUNK", 7)
    chunked = compute_image_hash(rgb, 8, HashMethod.BLOCKHASH)
    assert whole == chunked
