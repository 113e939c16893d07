import cv2
import numpy as np
import pytest

from mediahash.core.errors import DecodeError, SourceError
from mediahash.models import ChannelLayout
from mediahash.services.decoders import ImageDecoder, VideoSource


def _encode(img: np.ndarray, ext: str = ".png") -> bytes:
    ok, buf = cv2.imencode(ext, img)
    assert ok
    return buf.tobytes()


def test_bgr_png_exports_as_rgb():
    img = np.zeros((3, 4, 3), dtype=np.uint8)
    img[:, :] = (10, 20, 30)  # BGR
    dec = ImageDecoder()
    buf = dec.export(dec.decode(_encode(img)), ChannelLayout.RGB)
    assert (buf.width, buf.height) == (4, 3)
    assert buf.data[0, 0].tolist() == [30, 20, 10]


def test_gray_png_exports_as_opaque_rgba():
    img = np.full((5, 6), 77, dtype=np.uint8)
    buf = ImageDecoder().load(_encode(img), ChannelLayout.RGBA)
    assert buf.data[2, 3].tolist() == [77, 77, 77, 255]


def test_alpha_is_kept():
    img = np.zeros((2, 2, 4), dtype=np.uint8)
    img[0, 0] = (1, 2, 3, 0)
    img[1, 1] = (4, 5, 6, 128)
    buf = ImageDecoder().load(_encode(img), ChannelLayout.RGBA)
    assert buf.data[0, 0].tolist() == [3, 2, 1, 0]
    assert buf.data[1, 1].tolist() == [6, 5, 4, 128]


def test_sixteen_bit_png_is_scaled_down():
    img = np.full((2, 2, 3), 0xABCD, dtype=np.uint16)
    decoded = ImageDecoder().decode(_encode(img))
    assert decoded.pixels.dtype == np.uint8
    assert decoded.pixels[0, 0].tolist() == [0xAB] * 3


def test_decode_from_path(png_file):
    decoded = ImageDecoder().decode(png_file)
    assert (decoded.width, decoded.height, decoded.channels) == (64, 48, 3)
    assert decoded.name == str(png_file)


@pytest.mark.parametrize("raw", [b"", b"definitely not an image"])
def test_decode_garbage(raw):
    with pytest.raises(DecodeError):
        ImageDecoder().decode(raw)


def test_decode_missing_file(tmp_path):
    with pytest.raises(DecodeError):
        ImageDecoder().decode(tmp_path / "nope.png")


def test_open_missing_video(tmp_path):
    with pytest.raises(SourceError):
        VideoSource.open(tmp_path / "nope.avi")

