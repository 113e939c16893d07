import cv2
import numpy as np
import pytest

from mediahash.core.errors import SourceError
from mediahash.models import Hash, HashMethod
from mediahash.services.decoders import ImageDecoder
from mediahash.services.decoders.image import DecodedImage
from mediahash.services.pixels import required_layout
from mediahash.services.pipelines import VideoHasher, compute_image_hash, hash_video, sample_indices
from mediahash.services.pipelines.video_pipeline import frame_dump_path

from .conftest import FakeVideo, FakeVideoOpener, make_frame


def _frame_hash(index: int, bits: int, method: HashMethod) -> Hash:
    dec = ImageDecoder()
    buf = dec.export(DecodedImage("f", make_frame(index)), required_layout(method))
    return compute_image_hash(buf, bits, method)


@pytest.mark.parametrize(
    "count,expected",
    [
        (0, []),
        (1, [0, 0, 0, 0]),
        (10, [0, 3, 7, 9]),
        (11, [10, 3, 7, 0]),
        (100, [10, 35, 70, 89]),
    ],
)
def test_sample_indices(count, expected):
    assert sample_indices(count) == expected


def test_empty_video_gives_single_image_zero_hash():
    opener = FakeVideoOpener(0)
    h = hash_video("empty.mp4", bits=8, opener=opener)
    assert h == Hash.zeros(HashMethod.BLOCKHASH, 8)
    assert len(h) == 64
    assert opener.decoded == 0


def test_known_count_single_pass():
    opener = FakeVideoOpener(100)
    h = hash_video("clip.mp4", bits=8, opener=opener)
    assert len(h) == 4 * 64
    assert len(opener.handles) == 1
    assert opener.handles[0].closed
    # decoding stops at the last sampled frame
    assert opener.decoded == 90

    expected = Hash.concat([_frame_hash(i, 8, HashMethod.BLOCKHASH) for i in (10, 35, 70, 89)])
    assert h == expected


def test_unknown_count_reopens_for_sampling():
    counted = FakeVideoOpener(100, reported_count=None)
    h = hash_video("clip.mkv", bits=8, opener=counted)
    assert len(counted.handles) == 2
    assert all(handle.closed for handle in counted.handles)
    assert h == hash_video("clip.mkv", bits=8, opener=FakeVideoOpener(100))


def test_unknown_count_empty_stream():
    opener = FakeVideoOpener(0, reported_count=None)
    h = hash_video("empty.mkv", bits=8, opener=opener)
    assert h == Hash.zeros(HashMethod.BLOCKHASH, 8)


def test_slots_keep_slot_order_when_indices_are_unsorted():
    h = hash_video("short.mp4", bits=4, opener=FakeVideoOpener(11))
    expected = Hash.concat([_frame_hash(i, 4, HashMethod.BLOCKHASH) for i in (10, 3, 7, 0)])
    assert h == expected


def test_short_stream_fails():
    opener = FakeVideoOpener(5, reported_count=40)
    with pytest.raises(SourceError):
        hash_video("broken.mp4", bits=8, opener=opener)
    assert opener.handles[0].closed


def test_undecodable_frame_fails(monkeypatch):
    monkeypatch.setattr(FakeVideo, "encode_as_still", lambda self, frame: b"not a bmp")
    opener = FakeVideoOpener(10)
    with pytest.raises(SourceError, match="frame #0"):
        hash_video("x.mp4", bits=8, opener=opener)
    assert opener.handles[0].closed


def test_dct_video_hash():
    h = hash_video("clip.mp4", method=HashMethod.DCT64, opener=FakeVideoOpener(30))
    assert len(h) == 8
    assert len(h.to_hex()) == 64


def test_frame_callback_and_dumps(tmp_path):
    seen = []
    src = tmp_path / "clip.mp4"
    hasher = VideoHasher(
        bits=4,
        opener=FakeVideoOpener(10),
        on_frame=lambda s: seen.append((s.frame_index, s.hash)),
        dump_frames=True,
    )
    hasher.run(src)
    assert [i for i, _ in seen] == [0, 3, 7, 9]
    assert all(len(h) == 16 for _, h in seen)
    for i in (0, 3, 7, 9):
        dumped = cv2.imread(str(frame_dump_path(src, i)))
        np.testing.assert_array_equal(dumped, make_frame(i))


def test_duplicate_indices_hash_one_frame():
    seen = []
    hash_video("one.mp4", bits=4, opener=FakeVideoOpener(1), on_frame=seen.append)
    assert len(seen) == 4
    assert len({s.hash for s in seen}) == 1


def _write_avi(path, frames):
    writer = cv2.VideoWriter(
        str(path), cv2.VideoWriter_fourcc(*"MJPG"), 10.0, (frames[0].shape[1], frames[0].shape[0])
    )
    if not writer.isOpened():
        writer.release()
        pytest.skip("MJPG writer is not available")
    for f in frames:
        writer.write(f)
    writer.release()


def test_real_video_file(tmp_path):
    path = tmp_path / "clip.avi"
    _write_avi(path, [make_frame(i, 64, 48) for i in range(30)])
    a = hash_video(path, bits=8)
    b = hash_video(path, bits=8)
    assert len(a) == 4 * 64
    assert a == b
