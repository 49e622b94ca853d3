"""VideoReader / VideoWriter guards and a small write-read round trip."""

import numpy as np
import pytest

from broadcast_stabilizer.io.video import VideoReader, VideoWriter, reencode_to_h264


def _write_clip(path, frame_count: int = 5, width: int = 64, height: int = 48) -> None:
    with VideoWriter(str(path), fps=10.0, width=width, height=height, codec="MJPG") as writer:
        for index in range(frame_count):
            frame = np.full((height, width, 3), 20 * index, dtype=np.uint8)
            writer.write(frame)
        assert writer.frames_written == frame_count


def test_reader_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        VideoReader(str(tmp_path / "missing.mp4")).open()


def test_reader_not_open_raises(tmp_path):
    reader = VideoReader(str(tmp_path / "clip.avi"))
    with pytest.raises(RuntimeError):
        list(reader)


def test_reader_rejects_bad_stride():
    with pytest.raises(ValueError):
        VideoReader("clip.avi", stride=0)


def test_writer_not_open_raises(tmp_path):
    writer = VideoWriter(str(tmp_path / "out.avi"), fps=10.0, width=64, height=48)
    with pytest.raises(RuntimeError):
        writer.write(np.zeros((48, 64, 3), dtype=np.uint8))


def test_writer_rejects_wrong_frame_size(tmp_path):
    with VideoWriter(str(tmp_path / "out.avi"), 10.0, 64, 48, codec="MJPG") as writer:
        with pytest.raises(ValueError):
            writer.write(np.zeros((48, 60, 3), dtype=np.uint8))


def test_round_trip_reads_until_end_of_stream(tmp_path):
    clip_path = tmp_path / "clip.avi"
    _write_clip(clip_path)

    with VideoReader(str(clip_path), max_frames=100) as reader:
        assert reader.frame_size == (64, 48)
        frames = list(reader)

    assert [index for index, _ in frames] == [0, 1, 2, 3, 4]
    assert all(frame.shape == (48, 64, 3) for _, frame in frames)


def test_round_trip_stride_and_resize(tmp_path):
    clip_path = tmp_path / "clip.avi"
    _write_clip(clip_path)

    with VideoReader(str(clip_path), stride=2, resize=(32, 24)) as reader:
        assert reader.frame_size == (32, 24)
        frames = list(reader)

    assert [index for index, _ in frames] == [0, 2, 4]
    assert all(frame.shape == (24, 32, 3) for _, frame in frames)


def test_reencode_without_encoder_keeps_file(tmp_path):
    clip_path = tmp_path / "clip.avi"
    _write_clip(clip_path)
    original_bytes = clip_path.read_bytes()

    assert reencode_to_h264(str(clip_path), ffmpeg="no-such-encoder-binary") is False
    assert clip_path.read_bytes() == original_bytes
    assert not (tmp_path / "clip.avi.h264.tmp.mp4").exists()
