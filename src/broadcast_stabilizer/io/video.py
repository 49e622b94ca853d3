"""Video source and sink for the stabilization loop.

Design notes
------------
- ``VideoReader`` and ``VideoWriter`` are **context managers** so the
  OpenCV handles are always released, even when stabilization raises.
- ``VideoReader`` iterates ``(frame_index, frame)`` lazily.  A failed
  read is the end of the stream, not an error: iteration simply stops.
- ``VideoWriter`` refuses frames whose size differs from the size it was
  opened with.  OpenCV would otherwise drop them without a word.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Iterator
from typing import Any

import cv2
import numpy as np

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# VideoReader
# ---------------------------------------------------------------------------


class VideoReader:
    """Frame-by-frame reader backed by ``cv2.VideoCapture``.

    Parameters
    ----------
    path : str
        Path to the input video file.
    start_frame : int
        First frame index to yield (0-based).
    max_frames : int | None
        Maximum number of frames to yield.  ``None`` reads until the
        stream ends.
    stride : int
        Yield every *N*-th frame.
    resize : tuple[int, int] | None
        ``(width, height)`` applied to every yielded frame.
    """

    def __init__(
        self,
        path: str,
        start_frame: int = 0,
        max_frames: int | None = None,
        stride: int = 1,
        resize: tuple[int, int] | None = None,
    ) -> None:
        if stride < 1:
            raise ValueError(f"stride must be >= 1, got {stride}")
        if start_frame < 0:
            raise ValueError(f"start_frame must be >= 0, got {start_frame}")
        self.path = path
        self.start_frame = start_frame
        self.max_frames = max_frames
        self.stride = stride
        self.resize = resize
        self._capture: cv2.VideoCapture | None = None

    @property
    def fps(self) -> float:
        """Frames per second reported by the container."""
        return self._opened_capture().get(cv2.CAP_PROP_FPS)

    @property
    def frame_size(self) -> tuple[int, int]:
        """``(width, height)`` of the yielded frames (after any resize)."""
        if self.resize is not None:
            return self.resize
        capture = self._opened_capture()
        return (
            int(capture.get(cv2.CAP_PROP_FRAME_WIDTH)),
            int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT)),
        )

    @property
    def frame_count(self) -> int:
        """Total frame count reported by the container (may be approximate)."""
        return int(self._opened_capture().get(cv2.CAP_PROP_FRAME_COUNT))

    def open(self) -> VideoReader:
        """Open the underlying ``cv2.VideoCapture``."""
        self._capture = cv2.VideoCapture(self.path)
        if not self._capture.isOpened():
            self._capture = None
            raise OSError(f"Cannot open video: {self.path}")
        width, height = self.frame_size
        logger.info(
            "Opened video: %s  |  %.1f fps  |  %dx%d  |  ~%d frames",
            self.path,
            self.fps,
            width,
            height,
            self.frame_count,
        )
        return self

    def close(self) -> None:
        """Release the underlying ``cv2.VideoCapture``."""
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def __enter__(self) -> VideoReader:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def __iter__(self) -> Iterator[tuple[int, np.ndarray]]:
        """Yield ``(frame_index, frame)`` until the stream ends."""
        capture = self._opened_capture()
        if self.start_frame > 0:
            capture.set(cv2.CAP_PROP_POS_FRAMES, self.start_frame)

        frames_yielded = 0
        current_index = self.start_frame
        while self.max_frames is None or frames_yielded < self.max_frames:
            ok, frame = capture.read()
            if not ok or frame is None or frame.size == 0:
                logger.debug("End of stream after frame %d", current_index - 1)
                return

            if self.resize is not None:
                frame = cv2.resize(frame, self.resize, interpolation=cv2.INTER_LINEAR)

            yield current_index, frame
            frames_yielded += 1

            # grab() skips decoding for the frames the stride drops.
            for _ in range(self.stride - 1):
                if not capture.grab():
                    return
                current_index += 1
            current_index += 1

    def _opened_capture(self) -> cv2.VideoCapture:
        if self._capture is None or not self._capture.isOpened():
            raise RuntimeError(
                "VideoReader is not open. Use as a context manager or call .open() first."
            )
        return self._capture


# ---------------------------------------------------------------------------
# VideoWriter
# ---------------------------------------------------------------------------


class VideoWriter:
    """Frame-by-frame writer backed by ``cv2.VideoWriter``.

    Parameters
    ----------
    path : str
        Output file path.
    fps : float
        Output frame rate.
    width, height : int
        Frame size every written frame must have.
    codec : str
        FourCC codec string.  ``"mp4v"`` works everywhere; see
        :func:`reencode_to_h264` for broadly playable output.
    """

    def __init__(
        self,
        path: str,
        fps: float,
        width: int,
        height: int,
        codec: str = "mp4v",
    ) -> None:
        self.path = path
        self.fps = fps
        self.width = width
        self.height = height
        self.codec = codec
        self._writer: cv2.VideoWriter | None = None
        self._frames_written: int = 0

    @property
    def frames_written(self) -> int:
        """Number of frames written so far."""
        return self._frames_written

    def open(self) -> VideoWriter:
        """Open the underlying ``cv2.VideoWriter``."""
        fourcc: int = cv2.VideoWriter_fourcc(*self.codec)  # type: ignore[attr-defined]
        self._writer = cv2.VideoWriter(self.path, fourcc, self.fps, (self.width, self.height))
        if not self._writer.isOpened():
            self._writer = None
            raise OSError(f"Cannot open video writer: {self.path}")
        logger.info(
            "Opened writer: %s  |  %.1f fps  |  %dx%d  |  codec=%s",
            self.path,
            self.fps,
            self.width,
            self.height,
            self.codec,
        )
        return self

    def close(self) -> None:
        """Release the underlying ``cv2.VideoWriter``."""
        if self._writer is not None:
            self._writer.release()
            logger.info(
                "Closed writer: %s  |  %d frames written", self.path, self._frames_written
            )
            self._writer = None

    def __enter__(self) -> VideoWriter:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        self.close()

    def write(self, frame: np.ndarray) -> None:
        """Write one ``(height, width, 3)`` BGR frame."""
        if self._writer is None or not self._writer.isOpened():
            raise RuntimeError(
                "VideoWriter is not open. Use as a context manager or call .open() first."
            )
        if frame.shape[:2] != (self.height, self.width):
            raise ValueError(
                f"Frame size {frame.shape[1]}x{frame.shape[0]} does not match "
                f"writer size {self.width}x{self.height}"
            )
        self._writer.write(frame)
        self._frames_written += 1


# ---------------------------------------------------------------------------
# Post-processing
# ---------------------------------------------------------------------------


REENCODE_OPTIONS: tuple[str, ...] = (
    "-c:v", "libx264", "-crf", "23", "-preset", "fast", "-movflags", "+faststart", "-an",
)


def reencode_to_h264(video_path: str, ffmpeg: str = "ffmpeg") -> bool:
    """Re-encode *video_path* to H.264 in place.

    OpenCV writers only offer codecs such as ``mp4v`` or ``MJPG``, which many
    players refuse.  The file is rewritten through *ffmpeg* into a sibling
    temporary file that replaces the original only on success.

    Returns
    -------
    bool
        ``True`` if the file was replaced; ``False`` when *ffmpeg* is not
        on ``PATH`` or exits with an error.  The original is kept then.
    """
    executable = shutil.which(ffmpeg)
    if executable is None:
        logger.warning("%s not on PATH; keeping %s as written by OpenCV", ffmpeg, video_path)
        return False

    temp_path = f"{video_path}.h264.tmp.mp4"
    command = [executable, "-y", "-i", video_path, *REENCODE_OPTIONS, temp_path]
    completed = subprocess.run(command, capture_output=True, check=False)
    if completed.returncode != 0:
        logger.warning(
            "H.264 re-encode of %s failed (exit %d): %s",
            video_path,
            completed.returncode,
            completed.stderr.decode(errors="replace")[-200:],
        )
        if os.path.exists(temp_path):
            os.remove(temp_path)
        return False

    os.replace(temp_path, video_path)
    logger.info("Re-encoded to H.264: %s", video_path)
    return True
