"""
Frame extraction for scene sampling.

Frames are always downscaled to a small fixed size before encoding so
payloads and classification latency stay bounded; full-resolution frames
are never sent to a classifier.
"""

import base64
import io
import logging
import threading
import time
from pathlib import Path
from typing import Optional, Tuple, Union

import cv2
import numpy as np
from PIL import Image

from ..errors import FrameUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_FRAME_SIZE = (640, 480)


def downscale_frame(frame: np.ndarray,
                    size: Tuple[int, int] = DEFAULT_FRAME_SIZE) -> np.ndarray:
    """
    Resize a frame to exactly ``size`` (width, height).

    Args:
        frame: RGB frame (HxWx3)
        size: Target (width, height)

    Returns:
        Resized uint8 frame
    """
    if frame.dtype != np.uint8:
        frame = np.clip(frame, 0, 255).astype(np.uint8)
    h, w = frame.shape[:2]
    if (w, h) == tuple(size):
        return frame
    interpolation = cv2.INTER_AREA if w > size[0] else cv2.INTER_LINEAR
    return cv2.resize(frame, tuple(size), interpolation=interpolation)


def encode_frame(frame: np.ndarray, size: Tuple[int, int] = DEFAULT_FRAME_SIZE,
                 quality: int = 60) -> bytes:
    """
    Downscale and JPEG-encode a frame.

    Args:
        frame: RGB frame (HxWx3)
        size: Target (width, height)
        quality: JPEG quality 1-95

    Returns:
        JPEG bytes
    """
    small = downscale_frame(frame, size)
    img = Image.fromarray(small)
    if img.mode != 'RGB':
        img = img.convert('RGB')

    buffer = io.BytesIO()
    img.save(buffer, format='JPEG', quality=quality)
    return buffer.getvalue()


def encode_data_url(jpeg_bytes: bytes) -> str:
    """Wrap JPEG bytes in a data URL for HTTP classifiers."""
    return "data:image/jpeg;base64," + base64.b64encode(jpeg_bytes).decode('utf-8')


def decode_jpeg(jpeg_bytes: bytes) -> np.ndarray:
    """Decode JPEG bytes back into an RGB array."""
    with Image.open(io.BytesIO(jpeg_bytes)) as img:
        return np.asarray(img.convert('RGB'))


class StillFrameSource:
    """Frame source backed by a single still image."""

    def __init__(self, image: Union[str, Path, np.ndarray]):
        if isinstance(image, np.ndarray):
            self._frame = image
        else:
            with Image.open(image) as img:
                self._frame = np.asarray(img.convert('RGB'))

    def has_frame(self) -> bool:
        return self._frame is not None

    def read_frame(self) -> np.ndarray:
        return self._frame


class VideoCaptureSource:
    """
    OpenCV capture device or video file read on a background thread.

    The newest frame is kept in memory; readers always get a copy.
    """

    def __init__(self, src: Union[int, str] = 0, width: int = 1920, height: int = 1080):
        self.src = src
        self.width = width
        self.height = height
        self.stream: Optional[cv2.VideoCapture] = None
        self._frame: Optional[np.ndarray] = None
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stopped = True

    def start(self) -> 'VideoCaptureSource':
        if not self._stopped:
            return self

        self.stream = cv2.VideoCapture(self.src)
        self.stream.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        self.stream.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        if not self.stream.isOpened():
            raise FrameUnavailableError(f"Could not open video source {self.src!r}")

        self._stopped = False
        self._thread = threading.Thread(target=self._update, name="FlareSight-Capture",
                                        daemon=True)
        self._thread.start()
        logger.info(f"Video capture started on {self.src!r}")
        return self

    def _update(self):
        while not self._stopped:
            grabbed, frame = self.stream.read()
            if not grabbed:
                # End of file or device hiccup; keep the last good frame
                time.sleep(0.05)
                continue
            rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            with self._lock:
                self._frame = rgb
            time.sleep(0.001)

    def has_frame(self) -> bool:
        with self._lock:
            return self._frame is not None

    def read_frame(self) -> np.ndarray:
        with self._lock:
            if self._frame is None:
                raise FrameUnavailableError("No frame captured yet")
            return self._frame.copy()

    def stop(self):
        self._stopped = True
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None
        if self.stream is not None:
            self.stream.release()
            self.stream = None
        logger.info(f"Video capture stopped on {self.src!r}")

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop()
