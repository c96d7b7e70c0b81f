# frame_source.py
"""
Frame sources for detection: still images and live/recorded video.

Sources hold frames in OpenCV's BGR order for display and hand RGB pixels to
the tensor engine. A source that has no frame yet raises SourceNotReadyError
instead of returning empty data.
"""
import logging
import os
import time

import cv2

from config import VIDEO_READY_STATE
from errors import SourceNotReadyError

logger = logging.getLogger(__name__)

# Mirrors the HTML media ready states the readiness threshold is expressed in.
HAVE_NOTHING = 0
HAVE_METADATA = 1
HAVE_CURRENT_DATA = 2


class FrameSource:
    def frame(self):
        raise NotImplementedError("Must implement frame()")

    @property
    def width(self):
        frame = self.frame()
        return 0 if frame is None else int(frame.shape[1])

    @property
    def height(self):
        frame = self.frame()
        return 0 if frame is None else int(frame.shape[0])

    @property
    def is_ready(self):
        return _has_pixels(self.frame())

    def pixels(self):
        frame = self.frame()
        if not _has_pixels(frame):
            raise SourceNotReadyError(f"{type(self).__name__} has no frame yet")
        return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)


def _has_pixels(frame):
    return frame is not None and frame.size > 0


class ImageSource(FrameSource):
    def __init__(self, image, name="image"):
        self.image = image
        self.name = name

    @classmethod
    def from_path(cls, path):
        image = cv2.imread(path)
        if image is None:
            logger.warning("Could not read image %s", path)
        return cls(image, name=os.path.basename(path))

    def frame(self):
        return self.image


class VideoSource(FrameSource):
    """
    Camera or video-file source.

    Files play back in real time by default: `advance()` skips ahead to the
    frame that matches the elapsed wall time, so a slow detector sees fewer
    frames instead of falling behind. Cameras always return the next captured
    frame.
    """

    def __init__(self, reference, capture=None, realtime=None, clock=time.monotonic):
        self.reference = reference
        self.capture = capture if capture is not None else cv2.VideoCapture(reference)
        self._clock = clock
        self._frame = None
        self._frames_read = 0
        self._started_at = None
        self.ended = False

        frame_count = self.capture.get(cv2.CAP_PROP_FRAME_COUNT)
        is_file = bool(frame_count and frame_count > 0)
        self.realtime = is_file if realtime is None else realtime
        self.fps = float(self.capture.get(cv2.CAP_PROP_FPS) or 0.0) or 30.0

    @property
    def ready_state(self):
        if not self.capture.isOpened() and self._frame is None:
            return HAVE_NOTHING
        if not _has_pixels(self._frame):
            return HAVE_METADATA
        return HAVE_CURRENT_DATA

    @property
    def is_ready(self):
        return self.ready_state >= VIDEO_READY_STATE

    def frame(self):
        return self._frame

    def advance(self):
        """Moves to the current frame. Returns False once the stream has ended."""
        if self.ended:
            return False

        if not self.realtime:
            return self._read()

        now = self._clock()
        if self._started_at is None:
            self._started_at = now
        target = int((now - self._started_at) * self.fps) + 1
        while self._frames_read < target:
            if not self._read():
                return False
        return True

    def _read(self):
        ok, frame = self.capture.read()
        if not ok:
            logger.info("Video source %s ended after %d frame(s)", self.reference, self._frames_read)
            self.ended = True
            self.release()
            return False
        self._frame = frame
        self._frames_read += 1
        return True

    def release(self):
        self.capture.release()
