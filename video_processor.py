# video_processor.py
import asyncio
import logging
import time
from dataclasses import dataclass

import cv2
from PyQt5 import QtCore, QtGui

from config import DISPLAY_REFRESH_RATE, VIDEO_HEIGHT, VIDEO_WIDTH
from detect import detect_pose
from errors import InferenceError, SourceNotReadyError

logger = logging.getLogger(__name__)


class DisplayPacer:
    """
    Waits for the next display refresh tick.

    Ticks are spaced 1 / refresh_rate apart. A caller that overruns a tick gets
    the next frame immediately and the schedule restarts from there, so missed
    frames are dropped rather than queued.
    """

    def __init__(self, refresh_rate=DISPLAY_REFRESH_RATE, clock=time.monotonic, sleep=asyncio.sleep):
        self.interval = 1.0 / refresh_rate
        self._clock = clock
        self._sleep = sleep
        self._next_tick = None

    async def next_frame(self):
        now = self._clock()
        if self._next_tick is None or self._next_tick < now:
            self._next_tick = now
        delay = self._next_tick - now
        self._next_tick += self.interval
        if delay > 0:
            await self._sleep(delay)
        else:
            await self._sleep(0)


class StreamHandle:
    """Stop token for a continuous detection loop, checked before every cycle."""

    def __init__(self):
        self._stopped = False
        self.reason = None

    @property
    def stopped(self):
        return self._stopped

    def stop(self, reason="stopped"):
        if not self._stopped:
            self._stopped = True
            self.reason = reason


@dataclass
class LoopStats:
    cycles: int = 0
    failures: int = 0
    skipped: int = 0


async def run_continuous(video, model, canvas, handle=None, pacer=None, engine=None, on_frame=None):
    """
    Detects poses on `video` once per display frame until the stream ends or
    `handle.stop()` is called.

    A frame whose inference fails (or whose source has no data yet) is logged,
    counted and skipped; the loop carries on with the next frame.
    """
    handle = handle or StreamHandle()
    pacer = pacer or DisplayPacer()
    stats = LoopStats()

    while not handle.stopped:
        await pacer.next_frame()
        if handle.stopped:
            break
        if not video.advance():
            handle.stop("ended")
            break

        try:
            await detect_pose(video, model, canvas, engine)
        except SourceNotReadyError as exc:
            stats.skipped += 1
            logger.debug("Frame skipped, source not ready: %s", exc)
            continue
        except InferenceError as exc:
            stats.failures += 1
            logger.warning("Inference failed, skipping frame: %s", exc)
            continue

        stats.cycles += 1
        if on_frame is not None:
            on_frame(canvas)

    logger.info(
        "Continuous detection finished (%s): %d cycle(s), %d failure(s), %d skipped",
        handle.reason, stats.cycles, stats.failures, stats.skipped,
    )
    return stats


def to_qimage(image, width=VIDEO_WIDTH, height=VIDEO_HEIGHT):
    rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    h, w, ch = rgb.shape
    q_img = QtGui.QImage(rgb.data, w, h, ch * w, QtGui.QImage.Format_RGB888).copy()
    return q_img.scaled(width, height, QtCore.Qt.KeepAspectRatio)


class VideoProcessor(QtCore.QThread):
    """Runs the continuous detection loop off the GUI thread."""

    frame_ready = QtCore.pyqtSignal(QtGui.QImage)
    error_signal = QtCore.pyqtSignal(str)

    def __init__(self, video, model, canvas, parent=None):
        super().__init__(parent)
        self.video = video
        self.model = model
        self.canvas = canvas
        self.handle = StreamHandle()
        self.stats = None

    def run(self):
        try:
            self.stats = asyncio.run(run_continuous(
                self.video, self.model, self.canvas,
                handle=self.handle,
                on_frame=lambda canvas: self.frame_ready.emit(to_qimage(canvas.image)),
            ))
        except Exception as e:
            logger.exception("Video processing stopped")
            self.error_signal.emit(f"Video processing stopped:\n{e}")
        finally:
            self.video.release()

        if self.handle.reason == "ended":
            self.error_signal.emit("End of video or stream error.")

    def stop(self):
        self.handle.stop()
        self.wait()
