# canvas.py
import cv2
import numpy as np


class Canvas:
    """
    2D drawing surface backed by a BGR uint8 image.

    Sized to the active source's display dimensions; the detection pipeline
    only ever writes to it.
    """

    def __init__(self, width, height):
        self.image = np.zeros((int(height), int(width), 3), dtype=np.uint8)

    @classmethod
    def for_source(cls, source, max_width=None, max_height=None):
        width, height = source.width, source.height
        if max_width and max_height and width and height:
            scale = min(max_width / width, max_height / height, 1.0)
            width, height = int(width * scale), int(height * scale)
        return cls(max(width, 1), max(height, 1))

    @property
    def width(self):
        return self.image.shape[1]

    @property
    def height(self):
        return self.image.shape[0]

    def clear(self):
        self.image[:] = 0

    def draw_image(self, frame):
        if frame.shape[:2] != self.image.shape[:2]:
            frame = cv2.resize(frame, (self.width, self.height), interpolation=cv2.INTER_LINEAR)
        self.image[:] = frame

    def fill_circle(self, x, y, radius, color):
        cv2.circle(self.image, (int(round(x)), int(round(y))), int(radius), color, -1, cv2.LINE_AA)
