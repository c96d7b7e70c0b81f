# conftest.py
import numpy as np
import pytest

from canvas import Canvas
from inference_engine import ModelHandle
from inference_models.base import PoseNet
from inference_models.pose_types import Keypoint, PoseResult
from tensor_engine import TensorEngine


class StubNet(PoseNet):
    """Returns a fixed pose and records what it was called with."""

    def __init__(self, keypoints=(), input_shape=(1, 192, 192, 3), error=None):
        self.input_shape = input_shape
        self.keypoints = tuple(keypoints)
        self.error = error
        self.calls = []
        self.executed = []

    def execute(self, tensor):
        self.executed.append(tensor.shape)
        return np.zeros((1, 17, 3), dtype=np.float32)

    def estimate_single_pose(self, tensor, flip_horizontal=False):
        self.calls.append((tensor.shape, flip_horizontal))
        if self.error is not None:
            raise self.error
        _, height, width, _ = tensor.shape
        return PoseResult(width=width, height=height, keypoints=self.keypoints)


class RecordingCanvas(Canvas):
    def __init__(self, width, height):
        super().__init__(width, height)
        self.ops = []

    def clear(self):
        self.ops.append(("clear",))
        super().clear()

    def draw_image(self, frame):
        self.ops.append(("draw_image", frame.shape))
        super().draw_image(frame)

    def fill_circle(self, x, y, radius, color):
        self.ops.append(("circle", x, y, radius, color))
        super().fill_circle(x, y, radius, color)

    @property
    def circles(self):
        return [op[1:] for op in self.ops if op[0] == "circle"]


@pytest.fixture
def engine():
    return TensorEngine()


@pytest.fixture
def bright_image():
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    image[40:60, 40:60] = 255
    return image


@pytest.fixture
def stub_model():
    net = StubNet(keypoints=[Keypoint(name="nose", x=50.0, y=50.0, score=0.8)])
    return ModelHandle(net=net, input_shape=net.input_shape)
