import asyncio
import time

import pytest

from conftest import StubNet
from errors import InferenceError
from inference_engine import ModelHandle, infer
from inference_models.pose_types import Keypoint


def _handle(net):
    return ModelHandle(net=net, input_shape=net.input_shape)


def test_infer_returns_pose_with_flip_disabled(engine):
    net = StubNet(keypoints=[Keypoint("nose", 1, 2, 0.9)])
    tensor = engine.ones(net.input_shape)

    pose = asyncio.run(infer(_handle(net), tensor))

    assert pose.keypoints[0].name == "nose"
    assert (pose.width, pose.height) == (192, 192)
    assert net.calls == [((1, 192, 192, 3), False)]


def test_infer_returns_fresh_result_per_call(engine):
    net = StubNet(keypoints=[Keypoint("nose", 1, 2, 0.9)])
    tensor = engine.ones(net.input_shape)

    first = asyncio.run(infer(_handle(net), tensor))
    second = asyncio.run(infer(_handle(net), tensor))

    assert first == second
    assert first is not second


def test_backend_failure_becomes_inference_error(engine):
    net = StubNet(error=RuntimeError("device lost"))
    tensor = engine.ones(net.input_shape)

    with pytest.raises(InferenceError) as exc_info:
        asyncio.run(infer(_handle(net), tensor))
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_malformed_shape_is_rejected(engine):
    net = StubNet()
    tensor = engine.ones((1, 100, 100, 3))

    with pytest.raises(InferenceError):
        asyncio.run(infer(_handle(net), tensor))
    assert net.calls == []


def test_stalled_backend_times_out(engine):
    class SlowNet(StubNet):
        def estimate_single_pose(self, tensor, flip_horizontal=False):
            time.sleep(0.5)
            return super().estimate_single_pose(tensor, flip_horizontal)

    net = SlowNet()
    tensor = engine.ones(net.input_shape)

    with pytest.raises(InferenceError, match="timed out"):
        asyncio.run(infer(_handle(net), tensor, timeout=0.05))


def test_timeout_does_not_wait_for_stalled_backend(engine):
    class StalledNet(StubNet):
        def estimate_single_pose(self, tensor, flip_horizontal=False):
            time.sleep(3.0)
            return super().estimate_single_pose(tensor, flip_horizontal)

    net = StalledNet()
    tensor = engine.ones(net.input_shape)

    started = time.monotonic()
    with pytest.raises(InferenceError, match="timed out"):
        asyncio.run(infer(_handle(net), tensor, timeout=0.1))
    assert time.monotonic() - started < 1.0

    healthy = StubNet(keypoints=[Keypoint("nose", 1, 2, 0.9)])
    pose = asyncio.run(infer(_handle(healthy), engine.ones(healthy.input_shape), timeout=1.0))
    assert pose.keypoints[0].name == "nose"
