from types import SimpleNamespace

import numpy as np
import torch

from inference_models.pose_detector import YoloPoseNet
from inference_models.pose_types import COCO17_NAMES


def _result(people):
    xy = torch.tensor([[[x, y] for x, y, _ in person] for person in people], dtype=torch.float32).reshape(-1, 17, 2)
    conf = torch.tensor([[c for _, _, c in person] for person in people], dtype=torch.float32).reshape(-1, 17)
    return SimpleNamespace(
        keypoints=SimpleNamespace(xy=xy, conf=conf),
        boxes=SimpleNamespace(cls=torch.zeros(len(people))),
        names={0: "person"},
    )


class DummyYolo:
    def __init__(self, results):
        self.results = results
        self.inputs = []
        self.model = SimpleNamespace(args={"imgsz": 320})

    def predict(self, source, conf=0.25, device=None, verbose=True):
        self.inputs.append(source)
        return self.results


def test_input_shape_comes_from_training_args():
    net = YoloPoseNet(DummyYolo([]))
    assert net.input_shape == (1, 320, 320, 3)


def test_first_person_keypoints_in_model_space(engine):
    first = [(float(i), float(2 * i), 0.9) for i in range(17)]
    second = [(100.0, 100.0, 0.1)] * 17
    model = DummyYolo([_result([first, second])])
    net = YoloPoseNet(model, input_shape=(1, 64, 64, 3))

    pose = net.estimate_single_pose(engine.ones((1, 64, 64, 3)))

    assert (pose.width, pose.height) == (64, 64)
    assert [k.name for k in pose.keypoints] == COCO17_NAMES
    left_eye = pose.keypoints[COCO17_NAMES.index("left_eye")]
    assert (left_eye.x, left_eye.y) == (1.0, 2.0)
    assert np.isclose(pose.keypoints[0].score, 0.9)
    assert tuple(model.inputs[0].shape) == (1, 3, 64, 64)


def test_flip_horizontal_mirrors_x(engine):
    person = [(10.0, 5.0, 0.9)] * 17
    net = YoloPoseNet(DummyYolo([_result([person])]), input_shape=(1, 64, 64, 3))

    pose = net.estimate_single_pose(engine.ones((1, 64, 64, 3)), flip_horizontal=True)

    assert pose.keypoints[0].x == 53.0


def test_nobody_found_returns_empty_pose(engine):
    net = YoloPoseNet(DummyYolo([_result([])]), input_shape=(1, 64, 64, 3))
    pose = net.estimate_single_pose(engine.ones((1, 64, 64, 3)))
    assert pose.keypoints == ()
