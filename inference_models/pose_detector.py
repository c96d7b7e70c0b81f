# inference_models/pose_detector.py
import numpy as np
import supervision as sv
import torch
from ultralytics import YOLO

from config import DEFAULT_INPUT_SIZE, INFERENCE_DEVICE
from inference_models.base import PoseNet
from inference_models.pose_types import COCO17_NAMES, Keypoint, PoseResult


def _input_size(model):
    args = getattr(getattr(model, "model", None), "args", None)
    size = args.get("imgsz") if isinstance(args, dict) else None
    if isinstance(size, (list, tuple)):
        size = size[0]
    return int(size or DEFAULT_INPUT_SIZE)


class YoloPoseNet(PoseNet):
    """
    Ultralytics YOLO pose model behind the PoseNet interface.

    The tensor is fed as-is (NHWC -> NCHW), so keypoints come back in model
    input pixels. Only the first (most confident) person is kept.
    """

    def __init__(self, model=None, input_shape=None, device=INFERENCE_DEVICE, conf=0.25):
        if model is None:
            model = YOLO("yolo11n-pose.pt")
        self.model = model
        self.device = device
        self.conf = conf
        if input_shape is None:
            size = _input_size(model)
            input_shape = (1, size, size, 3)
        self.input_shape = tuple(int(v) for v in input_shape)

    @classmethod
    def from_weights(cls, weights_path, input_shape=None):
        return cls(YOLO(weights_path, task="pose"), input_shape=input_shape)

    def _batch(self, tensor):
        data = np.ascontiguousarray(tensor.numpy().transpose(0, 3, 1, 2))
        return torch.from_numpy(data)

    def execute(self, tensor):
        return self.model.predict(self._batch(tensor), conf=self.conf, device=self.device, verbose=False)

    def estimate_single_pose(self, tensor, flip_horizontal=False):
        _, height, width, _ = tensor.shape
        results = self.execute(tensor)
        if not results:
            return PoseResult(width=width, height=height)

        key_points = sv.KeyPoints.from_ultralytics(results[0])
        if len(key_points) == 0:
            return PoseResult(width=width, height=height)

        xy = key_points.xy[0]
        if key_points.confidence is not None:
            scores = key_points.confidence[0]
        else:
            scores = np.zeros(len(xy), dtype=np.float32)
        names = COCO17_NAMES if len(xy) == len(COCO17_NAMES) else [f"keypoint_{i}" for i in range(len(xy))]

        keypoints = []
        for name, (x, y), score in zip(names, xy, scores):
            x = float(x)
            if flip_horizontal:
                x = width - 1 - x
            keypoints.append(Keypoint(name=name, x=x, y=float(y), score=float(score)))

        return PoseResult(width=width, height=height, keypoints=tuple(keypoints))
