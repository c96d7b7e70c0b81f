# inference_models/pose_types.py
from dataclasses import dataclass, field
from typing import Tuple

COCO17_NAMES = [
    "nose", "left_eye", "right_eye", "left_ear", "right_ear",
    "left_shoulder", "right_shoulder", "left_elbow", "right_elbow",
    "left_wrist", "right_wrist", "left_hip", "right_hip",
    "left_knee", "right_knee", "left_ankle", "right_ankle",
]


@dataclass(frozen=True)
class Keypoint:
    """A single 2D keypoint in pixel coordinates."""

    name: str
    x: float
    y: float
    score: float  # confidence [0..1]


@dataclass(frozen=True)
class PoseResult:
    """
    Single-person pose output.

    - `width`/`height` describe the pixel space the keypoints are expressed in
      (the model input while it leaves the network, the source frame after the
      detection cycle rescales it).
    - Keypoints keep the network's ordering.
    """

    width: int
    height: int
    keypoints: Tuple[Keypoint, ...] = field(default_factory=tuple)

    def scaled_to(self, width: int, height: int) -> "PoseResult":
        if not self.width or not self.height:
            return PoseResult(width=width, height=height, keypoints=self.keypoints)
        sx = width / self.width
        sy = height / self.height
        keypoints = tuple(
            Keypoint(name=k.name, x=k.x * sx, y=k.y * sy, score=k.score)
            for k in self.keypoints
        )
        return PoseResult(width=width, height=height, keypoints=keypoints)
