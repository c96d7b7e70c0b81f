# detect.py
import enum
import logging

from inference_engine import infer
from overlay import render
from preprocess import preprocess
from tensor_engine import get_engine, with_scope

logger = logging.getLogger(__name__)


class CycleState(enum.Enum):
    IDLE = "idle"
    SCOPE_OPEN = "scope_open"
    PREPROCESSED = "preprocessed"
    INFERRED = "inferred"
    RENDERED = "rendered"
    SCOPE_CLOSED = "scope_closed"


class DetectionCycle:
    """
    One preprocess -> infer -> render pass inside an engine scope.

    `history` records every state the cycle went through. A failure while
    preprocessing or inferring jumps straight to SCOPE_CLOSED (the scope has
    already released its tensors) before the error reaches the caller.
    """

    def __init__(self, source, model, canvas, engine=None):
        self.source = source
        self.model = model
        self.canvas = canvas
        self.engine = engine or get_engine()
        self.state = CycleState.IDLE
        self.history = [CycleState.IDLE]
        self.pose = None

    def _enter(self, state):
        self.state = state
        self.history.append(state)

    async def _body(self):
        self._enter(CycleState.SCOPE_OPEN)
        width, height = self.model.input_size
        tensor = preprocess(self.source, width, height, self.engine)
        self._enter(CycleState.PREPROCESSED)

        pose = await infer(self.model, tensor)
        pose = pose.scaled_to(self.source.width, self.source.height)
        self._enter(CycleState.INFERRED)

        render(self.source, pose, self.canvas)
        self._enter(CycleState.RENDERED)
        return pose

    async def run(self):
        try:
            self.pose = await with_scope(self._body, self.engine)
        finally:
            self._enter(CycleState.SCOPE_CLOSED)
            self._enter(CycleState.IDLE)
        return self.pose


async def detect_pose(source, model, canvas, engine=None, callback=None):
    """
    Detects a single pose in the current frame of `source` and draws it on
    `canvas`. Errors propagate to the caller; tensors are released either way.
    """
    pose = await DetectionCycle(source, model, canvas, engine).run()
    if callback is not None:
        callback()
    return pose
