# inference_models/base.py
class PoseNet:
    """
    Network adapter interface.

    `input_shape` is (batch, height, width, channels). Both entry points take an
    engine tensor shaped like `input_shape` with float values in [0, 1].
    """

    input_shape = (1, 0, 0, 3)

    def execute(self, tensor):
        raise NotImplementedError("Must implement execute()")

    def estimate_single_pose(self, tensor, flip_horizontal=False):
        raise NotImplementedError("Must implement estimate_single_pose()")
