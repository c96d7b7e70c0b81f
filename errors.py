# errors.py
class PoseDetectionError(Exception):
    """Base class for every failure raised by the detection pipeline."""


class ModelLoadError(PoseDetectionError):
    """Fetching the model artifact or building the network failed."""


class SourceNotReadyError(PoseDetectionError):
    """Detection was requested before the frame source had pixel data."""


class InferenceError(PoseDetectionError):
    """The backend failed (or timed out) while running the network."""
