# preprocess.py
from tensor_engine import get_engine


def preprocess(source, target_w, target_h, engine=None):
    """
    Converts a frame source into the network input tensor.

    Steps: RGB pixels -> bilinear resize to (target_h, target_w) -> batch
    dimension -> float32 -> divide by 255. The result is [1, target_h,
    target_w, 3] with values in [0, 1]. Intermediates are registered in the
    engine's current scope.

    Raises:
        SourceNotReadyError: the source has no pixel data yet.
    """
    engine = engine or get_engine()
    pixels = engine.from_pixels(source)
    return (
        pixels.resize_bilinear(int(target_h), int(target_w))
        .expand_dims(0)
        .to_float()
        .div(255.0)
    )
