import numpy as np
import pytest

from errors import SourceNotReadyError
from frame_source import ImageSource
from preprocess import preprocess


def test_preprocess_shape_and_range(engine, bright_image):
    with engine.scope():
        tensor = preprocess(ImageSource(bright_image), 192, 192, engine)
        data = tensor.numpy()

        assert tensor.shape == (1, 192, 192, 3)
        assert data.dtype == np.float32
        assert data.min() >= 0.0
        assert data.max() <= 1.0
        assert data.max() == pytest.approx(1.0)


def test_preprocess_non_square_target(engine, bright_image):
    with engine.scope():
        tensor = preprocess(ImageSource(bright_image), 320, 160, engine)
        assert tensor.shape == (1, 160, 320, 3)


def test_preprocess_is_deterministic(engine):
    rng = np.random.default_rng(7)
    image = rng.integers(0, 256, size=(37, 53, 3), dtype=np.uint8)

    with engine.scope():
        first = preprocess(ImageSource(image), 64, 64, engine).numpy().copy()
        second = preprocess(ImageSource(image.copy()), 64, 64, engine).numpy().copy()

    assert first.tobytes() == second.tobytes()


def test_preprocess_converts_bgr_to_rgb(engine):
    image = np.zeros((4, 4, 3), dtype=np.uint8)
    image[:, :, 0] = 255  # blue in OpenCV order

    with engine.scope():
        data = preprocess(ImageSource(image), 4, 4, engine).numpy()

    assert np.all(data[..., 2] == 1.0)
    assert np.all(data[..., 0] == 0.0)


def test_preprocess_leaves_no_tensors_after_scope(engine, bright_image):
    before = engine.num_tensors
    with engine.scope():
        preprocess(ImageSource(bright_image), 96, 96, engine)
        assert engine.num_tensors > before
    assert engine.num_tensors == before


def test_preprocess_source_not_ready(engine):
    with pytest.raises(SourceNotReadyError):
        with engine.scope():
            preprocess(ImageSource(None), 192, 192, engine)
    assert engine.num_tensors == 0
