# tensor_engine.py
"""
Tracked tensors and scoped release.

Every tensor created through a TensorEngine is registered in the engine's live
set. Tensors created while a scope is open belong to the innermost scope and
are released when that scope ends, unless they were explicitly kept.
`engine.scope()` and `with_scope()` end the scope on every exit path, so a
failed detection cycle releases its intermediates just like a successful one.
"""
import inspect
import itertools
import logging
from contextlib import contextmanager

import numpy as np

from errors import SourceNotReadyError

logger = logging.getLogger(__name__)


def _resize_axis(in_size, out_size):
    ratio = in_size / out_size
    src = np.float32(ratio) * np.arange(out_size, dtype=np.float32)

    floor = np.floor(src)
    lo = np.clip(floor, 0, in_size - 1).astype(np.int64)
    hi = np.clip(np.ceil(src), 0, in_size - 1).astype(np.int64)
    lerp = (src - floor).astype(np.float32)
    return lo, hi, lerp


def resize_bilinear(image, new_height, new_width):
    """
    Bilinear resize of an [h, w, c] array with TensorFlow's legacy sampling
    (source = dst * in / out). Interpolation uses the `a + (b - a) * t` form,
    so the output never leaves the range of the input values.
    """
    in_h, in_w = image.shape[:2]
    y_lo, y_hi, y_lerp = _resize_axis(in_h, new_height)
    x_lo, x_hi, x_lerp = _resize_axis(in_w, new_width)

    img = image.astype(np.float32, copy=False)
    x_lerp = x_lerp[None, :, None]
    y_lerp = y_lerp[:, None, None]

    top_left = img[y_lo][:, x_lo]
    top_right = img[y_lo][:, x_hi]
    bottom_left = img[y_hi][:, x_lo]
    bottom_right = img[y_hi][:, x_hi]

    top = top_left + (top_right - top_left) * x_lerp
    bottom = bottom_left + (bottom_right - bottom_left) * x_lerp
    return (top + (bottom - top) * y_lerp).astype(np.float32, copy=False)


class Tensor:
    """A numpy array whose lifetime is tracked by a TensorEngine."""

    def __init__(self, engine, data, tensor_id):
        self._engine = engine
        self._data = data
        self.id = tensor_id
        self.disposed = False

    @property
    def shape(self):
        return tuple(self._data.shape)

    @property
    def dtype(self):
        return self._data.dtype

    def numpy(self):
        if self.disposed:
            raise ValueError(f"Tensor {self.id} is disposed")
        return self._data

    def resize_bilinear(self, new_height, new_width):
        data = self.numpy()
        if data.ndim == 3:
            out = resize_bilinear(data, new_height, new_width)
        elif data.ndim == 4:
            out = np.stack([resize_bilinear(item, new_height, new_width) for item in data])
        else:
            raise ValueError(f"resize_bilinear expects rank 3 or 4, got shape {self.shape}")
        return self._engine.tensor(out)

    def expand_dims(self, axis=0):
        return self._engine.tensor(np.expand_dims(self.numpy(), axis))

    def to_float(self):
        return self._engine.tensor(self.numpy().astype(np.float32))

    def div(self, value):
        return self._engine.tensor(np.divide(self.numpy(), np.float32(value), dtype=np.float32))

    def dispose(self):
        self._engine.dispose(self)

    def __repr__(self):
        state = "disposed" if self.disposed else "live"
        return f"Tensor(id={self.id}, shape={self.shape}, dtype={self.dtype}, {state})"


class TensorEngine:
    def __init__(self):
        self._ids = itertools.count(1)
        self._live = {}
        self._scopes = []

    @property
    def num_tensors(self):
        return len(self._live)

    @property
    def scope_depth(self):
        return len(self._scopes)

    def tensor(self, values, dtype=None):
        data = np.array(values, dtype=dtype, copy=True) if dtype is not None else np.asarray(values)
        tensor = Tensor(self, data, next(self._ids))
        self._live[tensor.id] = tensor
        if self._scopes:
            self._scopes[-1].append(tensor)
        return tensor

    def ones(self, shape, dtype=np.float32):
        return self.tensor(np.ones(tuple(shape), dtype=dtype))

    def from_pixels(self, source):
        """
        Reads RGB pixel data from a frame source into an int32 [h, w, 3] tensor.
        """
        pixels = source.pixels()
        if pixels is None or getattr(pixels, "size", 0) == 0:
            raise SourceNotReadyError(f"{type(source).__name__} has no pixel data yet")
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise SourceNotReadyError(f"Expected [h, w, 3] pixels, got shape {pixels.shape}")
        return self.tensor(pixels.astype(np.int32))

    def keep(self, tensor):
        for scope in self._scopes:
            if tensor in scope:
                scope.remove(tensor)
        return tensor

    def dispose(self, tensors):
        if isinstance(tensors, Tensor):
            tensors = [tensors]
        for tensor in tensors:
            if tensor.disposed:
                continue
            tensor.disposed = True
            self._live.pop(tensor.id, None)

    def start_scope(self):
        self._scopes.append([])

    def end_scope(self):
        if not self._scopes:
            raise RuntimeError("end_scope() called without a matching start_scope()")
        scope = self._scopes.pop()
        self.dispose(scope)
        logger.debug("Scope closed, released %d tensor(s), %d live", len(scope), self.num_tensors)

    @contextmanager
    def scope(self):
        self.start_scope()
        try:
            yield self
        finally:
            self.end_scope()


_default_engine = None


def get_engine():
    global _default_engine
    if _default_engine is None:
        _default_engine = TensorEngine()
    return _default_engine


async def with_scope(body, engine=None):
    """
    Runs `body()` inside an engine scope and returns its result. `body` may be a
    plain callable or a coroutine function; the scope is closed either way.
    """
    engine = engine or get_engine()
    with engine.scope():
        result = body()
        if inspect.isawaitable(result):
            result = await result
        return result
