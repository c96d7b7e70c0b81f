# inference_engine.py
import asyncio
import functools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Tuple

from config import INFERENCE_TIMEOUT_SECONDS
from errors import InferenceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelHandle:
    """A loaded network and the (batch, height, width, channels) shape it expects."""

    net: Any
    input_shape: Tuple[int, int, int, int]

    @property
    def input_size(self):
        _, height, width, _ = self.input_shape
        return width, height


_executor = None
_executor_lock = threading.Lock()


def _backend_executor():
    """Single worker thread the network runs on, outside the event loop's default executor."""
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pose-backend")
        return _executor


def _abandon_backend(executor):
    # A stalled call cannot be interrupted; leave it running on its own thread
    # and give later calls a fresh worker.
    global _executor
    with _executor_lock:
        if _executor is executor:
            _executor = None
    executor.shutdown(wait=False, cancel_futures=True)
    logger.warning("Backend call stalled, switched to a new worker thread")


async def infer(model, tensor, timeout=INFERENCE_TIMEOUT_SECONDS):
    """
    Runs single-pose estimation for one preprocessed tensor.

    The network runs on a worker thread so the event loop stays free while the
    backend works. Nothing is retried.

    Raises:
        InferenceError: malformed tensor shape, backend failure or timeout.
    """
    expected = tuple(model.input_shape)
    if tuple(tensor.shape) != expected:
        raise InferenceError(f"Input tensor shape {tuple(tensor.shape)} does not match model input {expected}")

    loop = asyncio.get_running_loop()
    executor = _backend_executor()
    call = functools.partial(model.net.estimate_single_pose, tensor, flip_horizontal=False)
    try:
        return await asyncio.wait_for(loop.run_in_executor(executor, call), timeout)
    except asyncio.TimeoutError as exc:
        _abandon_backend(executor)
        raise InferenceError(f"Inference timed out after {timeout:.2f}s") from exc
    except InferenceError:
        raise
    except Exception as exc:
        raise InferenceError(f"Backend execution failed: {exc}") from exc
