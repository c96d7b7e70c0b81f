# model_loader.py
"""
Fetches the pose model artifact, builds the network and warms it up.

Artifact layout (served over http(s), file:// or read from a local path):

    <base>/<model_name>_web_model/model.json
    <base>/<model_name>_web_model/<weights file named in model.json>

model.json:

    {"format": "ultralytics", "weights": "yolo11n-pose.pt", "inputShape": [1, 640, 640, 3]}

`inputShape` is optional; the network's own input size is used without it.
"""
import asyncio
import json
import logging
import os
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, replace
from typing import Optional

from config import MODEL_CACHE_DIR, MODEL_FETCH_TIMEOUT, MODEL_MANIFEST
from errors import ModelLoadError
from inference_engine import ModelHandle
from inference_models.pose_detector import YoloPoseNet
from tensor_engine import get_engine

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


@dataclass(frozen=True)
class LoadingState:
    loading: bool = True
    progress: float = 0.0
    error: Optional[str] = None


class LoadingTracker:
    """
    Observable loading state. Subscribers receive a LoadingState snapshot on
    every change; progress never moves backwards.
    """

    def __init__(self):
        self.state = LoadingState()
        self._listeners = []

    def subscribe(self, listener):
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def report(self, fraction):
        progress = max(self.state.progress, min(1.0, max(0.0, float(fraction))))
        self._set(replace(self.state, loading=True, progress=progress))

    def finish(self):
        self._set(LoadingState(loading=False, progress=1.0))

    def fail(self, error):
        self._set(replace(self.state, loading=False, error=str(error)))

    def _set(self, state):
        self.state = state
        for listener in list(self._listeners):
            listener(state)


def model_url(base, model_name):
    return f"{str(base).rstrip('/')}/{model_name}_web_model/{MODEL_MANIFEST}"


def _is_remote(url):
    return urllib.parse.urlparse(str(url)).scheme in ("http", "https", "file")


def _resolve(manifest_url, name):
    if _is_remote(manifest_url):
        return urllib.parse.urljoin(manifest_url, name)
    return os.path.join(os.path.dirname(manifest_url), name)


def _read_manifest(url):
    if _is_remote(url):
        with urllib.request.urlopen(url, timeout=MODEL_FETCH_TIMEOUT) as response:
            manifest = json.loads(response.read().decode("utf-8"))
    else:
        with open(url, "r", encoding="utf-8") as f:
            manifest = json.load(f)

    if not isinstance(manifest, dict) or not isinstance(manifest.get("weights"), str):
        raise ModelLoadError(f"{url}: manifest must name a 'weights' file")

    shape = manifest.get("inputShape")
    if shape is not None:
        if len(shape) != 4 or int(shape[0]) != 1 or int(shape[3]) != 3:
            raise ModelLoadError(f"{url}: inputShape must be [1, H, W, 3], got {shape}")
        manifest["inputShape"] = tuple(int(v) for v in shape)
    return manifest


def _fetch_weights(url, cache_dir, report):
    """
    Returns a local path for the weights, downloading remote files in chunks.
    `report` receives the downloaded byte fraction when the size is known.
    """
    if not _is_remote(url):
        if not os.path.isfile(url):
            raise ModelLoadError(f"Weights file not found: {url}")
        report(1.0)
        return url

    os.makedirs(cache_dir, exist_ok=True)
    dst_path = os.path.join(cache_dir, os.path.basename(urllib.parse.urlparse(url).path))
    tmp_path = dst_path + ".part"
    try:
        with urllib.request.urlopen(url, timeout=MODEL_FETCH_TIMEOUT) as response:
            total = int(response.headers.get("Content-Length") or 0)
            received = 0
            with open(tmp_path, "wb") as f:
                while True:
                    chunk = response.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    f.write(chunk)
                    received += len(chunk)
                    if total:
                        report(min(1.0, received / total))
        os.replace(tmp_path, dst_path)
    except Exception:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    report(1.0)
    return dst_path


async def warm_up(model, engine=None):
    """
    One throwaway run on an all-ones tensor so lazy compilation and allocation
    happen before the first real frame. Nothing created here outlives the call.
    """
    engine = engine or get_engine()
    with engine.scope():
        dummy = engine.ones(model.input_shape)
        result = await asyncio.to_thread(model.net.execute, dummy)
        del result


async def load_model(url, on_progress=None, engine=None, net_factory=YoloPoseNet.from_weights,
                     cache_dir=MODEL_CACHE_DIR):
    """
    Loads and warms up the pose model described by the manifest at `url`.

    `on_progress` is called on the event loop with non-decreasing fractions in
    [0, 1], the last one being 1.0.

    Raises:
        ModelLoadError: fetch, manifest or network construction failed.
    """
    loop = asyncio.get_running_loop()
    last = [0.0]

    def report(fraction):
        fraction = min(1.0, max(last[0], float(fraction)))
        last[0] = fraction
        if on_progress is not None:
            on_progress(fraction)

    def report_threadsafe(fraction):
        loop.call_soon_threadsafe(report, fraction)

    logger.info("Loading pose model from %s", url)
    try:
        manifest = await asyncio.to_thread(_read_manifest, url)
        weights_url = _resolve(url, manifest["weights"])
        weights_path = await asyncio.to_thread(_fetch_weights, weights_url, cache_dir, report_threadsafe)
        net = await asyncio.to_thread(net_factory, weights_path, manifest.get("inputShape"))
    except ModelLoadError:
        raise
    except (OSError, ValueError, TypeError, urllib.error.URLError) as exc:
        raise ModelLoadError(f"Failed to load model from {url}: {exc}") from exc
    except Exception as exc:
        raise ModelLoadError(f"Failed to build network from {url}: {exc}") from exc

    model = ModelHandle(net=net, input_shape=tuple(net.input_shape))
    try:
        await warm_up(model, engine)
    except Exception as exc:
        raise ModelLoadError(f"Warm-up inference failed: {exc}") from exc

    report(1.0)
    logger.info("Pose model ready, input shape %s", model.input_shape)
    return model


async def load_with_state(url, tracker, **kwargs):
    """Loads the model while mirroring progress into a LoadingTracker."""
    try:
        model = await load_model(url, on_progress=tracker.report, **kwargs)
    except ModelLoadError as exc:
        logger.error("Model load failed: %s", exc)
        tracker.fail(exc)
        raise
    tracker.finish()
    return model
