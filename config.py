# config.py
import os

# Model artifact
MODEL_NAME = os.getenv("POSE_MODEL_NAME", "yolo11n")
MODEL_BASE_URL = os.getenv("POSE_MODEL_BASE_URL", "models")
MODEL_MANIFEST = "model.json"
MODEL_CACHE_DIR = os.getenv("POSE_MODEL_CACHE_DIR", os.path.join("models", ".cache"))
MODEL_FETCH_TIMEOUT = 30.0
DEFAULT_INPUT_SIZE = 640

# Inference
INFERENCE_DEVICE = os.getenv("POSE_DEVICE") or None
INFERENCE_TIMEOUT_SECONDS = float(os.getenv("POSE_INFERENCE_TIMEOUT", "5.0"))

# Overlay (fixed design constants)
KEYPOINT_SCORE_THRESHOLD = 0.5
KEYPOINT_RADIUS = 5
KEYPOINT_COLOR = (0, 0, 255)  # BGR red

# Frame pacing
DISPLAY_REFRESH_RATE = int(os.getenv("POSE_REFRESH_RATE", "60"))
VIDEO_READY_STATE = 2  # current frame data available

# UI settings
VIDEO_FOLDER = "videos"
SPLASH_IMAGE = "images/splash.jpg"
VIDEO_WIDTH = 800
VIDEO_HEIGHT = 600

# Logging
LOG_LEVEL = os.getenv("POSE_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
