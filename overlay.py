# overlay.py
from config import KEYPOINT_COLOR, KEYPOINT_RADIUS, KEYPOINT_SCORE_THRESHOLD


def render(source, pose, canvas):
    """
    Draws the source frame and every keypoint scoring above the threshold.

    Keypoints are mapped from the pose's pixel space onto the canvas; the ones
    at or below the threshold are not drawn at all.
    """
    canvas.clear()
    canvas.draw_image(source.frame())

    if pose is None or not pose.keypoints:
        return

    sx = canvas.width / pose.width if pose.width else 1.0
    sy = canvas.height / pose.height if pose.height else 1.0
    for keypoint in pose.keypoints:
        if keypoint.score > KEYPOINT_SCORE_THRESHOLD:
            canvas.fill_circle(keypoint.x * sx, keypoint.y * sy, KEYPOINT_RADIUS, KEYPOINT_COLOR)
