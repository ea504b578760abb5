"""Duration probing for uploaded video files."""

import json
import subprocess


def _duration_ffprobe(path: str) -> float | None:
    try:
        result = subprocess.run(
            ["ffprobe", "-v", "quiet", "-print_format", "json", "-show_format", path],
            capture_output=True, text=True, timeout=15,
        )
        if result.returncode == 0:
            data = json.loads(result.stdout)
            return float(data["format"]["duration"])
    except (FileNotFoundError, KeyError, ValueError, subprocess.TimeoutExpired):
        return None
    return None


def _duration_opencv(path: str) -> float | None:
    import cv2

    cap = cv2.VideoCapture(path)
    if not cap.isOpened():
        cap.release()
        return None
    fps = cap.get(cv2.CAP_PROP_FPS)
    frame_count = cap.get(cv2.CAP_PROP_FRAME_COUNT)
    cap.release()
    if fps > 0 and frame_count > 0:
        return frame_count / fps
    return None


def probe_duration(path: str) -> float | None:
    """Duration in seconds, or None when neither ffprobe nor OpenCV can read the file."""
    duration = _duration_ffprobe(path)
    if duration is None:
        duration = _duration_opencv(path)
    return duration
