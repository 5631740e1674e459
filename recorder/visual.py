
"""Preview overlay helpers.

- format_time: seconds -> mm:ss for the REC badge
- draw_overlays: draw the REC badge, the detected emotion label, the face
  sampling box and a camera-off card on a preview frame
"""
from __future__ import annotations
import cv2
import numpy as np
from typing import Optional, Tuple

from recorder.capture import center_crop_region
from recorder.models import LiveStatus

RED = (0, 0, 255)
WHITE = (255, 255, 255)
GREEN = (0, 255, 0)


def format_time(seconds: int) -> str:
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"


def draw_overlays(frame: np.ndarray,
                  status: LiveStatus,
                  crop_fraction: Optional[float] = None,
                  color: Tuple[int, int, int] = GREEN) -> np.ndarray:
    """Draw live status on a copy of a BGR frame.

    Args:
        frame: BGR image
        status: current LiveStatus
        crop_fraction: when set, outline the region the detector samples
        color: BGR color for the face box and emotion label

    Returns:
        Annotated copy of the frame
    """
    out = frame.copy()
    h, w = out.shape[:2]

    if not status.video_enabled:
        out[:] = 0
        cv2.putText(out, "Camera is off", (max(0, w // 2 - 110), h // 2),
                    cv2.FONT_HERSHEY_SIMPLEX, 1.0, WHITE, 2, cv2.LINE_AA)
        return out

    if crop_fraction:
        x, y, side, _ = center_crop_region(w, h, crop_fraction)
        cv2.rectangle(out, (x, y), (x + side, y + side), color, 1)

    if status.recording:
        cv2.circle(out, (20, 25), 8, RED, -1)
        cv2.putText(out, f"REC {format_time(status.recording_seconds)}", (35, 32),
                    cv2.FONT_HERSHEY_SIMPLEX, 0.7, WHITE, 2, cv2.LINE_AA)

        if status.analysis_mode == "model":
            label = f"{status.detected_emotion} ({round(status.confidence * 100)}%)"
            (tw, _), _ = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, 0.7, 2)
            cv2.putText(out, label, (max(0, w - tw - 15), 32),
                        cv2.FONT_HERSHEY_SIMPLEX, 0.7, color, 2, cv2.LINE_AA)

    if status.muted:
        cv2.putText(out, "MUTED", (10, h - 15), cv2.FONT_HERSHEY_SIMPLEX, 0.6, RED, 2, cv2.LINE_AA)

    return out
