"""
Frame sampling from the live camera stream.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple
import logging

import numpy as np

logger = logging.getLogger(__name__)


class CaptureError(RuntimeError):
    """No usable frame right now (stream not ready, or the copy failed)."""


class FrameSource(Protocol):
    def latest_frame(self) -> Optional[np.ndarray]: ...


@dataclass
class ImageSample:
    """A full-frame raster plus an optional face region (x, y, w, h)."""
    frame: np.ndarray
    region: Optional[Tuple[int, int, int, int]] = None

    @property
    def pixels(self) -> np.ndarray:
        if self.region is None:
            return self.frame
        x, y, w, h = self.region
        return self.frame[y:y + h, x:x + w]


def center_crop_region(width: int, height: int, fraction: float) -> Tuple[int, int, int, int]:
    """
    Square region of `fraction` of the shorter side, centered horizontally and
    placed one third of the way down (faces usually sit above center).
    """
    if not 0.0 < fraction <= 1.0:
        raise ValueError(f"Crop fraction must be in (0, 1], got {fraction}")
    side = max(1, int(min(width, height) * fraction))
    x = int((width - side) / 2)
    y = int((height - side) / 3)
    return x, y, side, side


class FrameSampler:
    """
    Copies the current frame of a source into a reusable raster buffer.

    The buffer is overwritten by the next call, so an ImageSample is only
    valid until the sampler is used again.
    """
    def __init__(self):
        self._raster: Optional[np.ndarray] = None

    def sample(self, source: FrameSource, center_crop_fraction: float | None = None) -> ImageSample:
        try:
            frame = source.latest_frame()
        except Exception as e:
            raise CaptureError(f"Frame read failed: {e}") from e
        if frame is None:
            raise CaptureError("No frame available yet")
        if frame.ndim < 2 or frame.shape[0] == 0 or frame.shape[1] == 0:
            raise CaptureError(f"Frame has no pixels: shape={frame.shape}")

        try:
            if self._raster is None or self._raster.shape != frame.shape or self._raster.dtype != frame.dtype:
                self._raster = np.empty_like(frame)
            np.copyto(self._raster, frame)
        except Exception as e:
            self._raster = None
            raise CaptureError(f"Raster copy failed: {e}") from e

        h, w = self._raster.shape[:2]
        region = None
        if center_crop_fraction is not None and center_crop_fraction != 0:
            region = center_crop_region(w, h, center_crop_fraction)
        return ImageSample(frame=self._raster, region=region)
