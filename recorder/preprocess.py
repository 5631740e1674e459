"""
Turn an image sample into the classifier's input tensor.

The emotion CNN expects (1, 48, 48, 1): batch of one 48x48 grayscale face.
Intensities are recentered on mid-gray: (x - mean(x)) / 255 + 0.5.
"""
from __future__ import annotations
import cv2
import numpy as np

from recorder.capture import ImageSample

INPUT_SIZE = 48
INPUT_SHAPE = (1, INPUT_SIZE, INPUT_SIZE, 1)


def _as_pixels(sample) -> np.ndarray:
    img = sample.pixels if isinstance(sample, ImageSample) else np.asarray(sample)
    if img.ndim == 4 and img.shape[0] == 1:
        img = img[0]
    if img.ndim not in (2, 3) or img.shape[0] == 0 or img.shape[1] == 0:
        raise ValueError(f"Cannot preprocess image with shape {img.shape}")
    if img.ndim == 3 and img.shape[2] == 0:
        raise ValueError(f"Cannot preprocess image with shape {img.shape}")
    return img


def preprocess(sample: ImageSample | np.ndarray) -> np.ndarray:
    """
    Resize (bilinear) -> mean of color channels -> mid-gray normalization.

    Accepts an ImageSample (its crop region is used when set) or a raw
    HxW / HxWxC array. Raises ValueError on empty input.
    """
    img = _as_pixels(sample).astype(np.float32)

    if img.ndim == 3 and img.shape[2] >= 3:
        img = img[:, :, :3]  # drop alpha
    elif img.ndim == 3:
        img = img[:, :, 0]

    resized = cv2.resize(np.ascontiguousarray(img), (INPUT_SIZE, INPUT_SIZE), interpolation=cv2.INTER_LINEAR)
    gray = resized.mean(axis=2) if resized.ndim == 3 else resized

    norm = (gray - gray.mean()) / 255.0 + 0.5
    return norm.reshape(INPUT_SHAPE).astype(np.float32)
