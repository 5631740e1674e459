"""
Configuration for the live recorder and emotion pipeline.
"""
from pydantic import BaseModel
from typing import List
import logging
import os

_DEFAULT_LABELS = "angry,disgust,fear,happy,sad,surprise,neutral"


class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    AUDIO_SAMPLE_RATE: int = int(os.getenv("AUDIO_SAMPLE_RATE", "16000"))
    AUDIO_CHANNELS: int = int(os.getenv("AUDIO_CHANNELS", "1"))
    RECORD_FPS: float = float(os.getenv("RECORD_FPS", "20"))
    RECORDINGS_DIR: str = os.getenv("RECORDINGS_DIR", "recordings")

    # Path to a Keras artifact (.h5/.keras) or a DeepFace facial-attribute model name
    EMOTION_MODEL: str = os.getenv("EMOTION_MODEL", "Emotion")
    # Native label order of the model's output vector
    EMOTION_LABELS: List[str] = os.getenv("EMOTION_LABELS", _DEFAULT_LABELS).split(",")
    MODEL_WARMUP: bool = os.getenv("MODEL_WARMUP", "1").lower() not in ("0", "false", "no")
    MODEL_LOAD_TIMEOUT: float = float(os.getenv("MODEL_LOAD_TIMEOUT", "120"))

    DETECTION_INTERVAL_MS: int = int(os.getenv("DETECTION_INTERVAL_MS", "200"))
    SAMPLE_CROP_FRACTION: float = float(os.getenv("SAMPLE_CROP_FRACTION", "0.7"))
    SIMULATION_SEED: int | None = (
        int(os.getenv("SIMULATION_SEED")) if os.getenv("SIMULATION_SEED") else None
    )

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "DEBUG")

    def __init__(self, **data):
        super().__init__(**data)
        # 0 disables cropping; anything above 1 means the whole short side
        frac = min(1.0, max(0.0, float(self.SAMPLE_CROP_FRACTION)))
        object.__setattr__(self, "SAMPLE_CROP_FRACTION", frac)
        object.__setattr__(self, "DETECTION_INTERVAL_MS", max(10, int(self.DETECTION_INTERVAL_MS)))
        labels = [l.strip().lower() for l in self.EMOTION_LABELS if l and l.strip()]
        object.__setattr__(self, "EMOTION_LABELS", labels)
        level = (self.LOG_LEVEL or "DEBUG").strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            level = "DEBUG"
        object.__setattr__(self, "LOG_LEVEL", level)

    @property
    def crop_fraction(self) -> float | None:
        return self.SAMPLE_CROP_FRACTION or None
