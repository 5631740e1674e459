"""
Pydantic data models for the emotion pipeline and live status.
"""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Literal

# Canonical order; also the tie-break order for the top emotion
EMOTION_KEYS = ("angry", "disgust", "fear", "happy", "sad", "surprised", "neutral")

EmotionKey = Literal["angry", "disgust", "fear", "happy", "sad", "surprised", "neutral"]


def clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


class EmotionVector(BaseModel):
    """Confidence per canonical emotion. Always carries all seven keys."""
    model_config = ConfigDict(extra="forbid")

    angry: float = Field(0.0, ge=0.0, le=1.0)
    disgust: float = Field(0.0, ge=0.0, le=1.0)
    fear: float = Field(0.0, ge=0.0, le=1.0)
    happy: float = Field(0.0, ge=0.0, le=1.0)
    sad: float = Field(0.0, ge=0.0, le=1.0)
    surprised: float = Field(0.0, ge=0.0, le=1.0)
    neutral: float = Field(0.0, ge=0.0, le=1.0)

    def top(self) -> tuple[str, float]:
        best_key, best = EMOTION_KEYS[0], getattr(self, EMOTION_KEYS[0])
        for key in EMOTION_KEYS[1:]:
            score = getattr(self, key)
            if score > best:
                best_key, best = key, score
        return best_key, best


class DetectionResult(BaseModel):
    top_emotion: EmotionKey
    confidence: float
    vector: EmotionVector

    @classmethod
    def from_vector(cls, vector: EmotionVector) -> "DetectionResult":
        key, score = vector.top()
        return cls(top_emotion=key, confidence=score, vector=vector)


class RawModelPrediction(BaseModel):
    label: str
    score: float


class EyeMovement(BaseModel):
    focused: float = 0.8
    distracted: float = 0.2


class Gestures(BaseModel):
    none: float = 0.9
    hand_raise: float = 0.1


class Notice(BaseModel):
    ts: float
    title: str
    description: str = ""
    level: Literal["info", "error"] = "info"


class TimelineEntry(BaseModel):
    time: float
    emotion: EmotionKey
    confidence: float


# live status


class LiveStatus(BaseModel):
    camera_open: bool = False
    recording: bool = False
    muted: bool = False
    video_enabled: bool = True
    model_status: Literal["unloaded", "loading", "ready", "failed"] = "unloaded"
    analysis_mode: Literal["model", "simulated"] = "simulated"
    started_at: Optional[float] = None
    recording_seconds: int = 0
    detected_emotion: EmotionKey = "neutral"
    confidence: float = 0.0
    emotions: EmotionVector = Field(default_factory=EmotionVector)
    eye_movement: EyeMovement = Field(default_factory=EyeMovement)
    gestures: Gestures = Field(default_factory=Gestures)
    last_result_at: Optional[float] = None
    notices: List[Notice] = Field(default_factory=list)
    last_recording: Optional[str] = None
