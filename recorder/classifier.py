"""
Emotion classifier adapter.

Owns one loaded model (Keras artifact on disk, or a DeepFace built-in
facial-attribute model) and maps its native labels onto the seven
canonical emotion keys.
"""
from __future__ import annotations
from enum import Enum
from typing import List, Optional
import asyncio
import logging
import os

import numpy as np

from recorder.config import Settings
from recorder.models import DetectionResult, EmotionVector, RawModelPrediction, clamp01
from recorder.preprocess import INPUT_SHAPE

logger = logging.getLogger(__name__)


class ModelLoadError(RuntimeError):
    """The model artifact could not be fetched or initialized."""


class InferenceError(RuntimeError):
    """A forward pass failed or produced output we cannot interpret."""


class ClassifierState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


# Checked in order; the first canonical key with a matching substring wins
SYNONYMS = (
    ("happy", ("happy", "happiness", "joy")),
    ("neutral", ("neutral", "calm")),
    ("surprised", ("surprise",)),
    ("sad", ("sad",)),
    ("angry", ("angry", "anger")),
    ("disgust", ("disgust",)),
    ("fear", ("fear", "scared")),
)


def canonical_key(label: str) -> Optional[str]:
    low = (label or "").lower()
    for key, needles in SYNONYMS:
        if any(n in low for n in needles):
            return key
    return None


def map_predictions(predictions: List[RawModelPrediction]) -> EmotionVector:
    """
    Fold native predictions into an EmotionVector.

    Unknown labels are dropped. When two labels land on the same key the
    later one wins.
    """
    scores: dict[str, float] = {}
    for p in predictions:
        key = canonical_key(p.label)
        if key is None:
            logger.debug(f"[classifier] unmapped label dropped: {p.label!r}")
            continue
        scores[key] = clamp01(float(p.score))
    return EmotionVector(**scores)


def _is_artifact_path(ref: str) -> bool:
    return ref.lower().endswith((".h5", ".keras")) or os.sep in ref or "/" in ref


def _load_keras(path: str):
    # Lazy import: TensorFlow is heavy and only needed for on-disk artifacts
    import tensorflow as tf
    return tf.keras.models.load_model(path, compile=False)


def _build_deepface(model_name: str):
    from deepface import DeepFace
    built = DeepFace.build_model(model_name=model_name, task="facial_attribute")
    # DeepFace wraps the Keras network in a client object
    return getattr(built, "model", built)


class EmotionClassifier:
    """
    Lifecycle: unloaded -> loading -> ready | failed.

    load() never raises; a new call after failure starts a fresh attempt.
    classify() returns None unless the model is ready.
    """
    def __init__(self, settings: Settings):
        self.s = settings
        self.labels: List[str] = list(settings.EMOTION_LABELS)
        self.state = ClassifierState.UNLOADED
        self.last_error: Optional[str] = None
        self._model = None
        self._load_task: Optional[asyncio.Task] = None

    @property
    def ready(self) -> bool:
        return self.state is ClassifierState.READY

    async def load(self) -> bool:
        if self.state is ClassifierState.LOADING and self._load_task is not None:
            logger.debug("[classifier] load already in progress; joining it")
            return await asyncio.shield(self._load_task)

        self.state = ClassifierState.LOADING
        self._model = None
        self.last_error = None
        self._load_task = asyncio.ensure_future(self._load())
        return await asyncio.shield(self._load_task)

    async def _load(self) -> bool:
        ref = self.s.EMOTION_MODEL
        logger.debug(f"[classifier] loading model={ref} timeout={self.s.MODEL_LOAD_TIMEOUT}s")
        try:
            # The timeout covers fetching the weights and the warm-up pass
            model = await asyncio.wait_for(
                asyncio.to_thread(self._acquire_and_warm, ref, self.s.MODEL_WARMUP),
                timeout=self.s.MODEL_LOAD_TIMEOUT,
            )
        except asyncio.TimeoutError:
            self.last_error = f"Model load timed out after {self.s.MODEL_LOAD_TIMEOUT}s"
            logger.error(f"[classifier] {self.last_error}")
            self.state = ClassifierState.FAILED
            return False
        except Exception as e:
            self.last_error = str(e)
            logger.exception(f"[classifier] failed to load emotion model {ref}")
            self.state = ClassifierState.FAILED
            return False

        self._model = model
        self.state = ClassifierState.READY
        logger.info(f"[classifier] emotion model ready ({ref})")
        return True

    @staticmethod
    def _acquire(ref: str):
        try:
            if _is_artifact_path(ref):
                if not os.path.exists(ref):
                    raise ModelLoadError(f"Model artifact not found: {ref}")
                return _load_keras(ref)
            return _build_deepface(ref)
        except ModelLoadError:
            raise
        except Exception as e:
            raise ModelLoadError(f"Could not initialize model {ref}: {e}") from e

    @classmethod
    def _acquire_and_warm(cls, ref: str, warmup: bool):
        model = cls._acquire(ref)
        if warmup:
            cls._predict(model, np.zeros(INPUT_SHAPE, dtype=np.float32))
            logger.debug("[classifier] warm-up inference done")
        return model

    @staticmethod
    def _predict(model, tensor: np.ndarray) -> np.ndarray:
        return np.asarray(model.predict(tensor, verbose=0), dtype=np.float32).reshape(-1)

    def _forward(self, tensor: np.ndarray) -> List[RawModelPrediction]:
        scores = self._predict(self._model, tensor)
        if scores.shape[0] != len(self.labels):
            raise InferenceError(
                f"Model returned {scores.shape[0]} scores for {len(self.labels)} labels"
            )
        if not np.all(np.isfinite(scores)):
            raise InferenceError(f"Model returned non-finite scores: {scores.tolist()}")
        return [RawModelPrediction(label=l, score=float(s)) for l, s in zip(self.labels, scores)]

    async def classify(self, tensor: np.ndarray) -> Optional[DetectionResult]:
        if not self.ready:
            logger.debug("[classifier] classify called before model is ready")
            return None
        try:
            predictions = await asyncio.to_thread(self._forward, tensor)
            vector = map_predictions(predictions)
        except Exception as e:
            logger.warning(f"[classifier] inference failed: {e}")
            return None
        return DetectionResult.from_vector(vector)
