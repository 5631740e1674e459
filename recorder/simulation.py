"""
Simulated eye-movement / gesture analysis.

There is no model behind these numbers: they are biased pseudo-random
values (focused and "no gesture" dominate) used to keep the analysis panel
alive, and as the whole analysis when the emotion model fails to load.
"""
from __future__ import annotations
import numpy as np

from recorder.models import EyeMovement, Gestures


class SimulatedAnalysis:
    def __init__(self, seed: int | None = None):
        self._rng = np.random.default_rng(seed)

    def eye_movement(self) -> EyeMovement:
        return EyeMovement(
            focused=float(self._rng.random() * 0.3 + 0.6),
            distracted=float(self._rng.random() * 0.3),
        )

    def gestures(self) -> Gestures:
        return Gestures(
            none=float(self._rng.random() * 0.2 + 0.7),
            hand_raise=float(self._rng.random() * 0.2),
        )
