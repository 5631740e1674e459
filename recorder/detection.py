"""
Periodic detection loop: sample -> preprocess -> classify while a take runs.
"""
from __future__ import annotations
from typing import Callable, Optional
import asyncio
import logging

from recorder.capture import CaptureError, FrameSampler, FrameSource
from recorder.classifier import EmotionClassifier
from recorder.models import DetectionResult
from recorder.preprocess import preprocess

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 200


class DetectionLoop:
    """
    Runs at most one periodic detection task at a time.

    Ticks run one after another inside a single task, so a slow inference
    delays the next tick instead of overlapping it. Every start() bumps a
    generation counter; a tick only publishes if its generation is current,
    so nothing reaches on_result after stop() returns.
    """
    def __init__(self, classifier: EmotionClassifier,
                 sampler: Optional[FrameSampler] = None,
                 crop_fraction: float | None = None):
        self.classifier = classifier
        self.sampler = sampler or FrameSampler()
        self.crop_fraction = crop_fraction
        self._task: Optional[asyncio.Task] = None
        self._generation = 0
        self.ticks = 0
        self.skipped = 0
        self.delivered = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, source: FrameSource,
              on_result: Callable[[DetectionResult], None],
              interval_ms: int = DEFAULT_INTERVAL_MS) -> None:
        if not self.classifier.ready:
            raise RuntimeError("Emotion classifier is not ready")
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")
        loop = asyncio.get_running_loop()

        self.stop()
        self._generation += 1
        gen = self._generation
        self._task = loop.create_task(self._run(gen, source, on_result, interval_ms / 1000.0))
        logger.debug(f"[detect] loop started gen={gen} interval_ms={interval_ms}")

    def stop(self) -> None:
        self._generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug(f"[detect] loop stopped ticks={self.ticks} skipped={self.skipped}")

    async def _run(self, gen: int, source: FrameSource,
                   on_result: Callable[[DetectionResult], None], period: float) -> None:
        loop = asyncio.get_running_loop()
        next_t = loop.time()
        while gen == self._generation:
            next_t += period
            await asyncio.sleep(max(0.0, next_t - loop.time()))
            if gen != self._generation:
                break

            result = await self._tick(source)

            # fell behind (slow inference): resync instead of firing a burst
            if loop.time() > next_t + period:
                next_t = loop.time()

            if result is None or gen != self._generation:
                continue
            try:
                on_result(result)
                self.delivered += 1
            except Exception:
                logger.exception("[detect] result callback failed")

    async def _tick(self, source: FrameSource) -> Optional[DetectionResult]:
        self.ticks += 1
        if not getattr(source, "video_enabled", True):
            self.skipped += 1
            return None
        try:
            sample = self.sampler.sample(source, self.crop_fraction)
            tensor = preprocess(sample)
            result = await self.classifier.classify(tensor)
        except CaptureError as e:
            logger.debug(f"[detect] tick {self.ticks} skipped: {e}")
            result = None
        except ValueError as e:
            logger.debug(f"[detect] tick {self.ticks} preprocessing failed: {e}")
            result = None
        except Exception:
            logger.exception(f"[detect] tick {self.ticks} failed")
            result = None
        if result is None:
            self.skipped += 1
        return result
