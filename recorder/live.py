# recorder/live.py
"""
Live recording page logic.

LiveRecorder ties one recording session to one emotion classifier and one
detection loop, and keeps the rolling LiveStatus the UI polls:
- Emotion vector + top emotion every DETECTION_INTERVAL_MS while recording
- Simulated eye-movement / gesture values alongside each detection
- Fallback: if the model fails to load, only simulated values are produced
- One-time notices (model loaded / failed, recording started / complete)
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from typing import List, Optional

from recorder.classifier import EmotionClassifier
from recorder.config import Settings
from recorder.detection import DetectionLoop
from recorder.models import DetectionResult, EmotionVector, LiveStatus, Notice, TimelineEntry
from recorder.session import RecordingSession
from recorder.simulation import SimulatedAnalysis

logger = logging.getLogger(__name__)

# What the panel shows before the first detection
DEFAULT_EMOTIONS = {"happy": 0.1, "neutral": 0.7, "surprised": 0.1, "sad": 0.1}
MAX_NOTICES = 20


class LiveRecorder:
    """Owns the session, the classifier handle and the detection loop for one page."""
    def __init__(self, settings: Settings,
                 session: Optional[RecordingSession] = None,
                 classifier: Optional[EmotionClassifier] = None):
        self.s = settings
        self.session = session if session is not None else RecordingSession(settings)
        self.classifier = classifier if classifier is not None else EmotionClassifier(settings)
        self.detector = DetectionLoop(self.classifier, crop_fraction=settings.crop_fraction)
        self.simulator = SimulatedAnalysis(settings.SIMULATION_SEED)

        self._status = LiveStatus(emotions=EmotionVector(**DEFAULT_EMOTIONS))
        self._timeline: List[TimelineEntry] = []
        self._sim_task: Optional[asyncio.Task] = None
        self._started_mono: Optional[float] = None
        # serializes open(); a second caller waits and sees the session already open
        self._open_lock = asyncio.Lock()

    # ---- lifecycle ----
    async def open(self) -> bool:
        """Open camera + mic (CameraAccessError propagates), then load the model."""
        async with self._open_lock:
            if self.session.is_open:
                return self.classifier.ready

            await asyncio.to_thread(self.session.open)
            self._status.camera_open = True

            loaded = await self._load_model()
            logger.debug(f"[live] opened model_loaded={loaded}")
            return loaded

    async def reload_model(self) -> bool:
        """
        Retry the model load after a failure.

        If a take is running on simulated values it switches to model
        detection once the load succeeds.
        """
        if self.classifier.ready:
            return True
        loaded = await self._load_model()
        if loaded and self._status.recording and not self.detector.running:
            self._stop_simulation()
            self.detector.start(self.session, self._on_result, self.s.DETECTION_INTERVAL_MS)
        return loaded

    async def _load_model(self) -> bool:
        loaded = await self.classifier.load()
        self._status.analysis_mode = "model" if loaded else "simulated"
        if loaded:
            self._notify("Model loaded successfully", "Emotion detection model is ready to use")
        else:
            self._notify("Model loading failed", "Using fallback simulated analysis instead", level="error")
        return loaded

    async def close(self) -> None:
        self._stop_analysis()
        if self._status.recording:
            try:
                await self.stop_recording()
            except Exception:
                logger.exception("[live] failed to stop recording during close")
        await asyncio.to_thread(self.session.close)
        self._status.camera_open = False

    # ---- takes ----
    async def start_recording(self) -> bool:
        if self._status.recording:
            return False
        if not self.session.is_open:
            raise RuntimeError("Camera is not open")

        self._status.recording = True
        try:
            await asyncio.to_thread(self.session.start_recording)
        except Exception:
            self._status.recording = False
            raise

        self._timeline = []
        self._started_mono = time.monotonic()
        self._status.started_at = time.time()
        self._status.recording_seconds = 0

        interval_ms = self.s.DETECTION_INTERVAL_MS
        if self.classifier.ready:
            self.detector.start(self.session, self._on_result, interval_ms)
        else:
            self._start_simulation(interval_ms / 1000.0)
        self._notify("Recording started", "Your video is now being recorded with emotion analysis.")
        return True

    async def stop_recording(self) -> Optional[Path]:
        self._stop_analysis()
        if not self._status.recording:
            return None
        self._status.recording_seconds = self._elapsed()
        self._status.recording = False
        self._started_mono = None

        path = await asyncio.to_thread(self.session.stop_recording)
        if path is not None:
            self._status.last_recording = str(path)
        self._notify("Recording complete", "Your video has been recorded and is ready for download.")
        logger.debug(f"[live] take finished path={path} detections={len(self._timeline)}")
        return path

    def toggle_mute(self) -> bool:
        return self.session.toggle_mute()

    def toggle_video(self) -> bool:
        return self.session.toggle_video()

    # ---- state sink ----
    def status(self) -> LiveStatus:
        st = self._status
        st.muted = self.session.muted
        st.video_enabled = self.session.video_enabled
        st.model_status = self.classifier.state.value
        if st.recording:
            st.recording_seconds = self._elapsed()
        return st.model_copy(deep=True)

    def timeline(self) -> List[TimelineEntry]:
        return list(self._timeline)

    def _on_result(self, result: DetectionResult) -> None:
        st = self._status
        st.emotions = result.vector
        st.detected_emotion = result.top_emotion
        st.confidence = result.confidence
        st.last_result_at = time.time()
        # no eye/gesture model yet; keep the panel moving with simulated values
        st.eye_movement = self.simulator.eye_movement()
        st.gestures = self.simulator.gestures()
        t = 0.0 if self._started_mono is None else time.monotonic() - self._started_mono
        self._timeline.append(TimelineEntry(
            time=round(t, 2), emotion=result.top_emotion, confidence=result.confidence
        ))

    # ---- simulated fallback ----
    def _start_simulation(self, period: float) -> None:
        self._stop_simulation()
        self._sim_task = asyncio.get_running_loop().create_task(self._simulate(period))
        logger.debug("[live] emotion model unavailable; running simulated analysis")

    async def _simulate(self, period: float) -> None:
        while True:
            await asyncio.sleep(period)
            self._status.eye_movement = self.simulator.eye_movement()
            self._status.gestures = self.simulator.gestures()

    def _stop_simulation(self) -> None:
        task, self._sim_task = self._sim_task, None
        if task is not None and not task.done():
            task.cancel()

    def _stop_analysis(self) -> None:
        self.detector.stop()
        self._stop_simulation()

    # ---- helpers ----
    def _elapsed(self) -> int:
        if self._started_mono is None:
            return self._status.recording_seconds
        return int(time.monotonic() - self._started_mono)

    def _notify(self, title: str, description: str = "", level: str = "info") -> None:
        self._status.notices.append(Notice(ts=time.time(), title=title, description=description, level=level))
        del self._status.notices[:-MAX_NOTICES]
        log = logger.warning if level == "error" else logger.info
        log(f"[live] {title}: {description}")
