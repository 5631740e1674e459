"""
Recording session: owns the camera, the microphone and the take writer.

A background thread keeps the newest camera frame (read by the detection
loop and the preview) and, while recording, writes frames at RECORD_FPS.
Audio blocks from the sounddevice callback are buffered and written to WAV
on stop, then muxed with the video by FFmpeg.
"""
from __future__ import annotations
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple
import logging
import os
import threading
import time

import cv2
import numpy as np
import sounddevice as sd
import soundfile as sf

from recorder.audio_video import mux_audio_video
from recorder.config import Settings

logger = logging.getLogger(__name__)

FALLBACK_SIZE = (640, 480)


class CameraAccessError(RuntimeError):
    """Camera or microphone could not be opened (missing device or permission)."""


class RecordingSession:
    def __init__(self, settings: Settings):
        self.s = settings
        self.recording = False
        self.muted = False
        self.video_enabled = True

        self._cap = None
        self._audio_stream = None
        self._reader: Optional[threading.Thread] = None
        self._run = False

        self._frame_lock = threading.Lock()
        self._latest: Optional[np.ndarray] = None
        self._writer = None
        self._writer_size: Tuple[int, int] = FALLBACK_SIZE
        self._next_write = 0.0
        self._take_base: Optional[Path] = None

        self._audio_lock = threading.Lock()
        self._audio_chunks: List[np.ndarray] = []

    @property
    def is_open(self) -> bool:
        return self._cap is not None

    # ---- lifecycle ----
    def open(self) -> None:
        if self.is_open:
            return
        cap = cv2.VideoCapture(self.s.CAMERA_INDEX)
        if not cap.isOpened():
            cap.release()
            raise CameraAccessError(f"Could not open camera index {self.s.CAMERA_INDEX}")

        try:
            stream = sd.InputStream(
                callback=self._on_audio,
                channels=self.s.AUDIO_CHANNELS,
                samplerate=self.s.AUDIO_SAMPLE_RATE,
            )
            stream.start()
        except Exception as e:
            cap.release()
            raise CameraAccessError(f"Could not open microphone: {e}") from e

        self._cap = cap
        self._audio_stream = stream
        self._run = True
        self._reader = threading.Thread(target=self._read_loop, daemon=True)
        self._reader.start()
        logger.debug(f"[session] opened camera={self.s.CAMERA_INDEX} sr={self.s.AUDIO_SAMPLE_RATE}")

    def close(self) -> None:
        if self.recording:
            try:
                self.stop_recording()
            except Exception:
                logger.exception("[session] failed to finalize recording on close")
        self._run = False
        if self._reader is not None:
            self._reader.join(timeout=1.0)
            self._reader = None
        if self._audio_stream is not None:
            try:
                self._audio_stream.stop()
                self._audio_stream.close()
            except Exception:
                logger.warning("[session] microphone did not close cleanly")
            self._audio_stream = None
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        with self._frame_lock:
            self._latest = None
        logger.debug("[session] closed")

    # ---- live stream ----
    def latest_frame(self) -> Optional[np.ndarray]:
        with self._frame_lock:
            return None if self._latest is None else self._latest.copy()

    def toggle_mute(self) -> bool:
        self.muted = not self.muted
        return self.muted

    def toggle_video(self) -> bool:
        self.video_enabled = not self.video_enabled
        return self.video_enabled

    def _read_loop(self) -> None:
        cap = self._cap
        while self._run:
            ok, frame = cap.read()
            if not ok or frame is None:
                time.sleep(0.05)
                continue
            with self._frame_lock:
                self._latest = frame
                if self._writer is not None:
                    now = time.monotonic()
                    if now >= self._next_write:
                        self._write_frame(frame)
                        self._next_write = max(self._next_write + 1.0 / self.s.RECORD_FPS, now)

    def _write_frame(self, frame: np.ndarray) -> None:
        out = frame if self.video_enabled else np.zeros_like(frame)
        w, h = self._writer_size
        if out.shape[1] != w or out.shape[0] != h:
            out = cv2.resize(out, (w, h))
        self._writer.write(out)

    def _on_audio(self, indata, frames, time_info, status) -> None:
        if not self.recording:
            return
        block = np.zeros_like(indata) if self.muted else indata.copy()
        with self._audio_lock:
            self._audio_chunks.append(block.astype(np.float32))

    # ---- takes ----
    def start_recording(self) -> Path:
        if not self.is_open:
            raise RuntimeError("Recording session is not open")
        if self.recording and self._take_base is not None:
            return self._take_base.with_suffix(".avi")

        out_dir = Path(self.s.RECORDINGS_DIR)
        out_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%SZ")
        base = out_dir / f"recording-{stamp}"

        with self._frame_lock:
            if self._latest is not None:
                size = (int(self._latest.shape[1]), int(self._latest.shape[0]))
            else:
                size = (int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                        int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)))
        if size[0] <= 0 or size[1] <= 0:
            size = FALLBACK_SIZE

        video_path = base.with_suffix(".avi")
        fourcc = cv2.VideoWriter_fourcc(*"MJPG")
        writer = cv2.VideoWriter(str(video_path), fourcc, self.s.RECORD_FPS, size)
        if not writer.isOpened():
            raise RuntimeError(f"Could not open video writer: {video_path}")

        with self._audio_lock:
            self._audio_chunks = []
        with self._frame_lock:
            self._writer = writer
            self._writer_size = size
            self._next_write = time.monotonic()
        self._take_base = base
        self.recording = True
        logger.debug(f"[session] recording -> {video_path} size={size} fps={self.s.RECORD_FPS}")
        return video_path

    def stop_recording(self) -> Optional[Path]:
        """Finalize the current take; returns the file to keep (muxed if possible)."""
        if not self.recording:
            return None
        self.recording = False
        with self._frame_lock:
            writer, self._writer = self._writer, None
        if writer is not None:
            writer.release()
        with self._audio_lock:
            chunks, self._audio_chunks = self._audio_chunks, []

        base = self._take_base
        video_path = base.with_suffix(".avi")
        if not chunks:
            logger.debug(f"[session] no audio captured; keeping {video_path}")
            return video_path

        wav_path = base.with_suffix(".wav")
        sf.write(str(wav_path), np.concatenate(chunks, axis=0), self.s.AUDIO_SAMPLE_RATE)
        try:
            out = mux_audio_video(str(video_path), str(wav_path), str(base.with_suffix(".mkv")))
        except (RuntimeError, FileNotFoundError):
            logger.warning(f"[session] mux failed; keeping video-only take {video_path}")
            return video_path

        for path in (video_path, wav_path):
            try:
                os.remove(path)
            except OSError:
                logger.warning(f"[session] failed to cleanup intermediate file: {path}")
        return Path(out)
