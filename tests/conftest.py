import sys, time, types
import numpy as np
import pytest

from recorder.config import Settings


class DummyModel:
    """Stands in for the Keras emotion CNN: fixed scores in native label order."""
    def __init__(self, scores=None):
        self.scores = scores if scores is not None else [0.0, 0.0, 0.0, 0.9, 0.0, 0.05, 0.05]
        self.calls = []
    def predict(self, x, verbose=0):
        self.calls.append(np.array(x))
        return np.array([self.scores], dtype=np.float32)


class DummySource:
    """Live frame source with an optional script of frames (None = not ready)."""
    def __init__(self, frames=None, default=None):
        self.frames = list(frames or [])
        self.default = default
        self.video_enabled = True
    def latest_frame(self):
        if self.frames:
            return self.frames.pop(0)
        return self.default


@pytest.fixture
def settings(tmp_path):
    return Settings(
        RECORDINGS_DIR=str(tmp_path / "recordings"),
        DETECTION_INTERVAL_MS=20,
        MODEL_LOAD_TIMEOUT=2,
        SIMULATION_SEED=7,
    )


@pytest.fixture
def face_frame():
    # 480x640 BGR gradient, enough texture that normalization is non-trivial
    h, w = 480, 640
    row = np.linspace(0, 255, w, dtype=np.float32)
    frame = np.tile(row, (h, 1))
    return np.stack([frame, frame * 0.5, 255 - frame], axis=2).astype(np.uint8)


@pytest.fixture
def fake_deepface(monkeypatch):
    """Inject a fake 'deepface' module so `from deepface import DeepFace` works."""
    model = DummyModel()
    built = {"n": 0}

    class DummyDeepFace:
        @staticmethod
        def build_model(model_name=None, task=None):
            built["n"] += 1
            return types.SimpleNamespace(model=model)

    monkeypatch.setitem(sys.modules, "deepface", types.SimpleNamespace(DeepFace=DummyDeepFace))
    return types.SimpleNamespace(model=model, built=built)


class FakeSession:
    """RecordingSession double: no camera, no microphone, no files."""
    def __init__(self, frame=None, deny=False):
        self.frame = frame
        self.deny = deny
        self.is_open = False
        self.recording = False
        self.muted = False
        self.video_enabled = True
        self.closed = 0
        self.opened = 0
    def open(self):
        if self.deny:
            from recorder.session import CameraAccessError
            raise CameraAccessError("permission denied")
        time.sleep(0.02)  # device open happens off the event loop
        self.opened += 1
        self.is_open = True
    def close(self):
        self.is_open = False
        self.closed += 1
    def latest_frame(self):
        return None if self.frame is None else self.frame.copy()
    def toggle_mute(self):
        self.muted = not self.muted
        return self.muted
    def toggle_video(self):
        self.video_enabled = not self.video_enabled
        return self.video_enabled
    def start_recording(self):
        self.recording = True
        return "take.avi"
    def stop_recording(self):
        self.recording = False
        return "take.mkv"
