
import time
import numpy as np
import pytest

import recorder.session as session_mod
from recorder.session import CameraAccessError, RecordingSession


class DummyCap:
    def __init__(self, idx, opened=True):
        self.idx = idx
        self.opened = opened
        self.frame = np.full((48, 64, 3), 120, dtype=np.uint8)
        self.released = False
    def isOpened(self): return self.opened
    def read(self):
        time.sleep(0.005)
        return True, self.frame.copy()
    def get(self, code): return 0.0
    def release(self): self.released = True


class DummyInputStream:
    instances = []
    def __init__(self, callback, channels, samplerate):
        self.callback = callback
        self.started = self.closed = False
        DummyInputStream.instances.append(self)
    def start(self): self.started = True
    def stop(self): pass
    def close(self): self.closed = True
    def push(self, n=800):
        self.callback(np.full((n, 1), 0.25, dtype="float32"), n, None, None)


def _patch_devices(monkeypatch, cap_opened=True):
    DummyInputStream.instances = []
    monkeypatch.setattr(session_mod.cv2, "VideoCapture", lambda idx: DummyCap(idx, cap_opened))
    monkeypatch.setattr(session_mod.sd, "InputStream", DummyInputStream)


def _wait_for_frame(s, timeout=1.0):
    end = time.time() + timeout
    while time.time() < end:
        if s.latest_frame() is not None:
            return True
        time.sleep(0.01)
    return False


def test_open_denied_camera(monkeypatch, settings):
    _patch_devices(monkeypatch, cap_opened=False)
    with pytest.raises(CameraAccessError):
        RecordingSession(settings).open()


def test_open_denied_microphone(monkeypatch, settings):
    _patch_devices(monkeypatch)
    def deny(**kw):
        raise OSError("PortAudio: no input device")
    monkeypatch.setattr(session_mod.sd, "InputStream", deny)
    with pytest.raises(CameraAccessError):
        RecordingSession(settings).open()


def test_recording_take_video_only_when_mux_fails(monkeypatch, settings):
    _patch_devices(monkeypatch)
    def no_ffmpeg(*a, **k):
        raise RuntimeError("FFmpeg executable not found")
    monkeypatch.setattr(session_mod, "mux_audio_video", no_ffmpeg)

    s = RecordingSession(settings)
    s.open()
    try:
        assert _wait_for_frame(s)
        assert s.latest_frame().shape == (48, 64, 3)

        video_path = s.start_recording()
        assert s.recording
        DummyInputStream.instances[0].push()
        time.sleep(0.2)
        out = s.stop_recording()
    finally:
        s.close()

    assert out == video_path
    assert out.exists() and out.stat().st_size > 0
    assert out.with_suffix(".wav").exists()
    assert out.name.startswith("recording-")


def test_recording_take_muxed(monkeypatch, settings):
    _patch_devices(monkeypatch)
    muxed = {}
    def fake_mux(video_path, audio_path, output_path):
        muxed.update(video=video_path, audio=audio_path)
        open(output_path, "wb").write(b"mkv")
        return output_path
    monkeypatch.setattr(session_mod, "mux_audio_video", fake_mux)

    s = RecordingSession(settings)
    s.open()
    try:
        _wait_for_frame(s)
        s.start_recording()
        s.toggle_mute()
        DummyInputStream.instances[0].push()
        time.sleep(0.1)
        out = s.stop_recording()
    finally:
        s.close()

    assert out.suffix == ".mkv" and out.exists()
    assert muxed["video"].endswith(".avi") and muxed["audio"].endswith(".wav")
    # intermediates removed after a successful mux
    assert not out.with_suffix(".avi").exists()
    assert not out.with_suffix(".wav").exists()


def test_audio_ignored_when_not_recording(monkeypatch, settings):
    _patch_devices(monkeypatch)
    s = RecordingSession(settings)
    s.open()
    try:
        DummyInputStream.instances[0].push()
        assert s._audio_chunks == []
        assert s.stop_recording() is None
    finally:
        s.close()


def test_close_is_idempotent_and_releases(monkeypatch, settings):
    _patch_devices(monkeypatch)
    s = RecordingSession(settings)
    s.open()
    cap = s._cap
    s.close()
    s.close()
    assert cap.released and not s.is_open
    assert DummyInputStream.instances[0].closed
    assert s.latest_frame() is None


def test_start_recording_requires_open(settings):
    with pytest.raises(RuntimeError):
        RecordingSession(settings).start_recording()
