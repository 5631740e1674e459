
import pytest
from fastapi.testclient import TestClient
from api.main import app
import api.routes as routes
from recorder.live import LiveRecorder
from conftest import FakeSession


@pytest.fixture
def client(monkeypatch, settings, fake_deepface, face_frame):
    rec = LiveRecorder(settings, session=FakeSession(face_frame))
    monkeypatch.setattr(routes, "recorder", rec)
    with TestClient(app) as c:
        yield c


def test_health(client):
    r = client.get('/health')
    assert r.status_code == 200 and r.json() == {"status": "ok"}


def test_live_open(client):
    r = client.post('/live/open')
    assert r.status_code == 200
    assert r.json() == {"status": "opened", "model_loaded": True}
    r = client.post('/live/open')
    assert r.json()["status"] == "already_open"


def test_live_open_camera_denied(monkeypatch, settings, fake_deepface):
    monkeypatch.setattr(routes, "recorder", LiveRecorder(settings, session=FakeSession(deny=True)))
    with TestClient(app) as c:
        r = c.post('/live/open')
    assert r.status_code == 403


def test_live_start_requires_open(client):
    r = client.post('/live/start')
    assert r.status_code == 409


def test_live_start_stop(client):
    client.post('/live/open')
    r = client.post('/live/start')
    assert r.status_code == 200
    assert r.json()['status'] == 'started'
    r = client.post('/live/start')
    assert r.json()['status'] == 'already_running'

    body = client.get('/live/status').json()
    assert body['recording'] is True
    assert body['model_status'] == 'ready'
    assert set(body['emotions']) == {"angry", "disgust", "fear", "happy", "sad", "surprised", "neutral"}

    r = client.post('/live/stop')
    assert r.status_code == 200
    assert r.json() == {"status": "stopped", "recording": "take.mkv"}
    r = client.post('/live/stop')
    assert r.json()['status'] == 'not_running'

    r = client.get('/live/timeline')
    assert r.status_code == 200 and isinstance(r.json(), list)


def test_live_toggles(client):
    assert client.post('/live/mute').json() == {"muted": True}
    assert client.post('/live/video').json() == {"video_enabled": False}
    body = client.get('/live/status').json()
    assert body['muted'] is True and body['video_enabled'] is False


def test_latest_recording_download(client, tmp_path):
    assert client.get('/recordings/latest').status_code == 404
    take = tmp_path / 'take.mkv'
    take.write_bytes(b'matroska')
    routes.recorder._status.last_recording = str(take)
    r = client.get('/recordings/latest')
    assert r.status_code == 200 and r.content == b'matroska'


def test_live_close(client):
    client.post('/live/open')
    r = client.post('/live/close')
    assert r.json() == {"status": "closed"}
    assert routes.recorder is None


def test_live_model_reload(client):
    assert client.post('/live/model/reload').status_code == 409
    client.post('/live/open')
    r = client.post('/live/model/reload')
    assert r.status_code == 200
    assert r.json() == {"model_loaded": True, "model_status": "ready"}
