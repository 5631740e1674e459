"""
REST endpoints for the live recorder.
"""
from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse
import logging
import os

from recorder.config import Settings
from recorder.live import LiveRecorder
from recorder.session import CameraAccessError


router = APIRouter()
settings = Settings()
logger = logging.getLogger(__name__)

# One recording page per process; created on first /live/open
recorder: LiveRecorder | None = None


def get_recorder() -> LiveRecorder:
    global recorder
    if recorder is None:
        recorder = LiveRecorder(settings)
    return recorder


async def shutdown_recorder() -> None:
    global recorder
    if recorder is None:
        return
    try:
        await recorder.close()
    except Exception:
        logger.exception("[api] live recorder teardown failed")
    recorder = None


@router.post("/live/open")
async def live_open():
    """
    Open camera and microphone, then load the emotion model.

    Returns:
        dict: status ("opened" | "already_open") and whether the model loaded.
        A failed model load is not an error: analysis falls back to simulated values.
    """
    rec = get_recorder()
    if rec.session.is_open:
        return {"status": "already_open", "model_loaded": rec.classifier.ready}
    try:
        loaded = await rec.open()
    except CameraAccessError as e:
        logger.exception("[api] camera/microphone access failed")
        raise HTTPException(status_code=403, detail=f"Camera access denied: {e}")
    return {"status": "opened", "model_loaded": loaded}


@router.post("/live/model/reload")
async def live_model_reload():
    """
    Retry loading the emotion model (e.g. after a failed download).
    """
    rec = get_recorder()
    if not rec.session.is_open:
        raise HTTPException(status_code=409, detail="Camera is not open; call /live/open first")
    loaded = await rec.reload_model()
    return {"model_loaded": loaded, "model_status": rec.classifier.state.value}


@router.post("/live/start")
async def live_start():
    rec = get_recorder()
    if not rec.session.is_open:
        raise HTTPException(status_code=409, detail="Camera is not open; call /live/open first")
    try:
        started = await rec.start_recording()
    except Exception as e:
        logger.exception("[api] start recording failed")
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "started" if started else "already_running"}


@router.post("/live/stop")
async def live_stop():
    rec = get_recorder()
    if not rec.status().recording:
        return {"status": "not_running", "recording": None}
    try:
        path = await rec.stop_recording()
    except Exception as e:
        logger.exception("[api] stop recording failed")
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "stopped", "recording": str(path) if path else None}


@router.post("/live/mute")
async def live_mute():
    return {"muted": get_recorder().toggle_mute()}


@router.post("/live/video")
async def live_video():
    return {"video_enabled": get_recorder().toggle_video()}


@router.get("/live/status")
async def live_status():
    return get_recorder().status().model_dump()


@router.get("/live/timeline")
async def live_timeline():
    return [e.model_dump() for e in get_recorder().timeline()]


@router.post("/live/close")
async def live_close():
    await shutdown_recorder()
    return {"status": "closed"}


@router.get("/recordings/latest")
async def latest_recording():
    """
    Download the most recent take.
    """
    path = get_recorder().status().last_recording
    if not path or not os.path.exists(path):
        raise HTTPException(status_code=404, detail="No recording available")
    return FileResponse(path, filename=os.path.basename(path))
