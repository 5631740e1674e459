"""
FastAPI application entrypoint.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from api.routes import router, shutdown_recorder, settings

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL))


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Page teardown: never leave the camera or a detection loop running
    await shutdown_recorder()


app = FastAPI(title="Live Emotion Recorder API", version="1.0.0", lifespan=lifespan)
app.include_router(router)

@app.get("/health")
def health() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Simple status payload.
    """
    return {"status": "ok"}
