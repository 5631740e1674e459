
"""Run the live preview window.

Usage:
    uvicorn api.main:app --reload  # (separate, for API)
    python scripts/live_overlay.py  # (to see camera overlay window)

Keys: 'r' start/stop recording, 'm' mute, 'v' camera on/off, 'q' quit.
"""
import asyncio
import logging

import cv2

from recorder.config import Settings
from recorder.live import LiveRecorder
from recorder.visual import draw_overlays


async def run_live_overlay(settings: Settings) -> None:
    rec = LiveRecorder(settings)
    await rec.open()
    try:
        while True:
            frame = rec.session.latest_frame()
            if frame is not None:
                annotated = draw_overlays(frame, rec.status(), settings.crop_fraction)
                cv2.imshow("Live Recorder (q to quit)", annotated)

            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                break
            if key == ord("r"):
                if rec.status().recording:
                    path = await rec.stop_recording()
                    print(f"Saved {path}")
                else:
                    await rec.start_recording()
            elif key == ord("m"):
                rec.toggle_mute()
            elif key == ord("v"):
                rec.toggle_video()

            # yield so the detection loop gets its turn
            await asyncio.sleep(0.01)
    finally:
        await rec.close()
        cv2.destroyAllWindows()


if __name__ == '__main__':
    s = Settings()
    logging.basicConfig(level=getattr(logging, s.LOG_LEVEL))
    asyncio.run(run_live_overlay(s))
