"""
CLI to record a take with live emotion detection -> JSON.
"""
from __future__ import annotations
import argparse, asyncio, json, os
from recorder.config import Settings
from recorder.live import LiveRecorder


async def record_take(settings: Settings, seconds: float) -> dict:
    rec = LiveRecorder(settings)
    model_loaded = await rec.open()
    try:
        await rec.start_recording()
        await asyncio.sleep(seconds)
        path = await rec.stop_recording()
    finally:
        await rec.close()
    return {
        "recording": str(path) if path else None,
        "model_loaded": model_loaded,
        "emotion_timeline": [e.model_dump() for e in rec.timeline()],
    }


def main():
    p = argparse.ArgumentParser()
    p.add_argument("--seconds", type=float, default=10.0, help="Length of the take")
    p.add_argument("--out", default="output/take.json", help="Path to output JSON")
    args = p.parse_args()

    settings = Settings()
    result = asyncio.run(record_take(settings, args.seconds))
    print(json.dumps(result, indent=2, ensure_ascii=False))

    # Also write to file
    os.makedirs(os.path.dirname(args.out) or ".", exist_ok=True)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(result, f, indent=2, ensure_ascii=False)
    print(f"✅ Take summary written to {args.out}")

if __name__ == "__main__":
    main()
