"""
Audio/video utilities (FFmpeg muxing).
"""
from __future__ import annotations
import subprocess
import os
import logging

logger = logging.getLogger(__name__)

def mux_audio_video(video_path: str, audio_path: str, output_path: str) -> str:
    """
    Combine a silent video file and a WAV track into one container using FFmpeg.

    Video is stream-copied; audio is encoded to AAC.

    Args:
        video_path: Input video path (no audio).
        audio_path: Input audio path (WAV).
        output_path: Output container path (.mkv recommended).

    Returns:
        str: Output path.

    Raises:
        FileNotFoundError: An input file is missing.
        RuntimeError: FFmpeg failure (or FFmpeg not installed).
    """
    for path in (video_path, audio_path):
        if not os.path.exists(path):
            raise FileNotFoundError(f"Input file not found: {path}")

    cmd = ["ffmpeg", "-y", "-i", video_path, "-i", audio_path,
           "-c:v", "copy", "-c:a", "aac", "-shortest", output_path]
    logger.debug(f"[av] ffmpeg mux cmd={' '.join(cmd)}")
    try:
        proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
    except FileNotFoundError as e:
        raise RuntimeError("FFmpeg executable not found") from e
    if proc.returncode != 0:
        err = proc.stderr.decode('utf-8', errors='ignore')
        logger.error(f"[av] ffmpeg failed code={proc.returncode} err={err[:400]}")
        raise RuntimeError(f"FFmpeg failed: {err}")
    return output_path
