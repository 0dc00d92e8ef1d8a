"""Media file information utilities using FFprobe."""

import json
import subprocess
from dataclasses import dataclass

from timeline_render.config import get_settings
from timeline_render.exceptions import ProbeError


def _get_settings():
    """Get settings lazily to avoid import issues in tests."""
    return get_settings()


@dataclass(frozen=True)
class ProbeResult:
    """Intrinsic stream information of a media file."""

    width: int = 0
    height: int = 0
    has_audio_stream: bool = False
    duration_seconds: float = 0.0


def _run_ffprobe(file_path: str, *args, timeout: float | None = None) -> dict:
    """Run ffprobe and return parsed JSON.

    Raises:
        ProbeError: If ffprobe fails, times out or prints something unparseable
    """
    settings = _get_settings()
    cmd = [
        settings.ffprobe_path,
        "-v", "error",
        "-print_format", "json",
        *args,
        file_path,
    ]

    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout if timeout is not None else settings.probe_timeout_s,
        )
    except subprocess.TimeoutExpired:
        raise ProbeError(f"ffprobe timed out: {file_path}")
    except OSError as e:
        raise ProbeError(f"ffprobe could not be started: {e}")

    if result.returncode != 0:
        raise ProbeError(f"ffprobe failed: {result.stderr.strip()}")

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise ProbeError(f"Failed to parse ffprobe output: {e}")


def probe_media(file_path: str) -> ProbeResult:
    """
    Get the width, height, audio presence and duration of a media file.

    Args:
        file_path: Path to media file

    Returns:
        ProbeResult; width/height are 0 when there is no video stream

    Raises:
        ProbeError: If ffprobe fails
    """
    data = _run_ffprobe(file_path, "-show_format", "-show_streams")

    width = height = 0
    has_audio = False
    duration = 0.0

    for stream in data.get("streams", []):
        codec_type = stream.get("codec_type")
        if codec_type == "video" and not width:
            width = int(stream.get("width") or 0)
            height = int(stream.get("height") or 0)
        elif codec_type == "audio":
            has_audio = True

    format_info = data.get("format", {})
    if "duration" in format_info:
        try:
            duration = float(format_info["duration"])
        except (TypeError, ValueError):
            duration = 0.0

    return ProbeResult(
        width=width,
        height=height,
        has_audio_stream=has_audio,
        duration_seconds=duration,
    )


class FFprobeProber:
    """Default probing collaborator."""

    def probe(self, path: str) -> ProbeResult:
        return probe_media(path)
