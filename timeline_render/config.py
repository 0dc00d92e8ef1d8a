from functools import lru_cache
from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    app_name: str = "Timeline Render"
    app_version: str = "0.1.0"
    debug: bool = False

    # Gallery root - every source and destination path must resolve inside it
    gallery_path: str = "."
    thumbnail_dir_name: str = ".gallery_thumbs"

    @computed_field
    @property
    def gallery_root(self) -> Path:
        """Absolute gallery root."""
        return Path(self.gallery_path).expanduser().resolve()

    # FFmpeg
    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"

    # Render settings
    render_fps: int = 30
    render_video_codec: str = "libx264"
    render_crf: int = 18
    render_preset: str = "medium"
    render_pix_fmt: str = "yuv420p"
    render_audio_codec: str = "aac"
    render_audio_bitrate: str = "192k"
    render_audio_sample_rate: int = 48000

    # Temp output is written next to the destination as <stem><temp_suffix><ext>
    temp_suffix: str = ".rendering"

    # Probing
    probe_max_workers: int = 4
    probe_timeout_s: float = 30.0

    # Compile
    default_canvas_width: int = 1920
    default_canvas_height: int = 1080
    # Clips at or below this length are edit noise and never compiled
    min_clip_duration_s: float = 0.05


@lru_cache
def get_settings() -> Settings:
    return Settings()
