"""
Pytest fixtures for timeline render tests.

No test needs ffmpeg or ffprobe: probing, rendering and cache invalidation
are replaced by the in-memory fakes in tests/fakes.py. Media files in the temporary
gallery are placeholder bytes.
"""

from pathlib import Path

import pytest

from tests.fakes import FakeEngine, FakeProber, RecordingInvalidator
from timeline_render.config import Settings
from timeline_render.render.pipeline import RenderPipeline
from timeline_render.schemas.timeline import Clip, Timeline, Track
from timeline_render.services.storage_service import GalleryStorage


@pytest.fixture
def gallery_root(tmp_path: Path) -> Path:
    """Temporary gallery with placeholder media files."""
    root = tmp_path / "gallery"
    (root / "clips").mkdir(parents=True)
    (root / "images").mkdir()
    (root / "audio").mkdir()
    (root / "exports").mkdir()
    (root / "clips" / "talk.mp4").write_bytes(b"talk")
    (root / "clips" / "screen.mp4").write_bytes(b"screen")
    (root / "clips" / "broken.mp4").write_bytes(b"not a video")
    (root / "images" / "logo.png").write_bytes(b"png")
    (root / "audio" / "music.mp3").write_bytes(b"mp3")
    return root


@pytest.fixture
def settings(gallery_root: Path) -> Settings:
    return Settings(gallery_path=str(gallery_root), probe_max_workers=2)


@pytest.fixture
def storage(gallery_root: Path) -> GalleryStorage:
    return GalleryStorage(gallery_root, temp_suffix=".rendering")


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def invalidator() -> RecordingInvalidator:
    return RecordingInvalidator()


@pytest.fixture
def pipeline(settings, storage, prober, engine, invalidator) -> RenderPipeline:
    return RenderPipeline(
        prober=prober,
        engine=engine,
        invalidator=invalidator,
        storage=storage,
        settings=settings,
    )


@pytest.fixture
def simple_timeline() -> Timeline:
    """Screen recording with a talking head on a later track and background music."""
    return Timeline(
        tracks=[
            Track(
                id="v1",
                kind="video",
                clips=[Clip(id="screen", source_path="clips/screen.mp4", source_duration=10.0)],
            ),
            Track(
                id="v2",
                kind="video",
                clips=[
                    Clip(
                        id="talk",
                        source_path="clips/talk.mp4",
                        source_in=5.0,
                        source_duration=4.0,
                        timeline_offset=2.0,
                        transform={"x": 900, "y": 400, "scale": 0.25},
                    )
                ],
            ),
            Track(
                id="a1",
                kind="audio",
                clips=[
                    Clip(
                        id="music",
                        kind="audio",
                        source_path="audio/music.mp3",
                        source_duration=12.0,
                        volume=40,
                    )
                ],
            ),
        ]
    )
