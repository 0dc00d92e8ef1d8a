"""
Main render pipeline for timeline compositions.

This module orchestrates one render request start to finish:
1. Resolve destination and source paths inside the gallery root
2. Probe every distinct source once (bounded concurrency)
3. Compile the timeline into a filter graph
4. Run the render engine into a temp file next to the destination
5. Replace the destination with the temp file
6. Invalidate the destination's cached thumbnail

Every failure becomes a negative ``RenderResult``; nothing partial is ever
left at the destination path.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

from timeline_render.config import Settings, get_settings
from timeline_render.exceptions import TimelineRenderError
from timeline_render.render.engine import FFmpegRenderEngine, RenderEngine
from timeline_render.render.graph_compiler import CompiledGraph, compile_timeline, select_clips
from timeline_render.render.source_info import (
    UNKNOWN_SOURCE,
    Prober,
    SourceInfoCache,
    resolve_source_info,
)
from timeline_render.schemas.render import RenderRequest, RenderResult
from timeline_render.schemas.timeline import Timeline
from timeline_render.services.storage_service import GalleryStorage
from timeline_render.services.thumbnail_cache import CacheInvalidator, ThumbnailCache
from timeline_render.utils.media_info import FFprobeProber

logger = logging.getLogger(__name__)


class RenderState(Enum):
    """Render request state."""

    IDLE = "idle"
    PROBING = "probing"
    COMPILING = "compiling"
    RENDERING = "rendering"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


StateCallback = Callable[[RenderState], None]


@dataclass
class _DestinationLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class RenderPipeline:
    """
    Render pipeline for gallery timelines.

    Collaborators (prober, engine, cache invalidator, storage) are injected
    so each can be replaced independently; defaults use ffprobe, ffmpeg and
    the gallery thumbnail cache.

    Renders targeting the same destination are serialized by a
    per-destination lock held across rendering and finalizing.
    """

    def __init__(
        self,
        prober: Optional[Prober] = None,
        engine: Optional[RenderEngine] = None,
        invalidator: Optional[CacheInvalidator] = None,
        storage: Optional[GalleryStorage] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.prober = prober or FFprobeProber()
        self.engine = engine or FFmpegRenderEngine(self.settings)
        self.storage = storage or GalleryStorage()
        self.invalidator = invalidator or ThumbnailCache(self.storage.base_path)
        self._destination_locks: dict[Path, _DestinationLock] = {}
        self._state_callback: Optional[StateCallback] = None

    def set_state_callback(self, callback: Optional[StateCallback]) -> None:
        """Set callback for state transitions."""
        self._state_callback = callback

    def _enter(self, state: RenderState) -> None:
        logger.info(f"[RENDER] State -> {state.value}")
        if self._state_callback:
            self._state_callback(state)

    @asynccontextmanager
    async def _destination_lock(self, destination: Path) -> AsyncIterator[None]:
        """Hold the lock for one destination; the entry is dropped once unused."""
        entry = self._destination_locks.setdefault(destination, _DestinationLock())
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                del self._destination_locks[destination]

    def _resolve_sources(self, timeline: Timeline) -> Timeline:
        """Copy of the timeline with every source path made absolute."""
        resolved = {path: str(self.storage.resolve(path)) for path in timeline.source_paths()}
        tracks = [
            track.model_copy(
                update={
                    "clips": [
                        clip.model_copy(update={"source_path": resolved[clip.source_path]})
                        for clip in track.clips
                    ]
                }
            )
            for track in timeline.tracks
        ]
        return timeline.model_copy(update={"tracks": tracks})

    async def probe(self, timeline: Timeline) -> SourceInfoCache:
        """Probe the sources of the clips that will actually be compiled."""
        paths = [
            clip.source_path
            for _, clip in select_clips(timeline, self.settings.min_clip_duration_s)
        ]
        return await resolve_source_info(paths, self.prober, self.settings.probe_max_workers)

    def compile(self, timeline: Timeline, sources: SourceInfoCache) -> CompiledGraph:
        return compile_timeline(
            timeline,
            sources,
            fps=self.settings.render_fps,
            min_clip_duration=self.settings.min_clip_duration_s,
            default_width=self.settings.default_canvas_width,
            default_height=self.settings.default_canvas_height,
        )

    async def render(self, request: RenderRequest) -> RenderResult:
        """
        Execute the full render pipeline for one request.

        Args:
            request: Timeline plus destination (and optional new file name)

        Returns:
            RenderResult; ``success`` is False with a non-empty ``error`` on
            any fatal condition
        """
        self._enter(RenderState.IDLE)
        try:
            destination = self.storage.destination_for(
                request.destination_path, request.new_name
            )
            timeline = self._resolve_sources(request.timeline)

            self._enter(RenderState.PROBING)
            sources = await self.probe(timeline)
            # Failed probes map to the shared UNKNOWN_SOURCE sentinel
            warnings = [
                f"Could not probe {self.storage.relative(Path(path))}"
                for path, info in sources.items()
                if info is UNKNOWN_SOURCE
            ]

            self._enter(RenderState.COMPILING)
            graph = self.compile(timeline, sources)

            async with self._destination_lock(destination):
                self._enter(RenderState.RENDERING)
                temp_path = self.storage.temp_path_for(destination)
                try:
                    await self.engine.render(
                        graph.inputs,
                        graph.ops,
                        graph.output_labels.as_list(),
                        str(temp_path),
                    )
                    self._enter(RenderState.FINALIZING)
                    self.storage.replace(temp_path, destination)
                except Exception:
                    self.storage.discard(temp_path)
                    raise

            rel_path = self.storage.relative(destination)
            try:
                self.invalidator.invalidate(rel_path)
            except Exception as e:
                logger.warning(f"[FINALIZE] Cache invalidation failed for {rel_path}: {e}")
            logger.info(f"[FINALIZE] Wrote {rel_path} ({graph.duration:.3f}s)")
        except TimelineRenderError as e:
            logger.error(f"[RENDER] Failed ({e.code}): {e.message}")
            self._enter(RenderState.FAILED)
            return RenderResult(success=False, error=e.message, error_code=e.code)
        except Exception as e:
            logger.exception(f"[RENDER] Unexpected failure: {e}")
            self._enter(RenderState.FAILED)
            return RenderResult(
                success=False, error=str(e) or type(e).__name__, error_code="INTERNAL_ERROR"
            )

        self._enter(RenderState.DONE)
        return RenderResult(success=True, path=rel_path, warnings=warnings)
