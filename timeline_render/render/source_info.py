"""Source metadata resolution.

Every distinct source referenced by a timeline is probed exactly once before
compilation. A failed probe never aborts the compile: the source gets a
zero-size, silent ``SourceInfo`` and its clips render degraded.
"""

import asyncio
import logging
import mimetypes
from dataclasses import dataclass
from typing import Iterable, Protocol

from timeline_render.exceptions import ProbeError
from timeline_render.utils.media_info import ProbeResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceInfo:
    """Intrinsic properties of one source, as the compiler sees them."""

    width: int = 0
    height: int = 0
    has_audio: bool = False
    is_image: bool = False


SourceInfoCache = dict[str, SourceInfo]

UNKNOWN_SOURCE = SourceInfo()


class Prober(Protocol):
    def probe(self, path: str) -> ProbeResult: ...


def is_image_path(path: str) -> bool:
    """Classify by declared media type (file name), never by content."""
    media_type, _ = mimetypes.guess_type(path)
    return bool(media_type and media_type.startswith("image/"))


def source_info_from_probe(path: str, result: ProbeResult) -> SourceInfo:
    is_image = is_image_path(path)
    return SourceInfo(
        width=max(int(result.width), 0),
        height=max(int(result.height), 0),
        has_audio=bool(result.has_audio_stream) and not is_image,
        is_image=is_image,
    )


def _probe_one(prober: Prober, path: str) -> SourceInfo:
    try:
        result = prober.probe(path)
    except (ProbeError, OSError, RuntimeError, ValueError) as e:
        logger.warning(f"[PROBE] {path}: {e}; using zero-size silent defaults")
        return UNKNOWN_SOURCE
    info = source_info_from_probe(path, result)
    logger.info(
        f"[PROBE] {path}: {info.width}x{info.height}, "
        f"audio={info.has_audio}, image={info.is_image}"
    )
    return info


async def resolve_source_info(
    paths: Iterable[str],
    prober: Prober,
    max_workers: int = 4,
) -> SourceInfoCache:
    """Probe each distinct path once, at most ``max_workers`` at a time.

    Probes are independent reads, so running them concurrently does not
    change the result. The returned cache preserves first-seen path order.
    """
    distinct = list(dict.fromkeys(paths))
    semaphore = asyncio.Semaphore(max(1, max_workers))

    async def _bounded(path: str) -> SourceInfo:
        async with semaphore:
            return await asyncio.to_thread(_probe_one, prober, path)

    infos = await asyncio.gather(*(_bounded(p) for p in distinct))
    return dict(zip(distinct, infos))
