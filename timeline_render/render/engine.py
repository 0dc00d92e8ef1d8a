"""FFmpeg render engine.

Runs a compiled filter graph against its inputs and writes one output file.
The graph is serialized to ``filter_complex`` syntax here and nowhere else.
"""

import asyncio
import logging
from typing import Protocol

from timeline_render.config import Settings, get_settings
from timeline_render.exceptions import RenderEngineError
from timeline_render.render.filter_ops import FilterOp, serialize_filter_graph

logger = logging.getLogger(__name__)


class RenderEngine(Protocol):
    async def render(
        self,
        inputs: list[str],
        ops: list[FilterOp],
        output_labels: list[str],
        out_path: str,
    ) -> None:
        """Render to ``out_path``; raise RenderEngineError on failure."""
        ...


class FFmpegRenderEngine:
    """Render engine backed by the ffmpeg binary."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    def build_command(
        self,
        inputs: list[str],
        ops: list[FilterOp],
        output_labels: list[str],
        out_path: str,
    ) -> list[str]:
        """Build the FFmpeg command without executing it.

        Args:
            inputs: Input paths; list position is the input index used by ops
            ops: Compiled filter graph
            output_labels: Video label first, then the optional audio label
            out_path: File to write

        Returns:
            FFmpeg command as list[str]
        """
        s = self.settings
        cmd = [s.ffmpeg_path, "-y", "-hide_banner"]
        for path in inputs:
            cmd.extend(["-i", path])

        cmd.extend(["-filter_complex", serialize_filter_graph(ops)])

        video_label, *rest = output_labels
        cmd.extend(["-map", f"[{video_label}]"])
        cmd.extend([
            "-c:v", s.render_video_codec,
            "-preset", s.render_preset,
            "-crf", str(s.render_crf),
            "-r", str(s.render_fps),
            "-pix_fmt", s.render_pix_fmt,
        ])

        if rest:
            cmd.extend(["-map", f"[{rest[0]}]"])
            cmd.extend([
                "-c:a", s.render_audio_codec,
                "-b:a", s.render_audio_bitrate,
                "-ar", str(s.render_audio_sample_rate),
            ])

        cmd.extend(["-movflags", "+faststart", out_path])
        return cmd

    async def render(
        self,
        inputs: list[str],
        ops: list[FilterOp],
        output_labels: list[str],
        out_path: str,
    ) -> None:
        cmd = self.build_command(inputs, ops, output_labels, out_path)
        logger.info(f"[RENDER] Number of inputs: {len(inputs)}, ops: {len(ops)}")
        logger.debug(f"[RENDER] filter_complex:\n{cmd[cmd.index('-filter_complex') + 1]}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise RenderEngineError(f"Failed to start ffmpeg: {e}")

        _, stderr = await proc.communicate()
        if proc.returncode != 0:
            diagnostic = stderr.decode("utf-8", errors="replace")
            logger.error(f"[RENDER] FFmpeg exited with {proc.returncode}: {diagnostic}")
            raise RenderEngineError(diagnostic, returncode=proc.returncode)

        logger.info(f"[RENDER] FFmpeg finished: {out_path}")
