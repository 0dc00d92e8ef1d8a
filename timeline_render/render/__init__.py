from timeline_render.render.audio_mixer import AudioMixer
from timeline_render.render.engine import FFmpegRenderEngine
from timeline_render.render.graph_compiler import CompiledGraph, compile_timeline
from timeline_render.render.layer_compositor import LayerCompositor
from timeline_render.render.pipeline import RenderPipeline, RenderState

__all__ = [
    "RenderPipeline",
    "RenderState",
    "CompiledGraph",
    "compile_timeline",
    "LayerCompositor",
    "AudioMixer",
    "FFmpegRenderEngine",
]
