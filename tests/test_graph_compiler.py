"""Tests for timeline to filter graph compilation."""

import logging

import pytest

from timeline_render.exceptions import EmptyTimelineError
from timeline_render.render.filter_ops import FilterKind
from timeline_render.render.graph_compiler import (
    OutputLabels,
    compile_timeline,
    composition_duration,
    select_clips,
)
from timeline_render.render.source_info import SourceInfo
from timeline_render.schemas.timeline import Canvas, Clip, Timeline, Track

SOURCES = {
    "clips/screen.mp4": SourceInfo(width=1280, height=720),
    "clips/talk.mp4": SourceInfo(width=1920, height=1080, has_audio=True),
    "audio/music.mp3": SourceInfo(has_audio=True),
    "images/logo.png": SourceInfo(width=400, height=300, is_image=True),
}


def _kinds(graph):
    return [op.kind for op in graph.ops]


class TestSelectClips:
    """Tests for the minimum duration filter."""

    def test_short_clips_dropped(self):
        """Test clips at or below the minimum duration are dropped."""
        timeline = Timeline(
            tracks=[
                Track(
                    id="t1",
                    clips=[
                        Clip(id="keep", source_path="a.mp4", source_duration=0.06),
                        Clip(id="edge", source_path="a.mp4", source_duration=0.05),
                        Clip(id="zero", source_path="a.mp4", source_duration=0),
                    ],
                )
            ]
        )
        assert [clip.id for _, clip in select_clips(timeline)] == ["keep"]

    def test_composition_duration(self):
        clips = [
            Clip(id="a", source_path="a.mp4", source_duration=3.0, timeline_offset=1.0),
            Clip(id="b", source_path="a.mp4", source_duration=1.0, timeline_offset=6.0),
        ]
        assert composition_duration(clips) == 7.0
        assert composition_duration([]) == 0.0


class TestCompileTimeline:
    """Tests for compile_timeline."""

    def test_empty_timeline(self):
        with pytest.raises(EmptyTimelineError) as exc_info:
            compile_timeline(Timeline(), SOURCES)
        assert exc_info.value.code == "EMPTY_TIMELINE"

    def test_only_short_clips(self):
        timeline = Timeline(
            tracks=[Track(id="t1", clips=[Clip(id="c", source_path="clips/screen.mp4", source_duration=0.01)])]
        )
        with pytest.raises(EmptyTimelineError):
            compile_timeline(timeline, SOURCES)

    def test_op_order(self, simple_timeline):
        """Test base, clip chains, overlays, then audio."""
        graph = compile_timeline(simple_timeline, SOURCES)
        assert _kinds(graph) == [
            FilterKind.COLOR_SOURCE,
            FilterKind.CROP,
            FilterKind.TRIM,
            FilterKind.SCALE,
            FilterKind.CROP,
            FilterKind.TRIM,
            FilterKind.SCALE,
            FilterKind.OVERLAY,
            FilterKind.OVERLAY,
            FilterKind.AUDIO_TRIM,
            FilterKind.AUDIO_TRIM,
            FilterKind.AUDIO_MIX,
        ]

    def test_inputs_and_outputs(self, simple_timeline):
        graph = compile_timeline(simple_timeline, SOURCES)
        assert graph.inputs == ["clips/screen.mp4", "clips/talk.mp4", "audio/music.mp3"]
        assert graph.output_labels == OutputLabels(video=graph.ops[8].output, audio=graph.ops[-1].output)
        assert graph.output_labels.as_list() == [graph.ops[8].output, graph.ops[-1].output]

    def test_canvas_and_duration(self, simple_timeline):
        """Test canvas from visual clips and duration from the latest clip end."""
        graph = compile_timeline(simple_timeline, SOURCES)
        assert (graph.width, graph.height) == (1920, 1080)
        assert graph.duration == 12.0
        assert graph.ops[0].params["duration"] == 12.0

    def test_explicit_canvas(self, simple_timeline):
        timeline = simple_timeline.model_copy(update={"canvas": Canvas(width=1280, height=720)})
        graph = compile_timeline(timeline, SOURCES)
        assert (graph.width, graph.height) == (1280, 720)

    def test_later_track_on_top(self, simple_timeline):
        """Test that the second track's clip is overlaid after the first's."""
        graph = compile_timeline(simple_timeline, SOURCES)
        overlays = [op for op in graph.ops if op.kind is FilterKind.OVERLAY]
        screen_layer = graph.ops[3].output
        talk_layer = graph.ops[6].output

        assert overlays[0].inputs == (graph.ops[0].output, screen_layer)
        assert overlays[1].inputs == (overlays[0].output, talk_layer)
        assert overlays[1].params == {"x": 900, "y": 400, "start": 2.0, "end": 6.0}

    def test_audio_segments(self, simple_timeline):
        """Test one segment per audio-bearing clip, gain from volume."""
        graph = compile_timeline(simple_timeline, SOURCES)
        segments = [op for op in graph.ops if op.kind is FilterKind.AUDIO_TRIM]
        assert [op.inputs for op in segments] == [("1:a",), ("2:a",)]
        assert segments[0].params == {"start": 5.0, "duration": 4.0, "delay": 2.0, "gain": 1.0}
        assert segments[1].params["gain"] == pytest.approx(0.4)

    def test_deterministic(self, simple_timeline):
        """Test compiling twice yields the same graph."""
        first = compile_timeline(simple_timeline, SOURCES)
        second = compile_timeline(simple_timeline, SOURCES)
        assert _kinds(first) == _kinds(second)
        assert first.ops == second.ops
        assert first.filter_complex == second.filter_complex

    def test_shared_source_single_input(self):
        """Test two clips of one source share one engine input."""
        timeline = Timeline(
            tracks=[
                Track(
                    id="t1",
                    clips=[
                        Clip(id="a", source_path="clips/talk.mp4", source_duration=2.0),
                        Clip(id="b", source_path="clips/talk.mp4", source_in=10, source_duration=2.0, timeline_offset=2.0),
                    ],
                )
            ]
        )
        graph = compile_timeline(timeline, SOURCES)
        assert graph.inputs == ["clips/talk.mp4"]
        crops = [op for op in graph.ops if op.kind is FilterKind.CROP]
        assert [op.inputs for op in crops] == [("0:v",), ("0:v",)]

    def test_silent_timeline_has_no_audio_output(self):
        timeline = Timeline(
            tracks=[Track(id="t1", clips=[Clip(id="a", source_path="clips/screen.mp4", source_duration=2.0)])]
        )
        graph = compile_timeline(timeline, SOURCES)
        assert graph.output_labels.audio is None
        assert graph.output_labels.as_list() == [graph.ops[-1].output]
        assert FilterKind.AUDIO_MIX not in _kinds(graph)

    def test_audio_only_source_on_video_track(self):
        """Test an audio-only file on a video track contributes audio only."""
        timeline = Timeline(
            tracks=[Track(id="t1", clips=[Clip(id="m", source_path="audio/music.mp3", source_duration=2.0)])]
        )
        graph = compile_timeline(timeline, SOURCES)
        assert FilterKind.OVERLAY not in _kinds(graph)
        assert FilterKind.AUDIO_MIX in _kinds(graph)
        assert (graph.width, graph.height) == (1920, 1080)

    def test_unknown_source_degrades(self):
        """Test a source missing from the cache compiles as a tiny silent layer."""
        timeline = Timeline(
            tracks=[Track(id="t1", clips=[Clip(id="a", source_path="clips/broken.mp4", source_duration=2.0)])]
        )
        graph = compile_timeline(timeline, {})
        crop = next(op for op in graph.ops if op.kind is FilterKind.CROP)
        scale = next(op for op in graph.ops if op.kind is FilterKind.SCALE)
        assert (crop.params["width"], crop.params["height"]) == (1, 1)
        assert scale.params == {"width": 2, "height": 2}
        assert graph.output_labels.audio is None

    def test_image_clip_loops(self):
        timeline = Timeline(
            tracks=[
                Track(
                    id="t1",
                    clips=[Clip(id="logo", kind="image", source_path="images/logo.png", source_duration=3.0)],
                )
            ]
        )
        graph = compile_timeline(timeline, SOURCES)
        assert "loop=loop=-1:size=1:start=0" in graph.filter_complex
        assert (graph.width, graph.height) == (400, 300)

    def test_filter_complex_text(self, simple_timeline):
        graph = compile_timeline(simple_timeline, SOURCES)
        text = graph.filter_complex
        assert text.startswith("color=c=black:s=1920x1080:r=30:d=12.000000")
        assert "[0:v]crop=1280:720:0:0" in text
        assert "[1:v]crop=1920:1080:0:0" in text
        assert "amix=inputs=2:duration=longest:normalize=0" in text

    def test_off_canvas_clip_logged(self, caplog):
        """Test a layer placed entirely off the canvas is reported but still compiled."""
        timeline = Timeline(
            canvas=Canvas(width=1280, height=720),
            tracks=[
                Track(
                    id="t1",
                    clips=[
                        Clip(
                            id="lost",
                            source_path="clips/screen.mp4",
                            source_duration=2.0,
                            transform={"x": 2000, "y": 0},
                        )
                    ],
                )
            ],
        )
        with caplog.at_level(logging.WARNING, logger="timeline_render.render.graph_compiler"):
            graph = compile_timeline(timeline, SOURCES)

        assert "Clip lost" in caplog.text
        assert "outside" in caplog.text
        assert FilterKind.OVERLAY in _kinds(graph)

    def test_on_canvas_clip_not_logged(self, simple_timeline, caplog):
        with caplog.at_level(logging.WARNING, logger="timeline_render.render.graph_compiler"):
            compile_timeline(simple_timeline, SOURCES)
        assert "outside" not in caplog.text
