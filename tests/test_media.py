"""Tests for segmentation, validation, temp cleanup and video extraction (fake ffmpeg)."""

from __future__ import annotations

import asyncio
import dataclasses
import math
import os
import time
from pathlib import Path

import pytest
from fakes import MB, FakeMediaTool

from wikiscribe.concurrency import call_with_timeout
from wikiscribe.media.cleanup import cleanup_temp_files
from wikiscribe.media.extraction import extract_all_videos
from wikiscribe.media.models import MediaInfo, SegmentRange
from wikiscribe.media.probe import FfmpegMediaTool
from wikiscribe.media.segmenter import (
    AudioSegmenter,
    SegmentationError,
    chunk_count_for_size,
    plan_segments,
)
from wikiscribe.media.validation import is_valid_audio
from wikiscribe.pipeline_config import PipelineConfig

# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


class TestPlanSegments:
    def test_starts_are_even_fractions(self) -> None:
        ranges = plan_segments(2400.0, 3)
        assert [r.start for r in ranges] == [0.0, 800.0, 1600.0]

    def test_last_segment_is_open_ended(self) -> None:
        ranges = plan_segments(1000.0, 3)
        assert all(r.duration == pytest.approx(1000.0 / 3) for r in ranges[:-1])
        assert ranges[-1].duration is None

    def test_single_segment_covers_everything(self) -> None:
        (only,) = plan_segments(42.0, 1)
        assert only.start == 0.0
        assert only.duration is None

    def test_indexes_are_sequential(self) -> None:
        assert [r.index for r in plan_segments(90.0, 4)] == [0, 1, 2, 3]

    def test_zero_count_rejected(self) -> None:
        with pytest.raises(ValueError):
            plan_segments(100.0, 0)


class TestChunkCountForSize:
    def test_small_file_is_one_chunk(self) -> None:
        assert chunk_count_for_size(10, 25 * MB) == 1

    def test_zero_size_still_one_chunk(self) -> None:
        assert chunk_count_for_size(0, 25 * MB) == 1

    def test_rounds_up(self) -> None:
        assert chunk_count_for_size(30 * MB, 25 * MB) == 2
        assert chunk_count_for_size(50 * MB + 1, 25 * MB) == 3


# ---------------------------------------------------------------------------
# AudioSegmenter
# ---------------------------------------------------------------------------


def _source(audio_dir: Path, name: str = "talk.mp3") -> Path:
    path = audio_dir / name
    path.write_bytes(b"\xff\xfb" + b"\x00" * 256)
    return path


class TestAudioSegmenter:
    def test_creates_chunks_in_order(self, config: PipelineConfig, audio_dir: Path) -> None:
        source = _source(audio_dir)
        tool = FakeMediaTool(durations={"talk.mp3": 2400.0})
        chunks = asyncio.run(AudioSegmenter(tool, config).split(source, 2))

        assert [c.index for c in chunks] == [0, 1]
        assert [c.path.name for c in chunks] == ["talk_chunk_1.mp3", "talk_chunk_2.mp3"]
        assert chunks[0].start == 0.0
        assert chunks[1].start == 1200.0
        assert all(c.parent == "talk.mp3" for c in chunks)

    def test_chunks_live_in_per_source_temp_dir(
        self, config: PipelineConfig, audio_dir: Path
    ) -> None:
        source = _source(audio_dir)
        tool = FakeMediaTool(durations={"talk.mp3": 100.0})
        chunks = asyncio.run(AudioSegmenter(tool, config).split(source, 2))

        temp_dir = chunks[0].path.parent
        assert temp_dir.parent == config.paths.temp
        assert temp_dir.name.startswith("talk_")
        assert all(c.path.parent == temp_dir for c in chunks)

    def test_count_derived_from_size_when_not_given(
        self, config: PipelineConfig, audio_dir: Path
    ) -> None:
        source = _source(audio_dir)
        tool = FakeMediaTool(durations={"talk.mp3": 600.0}, sizes={"talk.mp3": 60 * MB})
        paths = asyncio.run(AudioSegmenter(tool, config).segment(source))
        assert len(paths) == 3

    def test_failed_cut_is_skipped_when_tolerated(
        self, config: PipelineConfig, audio_dir: Path
    ) -> None:
        source = _source(audio_dir)
        tool = FakeMediaTool(durations={"talk.mp3": 300.0}, failing_cuts={1})
        chunks = asyncio.run(AudioSegmenter(tool, config).split(source, 3))

        assert [c.index for c in chunks] == [0, 2]
        # the partial output of the failed cut is removed
        assert not (chunks[0].path.parent / "talk_chunk_2.mp3").exists()

    def test_failed_cut_aborts_when_not_tolerated(
        self, config: PipelineConfig, audio_dir: Path
    ) -> None:
        strict = dataclasses.replace(config, tolerate_segment_failures=False)
        source = _source(audio_dir)
        tool = FakeMediaTool(durations={"talk.mp3": 300.0}, failing_cuts={1})

        with pytest.raises(SegmentationError, match="chunk 2"):
            asyncio.run(AudioSegmenter(tool, strict).split(source, 3))
        assert not any(config.paths.temp.rglob("*.mp3"))

    def test_no_valid_chunks_raises_and_cleans_up(
        self, config: PipelineConfig, audio_dir: Path
    ) -> None:
        source = _source(audio_dir)
        tool = FakeMediaTool(durations={"talk.mp3": 300.0}, failing_cuts={0, 1})

        with pytest.raises(SegmentationError, match="No valid chunks"):
            asyncio.run(AudioSegmenter(tool, config).split(source, 2))
        assert not any(config.paths.temp.rglob("*.mp3"))

    def test_unprobeable_source_propagates(self, config: PipelineConfig, audio_dir: Path) -> None:
        source = _source(audio_dir)
        tool = FakeMediaTool(broken={"talk.mp3"})
        with pytest.raises(Exception, match="cannot probe"):
            asyncio.run(AudioSegmenter(tool, config).split(source, 2))


# ---------------------------------------------------------------------------
# FfmpegMediaTool against a scripted ffmpeg binary
# ---------------------------------------------------------------------------

# Writes "audio" to the chunk argument, sleeping first when the chunk name
# matches $SLOW_CHUNK. $FAIL makes it exit non-zero with a message on stderr.
_FAKE_FFMPEG = """#!/bin/sh
if [ -n "$FAIL" ]; then
    echo "$FAIL" >&2
    exit 1
fi
for arg in "$@"; do
    case "$arg" in *_chunk_*) out="$arg" ;; esac
done
case "$out" in *"$SLOW_CHUNK"*) sleep "$SLOW_SECONDS" ;; esac
printf audio > "$out"
"""


@pytest.fixture
def fake_ffmpeg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    script = tmp_path / "ffmpeg"
    script.write_text(_FAKE_FFMPEG)
    script.chmod(0o755)
    monkeypatch.setenv("SLOW_CHUNK", "_chunk_2.")
    monkeypatch.setenv("SLOW_SECONDS", "1.5")
    monkeypatch.delenv("FAIL", raising=False)
    return script


class _ScriptedTool(FfmpegMediaTool):
    """Real cut() over the scripted binary; probe() reports a fixed duration."""

    def __init__(self, ffmpeg_cmd: str, duration: float) -> None:
        super().__init__(ffmpeg_cmd=ffmpeg_cmd)
        self.duration = duration

    async def probe(self, path: Path) -> MediaInfo:
        return MediaInfo(path=path, size=path.stat().st_size, duration=self.duration)


@pytest.mark.skipif(os.name == "nt", reason="needs a POSIX shell")
class TestFfmpegMediaToolCut:
    def test_writes_destination(self, fake_ffmpeg: Path, tmp_path: Path) -> None:
        tool = FfmpegMediaTool(ffmpeg_cmd=str(fake_ffmpeg))
        destination = tmp_path / "talk_chunk_1.mp3"
        asyncio.run(tool.cut(tmp_path / "talk.mp3", SegmentRange(0, 0.0, 10.0), destination))
        assert destination.read_text() == "audio"

    def test_non_zero_exit_raises_with_stderr(
        self, fake_ffmpeg: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FAIL", "Invalid data found")
        tool = FfmpegMediaTool(ffmpeg_cmd=str(fake_ffmpeg))
        with pytest.raises(RuntimeError, match="chunk 1: Invalid data found"):
            asyncio.run(
                tool.cut(tmp_path / "talk.mp3", SegmentRange(0, 0.0), tmp_path / "talk_chunk_1.mp3")
            )

    def test_timed_out_cut_is_killed_and_leaves_no_file(
        self, fake_ffmpeg: Path, tmp_path: Path
    ) -> None:
        tool = FfmpegMediaTool(ffmpeg_cmd=str(fake_ffmpeg))
        destination = tmp_path / "talk_chunk_2.mp3"
        with pytest.raises(TimeoutError):
            asyncio.run(
                call_with_timeout(
                    tool.cut(tmp_path / "talk.mp3", SegmentRange(1, 10.0, 10.0), destination), 0.2
                )
            )
        # long enough for an unkilled ffmpeg to finish writing
        time.sleep(2.0)
        assert not destination.exists()

    def test_timed_out_slice_does_not_outlive_the_run(
        self, fake_ffmpeg: Path, config: PipelineConfig, audio_dir: Path
    ) -> None:
        hurried = dataclasses.replace(config, call_timeout_seconds=0.5, max_concurrency=1)
        source = _source(audio_dir)
        tool = _ScriptedTool(str(fake_ffmpeg), duration=4200.0)

        chunks = asyncio.run(AudioSegmenter(tool, hurried).split(source, 3))
        assert [c.path.name for c in chunks] == ["talk_chunk_1.mp3", "talk_chunk_3.mp3"]

        time.sleep(2.0)
        cleanup_temp_files(c.path for c in chunks)
        assert list(config.paths.temp.rglob("*")) == []


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------


class TestIsValidAudio:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert asyncio.run(is_valid_audio(tmp_path / "nope.mp3", FakeMediaTool())) is False

    def test_zero_byte_file(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.mp3"
        empty.touch()
        assert asyncio.run(is_valid_audio(empty, FakeMediaTool())) is False

    def test_probe_error(self, tmp_path: Path) -> None:
        path = tmp_path / "garbled.mp3"
        path.write_bytes(b"junk")
        tool = FakeMediaTool(broken={"garbled.mp3"})
        assert asyncio.run(is_valid_audio(path, tool)) is False

    @pytest.mark.parametrize("duration", [0.0, math.nan])
    def test_unusable_duration(self, tmp_path: Path, duration: float) -> None:
        path = tmp_path / "silent.mp3"
        path.write_bytes(b"junk")
        tool = FakeMediaTool(durations={"silent.mp3": duration})
        assert asyncio.run(is_valid_audio(path, tool)) is False

    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ok.mp3"
        path.write_bytes(b"\xff\xfb" + b"\x00" * 10)
        tool = FakeMediaTool(durations={"ok.mp3": 12.5})
        assert asyncio.run(is_valid_audio(path, tool)) is True


# ---------------------------------------------------------------------------
# Temp file cleanup
# ---------------------------------------------------------------------------


class TestCleanupTempFiles:
    def test_removes_files_and_empty_dir(self, tmp_path: Path) -> None:
        chunk_dir = tmp_path / "talk_abc123"
        chunk_dir.mkdir()
        files = [chunk_dir / f"talk_chunk_{i}.mp3" for i in (1, 2)]
        for f in files:
            f.write_bytes(b"x")

        cleanup_temp_files(files)
        assert not chunk_dir.exists()

    def test_keeps_non_empty_dir(self, tmp_path: Path) -> None:
        chunk = tmp_path / "a.mp3"
        other = tmp_path / "keep.txt"
        chunk.write_bytes(b"x")
        other.write_text("keep")

        cleanup_temp_files([chunk])
        assert not chunk.exists()
        assert other.exists()

    def test_missing_files_are_ignored(self, tmp_path: Path) -> None:
        cleanup_temp_files([tmp_path / "gone.mp3"])


# ---------------------------------------------------------------------------
# Video extraction
# ---------------------------------------------------------------------------


class TestExtractAllVideos:
    def test_extracts_each_video_to_mp3(self, config: PipelineConfig) -> None:
        config.paths.videos.mkdir(parents=True)
        for name in ("b.mp4", "a.mov", "notes.txt"):
            (config.paths.videos / name).write_bytes(b"video")

        tool = FakeMediaTool()
        report = asyncio.run(extract_all_videos(config, tool))

        assert report.extracted == ["a.mov", "b.mp4"]
        assert report.failed == []
        assert (config.paths.audios / "a.mp3").exists()
        assert (config.paths.audios / "b.mp3").exists()

    def test_one_failure_does_not_stop_the_batch(self, config: PipelineConfig) -> None:
        config.paths.videos.mkdir(parents=True)
        for name in ("bad.mp4", "good.mp4"):
            (config.paths.videos / name).write_bytes(b"video")

        report = asyncio.run(extract_all_videos(config, FakeMediaTool(broken={"bad.mp4"})))
        assert report.extracted == ["good.mp4"]
        assert report.failed == ["bad.mp4"]

    def test_missing_videos_dir_raises(self, config: PipelineConfig) -> None:
        with pytest.raises(FileNotFoundError):
            asyncio.run(extract_all_videos(config, FakeMediaTool()))
