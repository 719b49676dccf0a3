"""Shared fixtures for the pipeline tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from wikiscribe.pipeline_config import PipelineConfig, WorkingPaths


@pytest.fixture
def paths(tmp_path: Path) -> WorkingPaths:
    return WorkingPaths(tmp_path / "working-paths")


@pytest.fixture
def config(paths: WorkingPaths) -> PipelineConfig:
    return PipelineConfig(
        paths=paths,
        chunk_delay_seconds=0,
        wiki_request_delay_seconds=0,
        call_timeout_seconds=5.0,
    )


@pytest.fixture
def audio_dir(paths: WorkingPaths) -> Path:
    paths.audios.mkdir(parents=True)
    return paths.audios
