from pathlib import Path

import pytest

from storyguard.models import PlotBeat
from storyguard.storage import Storage


@pytest.fixture
def storage(tmp_path: Path) -> Storage:
    """A fresh data directory for every test that asks for one."""
    return Storage(tmp_path / "data")


@pytest.fixture
def make_beat():
    """Factory for beats with sensible defaults; override any field by keyword."""
    def _make(id: str, position: int, **fields) -> PlotBeat:
        fields.setdefault("title", id.upper())
        return PlotBeat(id=id, timeline_position=position, **fields)
    return _make
