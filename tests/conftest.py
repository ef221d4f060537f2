import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app_config import EditTrackingConfig
from app.texcore.edit_tracker import EditTracker
from app.texcore.models.types import ContentChange, ContentChangeEvent, EditRange


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def insert(line, column, text, content):
    return ContentChangeEvent(
        changes=[ContentChange(EditRange(line, column, line, column), text, 0)],
        content=content
    )


def delete(line, start_column, end_column, content):
    return ContentChangeEvent(
        changes=[ContentChange(
            EditRange(line, start_column, line, end_column), "", end_column - start_column
        )],
        content=content
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def tracker(clock):
    return EditTracker("", EditTrackingConfig(), clock=clock)
