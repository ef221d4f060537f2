import threading

import pytest

from app_config import TexConfig
from app.texcore.models.types import ContentChange, ContentChangeEvent, EditRange, NodeKind, ProcessingError
from app.texcore.session import DocumentSession, SessionRegistry

DOCUMENT = "\\section{Intro}\nHello world.\n"


@pytest.fixture
def session(clock):
    return DocumentSession("doc", DOCUMENT, TexConfig(), clock=clock)


def test_cursor_context(session):
    context = session.cursor_context(DOCUMENT.index("world"))
    assert context["available"] is True
    assert context["node"]["kind"] == NodeKind.TEXT
    assert context["headings"] == ["Intro"]


def test_offset_outside_document(session):
    with pytest.raises(ProcessingError):
        session.cursor_context(len(DOCUMENT) + 1)


def test_changes_rebuild_tree(session):
    updated = DOCUMENT.replace("Hello", "{Hello")
    session.apply_changes(ContentChangeEvent(
        changes=[ContentChange(EditRange(2, 1, 2, 1), "{", 0)],
        content=updated
    ))
    assert session.content == updated
    assert session.ast is None
    assert session.cursor_context(0) == {"available": False}

    session.apply_changes(ContentChangeEvent(
        changes=[ContentChange(EditRange(2, 1, 2, 2), "", 1)],
        content=DOCUMENT
    ))
    assert session.ast is not None
    assert len(session.tracker.get_groups()) == 1
    assert session.recent_changes()[0].to_dict()["type"] == "insertion"


def test_compile(session):
    html = session.compile()
    assert '<span class="section-number">1</span> Intro' in html


def test_registry():
    registry = SessionRegistry()
    session = registry.open("a", "text")
    assert "a" in registry
    assert registry.get("a") is session

    assert registry.open("a", "other") is session
    assert session.content == "other"

    registry.close("a")
    assert "a" not in registry
    with pytest.raises(ProcessingError):
        registry.get("a")


def test_operations_hold_session_lock(session):
    seen = []
    process = session.tracker.process

    def recording(event, previous_content=None):
        seen.append(session._lock.locked())
        return process(event, previous_content)

    session.tracker.process = recording
    session.apply_changes(ContentChangeEvent(
        changes=[ContentChange(EditRange(3, 1, 3, 1), "x", 0)],
        content=DOCUMENT + "x"
    ))
    assert seen == [True]
    assert not session._lock.locked()


def test_concurrent_changes_are_all_recorded(clock):
    config = TexConfig()
    config.edit_tracking.max_history_size = 1000
    session = DocumentSession("doc", "", config, clock=clock)

    def type_characters(count):
        for _ in range(count):
            session.apply_changes(ContentChangeEvent(
                changes=[ContentChange(EditRange(1, 1, 1, 1), "a", 0)],
                content="a"
            ))

    threads = [threading.Thread(target=type_characters, args=(25,)) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    operations = sum(len(group.operations) for group in session.tracker.get_groups())
    assert operations == 100
