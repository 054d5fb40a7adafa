import pytest
from sqlmodel import Session, SQLModel, create_engine

from core.errors import DeleteFailedAfterCreate
from services.duplicates import DuplicateRegistry
from services.event_mover import MoveRequest, MoveResult


@pytest.fixture()
def registry(tmp_path):
    engine = create_engine(f"sqlite:///{(tmp_path / 'app.db').as_posix()}")
    SQLModel.metadata.create_all(engine)

    def factory():
        return Session(engine)

    return DuplicateRegistry(session_factory=factory)


def _duplicate_result():
    request = MoveRequest("work", "home", {"id": "ev-1", "summary": "Dentist"})
    created = {"id": "new-1", "summary": "Dentist"}
    return MoveResult(
        request,
        created_event=created,
        error=DeleteFailedAfterCreate("in both calendars", created_event=created),
    )


def test_record_and_list(registry):
    row = registry.record(_duplicate_result())
    assert row.id is not None

    rows = registry.list_open()
    assert len(rows) == 1
    dup = rows[0]
    assert (dup.source_calendar, dup.source_event_id) == ("work", "ev-1")
    assert (dup.target_calendar, dup.created_event_id) == ("home", "new-1")
    assert dup.summary == "Dentist"
    assert "both calendars" in dup.error


def test_resolve_removes_reminder_only(registry):
    row = registry.record(_duplicate_result())
    assert registry.resolve(row.id) is True
    assert registry.list_open() == []
    assert registry.resolve(row.id) is False
