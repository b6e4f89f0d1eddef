"""Tests for on-device storage adapters."""

import json
from datetime import UTC, datetime, time, timedelta

import pytest

from verg.adapters.local_image_store import LocalImageStore
from verg.adapters.local_journal_repository import (
    SESSIONS_KEY,
    STATS_KEY,
    LocalJournalRepository,
)
from verg.domain.journal import StorageError, UserStats
from verg.domain.settings import AppSettings
from tests.conftest import make_record

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


def test_empty_store_returns_defaults(tmp_path) -> None:
    repository = LocalJournalRepository(tmp_path / "journal.json")

    assert repository.list_sessions() == []
    assert repository.load_stats() == UserStats()
    assert repository.load_settings() == AppSettings()


def test_append_session_writes_session_and_stats(tmp_path) -> None:
    path = tmp_path / "journal.json"
    repository = LocalJournalRepository(path)
    older = make_record(NOW - timedelta(days=1), image_reference="a.jpg")
    newer = make_record(NOW)
    stats = UserStats(
        current_streak=2, longest_streak=2, total_sessions=2, last_session_date=NOW
    )

    repository.append_session(older, UserStats(total_sessions=1))
    repository.append_session(newer, stats)

    reopened = LocalJournalRepository(path)
    assert reopened.list_sessions() == [newer, older]
    assert reopened.load_stats() == stats
    assert reopened.get_session(older.id) == older
    document = json.loads(path.read_text(encoding="utf-8"))
    assert set(document) == {SESSIONS_KEY, STATS_KEY}
    assert not path.with_name("journal.json.tmp").exists()


def test_delete_session_keeps_stats(tmp_path) -> None:
    repository = LocalJournalRepository(tmp_path / "journal.json")
    record = make_record(NOW)
    repository.append_session(record, UserStats(total_sessions=1))

    assert repository.delete_session(record.id) == record
    assert repository.delete_session(record.id) is None
    assert repository.list_sessions() == []
    assert repository.load_stats().total_sessions == 1


def test_settings_round_trip(tmp_path) -> None:
    repository = LocalJournalRepository(tmp_path / "journal.json")
    settings = AppSettings(
        timer_duration=1200,
        sound_enabled=False,
        notifications_enabled=True,
        notification_time=time(6, 45),
        has_seen_onboarding=True,
    )

    repository.save_settings(settings)

    assert repository.load_settings() == settings
    assert repository.list_sessions() == []


def test_invalid_document_falls_back_to_defaults(tmp_path) -> None:
    path = tmp_path / "journal.json"
    path.write_text("{not json", encoding="utf-8")
    repository = LocalJournalRepository(path)

    assert repository.list_sessions() == []
    assert repository.load_stats() == UserStats()


def test_unreadable_key_falls_back_to_default(tmp_path) -> None:
    path = tmp_path / "journal.json"
    path.write_text(
        json.dumps({STATS_KEY: {"current_streak": "many"}, SESSIONS_KEY: [{}]}),
        encoding="utf-8",
    )
    repository = LocalJournalRepository(path)

    assert repository.load_stats() == UserStats()
    assert repository.list_sessions() == []


def test_clear_removes_document(tmp_path) -> None:
    path = tmp_path / "journal.json"
    repository = LocalJournalRepository(path)
    repository.save_stats(UserStats(total_sessions=4))

    repository.clear()
    repository.clear()

    assert not path.exists()
    assert repository.load_stats() == UserStats()


def test_write_failure_raises_storage_error(tmp_path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("file", encoding="utf-8")
    repository = LocalJournalRepository(blocker / "journal.json")

    with pytest.raises(StorageError):
        repository.save_stats(UserStats())


def test_image_store_save_and_delete(tmp_path) -> None:
    store = LocalImageStore(tmp_path / "JournalImages")

    reference = store.save_image(b"jpeg-bytes")

    assert reference.endswith(".jpg")
    assert (tmp_path / "JournalImages" / reference).read_bytes() == b"jpeg-bytes"
    assert store.image_url(reference).startswith("file://")

    store.delete_image(reference)
    store.delete_image(reference)
    assert not (tmp_path / "JournalImages" / reference).exists()


def test_image_store_rejects_paths(tmp_path) -> None:
    store = LocalImageStore(tmp_path / "JournalImages")

    with pytest.raises(StorageError):
        store.delete_image("../journal.json")


def test_image_store_clear(tmp_path) -> None:
    store = LocalImageStore(tmp_path / "JournalImages")
    store.clear()
    store.save_image(b"one")
    store.save_image(b"two")

    store.clear()

    assert not (tmp_path / "JournalImages").exists()


def test_unreadable_row_survives_append_and_delete(tmp_path) -> None:
    path = tmp_path / "journal.json"
    repository = LocalJournalRepository(path)
    records = [make_record(NOW - timedelta(days=offset)) for offset in (3, 2, 1)]
    for count, record in enumerate(records, start=1):
        repository.append_session(record, UserStats(total_sessions=count))
    document = json.loads(path.read_text(encoding="utf-8"))
    document[SESSIONS_KEY][0]["created_at"] = "garbage"
    path.write_text(json.dumps(document), encoding="utf-8")

    assert repository.list_sessions() == [records[1], records[0]]

    newest = make_record(NOW)
    repository.append_session(newest, UserStats(total_sessions=4))
    repository.delete_session(records[0].id)

    rows = json.loads(path.read_text(encoding="utf-8"))[SESSIONS_KEY]
    assert len(rows) == 3
    assert any(row["created_at"] == "garbage" for row in rows)
    assert repository.list_sessions() == [newest, records[1]]
    assert repository.load_stats().total_sessions == 4
