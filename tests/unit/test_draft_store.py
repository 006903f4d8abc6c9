"""
Unit tests for the lesson draft store and the debounced writer.

The file slot runs against pytest's tmp_path; timers are replaced with a
manual fake so debounce behaviour is deterministic.
"""

import json
import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

# Add Lambda source to path
lambda_path = Path(__file__).parent.parent.parent / "src" / "lambda"
sys.path.insert(0, str(lambda_path))

from rpp.core.errors import PersistError
from rpp.core.lesson_models import default_lesson_input
from rpp.draft_store import DebouncedDraftWriter, DraftStore, DynamoDBDraftSlot, FileDraftSlot


class FakeTimer:
    """Stand-in for threading.Timer that fires only when told to."""

    def __init__(self, delay, function):
        self.delay = delay
        self.function = function
        self.started = False
        self.cancelled = False
        self.daemon = False

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function()


class FakeTimerFactory:
    def __init__(self):
        self.timers = []

    def __call__(self, delay, function):
        timer = FakeTimer(delay, function)
        self.timers.append(timer)
        return timer


class MemorySlot:
    def __init__(self, payload=None, fail_writes=False):
        self.payload = payload
        self.fail_writes = fail_writes
        self.writes = []

    def read(self):
        return self.payload

    def write(self, payload):
        if self.fail_writes:
            raise OSError("disk full")
        self.writes.append(payload)
        self.payload = payload

    def delete(self):
        self.payload = None


class TestFileDraftSlot:
    """Test the local JSON file slot."""

    def test_round_trip(self, tmp_path, zakat_lesson):
        store = DraftStore(FileDraftSlot(str(tmp_path / "drafts" / "lesson.json")))

        store.save(zakat_lesson)

        assert store.load() == zakat_lesson
        saved = json.loads((tmp_path / "drafts" / "lesson.json").read_text(encoding="utf-8"))
        assert saved["namaGuru"] == "Fatimah, S.Pd.I."
        assert not (tmp_path / "drafts" / "lesson.json.tmp").exists()

    def test_missing_file_gives_default(self, tmp_path):
        store = DraftStore(FileDraftSlot(str(tmp_path / "absent.json")))
        assert store.load() == default_lesson_input()

    def test_corrupt_file_gives_default(self, tmp_path):
        path = tmp_path / "lesson.json"
        path.write_text("{not json", encoding="utf-8")
        assert DraftStore(FileDraftSlot(str(path))).load() == default_lesson_input()

    def test_undecodable_file_gives_default(self, tmp_path):
        path = tmp_path / "lesson.json"
        path.write_bytes(b'{"topik": "\xff\xfe"}')
        assert DraftStore(FileDraftSlot(str(path))).load() == default_lesson_input()

    def test_invalid_draft_gives_default(self, tmp_path):
        path = tmp_path / "lesson.json"
        path.write_text(json.dumps({"model_pembelajaran": "Lecture"}), encoding="utf-8")
        assert DraftStore(FileDraftSlot(str(path))).load() == default_lesson_input()

    def test_clear_removes_file(self, tmp_path, zakat_lesson):
        path = tmp_path / "lesson.json"
        store = DraftStore(FileDraftSlot(str(path)))
        store.save(zakat_lesson)

        store.clear()

        assert not path.exists()
        assert store.load() == default_lesson_input()
        # Clearing an empty slot is fine
        store.clear()

    def test_from_settings_picks_file_slot(self, tmp_path):
        store = DraftStore.from_settings(local_path=str(tmp_path / "lesson.json"))
        assert isinstance(store.slot, FileDraftSlot)


class TestDynamoDBDraftSlot:
    """Test the DynamoDB slot against a mocked resource."""

    def test_read_write_delete(self):
        dynamodb = MagicMock()
        table = dynamodb.Table.return_value
        table.get_item.return_value = {"Item": {"draft_key": "default", "draft_json": "{}"}}
        slot = DynamoDBDraftSlot(key="default", table_name="drafts", dynamodb=dynamodb)

        assert slot.read() == "{}"
        slot.write('{"topik": "Zakat"}')
        slot.delete()

        dynamodb.Table.assert_called_with("drafts")
        item = table.put_item.call_args.kwargs["Item"]
        assert item["draft_key"] == "default"
        assert item["draft_json"] == '{"topik": "Zakat"}'
        table.delete_item.assert_called_once_with(Key={"draft_key": "default"})

    def test_missing_item(self):
        dynamodb = MagicMock()
        dynamodb.Table.return_value.get_item.return_value = {}
        slot = DynamoDBDraftSlot(key="default", table_name="drafts", dynamodb=dynamodb)
        assert slot.read() is None

    def test_client_error_on_save_raises_persist_error(self, zakat_lesson):
        dynamodb = MagicMock()
        dynamodb.Table.return_value.put_item.side_effect = ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
            "PutItem",
        )
        store = DraftStore(DynamoDBDraftSlot(key="default", table_name="drafts", dynamodb=dynamodb))

        with pytest.raises(PersistError):
            store.save(zakat_lesson)

    def test_client_error_on_load_gives_default(self):
        dynamodb = MagicMock()
        dynamodb.Table.return_value.get_item.side_effect = ClientError(
            {"Error": {"Code": "ResourceNotFoundException", "Message": "no table"}},
            "GetItem",
        )
        store = DraftStore(DynamoDBDraftSlot(key="default", table_name="drafts", dynamodb=dynamodb))
        assert store.load() == default_lesson_input()


class TestDebouncedDraftWriter:
    """Test debounce coalescing and save status reporting."""

    def _writer(self, slot):
        timers = FakeTimerFactory()
        statuses = []
        writer = DebouncedDraftWriter(
            DraftStore(slot), delay_seconds=1.5, on_status=statuses.append, timer_factory=timers,
        )
        return writer, timers, statuses

    def test_rapid_edits_coalesce_into_one_write(self, zakat_lesson):
        slot = MemorySlot()
        writer, timers, statuses = self._writer(slot)

        writer.schedule(zakat_lesson.with_changes(topik="Za"))
        writer.schedule(zakat_lesson.with_changes(topik="Zak"))
        writer.schedule(zakat_lesson)

        assert len(timers.timers) == 3
        assert all(t.cancelled for t in timers.timers[:2])
        assert all(t.daemon and t.started for t in timers.timers)
        assert timers.timers[-1].delay == 1.5
        assert slot.writes == []

        for timer in timers.timers:
            timer.fire()

        assert len(slot.writes) == 1
        assert json.loads(slot.writes[0])["topik"] == "Zakat"
        assert statuses == ["unsaved", "unsaved", "unsaved", "saving", "saved"]
        assert writer.status == "saved"
        assert not writer.has_pending

    def test_flush_writes_immediately(self, zakat_lesson):
        slot = MemorySlot()
        writer, timers, _ = self._writer(slot)
        writer.schedule(zakat_lesson)

        assert writer.has_pending
        assert writer.flush() == "saved"
        assert len(slot.writes) == 1
        assert timers.timers[0].cancelled

    def test_flush_without_pending_is_noop(self):
        slot = MemorySlot()
        writer, _, statuses = self._writer(slot)

        assert writer.flush() == "saved"
        assert slot.writes == []
        assert statuses == []

    def test_failed_write_reports_unsaved(self, zakat_lesson):
        slot = MemorySlot(fail_writes=True)
        writer, timers, statuses = self._writer(slot)
        writer.schedule(zakat_lesson)

        timers.timers[0].fire()

        assert statuses[-2:] == ["saving", "unsaved"]
        assert writer.status == "unsaved"
        # Not retried
        assert not writer.has_pending

    def test_cancel_drops_pending_write(self, zakat_lesson):
        slot = MemorySlot()
        writer, timers, _ = self._writer(slot)
        writer.schedule(zakat_lesson)

        writer.cancel()
        timers.timers[0].function()

        assert slot.writes == []
        assert not writer.has_pending
