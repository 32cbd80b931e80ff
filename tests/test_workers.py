"""
Worker tests call run() directly on the test thread, so signals are
delivered synchronously and no event loop is needed.
"""
import json
import sqlite3
from unittest.mock import MagicMock, patch

from conftest import make_member
from core.errors import SyncError
from workers.import_worker import ImportWorker
from workers.save_worker import SaveQueue, SaveWorker
from workers.sync_worker import PullWorker, PushWorker


def _collect(worker):
    results, errors = [], []
    worker.signals.finished.connect(results.append)
    worker.signals.error.connect(errors.append)
    return results, errors


class TestSaveWorker:
    def test_saves_snapshot(self, cache, sample_members):
        w = SaveWorker(cache, [m.to_dict() for m in sample_members])
        results, errors = _collect(w)
        w.run()
        assert results == [3]
        assert errors == []
        assert cache.load() == sample_members

    def test_failure_emits_error(self, cache):
        w = SaveWorker(cache, [make_member().to_dict()])
        results, errors = _collect(w)
        with patch("services.cache_service.database.kv_set", side_effect=sqlite3.OperationalError("full")):
            w.run()
        assert results == []
        assert len(errors) == 1
        assert cache.memory_only is True

    def test_unexpected_failure_emits_error(self, cache):
        w = SaveWorker(cache, [make_member().to_dict()])
        results, errors = _collect(w)
        with patch.object(cache, "save", side_effect=RuntimeError("boom")):
            w.run()
        assert results == []
        assert len(errors) == 1
        assert "boom" in errors[0]

    def test_queue_is_serial(self, cache):
        pool = MagicMock()
        queue = SaveQueue(cache, pool=pool)
        pool.setMaxThreadCount.assert_called_once_with(1)

        w = queue.enqueue([])
        pool.start.assert_called_once_with(w)


class TestSyncWorkers:
    def test_push_worker(self):
        sync = MagicMock()
        sync.push.return_value = "file-id"
        w = PushWorker(sync, [])
        results, errors = _collect(w)
        w.run()
        sync.authenticate.assert_called_once()
        assert results == ["file-id"]

    def test_push_worker_error(self):
        sync = MagicMock()
        sync.authenticate.side_effect = SyncError("no credentials")
        w = PushWorker(sync, [])
        results, errors = _collect(w)
        w.run()
        sync.push.assert_not_called()
        assert errors == ["no credentials"]

    def test_pull_worker(self):
        sync = MagicMock()
        sync.pull.return_value = [{"id": "x"}]
        w = PullWorker(sync)
        results, errors = _collect(w)
        w.run()
        assert results == [[{"id": "x"}]]


class TestImportWorker:
    def test_json_file(self, tmp_path):
        path = tmp_path / "in.json"
        path.write_text(json.dumps([{"fullName": "Y", "partyCardNumber": "4"}, {"fullName": ""}]))
        w = ImportWorker(path)
        results, errors = _collect(w)
        w.run()
        [members] = results
        assert [m.fullName for m in members] == ["Y"]

    def test_bad_json_file(self, tmp_path):
        path = tmp_path / "in.json"
        path.write_text("{}")
        w = ImportWorker(path)
        results, errors = _collect(w)
        w.run()
        assert results == []
        assert len(errors) == 1

    def test_excel_file(self, tmp_path):
        from openpyxl import Workbook
        wb = Workbook()
        wb.active.append(['Họ và tên', 'Số thẻ đảng'])
        wb.active.append(['Y', '4'])
        wb.save(str(tmp_path / "in.xlsx"))

        w = ImportWorker(tmp_path / "in.xlsx")
        results, errors = _collect(w)
        w.run()
        assert [m.fullName for m in results[0]] == ["Y"]

    def test_legacy_xls_reports_unsupported_format(self, tmp_path):
        path = tmp_path / "old.xls"
        path.write_bytes(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1")
        w = ImportWorker(path)
        results, errors = _collect(w)
        w.run()
        assert results == []
        assert len(errors) == 1
        assert "unsupported spreadsheet format" in errors[0]
        assert "JSON" not in errors[0]
