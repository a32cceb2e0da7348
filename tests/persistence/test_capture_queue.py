"""Tests for the file-backed capture queue."""

from __future__ import annotations

import asyncio
import json

import pytest

from borghi.contracts.enums import CaptureStatus
from borghi.persistence.capture_queue import QUEUE_FILENAME, CaptureQueueStore
from borghi.persistence.errors import PersistenceError, SourceMissingError


@pytest.fixture
def store(tmp_path):
    return CaptureQueueStore(tmp_path / "data")


async def _enqueue(store, photo, village_id="liguria-noli", name="Noli"):
    return await store.enqueue(photo, village_id, name, 44.2, 8.41, 182.5)


class Uploader:
    """Records calls; fails for ids in ``failing``."""

    def __init__(self, failing: set[str] | None = None):
        self.failing = failing or set()
        self.calls: list[str] = []

    async def __call__(self, record):
        self.calls.append(record.id)
        if record.id in self.failing:
            raise RuntimeError(f"boom {record.id}")


class TestEnqueue:
    async def test_enqueue_persists_record_and_asset(self, store, make_photo):
        photo = make_photo()
        record_id = await _enqueue(store, photo)

        record = await store.get(record_id)
        assert record is not None
        assert record.status == CaptureStatus.PENDING
        assert record.tries == 0
        assert record.last_error is None
        assert record.heading == 182.5
        assert record.asset_uri.endswith(f"{record_id}.jpg")
        assert (store.asset_dir / f"{record_id}.jpg").read_bytes() == b"\xff\xd8\xff fake jpeg"
        assert not photo.exists()

    async def test_enqueue_survives_restart(self, store, make_photo):
        record_id = await _enqueue(store, make_photo())
        reopened = CaptureQueueStore(store.queue_path.parent)
        records = await reopened.list_all()
        assert [r.id for r in records] == [record_id]

    async def test_document_shape_on_disk(self, store, make_photo):
        record_id = await _enqueue(store, make_photo())
        data = json.loads(store.queue_path.read_text(encoding="utf-8"))
        assert list(data) == ["items"]
        assert data["items"][0]["id"] == record_id
        assert data["items"][0]["villageId"] == "liguria-noli"

    async def test_missing_source_adds_nothing(self, store, tmp_path):
        with pytest.raises(SourceMissingError) as exc_info:
            await _enqueue(store, tmp_path / "gone.jpg")
        assert exc_info.value.path.endswith("gone.jpg")
        assert await store.list_all() == []

    async def test_file_uri_accepted(self, store, make_photo):
        photo = make_photo()
        record_id = await _enqueue(store, f"file://{photo}")
        assert (await store.get(record_id)) is not None

    async def test_ids_unique_and_ordered(self, store, make_photo):
        ids = [await _enqueue(store, make_photo()) for _ in range(5)]
        assert len(set(ids)) == 5
        assert [r.id for r in await store.list_all()] == ids

    async def test_extension_kept(self, store, make_photo):
        record_id = await _enqueue(store, make_photo("shot.png"))
        assert (await store.get(record_id)).asset_uri.endswith(".png")

    async def test_failed_write_keeps_source_photo(self, store, make_photo, monkeypatch):
        await store.list_all()
        photo = make_photo()

        def broken_write(doc):
            raise PersistenceError("disk full")

        monkeypatch.setattr(store, "_write_sync", broken_write)
        with pytest.raises(PersistenceError):
            await _enqueue(store, photo)
        monkeypatch.undo()

        assert photo.read_bytes() == b"\xff\xd8\xff fake jpeg"
        assert list(store.asset_dir.iterdir()) == []
        assert await store.list_all() == []

    async def test_failed_write_restores_moved_photo(self, store, make_photo, monkeypatch):
        await store.list_all()
        photo = make_photo()

        def broken_copy(src, dst):
            raise OSError("cross-device copy")

        def broken_write(doc):
            raise PersistenceError("disk full")

        monkeypatch.setattr("borghi.persistence.capture_queue.shutil.copy2", broken_copy)
        monkeypatch.setattr(store, "_write_sync", broken_write)
        with pytest.raises(PersistenceError):
            await _enqueue(store, photo)
        monkeypatch.undo()

        assert photo.is_file()
        assert list(store.asset_dir.iterdir()) == []


class TestRemove:
    async def test_remove_record_and_asset(self, store, make_photo):
        record_id = await _enqueue(store, make_photo())
        asset = store.asset_dir / f"{record_id}.jpg"

        assert await store.remove(record_id) is True
        assert await store.get(record_id) is None
        assert not asset.exists()

    async def test_remove_twice(self, store, make_photo):
        record_id = await _enqueue(store, make_photo())
        assert await store.remove(record_id) is True
        assert await store.remove(record_id) is False

    async def test_remove_with_asset_already_gone(self, store, make_photo):
        record_id = await _enqueue(store, make_photo())
        (store.asset_dir / f"{record_id}.jpg").unlink()
        assert await store.remove(record_id) is True


class TestDrain:
    async def test_success_marks_done(self, store, make_photo):
        a = await _enqueue(store, make_photo())
        b = await _enqueue(store, make_photo())
        upload = Uploader()

        report = await store.drain(upload)

        assert upload.calls == [a, b]
        assert report.uploaded == 2
        assert all(r.status == CaptureStatus.DONE for r in await store.list_all())

    async def test_done_is_terminal(self, store, make_photo):
        await _enqueue(store, make_photo())
        await store.drain(Uploader())
        upload = Uploader()
        report = await store.drain(upload)
        assert upload.calls == []
        assert report.processed == 0

    async def test_failure_increments_tries(self, store, make_photo):
        record_id = await _enqueue(store, make_photo())
        report = await store.drain(Uploader(failing={record_id}))

        record = await store.get(record_id)
        assert record.status == CaptureStatus.PENDING
        assert record.tries == 1
        assert record.last_error == f"boom {record_id}"
        assert report.retried == 1

    async def test_one_failure_does_not_stop_others(self, store, make_photo):
        a = await _enqueue(store, make_photo())
        b = await _enqueue(store, make_photo())
        upload = Uploader(failing={a})

        await store.drain(upload)

        assert upload.calls == [a, b]
        assert (await store.get(a)).status == CaptureStatus.PENDING
        assert (await store.get(b)).status == CaptureStatus.DONE

    async def test_retry_ceiling(self, store, make_photo):
        record_id = await _enqueue(store, make_photo())
        upload = Uploader(failing={record_id})

        for expected_tries in range(1, 6):
            await store.drain(upload)
            record = await store.get(record_id)
            assert record.tries == expected_tries
            assert record.status == CaptureStatus.PENDING

        report = await store.drain(upload)
        record = await store.get(record_id)
        assert record.status == CaptureStatus.FAILED
        assert record.tries == 5
        assert len(upload.calls) == 5
        assert report.failed == 1

        await store.drain(upload)
        assert len(upload.calls) == 5

    async def test_success_clears_last_error(self, store, make_photo):
        record_id = await _enqueue(store, make_photo())
        await store.drain(Uploader(failing={record_id}))
        await store.drain(Uploader())

        record = await store.get(record_id)
        assert record.status == CaptureStatus.DONE
        assert record.last_error is None
        assert record.tries == 1

    async def test_single_write_per_drain(self, store, make_photo, monkeypatch):
        for _ in range(3):
            await _enqueue(store, make_photo())
        writes = []
        original = store._write_sync
        monkeypatch.setattr(store, "_write_sync", lambda doc: (writes.append(doc), original(doc)))

        await store.drain(Uploader())
        assert len(writes) == 1

    async def test_no_pending_no_write(self, store, make_photo, monkeypatch):
        await _enqueue(store, make_photo())
        await store.drain(Uploader())
        writes = []
        monkeypatch.setattr(store, "_write_sync", writes.append)

        await store.drain(Uploader())
        assert writes == []

    async def test_enqueue_during_drain_survives(self, store, make_photo):
        first = await _enqueue(store, make_photo())
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_upload(record):
            started.set()
            await release.wait()

        drain_task = asyncio.create_task(store.drain(slow_upload))
        await started.wait()
        second = await _enqueue(store, make_photo())
        release.set()
        await drain_task

        assert (await store.get(first)).status == CaptureStatus.DONE
        assert (await store.get(second)).status == CaptureStatus.PENDING
    async def test_remove_during_drain_stays_removed(self, store, make_photo):
        record_id = await _enqueue(store, make_photo())
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_upload(record):
            started.set()
            await release.wait()

        drain_task = asyncio.create_task(store.drain(slow_upload))
        await started.wait()
        assert await store.remove(record_id) is True
        release.set()
        await drain_task

        assert await store.list_all() == []

    async def test_overlapping_drains_run_in_turn(self, store, make_photo):
        record_id = await _enqueue(store, make_photo())
        started = asyncio.Event()
        release = asyncio.Event()
        calls = []

        async def slow_ok(record):
            calls.append("ok")
            started.set()
            await release.wait()

        async def failing(record):
            calls.append("bad")
            raise RuntimeError("boom")

        first = asyncio.create_task(store.drain(slow_ok))
        await started.wait()
        second = asyncio.create_task(store.drain(failing))
        await asyncio.sleep(0)
        release.set()
        first_report, second_report = await asyncio.gather(first, second)

        assert calls == ["ok"]
        assert first_report.uploaded == 1
        assert second_report.processed == 0
        record = await store.get(record_id)
        assert record.status == CaptureStatus.DONE
        assert record.tries == 0

    async def test_enqueue_not_blocked_by_drain(self, store, make_photo):
        await _enqueue(store, make_photo())
        started = asyncio.Event()
        release = asyncio.Event()

        async def slow_upload(record):
            started.set()
            await release.wait()

        drain_task = asyncio.create_task(store.drain(slow_upload))
        await started.wait()
        second = await asyncio.wait_for(_enqueue(store, make_photo()), timeout=5)
        release.set()
        await drain_task
        assert (await store.get(second)).status == CaptureStatus.PENDING


class TestDocumentRecovery:
    async def test_legacy_array_is_upgraded(self, tmp_path):
        root = tmp_path / "data"
        root.mkdir()
        legacy = [{
            "id": "1700000000000", "uri": "/x/1700000000000.jpg",
            "villageId": "v", "villageName": "V",
            "lat": 1.0, "lng": 2.0, "heading": 90.0,
            "takenAt": "2023-11-14T22:13:20Z", "status": "pending", "tries": 0,
        }]
        (root / QUEUE_FILENAME).write_text(json.dumps(legacy), encoding="utf-8")

        store = CaptureQueueStore(root)
        records = await store.list_all()

        assert [r.id for r in records] == ["1700000000000"]
        on_disk = json.loads((root / QUEUE_FILENAME).read_text(encoding="utf-8"))
        assert isinstance(on_disk, dict)
        assert on_disk["items"][0]["id"] == "1700000000000"

    async def test_corrupt_document_resets(self, tmp_path):
        root = tmp_path / "data"
        root.mkdir()
        (root / QUEUE_FILENAME).write_text("{not json", encoding="utf-8")

        store = CaptureQueueStore(root)
        assert await store.list_all() == []
        assert json.loads((root / QUEUE_FILENAME).read_text(encoding="utf-8")) == {"items": []}

    async def test_first_use_creates_layout(self, store):
        assert await store.list_all() == []
        assert store.queue_path.is_file()
        assert store.asset_dir.is_dir()


class TestCanSync:
    async def test_no_gate_is_permissive(self, store):
        assert await store.can_sync() is True

    async def test_gate_consulted(self, tmp_path):
        class Closed:
            async def can_sync(self):
                return False

        store = CaptureQueueStore(tmp_path, gate=Closed())
        assert await store.can_sync() is False
