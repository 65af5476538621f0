"""
Sync reconciler between the device result store and the cloud backend

Best-effort and idempotent by result id:
- push uploads every local result; the backend ignores ids it already holds
- pull appends remote results whose id is unknown locally
- per-item upload failures are logged and skipped, never retried
"""
import logging
import threading
from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import uuid4

from pydantic import ValidationError

from tai_test.schemas.question import Question
from tai_test.schemas.result import TestResult, TestResultResponse
from tai_test.schemas.sync import SyncState, SyncSummary
from tai_test.services.result_store import ResultStore
from tai_test.services.session_engine import now_ms
from tai_test.services.sync_client import SyncApiClient, SyncApiError
from tai_test.utils.local_storage import StorageError

logger = logging.getLogger(__name__)

DEVICE_ID_KEY = "tai_test_device_id"
LAST_SYNC_KEY = "tai_test_last_sync"


def _epoch_ms(value: datetime) -> int:
    # Backend timestamps are UTC, naive when the database drops the zone
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp() * 1000)


def remote_to_local(row: TestResultResponse) -> TestResult:
    """Convert a backend result row into the device-local result shape"""
    created = _epoch_ms(row.created_at)
    total = row.total_questions
    return TestResult(
        id=row.id,
        type=row.type,
        block_id=row.block_id or None,
        block_name=row.block_name or None,
        start_time=created - row.duration * 1000,
        end_time=created,
        questions=[Question(**q) for q in row.questions],
        user_answers={k: v or None for k, v in row.user_answers.items()},
        score=row.score,
        total_questions=total,
        percentage=(row.score / total * 100) if total else float(row.percentage),
        duration=row.duration,
        created_at=created,
    )


class SyncReconciler:
    """
    Merges local and remote result collections

    Runs are serialized: a trigger that arrives while another run is in
    flight returns immediately with a skipped summary.
    """

    def __init__(
        self,
        store: ResultStore,
        client: SyncApiClient,
        authenticated: bool = True,
        clock: Optional[Callable[[], int]] = None
    ):
        self.store = store
        self.client = client
        self.authenticated = authenticated
        self.clock = clock or now_ms
        self.state = SyncState()
        self._lock = threading.Lock()
        self._device_id: Optional[str] = None

    @property
    def device_id(self) -> str:
        """Random id generated once and persisted to tag sync-log entries"""
        if self._device_id:
            return self._device_id
        storage = self.store.storage
        try:
            device_id = storage.get(DEVICE_ID_KEY)
            if not device_id:
                device_id = str(uuid4())
                storage.set(DEVICE_ID_KEY, device_id)
                logger.info(f"Generated device id {device_id}")
        except StorageError as e:
            logger.error(f"Error loading device id: {str(e)}")
            device_id = str(uuid4())
        self._device_id = device_id
        return device_id

    def get_last_sync_time(self) -> Optional[int]:
        try:
            value = self.store.storage.get(LAST_SYNC_KEY)
            return int(value) if value is not None else None
        except (StorageError, ValueError) as e:
            logger.error(f"Error reading last sync time: {str(e)}")
            return None

    # ---- Public operations ----

    def push(self) -> SyncSummary:
        return self._run("upload", self._push)

    def pull(self) -> SyncSummary:
        return self._run("download", self._pull)

    def bidirectional(self) -> SyncSummary:
        return self._run("sync", self._push_then_pull)

    # ---- Internals ----

    def _run(self, action: str, operation: Callable[[], SyncSummary]) -> SyncSummary:
        if not self.authenticated:
            return SyncSummary(action=action, skipped=True)

        if not self._lock.acquire(blocking=False):
            logger.info(f"Sync already in progress, skipping {action}")
            return SyncSummary(action=action, skipped=True)

        self.state.is_syncing = True
        self.state.sync_error = None
        try:
            summary = operation()
            if summary.error:
                self.state.sync_error = summary.error
            return summary
        finally:
            self.state.is_syncing = False
            self._lock.release()

    def _mark_synced(self, count: int) -> None:
        now = self.clock()
        try:
            self.store.storage.set(LAST_SYNC_KEY, now)
        except StorageError as e:
            logger.error(f"Error saving last sync time: {str(e)}")
        self.state.last_sync_time = now
        self.state.synced_count = count

    def _push(self) -> SyncSummary:
        summary = SyncSummary(action="upload")
        results = self.store.list()

        for result in results:
            try:
                self.client.create_test_result(result)
                self.client.record_sync_event(self.device_id, "upload", "testResult", result.id)
                summary.uploaded += 1
            except SyncApiError as e:
                logger.error(f"Error syncing test result {result.id}: {str(e)}")
                summary.failed += 1
                summary.error = str(e)

        logger.info(f"Uploaded {summary.uploaded}/{len(results)} results")
        self._mark_synced(summary.uploaded)
        return summary

    def _pull(self) -> SyncSummary:
        summary = SyncSummary(action="download")

        try:
            rows = self.client.list_test_results()
        except SyncApiError as e:
            logger.error(f"Error fetching remote results: {str(e)}")
            summary.error = str(e)
            return summary

        local = self.store.list()
        known = {r.id for r in local}
        new_results: List[TestResult] = []

        for row in rows:
            if row.id in known:
                continue
            try:
                new_results.append(remote_to_local(row))
                known.add(row.id)
            except ValidationError as e:
                logger.error(f"Skipping malformed remote result {row.id}: {str(e)}")
                summary.failed += 1

        if new_results and not self.store.replace_all(local + new_results):
            summary.error = "Failed to store downloaded results"
            return summary
        summary.downloaded = len(new_results)

        try:
            self.client.record_sync_event(self.device_id, "download", "testResult")
        except SyncApiError as e:
            logger.error(f"Error recording download event: {str(e)}")
            summary.error = str(e)
            return summary

        logger.info(f"Downloaded {summary.downloaded} new results ({len(rows)} remote)")
        self._mark_synced(summary.downloaded)
        return summary

    def _push_then_pull(self) -> SyncSummary:
        pushed = self._push()
        pulled = self._pull()
        return SyncSummary(
            action="sync",
            uploaded=pushed.uploaded,
            downloaded=pulled.downloaded,
            failed=pushed.failed + pulled.failed,
            error=pulled.error or pushed.error,
        )
