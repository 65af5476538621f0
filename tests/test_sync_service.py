"""
Tests for the sync client and reconciler, end to end against the API app
and with a mocked client for failure paths.
"""
from datetime import datetime
from unittest.mock import MagicMock

import httpx
import pytest

from tai_test.schemas.result import TestResultResponse
from tai_test.services.sync_client import SyncApiClient, SyncApiError
from tai_test.services.sync_service import SyncReconciler, remote_to_local

from conftest import START_MS, USER_TOKEN, make_question


@pytest.fixture
def api_client(client):
    return SyncApiClient(token=USER_TOKEN, http=client)


@pytest.fixture
def reconciler(store, api_client, clock):
    return SyncReconciler(store, api_client, clock=clock)


@pytest.fixture
def mock_client():
    return MagicMock(spec=SyncApiClient)


def remote_payload(result_id, block_id="block2", score=3, total=4):
    questions = [make_question(block_id, n).model_dump(mode="json") for n in range(total)]
    answers = {q["id"]: ("a" if i < score else "") for i, q in enumerate(questions)}
    return {
        "id": result_id,
        "type": "block",
        "block_id": block_id,
        "block_name": "Tecnología Básica",
        "score": score,
        "total_questions": total,
        "percentage": score / total * 100,
        "duration": 120,
        "user_answers": answers,
        "questions": questions,
    }


class TestSyncApiClient:

    def test_error_status_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="down"))
        api = SyncApiClient(token="t", http=httpx.Client(transport=transport, base_url="http://sync.test"))

        with pytest.raises(SyncApiError) as exc:
            api.list_test_results()
        assert exc.value.status_code == 500

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        api = SyncApiClient(http=httpx.Client(transport=httpx.MockTransport(handler), base_url="http://sync.test"))

        with pytest.raises(SyncApiError):
            api.get_stats()

    def test_sends_bearer_token(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=[])

        api = SyncApiClient(token="abc", http=httpx.Client(transport=httpx.MockTransport(handler), base_url="http://sync.test"))

        assert api.get_sync_log() == []
        assert seen["auth"] == "Bearer abc"

    def test_unexpected_payload_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[{"id": "x"}]))
        api = SyncApiClient(http=httpx.Client(transport=transport, base_url="http://sync.test"))

        with pytest.raises(SyncApiError):
            api.list_test_results()


class TestRemoteToLocal:

    def test_conversion(self):
        row = TestResultResponse(
            user_id=1,
            created_at=datetime(2023, 11, 14, 22, 13, 20),
            **{**remote_payload("r1"), "percentage": 75},
        )

        result = remote_to_local(row)

        assert result.created_at == START_MS
        assert result.end_time == START_MS
        assert result.start_time == START_MS - 120_000
        assert result.percentage == 75.0
        assert list(result.user_answers.values()) == ["a", "a", "a", None]
        assert result.questions[0].id == "block2-q00"


class TestPush:

    def test_uploads_all_results(self, reconciler, store, result_factory, client, auth_headers):
        store.save(result_factory("r1", 10, block_id="block1"))
        store.save(result_factory("r2", 15))

        summary = reconciler.push()

        assert summary.uploaded == 2
        assert summary.failed == 0
        remote = client.get("/api/tests", headers=auth_headers).json()
        assert {r["id"] for r in remote} == {"r1", "r2"}

        log = client.get("/api/sync/log", headers=auth_headers).json()
        assert sorted(e["entity_id"] for e in log) == ["r1", "r2"]
        assert {e["device_id"] for e in log} == {reconciler.device_id}

        assert reconciler.state.last_sync_time == START_MS
        assert reconciler.state.synced_count == 2
        assert reconciler.get_last_sync_time() == START_MS

    def test_repeated_push_is_idempotent(self, reconciler, store, result_factory, client, auth_headers):
        store.save(result_factory("r1", 10))

        reconciler.push()
        reconciler.push()

        assert len(client.get("/api/tests", headers=auth_headers).json()) == 1

    def test_item_failure_does_not_stop_batch(self, store, mock_client, result_factory):
        store.save(result_factory("r1", 10))
        store.save(result_factory("r2", 12))
        mock_client.create_test_result.side_effect = [SyncApiError("boom", 500), "r2"]
        reconciler = SyncReconciler(store, mock_client)

        summary = reconciler.push()

        assert summary.uploaded == 1
        assert summary.failed == 1
        assert summary.error == "boom"
        assert reconciler.state.sync_error == "boom"
        mock_client.record_sync_event.assert_called_once_with(
            reconciler.device_id, "upload", "testResult", "r2"
        )


class TestPull:

    def test_downloads_remote_only_results(self, reconciler, store, client, auth_headers):
        client.post("/api/tests", json=remote_payload("remote-1"), headers=auth_headers)

        summary = reconciler.pull()

        assert summary.downloaded == 1
        [result] = store.list()
        assert result.id == "remote-1"
        assert result.block_id == "block2"
        assert result.percentage == 75.0
        assert result.start_time == result.created_at - 120_000
        assert sum(1 for v in result.user_answers.values() if v is None) == 1
        assert store.get_stats().total_tests == 1

        log = client.get("/api/sync/log", headers=auth_headers).json()
        assert [e["action"] for e in log] == ["download"]

    def test_repeated_pull_is_idempotent(self, reconciler, store, client, auth_headers):
        client.post("/api/tests", json=remote_payload("remote-1"), headers=auth_headers)

        reconciler.pull()
        summary = reconciler.pull()

        assert summary.downloaded == 0
        assert len(store.list()) == 1

    def test_other_users_results_are_not_pulled(self, reconciler, store, client, other_auth_headers):
        client.post("/api/tests", json=remote_payload("theirs"), headers=other_auth_headers)

        assert reconciler.pull().downloaded == 0
        assert store.list() == []

    def test_list_failure_keeps_last_sync(self, store, mock_client):
        mock_client.list_test_results.side_effect = SyncApiError("offline")
        reconciler = SyncReconciler(store, mock_client)

        summary = reconciler.pull()

        assert summary.error == "offline"
        assert reconciler.state.sync_error == "offline"
        assert reconciler.state.is_syncing is False
        assert reconciler.state.last_sync_time is None
        assert reconciler.get_last_sync_time() is None

    def test_malformed_remote_row_is_skipped(self, store, mock_client):
        mock_client.list_test_results.return_value = [
            TestResultResponse(
                user_id=1,
                created_at=datetime(2023, 11, 14),
                **{**remote_payload("bad"), "questions": [{"id": "x"}]},
            )
        ]
        reconciler = SyncReconciler(store, mock_client)

        summary = reconciler.pull()

        assert summary.downloaded == 0
        assert summary.failed == 1
        assert store.list() == []


class TestBidirectional:

    def test_merge_without_duplicates(self, reconciler, store, result_factory, client, auth_headers):
        store.save(result_factory("local-1", 10))
        store.save(result_factory("local-2", 11))
        client.post("/api/tests", json=remote_payload("remote-1"), headers=auth_headers)

        first = reconciler.bidirectional()
        second = reconciler.bidirectional()

        assert (first.uploaded, first.downloaded) == (2, 1)
        assert second.downloaded == 0
        assert sorted(r.id for r in store.list()) == ["local-1", "local-2", "remote-1"]
        assert len(client.get("/api/tests", headers=auth_headers).json()) == 3

    def test_push_failure_does_not_block_pull(self, store, mock_client, result_factory):
        store.save(result_factory("r1", 10))
        mock_client.create_test_result.side_effect = SyncApiError("boom")
        mock_client.list_test_results.return_value = []
        reconciler = SyncReconciler(store, mock_client)

        summary = reconciler.bidirectional()

        assert summary.failed == 1
        assert summary.error == "boom"
        mock_client.list_test_results.assert_called_once()


class TestGuards:

    def test_unauthenticated_is_skipped(self, store, mock_client):
        reconciler = SyncReconciler(store, mock_client, authenticated=False)

        assert reconciler.push().skipped
        assert reconciler.pull().skipped
        assert reconciler.bidirectional().skipped
        assert mock_client.method_calls == []

    def test_overlapping_run_is_skipped(self, store, mock_client, result_factory):
        store.save(result_factory("r1", 10))
        inner = []
        reconciler = SyncReconciler(store, mock_client)

        def reenter(result):
            inner.append(reconciler.push())
            return result.id

        mock_client.create_test_result.side_effect = reenter

        outer = reconciler.push()

        assert outer.uploaded == 1
        assert inner[0].skipped
        assert reconciler.state.is_syncing is False

    def test_device_id_is_persisted(self, store, mock_client):
        first = SyncReconciler(store, mock_client).device_id
        second = SyncReconciler(store, mock_client).device_id

        assert first == second
        assert len(first) == 36
