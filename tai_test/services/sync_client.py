"""
HTTP client for the cloud backend used by the sync reconciler
"""
import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from tai_test.config import settings
from tai_test.schemas.result import TestResult, TestResultCreated, TestResultResponse
from tai_test.schemas.stats import UserStatsResponse
from tai_test.schemas.sync import SyncLogResponse

logger = logging.getLogger(__name__)


class SyncApiError(Exception):
    """Raised for transport failures and non-2xx responses"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SyncApiClient:
    """
    Thin wrapper over the backend's test, stats and sync endpoints

    Any httpx.Client may be supplied (a FastAPI TestClient works too);
    otherwise one is built from settings.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        timeout: Optional[float] = None
    ):
        self.http = http or httpx.Client(
            base_url=base_url or settings.SYNC_API_URL,
            timeout=timeout or settings.SYNC_TIMEOUT
        )
        self.headers = {"Authorization": f"Bearer {token}"} if token else {}

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = self.http.request(method, path, headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            raise SyncApiError(f"{method} {path} failed: {str(e)}") from e

        logger.debug(f"{method} {path} -> {response.status_code}")
        if response.status_code >= 400:
            raise SyncApiError(
                f"{method} {path} returned {response.status_code}: {response.text}",
                status_code=response.status_code
            )
        try:
            return response.json()
        except ValueError as e:
            raise SyncApiError(f"{method} {path} returned invalid JSON: {str(e)}") from e

    def _parse(self, schema, data):
        try:
            return schema(**data)
        except (TypeError, ValidationError) as e:
            raise SyncApiError(f"Unexpected {schema.__name__} payload: {str(e)}") from e

    def create_test_result(self, result: TestResult) -> str:
        payload = {
            "id": result.id,
            "type": result.type,
            "block_id": result.block_id,
            "block_name": result.block_name,
            "score": result.score,
            "total_questions": result.total_questions,
            "percentage": result.percentage,
            "duration": result.duration,
            "user_answers": {k: v or "" for k, v in result.user_answers.items()},
            "questions": [q.model_dump(mode="json") for q in result.questions],
        }
        return self._parse(TestResultCreated, self._request("POST", "/api/tests", json=payload)).id

    def list_test_results(self) -> List[TestResultResponse]:
        return [self._parse(TestResultResponse, row) for row in self._request("GET", "/api/tests")]

    def record_sync_event(
        self,
        device_id: str,
        action: str,
        entity_type: str,
        entity_id: Optional[str] = None
    ) -> SyncLogResponse:
        payload = {
            "device_id": device_id,
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
        }
        return self._parse(SyncLogResponse, self._request("POST", "/api/sync/events", json=payload))

    def get_stats(self) -> Optional[UserStatsResponse]:
        data = self._request("GET", "/api/stats")
        return self._parse(UserStatsResponse, data) if data else None

    def get_sync_log(self) -> List[SyncLogResponse]:
        return [self._parse(SyncLogResponse, row) for row in self._request("GET", "/api/sync/log")]

    def close(self) -> None:
        self.http.close()
