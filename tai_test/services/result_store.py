"""
Device-local persistence for test results, statistics and app settings

Three independent JSON documents are kept in a KeyValueStorage and each is
round-tripped whole. Storage failures never propagate: reads fall back to
empty/default values and writes report False.
"""
import logging
from typing import Any, Iterable, List, Optional

from pydantic import ValidationError

from tai_test.config import settings
from tai_test.schemas.result import TestResult
from tai_test.schemas.settings import AppSettings
from tai_test.schemas.stats import UserStats
from tai_test.utils.local_storage import KeyValueStorage, StorageError

logger = logging.getLogger(__name__)

STORAGE_KEYS = {
    "TEST_RESULTS": "tai_test_results",
    "USER_STATS": "tai_user_stats",
    "APP_SETTINGS": "tai_app_settings",
}


def compute_stats(
    results: Iterable[TestResult],
    questions_per_block: Optional[int] = None
) -> UserStats:
    """
    Derive aggregate statistics from a full list of results

    - average_percentage = total_correct / total_attempted * 100
    - block percentage = correct / (attempts * questions_per_block) * 100
    """
    questions_per_block = questions_per_block or settings.QUESTIONS_PER_BLOCK_TEST
    stats = UserStats()

    for result in sorted(results, key=lambda r: r.created_at):
        stats.total_tests += 1
        stats.total_attempted += result.total_questions
        stats.total_correct += result.score

        if result.block_id:
            block = stats.block_stats[result.block_id]
            block.attempts += 1
            block.correct += result.score
            block.percentage = block.correct / (block.attempts * questions_per_block) * 100
            block.last_attempt = result.created_at

    if stats.total_attempted:
        stats.average_percentage = stats.total_correct / stats.total_attempted * 100

    return stats


class ResultStore:
    """Local result collection with a stats view kept in sync on every mutation"""

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    # ---- Test results ----

    def _load_results(self) -> List[TestResult]:
        raw = self.storage.get(STORAGE_KEYS["TEST_RESULTS"]) or []
        if not isinstance(raw, list):
            raise StorageError(f"Expected a list of results, got {type(raw).__name__}")

        results = []
        for index, item in enumerate(raw):
            try:
                results.append(TestResult(**item))
            except (TypeError, ValidationError) as e:
                logger.warning(f"Skipping malformed stored result at position {index}: {str(e)}")
        return results

    def _write_results(self, results: List[TestResult]) -> None:
        self.storage.set(
            STORAGE_KEYS["TEST_RESULTS"],
            [r.model_dump(mode="json") for r in results]
        )
        self._refresh_stats(results)

    def save(self, result: TestResult) -> bool:
        """Append a result and refresh stats. Returns False if it could not be persisted."""
        try:
            results = self._load_results()
            results.append(result)
            self._write_results(results)
            logger.info(f"Saved test result {result.id} ({result.score}/{result.total_questions})")
            return True
        except (StorageError, ValidationError) as e:
            logger.error(f"Error saving test result: {str(e)}")
            return False

    def list(self) -> List[TestResult]:
        """All stored results, in storage order"""
        try:
            return self._load_results()
        except (StorageError, ValidationError) as e:
            logger.error(f"Error getting test results: {str(e)}")
            return []

    def get(self, result_id: str) -> Optional[TestResult]:
        for result in self.list():
            if result.id == result_id:
                return result
        return None

    def delete_one(self, result_id: str) -> bool:
        try:
            results = [r for r in self._load_results() if r.id != result_id]
            self._write_results(results)
            return True
        except (StorageError, ValidationError) as e:
            logger.error(f"Error deleting test result {result_id}: {str(e)}")
            return False

    def clear_all(self) -> bool:
        try:
            self.storage.delete(STORAGE_KEYS["TEST_RESULTS"])
            self._refresh_stats([])
            return True
        except StorageError as e:
            logger.error(f"Error clearing test results: {str(e)}")
            return False

    def replace_all(self, results: List[TestResult]) -> bool:
        """Bulk replace, used when merging downloaded results"""
        try:
            self._write_results(list(results))
            return True
        except StorageError as e:
            logger.error(f"Error replacing test results: {str(e)}")
            return False

    def by_block(self, block_id: str) -> List[TestResult]:
        return [r for r in self.list() if r.block_id == block_id]

    def by_type(self, test_type: str) -> List[TestResult]:
        return [r for r in self.list() if r.type == test_type]

    def recent(self, limit: int = 10) -> List[TestResult]:
        return sorted(self.list(), key=lambda r: r.created_at, reverse=True)[:limit]

    # ---- User statistics ----

    def _refresh_stats(self, results: List[TestResult]) -> None:
        try:
            self.storage.set(STORAGE_KEYS["USER_STATS"], compute_stats(results).model_dump(mode="json"))
        except StorageError as e:
            logger.error(f"Error updating user stats: {str(e)}")

    def get_stats(self) -> UserStats:
        try:
            data = self.storage.get(STORAGE_KEYS["USER_STATS"])
            return UserStats(**data) if data else UserStats()
        except (StorageError, ValidationError) as e:
            logger.error(f"Error getting user stats: {str(e)}")
            return UserStats()

    def reset_stats(self) -> bool:
        try:
            self.storage.set(STORAGE_KEYS["USER_STATS"], UserStats().model_dump(mode="json"))
            return True
        except StorageError as e:
            logger.error(f"Error resetting user stats: {str(e)}")
            return False

    # ---- App settings ----

    def get_settings(self) -> AppSettings:
        try:
            data = self.storage.get(STORAGE_KEYS["APP_SETTINGS"])
            return AppSettings(**data) if data else AppSettings()
        except (StorageError, ValidationError) as e:
            logger.error(f"Error getting app settings: {str(e)}")
            return AppSettings()

    def update_settings(self, **changes: Any) -> AppSettings:
        """Merge changes over the current settings and persist them"""
        current = self.get_settings()
        try:
            updated = AppSettings(**{**current.model_dump(), **changes})
            self.storage.set(STORAGE_KEYS["APP_SETTINGS"], updated.model_dump(mode="json"))
            return updated
        except (StorageError, ValidationError) as e:
            logger.error(f"Error updating app settings: {str(e)}")
            return current

    def clear_all_data(self) -> bool:
        try:
            self.storage.delete(*STORAGE_KEYS.values())
            return True
        except StorageError as e:
            logger.error(f"Error clearing all data: {str(e)}")
            return False

