"""
Database models package
"""
from tai_test.models.user import User
from tai_test.models.test_result import TestResult
from tai_test.models.sync_log import SyncLog
from tai_test.models.user_stats import UserStats

__all__ = ["User", "TestResult", "SyncLog", "UserStats"]
