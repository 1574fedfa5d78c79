"""Constants shared by fixtures and tests."""
from datetime import datetime, timezone


TEST_PRINCIPAL = "user_test_principal"
BASE_TIME = datetime(2026, 1, 1, 9, 0, tzinfo=timezone.utc)
