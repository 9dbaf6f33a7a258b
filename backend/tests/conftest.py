import sys
from pathlib import Path

import pytest

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from abuse_triage.domain import container
from abuse_triage.settings import settings


@pytest.fixture(autouse=True)
def force_test_settings():
	"""Dev mode so the API honours X-User-* identity headers."""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture(autouse=True)
def reset_container():
	yield
	container.configure(
		policy=container.QuotaPolicy.from_settings(settings),
		history=container.InMemoryReportHistory(url_max_length=settings.url_max_length),
		ownership=container.InMemoryOwnershipStore(),
		classifier=container.StaticSpamClassifier(verdict=False),
		snapshots=container.RecordingSnapshotDispatcher(),
		orphan_account_id=None,
	)
