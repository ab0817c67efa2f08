import os
import random
import tempfile

# must be set before app modules read the environment
_TMP = tempfile.mkdtemp(prefix="studygraph-tests-")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["WORKFLOW_LOG_DIR"] = os.path.join(_TMP, "logs")
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ.pop("GENAI_API_KEY", None)
os.environ.pop("GOOGLE_MAPS_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from app.config import Settings
from app.ingestion.seed import seed_store
from app.main import create_app
from app.planner.clients import AiSuggestionClient, DistanceClient
from app.planner.pipeline import StudyPlanner
from app.store import InMemoryProfileStore, SqlProfileStore


@pytest.fixture
def memory_store():
    return InMemoryProfileStore()


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return InMemoryProfileStore()
    return SqlProfileStore.from_url("sqlite://")


@pytest.fixture
def mock_planner():
    return StudyPlanner(ai=AiSuggestionClient(rng=random.Random(42)), maps=DistanceClient())


@pytest.fixture
def client(tmp_path, store, mock_planner):
    settings = Settings(database_url="sqlite://", upload_dir=str(tmp_path / "uploads"))
    app = create_app(settings=settings, store=store, planner=mock_planner)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def seeded_client(client):
    seed_store(client.app.state.services.store)
    return client
