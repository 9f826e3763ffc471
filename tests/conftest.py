# tests/conftest.py
import random

import pytest
from fastapi.testclient import TestClient

from app.errors import ProviderUnavailable
from app.features.illustrations.service import IllustrationService, get_illustration_service
from app.main import app
from tests.fakes import OCEAN_STORY, FakeImageProvider, FakeStorageBackend, FlakyStoryStore, no_sleep_policy


@pytest.fixture
def story_record():
    return {
        "title": "Emma and the Moon Shell",
        "content": OCEAN_STORY,
        "theme": "Ocean",
        "child_name": "Emma",
        "appearance": {"hairColor": "brown"},
    }


@pytest.fixture
def store(tmp_path, story_record):
    s = FlakyStoryStore(str(tmp_path))
    s.put_story("story-1", story_record)
    return s


@pytest.fixture
def provider():
    return FakeImageProvider()


@pytest.fixture
def backend():
    return FakeStorageBackend()


@pytest.fixture
def service(store, provider, backend):
    return IllustrationService(
        store,
        provider,
        backend,
        rng=random.Random(7),
        policy=no_sleep_policy(),
        max_workers=2,
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_illustration_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def unavailable_error():
    return ProviderUnavailable("invalid api key")
