from __future__ import annotations

import pytest

from gcsbucket.common.config import Settings
from gcsbucket.infra.storage.http_bucket import HttpBucket
from gcsbucket.testing.clock import SimulatedClock
from tests.storage.fake_gcs import FakeGcsServer

TEST_PROJECT = "test-project"
TEST_BUCKET = "test-bucket"


@pytest.fixture()
def settings() -> Settings:
    return Settings(GCS_PROJECT_ID=TEST_PROJECT, GCS_BUCKET=TEST_BUCKET)


@pytest.fixture()
def clock() -> SimulatedClock:
    return SimulatedClock()


@pytest.fixture()
def fake_server(settings, clock) -> FakeGcsServer:
    return FakeGcsServer(settings=settings, clock=clock, bucket_name=TEST_BUCKET)


@pytest.fixture()
def fake_bucket(settings, fake_server) -> HttpBucket:
    return HttpBucket(
        project_id=TEST_PROJECT,
        name=TEST_BUCKET,
        executor=fake_server,
        settings=settings,
    )
